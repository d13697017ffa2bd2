import logging
from datetime import timedelta

from django.http import JsonResponse
from django.utils import timezone
from django.views.decorators.csrf import csrf_exempt

from ..constants import ASSISTANT_PERSONA
from ..context_ranker import find_relevant_context
from ..firebase_service import firestore_service
from ..http import dispatch, json_body, require_env
from ..intents import detect_event_intent, detect_task_intent
from ..llm_service import chat_completion, create_client, generate_embedding
from ..serializers import serialize_conversation
from ..utils import run_async

logger = logging.getLogger("flohub")

CHAT_ROLES = ("user", "assistant", "system")


class EmptyCompletionError(Exception):
    pass


def build_messages(history, user_input, relevant_context):
    messages = [
        {"role": "system", "content": ASSISTANT_PERSONA},
        {"role": "system", "content": f"Relevant context:\n{relevant_context}"},
    ]
    for message in history:
        role = message.get("role") if isinstance(message, dict) else None
        messages.append({
            "role": role if role in CHAT_ROLES else "user",
            "content": (message.get("content") if isinstance(message, dict) else None) or "",
        })
    messages.append({"role": "user", "content": user_input})
    return messages


async def answer(history, user_input, notes, meetings, conversations):
    client = create_client()
    try:
        async def embed(text):
            return await generate_embedding(client, text)

        relevant_context = await find_relevant_context(user_input, notes, meetings, conversations, embed)
        reply = await chat_completion(client, build_messages(history, user_input, relevant_context))
    finally:
        await client.close()

    if not reply:
        raise EmptyCompletionError("OpenAI did not return a message.")
    return reply


def _chat(request, email):
    data, error = json_body(request)
    if error:
        return error

    history = data.get("history", [])
    user_input = data.get("message") or data.get("prompt") or ""

    if not isinstance(history, list) or not isinstance(user_input, str) or not user_input:
        return JsonResponse(
            {"error": "Invalid request body - missing message/prompt or invalid history"},
            status=400,
        )

    task_intent = detect_task_intent(user_input)
    if task_intent:
        firestore_service.create_task(email, task_intent.text, due_date=task_intent.due_date)
        due = f" (due {task_intent.due_phrase})" if task_intent.due_date else ""
        logger.info(f"[ASSISTANT] Added task for {email}: {task_intent.text}")
        return JsonResponse({"reply": f'✅ Task "{task_intent.text}" added{due}.'})

    event_intent = detect_event_intent(user_input)
    if event_intent:
        start = timezone.now()
        firestore_service.add_calendar_event(email, event_intent.summary, start, start + timedelta(hours=1))
        logger.info(f"[ASSISTANT] Scheduled event for {email}: {event_intent.summary}")
        return JsonResponse({"reply": f'📅 Event "{event_intent.summary}" scheduled.'})

    missing = require_env("OPENAI_API_KEY")
    if missing:
        return missing

    notes = firestore_service.user_notes(email)
    meetings = firestore_service.user_meeting_notes(email)
    conversations = firestore_service.user_conversations(email)

    try:
        reply = run_async(answer(history, user_input, notes, meetings, conversations))
    except EmptyCompletionError as e:
        return JsonResponse({"error": str(e)}, status=500)

    return JsonResponse({"reply": reply})


def _list_conversations(request, email):
    conversations = firestore_service.user_conversations(email)
    return JsonResponse({"conversations": [serialize_conversation(c) for c in conversations]})


def _save_conversation(request, email):
    data, error = json_body(request)
    if error:
        return error

    messages = data.get("messages")
    if not isinstance(messages, list) or not all(isinstance(m, dict) for m in messages):
        return JsonResponse({"error": "Invalid messages format"}, status=400)

    conversation = firestore_service.save_conversation(email, messages)
    return JsonResponse({"conversations": [serialize_conversation(conversation)]}, status=201)


@csrf_exempt
def assistant(request):
    """
    Chat with FloCat. "add task ..." and "add event ..." prompts are handled
    directly; anything else goes to the chat model with ranked context from
    the user's notes, meeting notes and past conversations.
    """
    return dispatch(request, "ASSISTANT", {"POST": _chat})


@csrf_exempt
def conversations(request):
    return dispatch(request, "ASSISTANT/CONVERSATIONS", {"GET": _list_conversations, "POST": _save_conversation})
