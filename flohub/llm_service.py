"""
OpenAI access for the assistant: embeddings, chat completions and meeting summaries.

Clients are created per request pipeline because each sync view drives its
own event loop through ``run_async``.
"""
import logging
import os
from typing import Optional, List, Dict, Any

from openai import AsyncOpenAI

from .constants import OPENAI_CHAT_MODEL, OPENAI_EMBEDDING_MODEL

logger = logging.getLogger("flohub")

MEETING_SUMMARY_SYSTEM_PROMPT = (
    "You are a helpful assistant that summarizes meeting notes concisely and professionally."
)


def create_client() -> AsyncOpenAI:
    return AsyncOpenAI(api_key=os.environ.get("OPENAI_API_KEY"))


async def generate_embedding(client: AsyncOpenAI, text: str) -> List[float]:
    response = await client.embeddings.create(model=OPENAI_EMBEDDING_MODEL, input=text)
    return response.data[0].embedding


async def chat_completion(client: AsyncOpenAI, messages: List[Dict[str, str]]) -> Optional[str]:
    completion = await client.chat.completions.create(model=OPENAI_CHAT_MODEL, messages=messages)
    if not completion.choices:
        return None
    return completion.choices[0].message.content


def meeting_summary_prompt(agenda: str, content: str, actions: List[Dict[str, Any]]) -> str:
    lines = [
        "Please provide a concise summary of this meeting based on the following information:",
        "",
        "Agenda:",
        agenda,
        "",
        "Meeting Notes:",
        content,
    ]
    if actions:
        lines += ["", "Action Items:"]
        lines += [
            f"- {action.get('description', '')} (Assigned to: {action.get('assignedTo', '')})"
            for action in actions
        ]
    lines += ["", "Provide a 2-3 sentence summary that captures the key points and decisions."]
    return "\n".join(lines)


async def summarize_meeting(agenda: str, content: str, actions: List[Dict[str, Any]]) -> Optional[str]:
    """Summarize a meeting note; failures are logged and yield None."""
    client = create_client()
    try:
        return await chat_completion(client, [
            {"role": "system", "content": MEETING_SUMMARY_SYSTEM_PROMPT},
            {"role": "user", "content": meeting_summary_prompt(agenda, content, actions)},
        ]) or None
    except Exception as e:
        logger.error(f"[LLM] Meeting summary failed: {e}")
        return None
    finally:
        await client.close()
