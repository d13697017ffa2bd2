from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from flohub.views.assistant import EmptyCompletionError, answer, build_messages
from tests.conftest import USER_EMAIL

JSON = "application/json"


def test_build_messages():
    messages = build_messages(
        [{"role": "assistant", "content": "Hi!"}, {"role": "robot", "content": None}],
        "What's next?",
        "Note: plan - ship it\n",
    )

    assert messages[0]["role"] == "system"
    assert "FloCat" in messages[0]["content"]
    assert messages[1] == {"role": "system", "content": "Relevant context:\nNote: plan - ship it\n"}
    assert messages[2] == {"role": "assistant", "content": "Hi!"}
    assert messages[3] == {"role": "user", "content": ""}
    assert messages[4] == {"role": "user", "content": "What's next?"}


@pytest.fixture()
def openai_client():
    client = MagicMock()
    client.close = AsyncMock()
    with patch("flohub.views.assistant.create_client", return_value=client):
        yield client


@pytest.mark.asyncio
async def test_answer_uses_ranked_context(openai_client):
    notes = [{"title": "Plan", "content": "ship it"}]
    with patch("flohub.views.assistant.generate_embedding", new=AsyncMock(return_value=[1.0, 0.0])) as embed, \
         patch("flohub.views.assistant.chat_completion", new=AsyncMock(return_value="Meow!")) as chat:
        reply = await answer([], "What's the plan?", notes, [], [])

    assert reply == "Meow!"
    assert embed.await_count == 2
    sent = chat.await_args.args[1]
    assert sent[1]["content"] == "Relevant context:\nNote: Plan - ship it\n"
    openai_client.close.assert_awaited_once()


@pytest.mark.asyncio
async def test_answer_without_reply_raises(openai_client):
    with patch("flohub.views.assistant.chat_completion", new=AsyncMock(return_value=None)):
        with pytest.raises(EmptyCompletionError):
            await answer([], "hello", [], [], [])
    openai_client.close.assert_awaited_once()


def test_add_task_shortcut(client, fake_db):
    response = client.post("/api/assistant", {"message": "add task buy milk due tomorrow"}, content_type=JSON)

    assert response.status_code == 200
    assert response.json()["reply"] == '✅ Task "buy milk" added (due tomorrow).'
    tasks = list(fake_db.all("users", USER_EMAIL, "tasks").values())
    assert tasks[0]["text"] == "buy milk"
    assert tasks[0]["dueDate"].hour == 23


def test_add_event_shortcut(client, fake_db):
    response = client.post("/api/assistant", {"prompt": "schedule event dentist"}, content_type=JSON)

    assert response.json()["reply"] == '📅 Event "dentist" scheduled.'
    events = list(fake_db.all("users", USER_EMAIL, "calendarEvents").values())
    assert events[0]["summary"] == "dentist"
    assert "dateTime" in events[0]["start"]


@patch("flohub.views.assistant.answer", new_callable=AsyncMock, return_value="Purr, here you go.")
def test_chat_reply(mock_answer, client):
    response = client.post("/api/assistant", {"message": "summarize my week", "history": []}, content_type=JSON)

    assert response.status_code == 200
    assert response.json() == {"reply": "Purr, here you go."}
    assert mock_answer.await_args.args[1] == "summarize my week"


@patch("flohub.views.assistant.answer", new_callable=AsyncMock, side_effect=EmptyCompletionError("OpenAI did not return a message."))
def test_chat_empty_reply(mock_answer, client):
    response = client.post("/api/assistant", {"message": "hello"}, content_type=JSON)
    assert response.status_code == 500
    assert response.json() == {"error": "OpenAI did not return a message."}


@patch("flohub.views.assistant.answer", new_callable=AsyncMock, side_effect=RuntimeError("upstream down"))
def test_chat_upstream_failure(mock_answer, client):
    assert client.post("/api/assistant", {"message": "hello"}, content_type=JSON).status_code == 500


def test_chat_embedding_failure_is_server_error(openai_client, client):
    client.post("/api/notes/create", {"title": "Plan", "content": "ship it"}, content_type=JSON)
    failing = AsyncMock(side_effect=RuntimeError("embedding quota exceeded"))

    with patch("flohub.views.assistant.generate_embedding", new=failing), \
         patch("flohub.views.assistant.chat_completion", new=AsyncMock()) as chat:
        response = client.post("/api/assistant", {"message": "what's my plan"}, content_type=JSON)

    assert response.status_code == 500
    assert response.json() == {"error": "embedding quota exceeded"}
    assert failing.await_count >= 1
    chat.assert_not_awaited()
    openai_client.close.assert_awaited_once()


def test_chat_validation(client, anon_client):
    assert client.post("/api/assistant", {"history": []}, content_type=JSON).status_code == 400
    assert client.post("/api/assistant", {"message": "hi", "history": "x"}, content_type=JSON).status_code == 400
    assert anon_client.post("/api/assistant", {"message": "hi"}, content_type=JSON).status_code == 401
    assert client.get("/api/assistant").status_code == 405


def test_conversations(client, other_client):
    response = client.post(
        "/api/assistant/conversations",
        {"messages": [{"role": "user", "content": "hi"}, {"role": "assistant", "content": "meow"}]},
        content_type=JSON,
    )
    assert response.status_code == 201

    conversations = client.get("/api/assistant/conversations").json()["conversations"]
    assert len(conversations) == 1
    assert [m["content"] for m in conversations[0]["messages"]] == ["hi", "meow"]
    assert conversations[0]["messages"][0]["timestamp"]
    assert other_client.get("/api/assistant/conversations").json()["conversations"] == []

    assert client.post("/api/assistant/conversations", {"messages": "hi"}, content_type=JSON).status_code == 400


def test_chat_without_openai_key(client, monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    response = client.post("/api/assistant", {"message": "hello"}, content_type=JSON)
    assert response.status_code == 500
    assert response.json()["missing"] == ["OPENAI_API_KEY"]
