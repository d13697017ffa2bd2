from unittest.mock import AsyncMock, patch

from tests.conftest import OTHER_EMAIL, USER_EMAIL

JSON = "application/json"


def create_note(client, **fields):
    body = {"title": "Groceries", "content": "milk, eggs", "tags": ["home"], **fields}
    response = client.post("/api/notes/create", body, content_type=JSON)
    assert response.status_code == 201
    return response.json()["noteId"]


def test_create_and_list_notes(client, fake_db):
    note_id = create_note(client)

    stored = fake_db.all("notes")[note_id]
    assert stored["userId"] == USER_EMAIL
    assert stored["tags"] == ["home"]

    notes = client.get("/api/notes").json()["notes"]
    assert [n["id"] for n in notes] == [note_id]
    assert notes[0]["title"] == "Groceries"


def test_create_note_validation(client):
    assert client.post("/api/notes/create", {"content": "  "}, content_type=JSON).status_code == 400
    assert client.post("/api/notes/create", {"content": "x", "tags": [1]}, content_type=JSON).status_code == 400


def test_update_note(client, fake_db):
    note_id = create_note(client)

    response = client.put("/api/notes/update", {"id": note_id, "title": "Shopping"}, content_type=JSON)

    assert response.status_code == 200
    assert fake_db.all("notes")[note_id]["title"] == "Shopping"


def test_update_note_checks(client, other_client):
    note_id = create_note(client)

    assert client.put("/api/notes/update", {"id": note_id}, content_type=JSON).status_code == 400
    assert client.put("/api/notes/update", {"title": "x"}, content_type=JSON).status_code == 400
    assert client.put("/api/notes/update", {"id": note_id, "content": 3}, content_type=JSON).status_code == 400
    assert client.put("/api/notes/update", {"id": "missing", "title": "x"}, content_type=JSON).status_code == 404
    assert other_client.put("/api/notes/update", {"id": note_id, "title": "x"}, content_type=JSON).status_code == 403


def test_delete_only_owned_notes(client, other_client, fake_db):
    mine = create_note(client)
    theirs = create_note(other_client)

    response = client.delete("/api/notes/delete", {"ids": [mine, theirs]}, content_type=JSON)

    assert response.status_code == 200
    assert response.json()["deleted"] == 1
    assert response.json()["skipped"] == [theirs]
    assert list(fake_db.all("notes")) == [theirs]
    assert fake_db.all("notes")[theirs]["userId"] == OTHER_EMAIL


def test_delete_requires_ids(client):
    assert client.delete("/api/notes/delete", {"ids": []}, content_type=JSON).status_code == 400


def test_search_by_tag(client):
    create_note(client, tags=["q2"])
    create_note(client, tags=["other"])
    client.post("/api/tasks", {"text": "Plan q2", "tags": ["q2"]}, content_type=JSON)

    items = client.get("/api/search", {"tag": "q2"}).json()["items"]

    assert [i.get("text") or i.get("content") for i in items] == ["Plan q2", "milk, eggs"]
    assert items[1]["source"] == "notespage"
    assert client.get("/api/search").status_code == 400


@patch("flohub.views.meetings.summarize_meeting", new_callable=AsyncMock, return_value="Short summary.")
def test_create_meeting_note_with_actions(summarize, client, fake_db):
    response = client.post("/api/meetings/create", {
        "title": "Standup",
        "content": "Discussed release",
        "eventId": "evt1",
        "eventTitle": "Daily standup",
        "agenda": "Release status",
        "actions": [
            {"id": "a1", "description": "Ship build", "assignedTo": "Me", "status": "todo"},
            {"id": "a2", "description": "Review PR", "assignedTo": "Sam", "status": "todo"},
            {"id": "a3", "description": "Write notes", "assignedTo": "Me", "status": "done"},
        ],
    }, content_type=JSON)

    assert response.status_code == 201
    note = fake_db.all("notes")[response.json()["noteId"]]
    assert note["aiSummary"] == "Short summary."
    summarize.assert_awaited_once()

    tasks = sorted(fake_db.all("users", USER_EMAIL, "tasks").values(), key=lambda t: t["text"])
    assert [(t["text"], t["done"], t["source"]) for t in tasks] == [
        ("Ship build", False, "work"),
        ("Write notes", True, "work"),
    ]

    meeting_notes = client.get("/api/meetings").json()["meetingNotes"]
    assert meeting_notes[0]["aiSummary"] == "Short summary."
    assert len(meeting_notes[0]["actions"]) == 3


@patch("flohub.views.meetings.summarize_meeting", new_callable=AsyncMock)
def test_meeting_without_agenda_skips_summary(summarize, client):
    response = client.post("/api/meetings/create", {"content": "Quick sync", "isAdhoc": True}, content_type=JSON)

    assert response.status_code == 201
    summarize.assert_not_called()
    assert len(client.get("/api/meetings").json()["meetingNotes"]) == 1


def test_plain_notes_are_not_meetings(client):
    create_note(client)
    assert client.get("/api/meetings").json()["meetingNotes"] == []


@patch("flohub.views.meetings.summarize_meeting", new_callable=AsyncMock, return_value="New summary.")
def test_update_meeting_note_adds_new_tasks(summarize, client, fake_db):
    note_id = client.post("/api/meetings/create", {
        "content": "Planning",
        "isAdhoc": True,
        "actions": [{"id": "a1", "description": "Ship build", "assignedTo": "Me", "status": "todo"}],
    }, content_type=JSON).json()["noteId"]

    response = client.patch("/api/meetings/update", {
        "id": note_id,
        "agenda": "Roadmap",
        "actions": [
            {"id": "a1", "description": "Ship build", "assignedTo": "Me", "status": "done"},
            {"id": "a2", "description": "Book room", "assignedTo": "Me", "status": "todo"},
        ],
    }, content_type=JSON)

    assert response.status_code == 200
    updated = response.json()["updatedNote"]
    assert updated["agenda"] == "Roadmap"
    assert updated["aiSummary"] == "New summary."
    texts = sorted(t["text"] for t in fake_db.all("users", USER_EMAIL, "tasks").values())
    assert texts == ["Book room", "Ship build"]


def test_delete_meeting_note(client, other_client, fake_db):
    note_id = client.post("/api/meetings/create", {"content": "Sync", "isAdhoc": True}, content_type=JSON).json()["noteId"]

    assert other_client.delete("/api/meetings/delete", {"id": note_id}, content_type=JSON).status_code == 403
    assert client.delete("/api/meetings/delete", {"id": note_id}, content_type=JSON).status_code == 200
    assert fake_db.all("notes") == {}
