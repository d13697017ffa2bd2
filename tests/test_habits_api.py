from datetime import date
from unittest.mock import patch

from tests.conftest import USER_EMAIL

JSON = "application/json"


def create_habit(client, **fields):
    response = client.post("/api/habits", {"name": "Read", **fields}, content_type=JSON)
    assert response.status_code == 201
    return response.json()


def test_create_and_list(client):
    habit = create_habit(client, frequency="weekly", color="#fff")

    assert habit["userId"] == USER_EMAIL
    assert habit["frequency"] == "weekly"
    habits = client.get("/api/habits").json()
    assert [h["id"] for h in habits] == [habit["id"]]


def test_frequency_defaults_to_daily(client):
    assert create_habit(client)["frequency"] == "daily"


def test_create_validation(client):
    assert client.post("/api/habits", {"name": " "}, content_type=JSON).status_code == 400
    assert client.post("/api/habits", {"name": "Read", "frequency": "hourly"}, content_type=JSON).status_code == 400


def test_update_habit(client, other_client):
    habit = create_habit(client)

    response = client.patch("/api/habits", {"id": habit["id"], "name": "Read more"}, content_type=JSON)
    assert response.status_code == 200
    assert response.json()["name"] == "Read more"

    assert other_client.patch("/api/habits", {"id": habit["id"], "name": "x"}, content_type=JSON).status_code == 403
    assert client.patch("/api/habits", {"id": "missing", "name": "x"}, content_type=JSON).status_code == 404
    assert client.patch("/api/habits", {"id": habit["id"], "frequency": "never"}, content_type=JSON).status_code == 400


def test_delete_habit_with_completions(client, fake_db):
    habit = create_habit(client)
    client.post("/api/habits/completions", {"habitId": habit["id"], "date": "2025-06-04"}, content_type=JSON)

    response = client.delete(f"/api/habits?id={habit['id']}")

    assert response.json() == {"success": True}
    assert fake_db.all("habits") == {}
    assert fake_db.all("habitCompletions") == {}


def test_toggle_and_month_listing(client):
    habit = create_habit(client)

    first = client.post("/api/habits/completions", {"habitId": habit["id"], "date": "2025-06-04"}, content_type=JSON)
    assert first.json()["completed"] is True
    second = client.post("/api/habits/completions", {"habitId": habit["id"], "date": "2025-06-04"}, content_type=JSON)
    assert second.json()["completed"] is False
    client.post("/api/habits/completions", {"habitId": habit["id"], "date": "2025-07-01"}, content_type=JSON)

    june = client.get("/api/habits/completions", {"year": "2025", "month": "5"}).json()
    assert [c["date"] for c in june] == ["2025-06-04"]


def test_completion_validation(client, other_client):
    habit = create_habit(client)

    assert client.get("/api/habits/completions", {"year": "2025"}).status_code == 400
    assert client.get("/api/habits/completions", {"year": "x", "month": "1"}).status_code == 400
    assert client.get("/api/habits/completions", {"year": "2025", "month": "12"}).status_code == 400
    assert client.post("/api/habits/completions", {"habitId": habit["id"]}, content_type=JSON).status_code == 400
    assert client.post(
        "/api/habits/completions", {"habitId": habit["id"], "date": "June 4"}, content_type=JSON
    ).status_code == 400
    assert other_client.post(
        "/api/habits/completions", {"habitId": habit["id"], "date": "2025-06-04"}, content_type=JSON
    ).status_code == 403


def test_stats(client):
    habit = create_habit(client)
    for day in ("2025-06-02", "2025-06-03"):
        client.post("/api/habits/completions", {"habitId": habit["id"], "date": day}, content_type=JSON)

    with patch("flohub.views.habits.timezone") as tz:
        tz.now.return_value.date.return_value = date(2025, 6, 4)
        stats = client.get("/api/habits/stats", {"habitId": habit["id"]}).json()

    assert stats["habitId"] == habit["id"]
    assert stats["currentStreak"] == 2
    assert stats["longestStreak"] == 2
    assert stats["totalCompletions"] == 2


def test_stats_requires_habit_id(client):
    assert client.get("/api/habits/stats").status_code == 400
