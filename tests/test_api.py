"""Tests for the dashboard HTTP API."""
import pytest
from fastapi.testclient import TestClient

from config import RemoteConfig
from dashboard.app import create_app
from dashboard.dependencies import ServiceContainer
from database.storage import MemoryStore
from services.ai_service import StudyAssistant
from services.auth import AuthService
from services.session import StudySession


def make_container(store, completion_client):
    return ServiceContainer(
        store=store,
        session=StudySession(store),
        auth=AuthService(RemoteConfig(), store=store),
        assistant=StudyAssistant(completion_client),
    )


@pytest.fixture
def api_store():
    return MemoryStore()


@pytest.fixture
def client(api_store, completion_client):
    with TestClient(create_app(make_container(api_store, completion_client))) as test_client:
        yield test_client


@pytest.fixture
def signed_in(client):
    response = client.post("/api/session/local", json={"name": "Ada"})
    assert response.status_code == 200
    return client


class TestHealthAndSession:
    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert "X-Process-Time" in response.headers

    def test_requires_sign_in(self, client):
        assert client.get("/api/tasks").status_code == 401
        assert client.get("/api/session").json()["signedIn"] is False

    def test_local_login(self, signed_in):
        data = signed_in.get("/api/session").json()

        assert data["signedIn"] is True
        assert data["identity"]["displayName"] == "Ada"
        assert data["identity"]["authType"] == "local"

    def test_blank_name_rejected(self, client):
        assert client.post("/api/session/local", json={"name": "   "}).status_code == 401

    def test_cloud_sign_in_unavailable(self, client):
        response = client.post("/api/session/signin", json={"email": "ada@example.com", "password": "secret1"})

        assert response.status_code == 401
        assert "not configured" in response.json()["detail"]

    def test_logout(self, signed_in):
        assert signed_in.post("/api/session/logout").json() == {"signedIn": False}
        assert signed_in.get("/api/stats").status_code == 401

    def test_session_restored_on_startup(self, api_store, completion_client):
        with TestClient(create_app(make_container(api_store, completion_client))) as first:
            first.post("/api/session/local", json={"name": "Ada"})
            first.post("/api/tasks", json={"text": "Flashcards", "priority": "low"})

        with TestClient(create_app(make_container(api_store, completion_client))) as second:
            tasks = second.get("/api/tasks").json()["tasks"]

        assert "Flashcards" in [task["text"] for task in tasks]

    def test_snapshot(self, signed_in):
        data = signed_in.get("/api/session/snapshot").json()

        assert data["stats"]["level"] == 1
        assert len(data["tasks"]) == 3


class TestTasksApi:
    def test_list_in_display_order(self, signed_in):
        data = signed_in.get("/api/tasks").json()

        assert [task["id"] for task in data["tasks"]] == [1, 3, 2]
        assert data["pending"] == 2

    def test_create_and_toggle(self, signed_in):
        created = signed_in.post("/api/tasks", json={"text": "Essay", "priority": "high"})
        assert created.status_code == 201
        task_id = created.json()["task"]["id"]

        toggled = signed_in.post(f"/api/tasks/{task_id}/toggle").json()

        assert toggled["task"]["completed"] is True
        assert toggled["stats"]["xp"] == 30
        assert toggled["stats"]["totalTasksCompleted"] == 1

    def test_invalid_priority(self, signed_in):
        assert signed_in.post("/api/tasks", json={"text": "Essay", "priority": "urgent"}).status_code == 422

    def test_unknown_task(self, signed_in):
        assert signed_in.post("/api/tasks/999/toggle").status_code == 404
        assert signed_in.delete("/api/tasks/999").status_code == 404

    def test_focus_and_delete(self, signed_in):
        focus = signed_in.put("/api/tasks/focus", json={"taskId": 1}).json()
        assert focus["focusedTaskId"] == 1

        deleted = signed_in.delete("/api/tasks/1").json()

        assert deleted["focusedTaskId"] is None


class TestProgressApi:
    def test_stats_and_achievements(self, signed_in):
        stats = signed_in.get("/api/stats").json()
        achievements = signed_in.get("/api/achievements").json()

        assert stats["rank"] == "Novice"
        assert achievements["total"] == 10

    def test_manual_xp_level_up(self, signed_in):
        data = signed_in.post("/api/stats/xp", json={"amount": 520}).json()

        assert data["leveledUp"] is True
        assert data["stats"]["level"] == 2
        assert data["stats"]["xp"] == 20

    def test_preferences(self, signed_in):
        data = signed_in.patch("/api/preferences", json={"darkMode": False}).json()

        assert data == {"darkMode": False, "notifications": True, "sound": True}

    def test_reset_needs_confirmation(self, signed_in):
        response = signed_in.post("/api/reset", json={})

        assert response.status_code == 400
        assert response.json()["confirmationRequired"] is True

    def test_reset(self, signed_in):
        data = signed_in.post("/api/reset", json={"confirm": True}).json()

        assert data["stats"]["maxXp"] == 100
        assert signed_in.get("/api/tasks").json()["tasks"] == []

    def test_timer(self, signed_in):
        assert signed_in.put("/api/timer/mode", json={"mode": "shortBreak"}).json()["timeLeft"] == 300
        assert signed_in.post("/api/timer/toggle").json()["isActive"] is True
        assert signed_in.post("/api/timer/reset").json()["isActive"] is False


class TestChallengesAndNotesApi:
    def test_challenge_flow(self, signed_in):
        created = signed_in.post("/api/challenges", json={"title": "Read daily", "duration": 30})
        challenge_id = created.json()["challenge"]["id"]

        first = signed_in.post(f"/api/challenges/{challenge_id}/check-in", json={"success": True}).json()
        second = signed_in.post(f"/api/challenges/{challenge_id}/check-in", json={"success": True}).json()
        listing = signed_in.get("/api/challenges").json()

        assert first["applied"] is True
        assert first["stats"]["xp"] == 10
        assert second["applied"] is False
        assert second["stats"]["xp"] == 10
        assert listing["challenges"][0]["canCheckIn"] is False

    def test_unknown_challenge(self, signed_in):
        assert signed_in.post("/api/challenges/5/check-in", json={"success": True}).status_code == 404

    def test_daily_notes(self, signed_in):
        signed_in.put("/api/notes/2025-03-10", json={"content": "Integrals"})

        assert signed_in.get("/api/notes/2025-03-10").json()["content"] == "Integrals"
        assert signed_in.put("/api/notes/not-a-date", json={"content": "x"}).status_code == 400
        assert signed_in.put("/api/notes/2025-03-10garbage", json={"content": "x"}).status_code == 400

    def test_subjects(self, signed_in):
        subject = signed_in.post("/api/subjects", json={"name": "Physics"}).json()["subject"]
        note = signed_in.post(f"/api/subjects/{subject['id']}/notes",
                              json={"title": "Kinematics", "content": "v = u + at"}).json()["note"]

        listing = signed_in.get("/api/subjects", params={"q": "phys"}).json()

        assert listing["subjects"][0]["notes"][0]["id"] == note["id"]
        assert signed_in.post("/api/subjects", json={"name": "Art", "color": "red"}).status_code == 400


class TestAssistantApi:
    def test_chat_adds_task(self, signed_in, completion_client):
        completion_client.complete.return_value = "[ADD_TASK:Past papers:high] Added! 🚀"

        data = signed_in.post("/api/assistant/chat", json={"message": "add past papers, high"}).json()

        assert data["createdTask"]["text"] == "Past papers"
        assert data["message"]["text"] == "Added! 🚀"
        texts = [task["text"] for task in signed_in.get("/api/tasks").json()["tasks"]]
        assert "Past papers" in texts

    def test_chat_without_command(self, signed_in):
        data = signed_in.post("/api/assistant/chat", json={"message": "hi"}).json()

        assert data["createdTask"] is None
        assert data["message"]["sender"] == "ai"

    def test_sync_status_for_local_user(self, signed_in):
        data = signed_in.get("/api/sync").json()

        assert data["status"] == "idle"
        assert data["remote"] is False

    def test_sync_retry(self, signed_in, client):
        data = signed_in.post("/api/sync/retry").json()

        assert data["ready"] is True
        assert data["loaded"] is True
        assert client.post("/api/session/logout").status_code == 200
        assert client.post("/api/sync/retry").status_code == 401
