"""
API tests for the schedule router, run against a fixture store.
"""

from datetime import date, datetime, timedelta

import pytest
from fastapi.testclient import TestClient

from api.schedule_router import get_state_store
from api.server import app

HEADERS = {"X-User-Id": "user-1"}
TODAY = date.today()


def at(hour: int, minute: int = 0, day: date = TODAY) -> str:
    return datetime(day.year, day.month, day.day, hour, minute).isoformat()


@pytest.fixture
def client(store):
    app.dependency_overrides[get_state_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()


def create(client, title, start, end, **extra):
    response = client.post(
        "/api/schedule/blocks",
        json={"title": title, "start_time": start, "end_time": end, **extra},
        headers=HEADERS,
    )
    assert response.status_code == 200, response.text
    return response.json()


class TestAuth:
    def test_list_without_owner_is_empty(self, client):
        create(client, "Mine", at(9), at(10))

        response = client.get("/api/schedule/blocks", params={"date": TODAY.isoformat()})

        assert response.status_code == 200
        assert response.json() == {"items": [], "total": 0}

    @pytest.mark.parametrize(
        "method,path",
        [
            ("post", "/api/schedule/blocks"),
            ("post", "/api/schedule/recurring"),
            ("delete", "/api/schedule/blocks/block_x"),
            ("put", "/api/schedule/settings"),
        ],
    )
    def test_mutations_need_owner(self, client, method, path):
        kwargs = {} if method == "delete" else {"json": {}}
        response = getattr(client, method)(path, **kwargs)
        assert response.status_code in (401, 422)

    def test_create_without_owner_is_401(self, client):
        response = client.post(
            "/api/schedule/blocks",
            json={"title": "x", "start_time": at(9), "end_time": at(10)},
        )
        assert response.status_code == 401


class TestBlocks:
    def test_create_and_list(self, client):
        body = create(client, "Deep work", at(9), at(11), block_type="focus")

        assert body["success"]
        assert body["message"] == "Block created"
        assert body["overlapping_ids"] == []

        listed = client.get(
            "/api/schedule/blocks", params={"date": TODAY.isoformat()}, headers=HEADERS
        ).json()
        assert listed["total"] == 1
        assert listed["items"][0]["title"] == "Deep work"
        assert listed["items"][0]["role"] == "single"

    def test_invalid_range_is_400(self, client):
        response = client.post(
            "/api/schedule/blocks",
            json={"title": "Backwards", "start_time": at(11), "end_time": at(10)},
            headers=HEADERS,
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "End time must be after start time"

    def test_overlap_is_advisory(self, client):
        first = create(client, "Meeting", at(10), at(11))
        second = create(client, "Double booked", at(10, 30), at(11, 30))

        assert second["success"]
        assert second["overlapping_ids"] == [first["block"]["id"]]

    def test_overlap_endpoint_half_open(self, client):
        create(client, "Meeting", at(10), at(11))

        touching = client.get(
            "/api/schedule/overlap", params={"start": at(11), "end": at(12)}, headers=HEADERS
        ).json()
        crossing = client.get(
            "/api/schedule/overlap", params={"start": at(10, 59), "end": at(12)}, headers=HEADERS
        ).json()

        assert touching["total"] == 0
        assert crossing["total"] == 1

    def test_update_complete_delete(self, client):
        block_id = create(client, "Draft", at(9), at(10))["block"]["id"]

        patched = client.patch(
            f"/api/schedule/blocks/{block_id}", json={"title": "Final"}, headers=HEADERS
        )
        assert patched.json()["block"]["title"] == "Final"

        done = client.post(f"/api/schedule/blocks/{block_id}/complete", headers=HEADERS)
        assert done.json()["block"]["completed_at"] is not None

        gone = client.delete(f"/api/schedule/blocks/{block_id}", headers=HEADERS)
        assert gone.status_code == 200
        assert client.get(f"/api/schedule/blocks/{block_id}", headers=HEADERS).status_code == 404

    def test_patch_bad_range_is_400(self, client):
        block_id = create(client, "Fixed", at(9), at(10))["block"]["id"]
        response = client.patch(
            f"/api/schedule/blocks/{block_id}", json={"end_time": at(8)}, headers=HEADERS
        )
        assert response.status_code == 400

    def test_from_todo(self, client):
        response = client.post(
            "/api/schedule/blocks/from-todo",
            json={"todo_id": "todo-1", "title": "Quarterly review", "start_time": at(14), "duration_minutes": 30},
            headers=HEADERS,
        )
        block = response.json()["block"]
        assert block["todo_id"] == "todo-1"
        assert block["block_type"] == "task"

    def test_range_rejects_reversed_dates(self, client):
        response = client.get(
            "/api/schedule/blocks/range",
            params={"start": TODAY.isoformat(), "end": (TODAY - timedelta(days=1)).isoformat()},
            headers=HEADERS,
        )
        assert response.status_code == 400


class TestRecurring:
    def test_create_skip_and_delete_family(self, client):
        created = client.post(
            "/api/schedule/recurring",
            json={"title": "Standup", "start_time": at(9, 30), "end_time": at(9, 45)},
            headers=HEADERS,
        ).json()
        assert created["instance_count"] == 30

        templates = client.get("/api/schedule/recurring/templates", headers=HEADERS).json()
        assert [t["id"] for t in templates["items"]] == [created["root_id"]]

        tomorrow = client.get(
            "/api/schedule/blocks",
            params={"date": (TODAY + timedelta(days=1)).isoformat()},
            headers=HEADERS,
        ).json()["items"][0]
        assert tomorrow["parent_block_id"] == created["root_id"]

        skipped = client.post(f"/api/schedule/recurring/{tomorrow['id']}/skip", headers=HEADERS)
        assert skipped.status_code == 200

        deleted = client.delete(f"/api/schedule/recurring/{tomorrow['id']}", headers=HEADERS)
        assert deleted.status_code == 404

        deleted = client.delete(f"/api/schedule/recurring/{created['root_id']}", headers=HEADERS).json()
        assert deleted["success"]
        assert deleted["instances_deleted"] == 28
        assert deleted["root_deleted"]

    def test_weekly_rejected(self, client):
        response = client.post(
            "/api/schedule/recurring",
            json={
                "title": "Review",
                "start_time": at(9),
                "end_time": at(10),
                "recurrence": {"frequency": "weekly", "interval": 1},
            },
            headers=HEADERS,
        )
        assert response.status_code == 400


class TestViews:
    def test_layout(self, client):
        create(client, "Short", at(9), at(9, 10))

        layout = client.get(
            "/api/schedule/layout", params={"date": TODAY.isoformat()}, headers=HEADERS
        ).json()

        item = layout["items"][0]
        assert item["top_px"] == 540
        assert item["height_px"] == 30
        assert layout["hour_height"] == 60

    def test_conflicts(self, client):
        create(client, "A", at(10), at(11))
        create(client, "B", at(10, 30), at(12))

        conflicts = client.get(
            "/api/schedule/conflicts", params={"date": TODAY.isoformat()}, headers=HEADERS
        ).json()
        assert conflicts["total"] == 1
        assert conflicts["items"][0]["overlap_minutes"] == 30


class TestPlansAndSettings:
    def test_plan_roundtrip(self, client):
        day = TODAY.isoformat()
        saved = client.put(
            f"/api/schedule/plans/{day}",
            json={"top_priorities": ["todo-1", "todo-2"], "intention": "Ship it", "is_completed": True},
            headers=HEADERS,
        ).json()
        assert saved["plan"]["completed_at"] is not None

        fetched = client.get(f"/api/schedule/plans/{day}", headers=HEADERS).json()
        assert fetched["top_priorities"] == ["todo-1", "todo-2"]
        assert fetched["intention"] == "Ship it"

    def test_too_many_priorities(self, client):
        response = client.put(
            f"/api/schedule/plans/{TODAY.isoformat()}",
            json={"top_priorities": ["a", "b", "c", "d"]},
            headers=HEADERS,
        )
        assert response.status_code == 400

    def test_missing_plan_is_404(self, client):
        assert client.get(f"/api/schedule/plans/{TODAY.isoformat()}", headers=HEADERS).status_code == 404

    def test_settings(self, client):
        assert client.get("/api/schedule/settings").json()["pomodoro_work_minutes"] == 25

        updated = client.put(
            "/api/schedule/settings", json={"pomodoro_work_minutes": 50}, headers=HEADERS
        ).json()
        assert updated["settings"]["pomodoro_work_minutes"] == 50

        bad = client.put("/api/schedule/settings", json={"default_view": "month"}, headers=HEADERS)
        assert bad.status_code == 400

        not_a_number = client.put(
            "/api/schedule/settings", json={"pomodoro_work_minutes": "abc"}, headers=HEADERS
        )
        assert not_a_number.status_code == 400

    def test_sessions_empty(self, client):
        assert client.get("/api/schedule/pomodoro/sessions", headers=HEADERS).json()["total"] == 0


def test_health(client):
    body = client.get("/api/health").json()
    assert body["status"] == "healthy"
