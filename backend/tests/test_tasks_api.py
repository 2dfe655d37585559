"""Task and activity log endpoints."""

import pytest

from conftest import bearer, register_user


async def _create(client, headers, **fields):
    response = await client.post("/api/tasks", json=fields, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


@pytest.mark.asyncio
async def test_tasks_require_token(client):
    response = await client.get("/api/tasks")

    assert response.status_code == 401
    assert response.json()["detail"] == "No token provided"
    assert response.headers["www-authenticate"] == "Bearer"


@pytest.mark.asyncio
async def test_tasks_reject_bad_token(client):
    response = await client.get("/api/tasks", headers=bearer("not-a-jwt"))

    assert response.status_code == 403
    assert response.json()["detail"] == "Invalid token"


@pytest.mark.asyncio
async def test_create_then_update_audit_scenario(client, auth_headers):
    task = await _create(client, auth_headers, item="Fix bug", status_label="Open")

    history = (await client.get(f"/api/activity_logs/{task['id']}", headers=auth_headers)).json()
    assert len(history) == 1
    assert history[0]["action_type"] == "task_created"
    assert history[0]["field_name"] == "item"
    assert history[0]["old_value"] is None
    assert history[0]["new_value"] == "Fix bug"
    assert history[0]["username"] == "alice"

    response = await client.put(
        f"/api/tasks/{task['id']}",
        json={"status_label": "Done", "item": "Fix bug"},
        headers=auth_headers,
    )
    assert response.status_code == 200
    assert response.json()["status_label"] == "Done"

    history = (await client.get(f"/api/activity_logs/{task['id']}", headers=auth_headers)).json()
    assert len(history) == 2
    latest = history[0]
    assert (latest["action_type"], latest["field_name"]) == ("status_change", "status")
    assert (latest["old_value"], latest["new_value"]) == ("Open", "Done")


@pytest.mark.asyncio
async def test_unchanged_update_adds_no_entries(client, auth_headers):
    task = await _create(client, auth_headers, item="Ship", due_date="2024-05-01T00:00:00Z")
    assert task["due_date"] == "2024-05-01"

    await client.put(
        f"/api/tasks/{task['id']}",
        json={"item": "Ship", "due_date": "2024-05-01"},
        headers=auth_headers,
    )

    history = (await client.get(f"/api/activity_logs/{task['id']}", headers=auth_headers)).json()
    assert [h["action_type"] for h in history] == ["task_created"]


@pytest.mark.asyncio
async def test_update_replaces_omitted_fields(client, auth_headers):
    task = await _create(client, auth_headers, item="Ship", developer="sam", section="Next")

    response = await client.put(
        f"/api/tasks/{task['id']}", json={"item": "Ship"}, headers=auth_headers
    )

    body = response.json()
    assert body["developer"] is None
    assert body["section"] is None


@pytest.mark.asyncio
async def test_create_requires_item(client, auth_headers):
    response = await client.post("/api/tasks", json={"status_label": "Open"}, headers=auth_headers)

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_get_and_update_missing_task(client, auth_headers):
    assert (await client.get("/api/tasks/999", headers=auth_headers)).status_code == 404
    response = await client.put("/api/tasks/999", json={"item": "x"}, headers=auth_headers)
    assert response.status_code == 404
    assert response.json()["detail"] == "Task not found"


@pytest.mark.asyncio
async def test_list_orders_by_position_after_reorder(client, auth_headers):
    a = await _create(client, auth_headers, item="A")
    b = await _create(client, auth_headers, item="B")
    c = await _create(client, auth_headers, item="C")

    response = await client.post(
        "/api/tasks/reorder",
        json={"orderedIds": [b["id"], c["id"], a["id"]]},
        headers=auth_headers,
    )
    assert response.status_code == 200
    assert response.json() == {"success": True}

    listed = (await client.get("/api/tasks", headers=auth_headers)).json()
    assert [t["item"] for t in listed] == ["B", "C", "A"]
    assert [t["position"] for t in listed] == [0, 1, 2]


@pytest.mark.asyncio
async def test_create_honors_caller_position(client, auth_headers):
    first = await _create(client, auth_headers, item="A")
    pinned = await _create(client, auth_headers, item="Pinned", position=7)
    after = await _create(client, auth_headers, item="B")

    assert first["position"] == 0
    assert pinned["position"] == 7
    assert after["position"] == 8

    negative = await client.post(
        "/api/tasks", json={"item": "C", "position": -1}, headers=auth_headers
    )
    assert negative.status_code == 400


@pytest.mark.asyncio
async def test_reorder_with_unknown_id_is_atomic(client, auth_headers):
    a = await _create(client, auth_headers, item="A")
    b = await _create(client, auth_headers, item="B")

    response = await client.post(
        "/api/tasks/reorder",
        json={"orderedIds": [b["id"], 9999, a["id"]]},
        headers=auth_headers,
    )

    assert response.status_code == 404
    assert "9999" in response.json()["detail"]
    listed = (await client.get("/api/tasks", headers=auth_headers)).json()
    assert [(t["item"], t["position"]) for t in listed] == [("A", 0), ("B", 1)]


@pytest.mark.asyncio
async def test_list_filters(client, auth_headers):
    await _create(client, auth_headers, item="A", section="Next", workplace_id=1)
    await _create(client, auth_headers, item="B", section="AWS", workplace_id=1)
    await _create(client, auth_headers, item="C", section="Next", workplace_id=2)

    response = await client.get(
        "/api/tasks", params={"section": "Next", "workplace_id": 1}, headers=auth_headers
    )

    assert [t["item"] for t in response.json()] == ["A"]


@pytest.mark.asyncio
async def test_delete_keeps_history(client, auth_headers):
    task = await _create(client, auth_headers, item="Doomed")
    await client.post(
        "/api/task_updates", json={"task_id": task["id"], "text": "note"}, headers=auth_headers
    )

    response = await client.delete(f"/api/tasks/{task['id']}", headers=auth_headers)
    assert response.json() == {"success": True}

    assert (await client.get(f"/api/tasks/{task['id']}", headers=auth_headers)).status_code == 404
    updates = await client.get(f"/api/task_updates/{task['id']}", headers=auth_headers)
    assert updates.json() == []
    history = (await client.get(f"/api/activity_logs/{task['id']}", headers=auth_headers)).json()
    assert [h["action_type"] for h in history] == ["task_created"]


@pytest.mark.asyncio
async def test_actor_is_token_subject(client, auth_headers):
    bob = await register_user(client, "bob")
    task = await _create(client, auth_headers, item="Shared")

    await client.put(
        f"/api/tasks/{task['id']}",
        json={"item": "Shared", "priority_label": "High"},
        headers=bearer(bob["token"]),
    )

    history = (await client.get(f"/api/activity_logs/{task['id']}", headers=auth_headers)).json()
    assert [(h["action_type"], h["username"]) for h in history] == [
        ("priority_change", "bob"),
        ("task_created", "alice"),
    ]


@pytest.mark.asyncio
async def test_workspace_feed(client, auth_headers):
    one = await _create(client, auth_headers, item="In one", workplace_id=1)
    await _create(client, auth_headers, item="In two", workplace_id=2)

    feed = (await client.get("/api/activity_logs", params={"workspace_id": 1}, headers=auth_headers)).json()
    assert [(f["task_id"], f["task_name"]) for f in feed] == [(one["id"], "In one")]

    everything = (await client.get("/api/activity_logs", headers=auth_headers)).json()
    assert len(everything) == 2


@pytest.mark.asyncio
async def test_manual_activity_entry(client, auth_headers):
    task = await _create(client, auth_headers, item="Ship")

    response = await client.post(
        "/api/activity_logs",
        json={
            "task_id": task["id"],
            "action_type": "comment",
            "field_name": "note",
            "new_value": "ping",
        },
        headers=auth_headers,
    )
    assert response.status_code == 201
    assert response.json()["username"] == "alice"

    missing = await client.post(
        "/api/activity_logs",
        json={"task_id": 999, "action_type": "comment", "field_name": "note"},
        headers=auth_headers,
    )
    assert missing.status_code == 404
