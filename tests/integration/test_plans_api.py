"""
Integration tests for the plans, todos and marketplace API.

Requests go through the ASGI app with repositories bound to an in-memory
database.
"""

import pytest
from httpx import ASGITransport, AsyncClient

from studyplan.api import deps
from studyplan.infrastructure.local.mock_auth import MockAuthProvider
from studyplan.main import create_app

OWNER = {"Authorization": "Bearer test_user"}
STRANGER = {"Authorization": "Bearer other_user"}


@pytest.fixture
async def client(
    plan_repo, todo_repo, marketplace_repo, purchase_repo, fork_repo, activity_repo
):
    """HTTP client for an app wired to the in-memory repositories."""
    app = create_app()
    app.dependency_overrides.update(
        {
            deps.get_plan_repository: lambda: plan_repo,
            deps.get_todo_repository: lambda: todo_repo,
            deps.get_marketplace_repository: lambda: marketplace_repo,
            deps.get_purchase_repository: lambda: purchase_repo,
            deps.get_plan_fork_repository: lambda: fork_repo,
            deps.get_activity_repository: lambda: activity_repo,
            deps.get_auth_provider: lambda: MockAuthProvider(enabled=True),
        }
    )

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as http:
        yield http


async def _create_plan(client, orders=(1, 1, 2, 3)):
    response = await client.post(
        "/api/plans",
        json={
            "title": "Learn Rust",
            "difficulty": "beginner",
            "start_date": "2024-01-01T09:00:00Z",
            "steps": [{"title": f"Step {i}", "order": order} for i, order in enumerate(orders)],
        },
        headers=OWNER,
    )
    assert response.status_code == 201, response.text
    return response.json()


async def _todos(client, plan_id):
    response = await client.get(f"/api/plans/{plan_id}/full", headers=OWNER)
    assert response.status_code == 200, response.text
    return response.json()["todos"]


@pytest.mark.asyncio
async def test_health(client):
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


@pytest.mark.asyncio
async def test_missing_authorization_header(client):
    response = await client.get("/api/plans")

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_create_plan_schedules_steps(client):
    plan = await _create_plan(client)

    todos = await _todos(client, plan["id"])

    assert plan["status"] == "active"
    assert plan["difficulty"] == "easy"
    assert [todo["due_date"][:10] for todo in todos] == [
        "2024-01-01",
        "2024-01-01",
        "2024-01-02",
        "2024-01-03",
    ]


@pytest.mark.asyncio
async def test_malformed_step_is_bad_request(client):
    response = await client.post(
        "/api/plans",
        json={"title": "Bad", "steps": [{"title": "no order"}]},
        headers=OWNER,
    )

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_other_user_is_forbidden(client):
    plan = await _create_plan(client)

    get_response = await client.get(f"/api/plans/{plan['id']}", headers=STRANGER)
    shift_response = await client.post(
        f"/api/plans/{plan['id']}/shift", json={"days": 2}, headers=STRANGER
    )

    assert get_response.status_code == 403
    assert shift_response.status_code == 403
    assert [todo["due_date"][:10] for todo in await _todos(client, plan["id"])][0] == "2024-01-01"


@pytest.mark.asyncio
async def test_shift_and_complete_flow(client):
    plan = await _create_plan(client, orders=(1, 2))
    todos = await _todos(client, plan["id"])

    complete = await client.post(f"/api/todos/{todos[0]['id']}/complete", headers=OWNER)
    shifted = await client.post(
        f"/api/plans/{plan['id']}/shift", json={"days": 3}, headers=OWNER
    )

    assert complete.status_code == 200
    assert complete.json()["completed_at"] is not None
    assert shifted.status_code == 200
    assert [todo["due_date"][:10] for todo in shifted.json()] == ["2024-01-05"]
    after = await _todos(client, plan["id"])
    assert after[0]["due_date"][:10] == "2024-01-01"

    counts = await client.get(f"/api/plans/{plan['id']}/counts", headers=OWNER)
    assert counts.json() == {"total": 2, "completed": 1, "pending": 1}


@pytest.mark.asyncio
async def test_shift_from_then_reschedule(client):
    plan = await _create_plan(client, orders=(1, 2, 3))
    todos = await _todos(client, plan["id"])

    shifted = await client.post(
        f"/api/plans/{plan['id']}/shift-from",
        json={"todo_id": todos[1]["id"], "shift_by": 4},
        headers=OWNER,
    )
    rescheduled = await client.post(
        f"/api/plans/{plan['id']}/reschedule", json={}, headers=OWNER
    )

    assert shifted.status_code == 200
    assert [todo["order"] for todo in shifted.json()] == [1, 6, 7]
    assert rescheduled.status_code == 200
    assert [todo["due_date"][:10] for todo in rescheduled.json()] == [
        "2024-01-01",
        "2024-01-02",
        "2024-01-03",
    ]


@pytest.mark.asyncio
async def test_shift_from_unknown_todo(client):
    plan = await _create_plan(client, orders=(1,))

    response = await client.post(
        f"/api/plans/{plan['id']}/shift-from",
        json={"todo_id": "00000000-0000-0000-0000-000000000000", "shift_by": 1},
        headers=OWNER,
    )

    assert response.status_code == 404
    assert response.json()["detail"] == "Todo not found"


@pytest.mark.asyncio
async def test_replace_pending_steps(client):
    plan = await _create_plan(client, orders=(1, 2))

    response = await client.put(
        f"/api/plans/{plan['id']}/steps",
        json={"steps": [{"title": "Ownership", "order": 1}], "date_mode": "continue"},
        headers=OWNER,
    )

    assert response.status_code == 200
    assert [todo["title"] for todo in await _todos(client, plan["id"])] == ["Ownership"]


@pytest.mark.asyncio
async def test_publish_and_fork_listing(client):
    plan = await _create_plan(client, orders=(1, 2))

    published = await client.post(
        "/api/marketplace/publish", json={"source_plan_id": plan["id"]}, headers=OWNER
    )
    listing_id = published.json()["id"]
    forked = await client.post(f"/api/marketplace/{listing_id}/fork", headers=STRANGER)

    assert published.status_code == 201
    assert forked.status_code == 201
    assert forked.json()["title"] == "Learn Rust (Remix)"
    assert forked.json()["user_id"] == "other_user"


@pytest.mark.asyncio
async def test_paid_listing_requires_purchase(client):
    plan = await _create_plan(client, orders=(1,))
    published = await client.post(
        "/api/marketplace/publish",
        json={"source_plan_id": plan["id"], "is_free": False, "price": 5},
        headers=OWNER,
    )

    forked = await client.post(
        f"/api/marketplace/{published.json()['id']}/fork", headers=STRANGER
    )

    assert forked.status_code == 403
    assert forked.json()["detail"] == "Purchase required for this plan"


@pytest.mark.asyncio
async def test_idempotent_shift_via_todos_endpoint(client):
    plan = await _create_plan(client, orders=(1,))
    body = {"days": 1, "plan_id": plan["id"], "idempotency_key": "shift-once"}

    await client.post("/api/todos/shift", json=body, headers=OWNER)
    await client.post("/api/todos/shift", json=body, headers=OWNER)

    todos = await _todos(client, plan["id"])
    assert todos[0]["due_date"][:10] == "2024-01-02"
    activity = await client.get(f"/api/plans/{plan['id']}/activity", headers=OWNER)
    assert [entry["activity_type"] for entry in activity.json()].count("steps_shifted") == 1
