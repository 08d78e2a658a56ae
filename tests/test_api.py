"""End-to-end tests for the HTTP routes against an in-memory database."""

from __future__ import annotations

from datetime import datetime, timezone

import httpx
import pytest
import pytest_asyncio

from refinda.api import routes
from refinda.api.main import create_app
from refinda.recommender.feedback_updater import FeedbackUpdater
from refinda.services.recommendation import RecommendationOrchestrator

NOW = datetime(2025, 6, 1, tzinfo=timezone.utc)
USER = {"X-User-Id": "user-1"}


@pytest_asyncio.fixture
async def client(session, settings, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.delenv("INTERNAL_TOKEN", raising=False)
    app = create_app()

    async def _db():
        yield session

    async def _updater():
        yield FeedbackUpdater(settings, clock=lambda: NOW)

    app.dependency_overrides[routes.get_db] = _db
    app.dependency_overrides[routes.get_feedback_updater] = _updater
    app.dependency_overrides[routes.get_orchestrator] = lambda: RecommendationOrchestrator(settings)

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as http:
        yield http


async def _create_run(client: httpx.AsyncClient, headers: dict[str, str] = USER) -> str:
    response = await client.post("/recommendations", json={"size": "30"}, headers=headers)
    assert response.status_code == 200
    return response.json()["run_id"]


@pytest.mark.asyncio
async def test_recommendations_return_scored_stubs(client: httpx.AsyncClient) -> None:
    response = await client.post("/recommendations", json={"debug": True}, headers=USER)

    body = response.json()
    assert response.status_code == 200
    assert body["ok"] is True
    assert body["ai_used"] is False
    assert body["user_id"] == "user-1"
    assert body["run_id"]
    assert len(body["recommendations"]) == 3
    assert body["recommendations"][0]["confidence_label"] == "good"
    assert body["debug"]["taste_vector_raw"] is None


@pytest.mark.asyncio
async def test_missing_user_header_is_unauthorized(client: httpx.AsyncClient) -> None:
    response = await client.post("/recommendations", json={})

    assert response.status_code == 401
    assert response.json() == {"ok": False, "error": "Missing X-User-Id header."}


@pytest.mark.asyncio
async def test_internal_token_enforced_when_configured(
    client: httpx.AsyncClient, monkeypatch: pytest.MonkeyPatch
) -> None:
    from refinda.config.settings import get_settings

    monkeypatch.setenv("INTERNAL_TOKEN", "s3cret")
    get_settings.cache_clear()

    denied = await client.post("/recommendations", json={}, headers=USER)
    allowed = await client.post("/recommendations", json={}, headers={**USER, "X-Internal-Token": "s3cret"})

    assert denied.status_code == 401
    assert allowed.status_code == 200


@pytest.mark.asyncio
async def test_taste_update_flow(client: httpx.AsyncClient) -> None:
    run_id = await _create_run(client)

    response = await client.post(
        "/taste-update", json={"run_id": run_id, "rec_index": 0, "action": "bought"}, headers=USER
    )

    body = response.json()
    assert response.status_code == 200
    assert body["action"] == "bought"
    assert body["weight"] == 1.5
    assert body["taste_vector"]["fit_straight"] == 1.5
    assert body["event_logged"] is True
    assert body["snapshot_inserted"] is True

    health = await client.get("/taste/health", params={"limit": 10}, headers=USER)
    assert health.status_code == 200
    assert health.json()["snapshot_count"] == 1
    assert health.json()["top_positive"]


@pytest.mark.asyncio
async def test_taste_update_errors(client: httpx.AsyncClient) -> None:
    run_id = await _create_run(client)

    unknown_action = await client.post(
        "/taste-update", json={"run_id": run_id, "rec_index": 0, "action": "love"}, headers=USER
    )
    bad_index = await client.post(
        "/taste-update", json={"run_id": run_id, "rec_index": 7, "action": "save"}, headers=USER
    )
    missing = await client.post(
        "/taste-update", json={"run_id": "nope", "rec_index": 0, "action": "save"}, headers=USER
    )
    foreign = await client.post(
        "/taste-update", json={"run_id": run_id, "rec_index": 0, "action": "save"}, headers={"X-User-Id": "user-2"}
    )
    malformed = await client.post("/taste-update", json={"run_id": run_id}, headers=USER)

    assert unknown_action.status_code == 400
    assert unknown_action.json()["ok"] is False
    assert bad_index.status_code == 400
    assert missing.status_code == 404
    assert foreign.status_code == 403
    assert malformed.status_code == 422


@pytest.mark.asyncio
async def test_feedback_toggle(client: httpx.AsyncClient) -> None:
    run_id = await _create_run(client)
    payload = {"run_id": run_id, "rec_index": 1, "action": "save"}

    first = await client.post("/feedback", json=payload, headers=USER)
    second = await client.post("/feedback", json=payload, headers=USER)

    assert first.json()["active_action"] == "save"
    assert first.json()["taste_update"]["features"]
    assert second.json() == {"ok": True, "active_action": None, "taste_update": None}


@pytest.mark.asyncio
async def test_metrics_exposed(client: httpx.AsyncClient) -> None:
    await _create_run(client)

    response = await client.get("/metrics/")

    assert response.status_code == 200
    assert "recommendation_runs_total" in response.text
