from __future__ import annotations

import json
from typing import Iterator
from uuid import uuid4

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from aligned.api import deps as api_deps
from aligned.cache.local_store import InMemoryLocalStore, user_storage_key
from aligned.db.base import Base
from aligned.db.deps import get_db
from aligned.db.models import GeneratedPlan
from aligned.main import app
from aligned.services.generation_client import GeminiClient, GenerationConfig
from aligned.services.plan_generator import PlanGenerationOrchestrator
from aligned.services.plan_synthesizer import synthesize_plan
from aligned.services.user_profile import UserProfile

ANSWERS = {
    "identity_statement": "I am someone who ships side projects",
    "yearly_goal": "Become a backend developer",
    "daily_time_capacity": "60 minutes on weekdays",
    "habits_focus": "Code every morning",
}


def _failing_client() -> GeminiClient:
    transport = httpx.MockTransport(lambda request: httpx.Response(503, json={"error": "overloaded"}))
    return GeminiClient(GenerationConfig(api_key="test-key"), http_client=httpx.Client(transport=transport))


def _scripted_gemini(texts, calls) -> GeminiClient:
    """A configured client whose transport answers with ``texts`` in order and records each request."""
    replies = list(texts)

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        text = replies.pop(0) if replies else ""
        body = {"candidates": [{"content": {"parts": [{"text": text}]}, "finishReason": "STOP"}]}
        return httpx.Response(200, json=body)

    transport = httpx.MockTransport(handler)
    return GeminiClient(GenerationConfig(api_key="test-key"), http_client=httpx.Client(transport=transport))


@pytest.fixture()
def store() -> InMemoryLocalStore:
    return InMemoryLocalStore()


@pytest.fixture()
def state():
    return {"client": GeminiClient(GenerationConfig(api_key=None))}


@pytest.fixture()
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )

    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):  # pragma: no cover - sqlite setup
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(bind=engine)
    yield sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture()
def client(session_factory, store, state) -> Iterator[TestClient]:
    TestingSessionLocal = session_factory

    def override_get_db() -> Iterator[Session]:
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    def override_orchestrator() -> PlanGenerationOrchestrator:
        return PlanGenerationOrchestrator(state["client"], backoff_seconds=0, sleep=lambda _: None)

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[api_deps.get_store] = lambda: store
    app.dependency_overrides[api_deps.get_plan_orchestrator] = override_orchestrator
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        app.dependency_overrides.clear()


def test_identity_round_trip_sanitizes_answers(client: TestClient) -> None:
    user_id = uuid4()
    answers = dict(ANSWERS, purpose_why="To  build\u200b things")

    put = client.put(f"/users/{user_id}/identity", json=answers)
    assert put.status_code == 200
    assert put.json()["purpose_why"] == "To build things"
    assert put.json()["sleep_definition"] is None

    got = client.get(f"/users/{user_id}/identity")
    assert got.status_code == 200
    assert got.json()["yearly_goal"] == "Become a backend developer"


def test_missing_identity_returns_404(client: TestClient) -> None:
    assert client.get(f"/users/{uuid4()}/identity").status_code == 404


def test_plan_requires_onboarding(client: TestClient) -> None:
    response = client.post(f"/users/{uuid4()}/plan")

    assert response.status_code == 404
    assert "onboarding" in response.json()["detail"]


def test_plan_is_generated_then_served_from_cache(client: TestClient, store: InMemoryLocalStore) -> None:
    user_id = uuid4()
    client.put(f"/users/{user_id}/identity", json=ANSWERS)

    first = client.post(f"/users/{user_id}/plan")
    assert first.status_code == 200
    body = first.json()
    assert body["source"] == "synthesized"
    assert body["document"]["yearly_goal_title"] == "Become a backend developer"
    assert [q["quarter"] for q in body["document"]["quarterly_goals"]] == ["Q1", "Q2", "Q3", "Q4"]
    assert body["request_id"]
    assert store.get(user_storage_key("aligned_plan_cache", user_id)) is not None

    second = client.post(f"/users/{user_id}/plan")
    assert second.status_code == 200
    assert second.json()["source"] == "cache"
    assert second.json()["document"] == body["document"]


def test_inline_profile_skips_stored_identity(client: TestClient) -> None:
    user_id = uuid4()

    response = client.post(f"/users/{user_id}/plan", json={"profile": {"yearly_goal": "Run a marathon"}})

    assert response.status_code == 200
    assert response.json()["document"]["yearly_goal_title"] == "Run a marathon"


def test_read_plan_fast_and_full(client: TestClient) -> None:
    user_id = uuid4()
    assert client.get(f"/users/{user_id}/plan").status_code == 404

    client.post(f"/users/{user_id}/plan", json={"profile": ANSWERS})

    fast = client.get(f"/users/{user_id}/plan", params={"fast": "true"})
    full = client.get(f"/users/{user_id}/plan")
    assert fast.status_code == full.status_code == 200
    assert fast.json()["source"] == "local"
    assert full.json()["source"] == "cache"
    assert fast.json()["document"] == full.json()["document"]


def test_delete_plan_clears_both_tiers(client: TestClient, store: InMemoryLocalStore) -> None:
    user_id = uuid4()
    client.post(f"/users/{user_id}/plan", json={"profile": ANSWERS})

    response = client.delete(f"/users/{user_id}/plan")

    assert response.status_code == 204
    assert store.get(user_storage_key("aligned_plan_cache", user_id)) is None
    assert client.get(f"/users/{user_id}/plan").status_code == 404


def test_generation_failure_without_cache_returns_retryable_502(client: TestClient, state) -> None:
    state["client"] = _failing_client()
    user_id = uuid4()

    response = client.post(f"/users/{user_id}/plan", json={"profile": ANSWERS})

    assert response.status_code == 502
    assert response.json()["retryable"] is True
    assert client.get(f"/users/{user_id}/plan").status_code == 404


def test_failed_refresh_serves_previous_plan(client: TestClient, state) -> None:
    user_id = uuid4()
    original = client.post(f"/users/{user_id}/plan", json={"profile": ANSWERS}).json()

    state["client"] = _failing_client()
    refreshed = client.post(f"/users/{user_id}/plan", json={"profile": ANSWERS, "force_refresh": True})

    assert refreshed.status_code == 200
    body = refreshed.json()
    assert body["source"] == "cached"
    assert body["attempts"] == 2
    assert body["document"] == original["document"]
    assert body["warnings"][0].startswith("Plan refresh failed")


def test_migrations_endpoint(client: TestClient, store: InMemoryLocalStore) -> None:
    user_id = uuid4()
    store.set(
        user_storage_key("aligned_daily_habits", user_id),
        '{"nonNegotiables": [{"id": "1", "text": "Walk after lunch"}]}',
    )

    response = client.post(f"/users/{user_id}/migrations", json={"areas": ["habits", "journal"]})
    assert response.status_code == 200
    assert response.json() == {"results": {"habits": True, "journal": False}}

    everything = client.post(f"/users/{user_id}/migrations")
    assert everything.status_code == 200
    assert set(everything.json()["results"]) == {"journal", "goals", "analytics", "habits", "dashboard"}
    assert not any(everything.json()["results"].values())


def test_migrations_rejects_unknown_area(client: TestClient) -> None:
    response = client.post(f"/users/{uuid4()}/migrations", json={"areas": ["focus"]})

    assert response.status_code == 422


def test_generated_plan_is_stored_and_then_served_without_another_call(
    client: TestClient, state, session_factory, store: InMemoryLocalStore
) -> None:
    calls = []
    document = synthesize_plan(UserProfile(yearly_goal="Ship a mobile app")).to_storage()
    state["client"] = _scripted_gemini(["```json\n" + json.dumps(document) + "\n```"], calls)
    user_id = uuid4()

    generated = client.post(f"/users/{user_id}/plan", json={"profile": ANSWERS})

    assert generated.status_code == 200
    body = generated.json()
    assert body["source"] == "generated"
    assert body["attempts"] == 1
    assert body["generated_at"] is not None
    assert body["document"]["is_ai_generated"] is True
    assert len(calls) == 1
    with session_factory() as db:
        row = db.query(GeneratedPlan).filter(GeneratedPlan.user_id == user_id).one()
        assert row.document["yearly_goal_title"] == "Ship a mobile app"
        assert row.generated_at is not None
    assert store.get(user_storage_key("aligned_plan_cache", user_id)) is not None

    fast = client.get(f"/users/{user_id}/plan", params={"fast": "true"})
    again = client.post(f"/users/{user_id}/plan", json={"profile": ANSWERS})

    assert fast.json()["source"] == "local"
    assert fast.json()["document"] == body["document"]
    assert again.json()["source"] == "cache"
    assert len(calls) == 1


def test_two_truncated_responses_fail_without_storing_anything(
    client: TestClient, state, session_factory, store: InMemoryLocalStore
) -> None:
    calls = []
    cut_off = '```json\n{"identities": [{"name": "Builder"}], "quarterly_goals": [{"quarter": "Q1", "weeklyPlan": ['
    state["client"] = _scripted_gemini([cut_off, cut_off], calls)
    user_id = uuid4()

    response = client.post(f"/users/{user_id}/plan", json={"profile": ANSWERS})

    assert response.status_code == 502
    assert response.json()["retryable"] is True
    assert "response truncated" in response.json()["detail"]
    assert len(calls) == 2
    with session_factory() as db:
        assert db.query(GeneratedPlan).count() == 0
    assert store.get(user_storage_key("aligned_plan_cache", user_id)) is None


def test_legacy_cached_plan_is_migrated_and_served(client: TestClient, store: InMemoryLocalStore) -> None:
    user_id = uuid4()
    legacy = synthesize_plan(UserProfile(yearly_goal="Legacy goal from old client")).to_storage()
    store.set(user_storage_key("aligned_insights", user_id), json.dumps(legacy))
    client.put(f"/users/{user_id}/identity", json=ANSWERS)

    response = client.post(f"/users/{user_id}/plan")

    assert response.status_code == 200
    assert response.json()["source"] == "cache"
    assert response.json()["document"]["yearly_goal_title"] == "Legacy goal from old client"
    assert store.get(user_storage_key("aligned_insights", user_id)) is None
    assert store.get(user_storage_key("aligned_dashboard_migrated_to_supabase", user_id)) == "true"


def test_legacy_plan_is_readable_before_onboarding(client: TestClient, store: InMemoryLocalStore) -> None:
    user_id = uuid4()
    legacy = synthesize_plan(UserProfile(yearly_goal="Legacy goal from old client")).to_storage()
    store.set(user_storage_key("aligned_insights", user_id), json.dumps(legacy))

    fast = client.get(f"/users/{user_id}/plan", params={"fast": "true"})
    generated = client.post(f"/users/{user_id}/plan")

    assert fast.status_code == 200
    assert fast.json()["document"]["yearly_goal_title"] == "Legacy goal from old client"
    assert generated.status_code == 200
    assert generated.json()["source"] == "cache"
