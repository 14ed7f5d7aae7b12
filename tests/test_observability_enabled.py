from __future__ import annotations

import pytest

from aligned.observability import client as client_module
from aligned.observability import tracing
from aligned.services.generation_client import GeminiClient, GenerationConfig
from aligned.services.plan_generator import PlanGenerationOrchestrator
from aligned.services.user_profile import UserProfile


class _DummyTrace:
    def __init__(self, name, metadata=None, **kwargs):
        self.name = name
        self.metadata = dict(metadata or {})
        self.error_info = None
        self.ended = False

    def update(self, metadata=None, error_info=None, **kwargs):
        if metadata:
            self.metadata.update(metadata)
        if error_info:
            self.error_info = error_info

    def end(self):
        self.ended = True


class _DummyOpik:
    def __init__(self, *args, **kwargs):
        self.kwargs = kwargs
        self.traces = []

    def trace(self, name, metadata=None, **kwargs):
        trace = _DummyTrace(name, metadata=metadata)
        self.traces.append(trace)
        return trace


@pytest.fixture()
def enabled_opik(monkeypatch):
    monkeypatch.setattr(client_module, "Opik", _DummyOpik)
    monkeypatch.setattr(client_module.settings, "opik_enabled", True)
    monkeypatch.setattr(client_module.settings, "opik_api_key", "test-key")
    client_module.reset_opik_client()
    yield
    client_module.reset_opik_client()


def test_init_opik_builds_client_when_enabled(enabled_opik) -> None:
    opik = client_module.init_opik()

    assert isinstance(opik, _DummyOpik)
    assert opik.kwargs["project_name"] == client_module.settings.opik_project
    assert client_module.get_opik_client() is opik


def test_init_opik_requires_api_key(monkeypatch, enabled_opik) -> None:
    monkeypatch.setattr(client_module.settings, "opik_api_key", None)
    client_module.reset_opik_client()

    assert client_module.init_opik() is None


def test_trace_records_error_and_duration(monkeypatch) -> None:
    opik = _DummyOpik()
    monkeypatch.setattr(tracing, "get_opik_client", lambda: opik)

    with pytest.raises(RuntimeError):
        with tracing.trace("plan.generate", metadata={"attempt": 1}, user_id="user-1"):
            raise RuntimeError("boom")

    recorded = opik.traces[0]
    assert recorded.metadata["user_id"] == "user-1"
    assert recorded.error_info == {"exception_type": "RuntimeError", "message": "boom"}
    assert "duration_ms" in recorded.metadata
    assert recorded.ended is True


def test_pipeline_emits_generation_metrics(monkeypatch) -> None:
    opik = _DummyOpik()
    monkeypatch.setattr(tracing, "get_opik_client", lambda: opik)
    orchestrator = PlanGenerationOrchestrator(GeminiClient(GenerationConfig(api_key=None)))

    orchestrator.run(UserProfile(yearly_goal="Run a half marathon"))

    names = [trace.name for trace in opik.traces]
    assert "metric:plan.generation.synthesized" in names
    assert all(trace.ended for trace in opik.traces)
