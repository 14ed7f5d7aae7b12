"""With Opik disabled the app must import and every helper must be a no-op."""
from __future__ import annotations

import importlib


def test_app_import_succeeds_when_opik_is_disabled(monkeypatch) -> None:
    monkeypatch.setenv("OPIK_ENABLED", "false")
    monkeypatch.delenv("OPIK_API_KEY", raising=False)

    import aligned.core.config as core_config
    import aligned.observability.client as client_module
    import aligned.main as main_module

    importlib.reload(core_config)
    importlib.reload(client_module)
    reloaded_app = importlib.reload(main_module)

    assert hasattr(reloaded_app, "app")
    assert client_module.init_opik() is None


def test_trace_and_metrics_are_noops_without_client(monkeypatch) -> None:
    import aligned.observability.metrics as metrics_module
    import aligned.observability.tracing as tracing_module

    monkeypatch.setattr(tracing_module, "get_opik_client", lambda: None)

    with tracing_module.trace("plan.generate", metadata={"attempt": 1}) as opik_trace:
        assert opik_trace is None

    metrics_module.log_metric("plan.generation.failure", 1, {"reason": "truncated"})
