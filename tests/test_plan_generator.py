from __future__ import annotations

import json

import pytest

from aligned.core.errors import ParseError, PlanGenerationError, TransportError, TruncationError
from aligned.services.generation_client import GeminiClient, GenerationConfig
from aligned.services.plan_generator import GenerationState, PlanGenerationOrchestrator
from aligned.services.plan_synthesizer import synthesize_plan
from aligned.services.user_profile import UserProfile

PROFILE = UserProfile(yearly_goal="Get promoted to senior engineer", habits_focus="Daily reading")


class _ScriptedClient:
    """Stands in for GeminiClient; returns or raises the scripted items in order."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.prompts = []
        self.config = GenerationConfig(api_key="test-key")

    @property
    def is_configured(self) -> bool:
        return True

    def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


def _valid_text() -> str:
    document = synthesize_plan(PROFILE).to_storage()
    return "```json\n" + json.dumps(document) + "\n```"


def _orchestrator(client):
    sleeps = []
    orchestrator = PlanGenerationOrchestrator(client, backoff_seconds=2.0, sleep=sleeps.append)
    return orchestrator, sleeps


def test_first_attempt_success() -> None:
    client = _ScriptedClient(_valid_text())
    orchestrator, sleeps = _orchestrator(client)

    outcome = orchestrator.run(PROFILE)

    assert outcome.source == "generated"
    assert outcome.attempts == 1
    assert outcome.warnings == []
    assert outcome.document["is_ai_generated"] is True
    assert orchestrator.state is GenerationState.SUCCEEDED
    assert sleeps == []


def test_truncated_then_valid_succeeds_on_retry_with_same_prompt() -> None:
    client = _ScriptedClient('{"identities": [{"name": "Builder"}], "quarterly_goals": [', _valid_text())
    orchestrator, sleeps = _orchestrator(client)

    outcome = orchestrator.run(PROFILE)

    assert outcome.attempts == 2
    assert sleeps == [2.0]
    assert client.prompts[0] == client.prompts[1]


def test_two_truncations_fail_after_exactly_two_calls() -> None:
    truncated = '{"quarterly_goals": [{"quarter": "Q1", "weeklyPlan": ['
    client = _ScriptedClient(truncated, truncated, _valid_text())
    orchestrator, _ = _orchestrator(client)

    with pytest.raises(PlanGenerationError) as excinfo:
        orchestrator.run(PROFILE)

    assert len(client.prompts) == 2
    assert isinstance(excinfo.value.cause, TruncationError)
    assert excinfo.value.reason == "response truncated"
    assert excinfo.value.attempts == 2
    assert orchestrator.state is GenerationState.FAILED


def test_schema_failure_is_retried() -> None:
    client = _ScriptedClient('{"identities": []}', _valid_text())
    orchestrator, _ = _orchestrator(client)

    outcome = orchestrator.run(PROFILE)

    assert outcome.attempts == 2
    assert outcome.source == "generated"


def test_parse_failures_surface_as_parse_error() -> None:
    client = _ScriptedClient('{"identities": [nope]}', '{"identities": [nope]}')
    orchestrator, _ = _orchestrator(client)

    with pytest.raises(PlanGenerationError) as excinfo:
        orchestrator.run(PROFILE)

    assert isinstance(excinfo.value.cause, ParseError)


def test_known_good_fallback_is_served_after_terminal_failure() -> None:
    previous = synthesize_plan(PROFILE).to_storage()
    client = _ScriptedClient(TransportError("boom", status_code=503), TransportError("boom", status_code=503))
    orchestrator, _ = _orchestrator(client)

    outcome = orchestrator.run(PROFILE, fallback_document=previous)

    assert outcome.source == "cached"
    assert outcome.document is previous
    assert outcome.attempts == 2
    assert outcome.warnings[0] == "Plan refresh failed (generation service unavailable); showing your previous plan."
    assert orchestrator.state is GenerationState.FAILED


def test_depth_warnings_are_reported_not_fatal() -> None:
    document = synthesize_plan(PROFILE).to_storage()
    document["quarterly_goals"][2]["weeklyPlan"] = document["quarterly_goals"][2]["weeklyPlan"][:2]
    for week in document["quarterly_goals"][2]["weeklyPlan"]:
        week["days"] = week["days"][:1]
    client = _ScriptedClient(json.dumps(document))
    orchestrator, _ = _orchestrator(client)

    outcome = orchestrator.run(PROFILE)

    assert outcome.source == "generated"
    assert outcome.warnings == ["Q3: incomplete weekly plan (2 weeks, avg 1.0 days/week)"]


def test_unconfigured_client_synthesizes_without_network() -> None:
    orchestrator = PlanGenerationOrchestrator(GeminiClient(GenerationConfig(api_key=None)))

    outcome = orchestrator.run(PROFILE)

    assert outcome.source == "synthesized"
    assert outcome.attempts == 0
    assert outcome.document["is_ai_generated"] is False
    assert [goal["quarter"] for goal in outcome.document["quarterly_goals"]] == ["Q1", "Q2", "Q3", "Q4"]
    for goal in outcome.document["quarterly_goals"]:
        assert len(goal["weeklyPlan"]) == 13
        assert all(len(week["days"]) == 7 for week in goal["weeklyPlan"])
    assert outcome.document["quarterly_goals"][3]["weeklyPlan"][-1]["week"] == "Week 52"
