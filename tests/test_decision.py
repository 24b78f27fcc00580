"""
Tests for the decision engine.
"""

import pytest

from research_swarm.agents.manager_agent import (
    DECISION_SCHEMA,
    INVALID_DECISION_REASONING,
    DecisionEngine,
    parse_action,
)
from research_swarm.core.types import DecisionAction, Finding

from conftest import FakeLLMClient

FINDINGS = [
    Finding(role="Lead Researcher", output="Costs are falling."),
    Finding(role="Critic & Devil's Advocate", output="Adoption lags."),
]


class TestParseAction:

    @pytest.mark.parametrize("value, expected", [
        ("Meeting", DecisionAction.MEETING),
        ("debate", DecisionAction.DEBATE),
        (" Q&A ", DecisionAction.QNA),
        ("qna", DecisionAction.QNA),
        ("ASK_REQUESTER", DecisionAction.ASK_REQUESTER),
        ("Workshop", None),
        (None, None),
        (3, None),
    ])
    def test_closed_set(self, value, expected):
        assert parse_action(value) is expected


class TestDecisionEngine:

    @pytest.mark.asyncio
    async def test_valid_collaboration_choice(self, no_sleep):
        client = FakeLLMClient(decisions=[{"action": "Debate", "reasoning": "Conflicting data."}])
        engine = DecisionEngine(client, sleep=no_sleep)

        decision = await engine.choose(FINDINGS, "storage", "", "manager-model")

        assert decision.action is DecisionAction.DEBATE
        assert decision.reasoning == "Conflicting data."
        assert decision.question is None
        call = client.calls[0]
        assert call["response_schema"] == DECISION_SCHEMA
        assert call["model"] == "manager-model"

    @pytest.mark.asyncio
    async def test_prompt_lists_every_finding(self, no_sleep):
        client = FakeLLMClient()
        engine = DecisionEngine(client, sleep=no_sleep)

        await engine.choose(FINDINGS, "storage", "Focus on Europe", "m")

        prompt = client.calls[0]["messages"][0]["content"]
        assert "--- [Lead Researcher] ---\nCosts are falling." in prompt
        assert "--- [Critic & Devil's Advocate] ---\nAdoption lags." in prompt
        assert '"Focus on Europe"' in prompt

    @pytest.mark.asyncio
    async def test_ask_requester_keeps_question(self, no_sleep):
        client = FakeLLMClient(decisions=[{
            "action": "ASK_REQUESTER",
            "reasoning": "Scope is ambiguous.",
            "question": "  Should we focus on grid-scale or residential storage?  ",
        }])
        engine = DecisionEngine(client, sleep=no_sleep)

        decision = await engine.choose(FINDINGS, "storage", "", "m")

        assert decision.action is DecisionAction.ASK_REQUESTER
        assert decision.question == "Should we focus on grid-scale or residential storage?"

    @pytest.mark.asyncio
    async def test_question_dropped_for_collaboration_modes(self, no_sleep):
        client = FakeLLMClient(decisions=[{"action": "Meeting", "reasoning": "r", "question": "ignored?"}])
        engine = DecisionEngine(client, sleep=no_sleep)

        decision = await engine.choose(FINDINGS, "storage", "", "m")

        assert decision.question is None

    @pytest.mark.asyncio
    async def test_invalid_action_defaults_to_meeting(self, no_sleep):
        client = FakeLLMClient(decisions=[{"action": "Brainstorm", "reasoning": "r"}])
        engine = DecisionEngine(client, sleep=no_sleep)

        decision = await engine.choose(FINDINGS, "storage", "", "m")

        assert decision.action is DecisionAction.MEETING
        assert decision.reasoning == INVALID_DECISION_REASONING

    @pytest.mark.asyncio
    async def test_unparseable_response_defaults_to_meeting(self, no_sleep):
        client = FakeLLMClient(decisions=["not json at all"])
        engine = DecisionEngine(client, sleep=no_sleep)

        decision = await engine.choose(FINDINGS, "storage", "", "m")

        assert decision.action is DecisionAction.MEETING
        assert decision.reasoning == INVALID_DECISION_REASONING

    @pytest.mark.asyncio
    async def test_fenced_json_is_accepted(self, no_sleep):
        client = FakeLLMClient(decisions=['```json\n{"action": "Discussion", "reasoning": "Explore."}\n```'])
        engine = DecisionEngine(client, sleep=no_sleep)

        decision = await engine.choose(FINDINGS, "storage", "", "m")

        assert decision.action is DecisionAction.DISCUSSION

    @pytest.mark.asyncio
    async def test_capability_failure_propagates(self, no_sleep):
        client = FakeLLMClient(failures=[ValueError("invalid api key")])
        engine = DecisionEngine(client, sleep=no_sleep)

        with pytest.raises(ValueError):
            await engine.choose(FINDINGS, "storage", "", "m")
