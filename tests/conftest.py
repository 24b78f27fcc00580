"""
Shared fixtures: a scripted capability client and instant sleeps.
"""

import json
import re
from typing import Any, AsyncIterator, Dict, List, Optional

import pytest

from research_swarm.agents.sequencer import SequencerConfig
from research_swarm.agents.swarm import ResearchSwarm
from research_swarm.core.llm import GenerationResult, StreamChunk, assistant_message, to_messages
from research_swarm.core.personas import DEFAULT_PERSONAS, MANAGER_ROLE, SYNTHESIZER_ROLE
from research_swarm.core.tools import ToolInvocation
from research_swarm.core.types import GroundingSource, Persona
from research_swarm.storage.memory import RunStore

ROLE_PATTERN = re.compile(r"^Your role is: (.+)\.$", re.MULTILINE)
SYNTHESIS_MARKER = "You are the 'Final Report Synthesizer' AI agent"
DELEGATION_MARKER = "has delegated a task to you"

FINAL_REPORT = "# Final Report\n\nEverything the team found."


class SleepRecorder:
    """Awaitable no-op sleep that remembers every requested delay."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


class FakeLLMClient:
    """
    Scripted capability client.

    - Schema calls pop the next entry of `decisions` (a dict is sent as JSON,
      a str is sent verbatim); an empty queue answers Meeting.
    - The first, tool-enabled call of a persona whose role is a key of
      `tool_calls` returns those invocations, alongside `tool_preamble` as text.
    - `failures` are raised, in order, before any response.
    - `stream_error` is raised after the stream's chunks have been yielded.
    """

    def __init__(
        self,
        decisions: Optional[List[Any]] = None,
        tool_calls: Optional[Dict[str, List[ToolInvocation]]] = None,
        stream_chunks: Optional[List[StreamChunk]] = None,
        failures: Optional[List[Exception]] = None,
        stream_error: Optional[Exception] = None,
        tool_preamble: str = "",
    ):
        self.decisions = list(decisions or [])
        self.tool_calls = dict(tool_calls or {})
        self.stream_chunks = stream_chunks
        self.failures = list(failures or [])
        self.stream_error = stream_error
        self.tool_preamble = tool_preamble
        self.calls: List[Dict[str, Any]] = []
        self._answers_per_role: Dict[str, int] = {}

    # Helpers for assertions

    def calls_of(self, kind: str) -> List[Dict[str, Any]]:
        return [c for c in self.calls if c["kind"] == kind]

    @property
    def decision_calls(self) -> List[Dict[str, Any]]:
        return [c for c in self.calls if c["response_schema"] is not None]

    # Capability surface

    async def generate(
        self,
        prompt: Any,
        model: Optional[str] = None,
        grounding: bool = False,
        tools: Optional[List[Dict]] = None,
        response_schema: Optional[Dict[str, Any]] = None,
    ) -> GenerationResult:
        messages = to_messages(prompt)
        self.calls.append({
            "kind": "generate",
            "messages": messages,
            "model": model,
            "grounding": grounding,
            "tools": tools,
            "response_schema": response_schema,
        })
        if self.failures:
            raise self.failures.pop(0)

        text = messages[0]["content"]

        if response_schema is not None:
            decision = self.decisions.pop(0) if self.decisions else {"action": "Meeting", "reasoning": "Aligned."}
            return GenerationResult(text=decision if isinstance(decision, str) else json.dumps(decision))

        if SYNTHESIS_MARKER in text:
            return GenerationResult(
                text=FINAL_REPORT,
                sources=[GroundingSource(uri="https://example.org/report", title="Report")],
            )

        if DELEGATION_MARKER in text:
            target = text.split(",", 1)[0].replace("You are ", "")
            return GenerationResult(
                text=f"Delegated answer from {target}",
                sources=[GroundingSource(uri="https://example.org/delegated", title="Delegated")],
            )

        match = ROLE_PATTERN.search(text)
        role = match.group(1) if match else "Unknown"
        if tools and len(messages) == 1 and role in self.tool_calls:
            invocations = self.tool_calls[role]
            return GenerationResult(
                text=self.tool_preamble,
                tool_calls=list(invocations),
                message=assistant_message(self.tool_preamble, invocations),
            )

        count = self._answers_per_role.get(role, 0) + 1
        self._answers_per_role[role] = count
        slug = role.lower().replace(" ", "-")
        answer = f"{role} findings #{count}"
        return GenerationResult(
            text=answer,
            sources=[GroundingSource(uri=f"https://example.org/{slug}/{count}", title=f"{role} source {count}")],
            message=assistant_message(answer, []),
        )

    async def open_stream(
        self,
        prompt: Any,
        model: Optional[str] = None,
        grounding: bool = False,
    ) -> AsyncIterator[StreamChunk]:
        self.calls.append({
            "kind": "stream",
            "messages": to_messages(prompt),
            "model": model,
            "grounding": grounding,
            "tools": None,
            "response_schema": None,
        })
        if self.failures:
            raise self.failures.pop(0)
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[StreamChunk]:
        chunks = self.stream_chunks
        if chunks is None:
            chunks = [
                StreamChunk(text="Orion: Let us begin. "),
                StreamChunk(sources=[GroundingSource(uri="https://example.org/a", title="A")]),
                StreamChunk(text="Lyra: Agreed."),
            ]
        for chunk in chunks:
            yield chunk
        if self.stream_error is not None:
            raise self.stream_error


def make_persona(name: str, role: str) -> Persona:
    return Persona(name=name, role=role, description=f"Acts as the {role}.", model="test-model")


def small_roster(include_fact_checker: bool = True) -> List[Persona]:
    personas = [
        make_persona("Orion", MANAGER_ROLE),
        make_persona("Lyra", "Lead Researcher"),
        make_persona("Vela", "Data Analyst"),
    ]
    if include_fact_checker:
        personas.append(make_persona("Caelus", "Fact-Checker"))
    personas.append(make_persona("Nexus", SYNTHESIZER_ROLE))
    return personas


@pytest.fixture
def no_sleep() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def fake_client() -> FakeLLMClient:
    return FakeLLMClient()


@pytest.fixture
def sequencer_config() -> SequencerConfig:
    return SequencerConfig(checkpoint_timeout_seconds=1.0, narrator_model="narrator-model")


def make_swarm(
    client: FakeLLMClient,
    sleep: SleepRecorder,
    personas: Optional[List[Persona]] = None,
    config: Optional[SequencerConfig] = None,
    store: Optional[RunStore] = None,
) -> ResearchSwarm:
    return ResearchSwarm(
        client,
        personas=personas if personas is not None else DEFAULT_PERSONAS,
        config=config or SequencerConfig(checkpoint_timeout_seconds=1.0),
        store=store if store is not None else RunStore(),
        sleep=sleep,
    )
