#!/usr/bin/env python3
"""
Demo script for the Research Swarm.

This script runs a complete research session in the terminal, printing
agent activity, the live collaboration transcript and the final report,
without needing the API server.

Usage:
    python -m research_swarm.demo "How can grid-scale energy storage be made cheaper?"
    python -m research_swarm.demo --mock "Explain the impact of AI on healthcare"
    python -m research_swarm.demo --mock --ask "Renewable energy storage"
"""

import sys
import json
import asyncio
import argparse
import threading
from datetime import datetime
from typing import Any, AsyncIterator, Dict, List, Optional

from .agents.swarm import ResearchSwarm, create_swarm
from .agents.sequencer import SequencerConfig
from .config import config
from .core.llm import GenerationResult, Prompt, StreamChunk, to_messages
from .core.personas import build_personas
from .core.tools import ToolInvocation
from .core.types import AgentState, DecisionAction, GroundingSource, LogEntry, LogEntryKind
from .logger import setup_logging


class MockLLMClient:
    """Mock capability client for the demo without API keys."""

    def __init__(self, ask_requester: bool = False):
        self.ask_requester = ask_requester
        self.decisions = 0
        self.calls = 0

    async def generate(
        self,
        prompt: Prompt,
        model: Optional[str] = None,
        grounding: bool = False,
        tools: Optional[List[Dict]] = None,
        response_schema: Optional[Dict[str, Any]] = None,
    ) -> GenerationResult:
        self.calls += 1
        await asyncio.sleep(0.05)
        messages = to_messages(prompt)
        text = messages[0]["content"] or ""

        # Simulate different responses based on the kind of request
        if response_schema is not None:
            self.decisions += 1
            if self.ask_requester and self.decisions in (1, 3):
                decision = {
                    "action": DecisionAction.ASK_REQUESTER.value,
                    "reasoning": "The team is split on the scope of the research.",
                    "question": "Should we focus on grid-scale or residential solutions?",
                }
            else:
                decision = {
                    "action": "Meeting" if self.decisions <= 2 else "Debate",
                    "reasoning": "The findings are broadly aligned and need consolidating.",
                }
            return GenerationResult(text=json.dumps(decision))

        if tools and "Lead Researcher" in text and len(messages) == 1:
            return GenerationResult(
                text="",
                tool_calls=[
                    ToolInvocation(id="call_1", name="factCheck", arguments={"claim": "Costs fell 90% in a decade"}),
                    ToolInvocation(id="call_2", name="findData", arguments={"query": "installed capacity by year"}),
                ],
            )

        source = GroundingSource(uri="https://example.org/research", title="Example Research Portal")
        if "You are the 'Final Report Synthesizer' AI agent" in text:
            report = """# Final Report

## Executive Summary
The team found steady progress, with cost and scale as the dominant themes.

## Detailed Findings
* Costs have fallen sharply over the last decade.
* Deployment is accelerating, although supply chains remain a constraint.
* Historical parallels suggest adoption will follow an S-curve."""
            return GenerationResult(text=report, sources=[source])
        if "has delegated a task to you" in text:
            return GenerationResult(text="Confirmed by two independent sources.", sources=[source])

        role = next((line.split(":", 1)[1].strip().rstrip(".") for line in text.splitlines()
                     if line.startswith("Your role is:")), "Specialist")
        return GenerationResult(
            text=f"As the {role}, I found measurable progress alongside open challenges.",
            sources=[source] if grounding else [],
        )

    async def open_stream(
        self,
        prompt: Prompt,
        model: Optional[str] = None,
        grounding: bool = False,
    ) -> AsyncIterator[StreamChunk]:
        self.calls += 1
        return self._chunks()

    async def _chunks(self) -> AsyncIterator[StreamChunk]:
        lines = [
            'Orion (Project Manager): "Let us consolidate what we have found."\n',
            'Lyra (Lead Researcher): "The evidence points to falling costs."\n',
            'Eris (Critic & Devil\'s Advocate): "Falling costs do not guarantee adoption."\n',
            'Nexus (Final Report Synthesizer): "I will note both views."\n',
        ]
        for line in lines:
            await asyncio.sleep(0.05)
            yield StreamChunk(text=line)
        yield StreamChunk(sources=[GroundingSource(uri="https://example.org/meeting", title="Meeting Notes")])


def print_event(agents: List[AgentState]):
    """Build a listener that prints live updates."""
    names = {a.id: a.name for a in agents}

    def listener(event: str, payload: Any) -> None:
        if event == "log":
            entry: LogEntry = payload
            if entry.kind is LogEntryKind.PHASE:
                print(f"\n📋 {entry.text}")
            elif entry.kind is LogEntryKind.INDIVIDUAL:
                delegations = f" ({len(entry.delegations)} delegation record(s))" if entry.delegations else ""
                print(f"   ✓ {names.get(entry.agent_id, entry.agent_id)} finished{delegations}")
            elif entry.kind is LogEntryKind.COLLABORATION:
                print(f"\n   ✓ {entry.mode.value} complete ({len(entry.sources)} source(s))")
            elif entry.kind is LogEntryKind.USER_INTERACTION:
                print(f"   💬 {entry.text}")
        elif event == "chunk":
            sys.stdout.write(payload)
            sys.stdout.flush()
        elif event == "error":
            print(f"\n❌ {payload}")

    return listener


def answer_from_stdin(swarm: ResearchSwarm, question: str, loop: asyncio.AbstractEventLoop) -> None:
    """Read the checkpoint answer on a daemon thread; an unanswered prompt dies with the process."""

    def deliver(answer: str) -> None:
        # A late answer must not land on the next checkpoint
        if swarm.context.pending_question == question:
            swarm.answer_human_checkpoint(answer)

    def prompt() -> None:
        answer = input(f"\n❓ {question}\n> ")
        if not loop.is_closed():
            loop.call_soon_threadsafe(deliver, answer)

    threading.Thread(target=prompt, daemon=True).start()


async def run_demo(topic: str, use_mock: bool = False, ask: bool = False, instruction: Optional[str] = None):
    """Run a research session in the terminal."""

    print("\n" + "=" * 60)
    print("🔬 RESEARCH SWARM DEMO")
    print("=" * 60)
    print(f"\n📝 Topic: {topic}\n")

    if use_mock or not config.validate():
        print("ℹ️  Using mock LLM client (no API key found)\n")
        swarm = ResearchSwarm(
            MockLLMClient(ask_requester=ask),
            personas=build_personas("mock-model", "mock-light-model"),
            config=SequencerConfig(agent_delay_seconds=0.1, delegation_delay_seconds=0.1, checkpoint_timeout_seconds=60),
        )
    else:
        provider = "Claude (Anthropic)" if config.llm_provider == "anthropic" else "OpenAI"
        print(f"✅ Using {provider} as LLM provider\n")
        swarm = create_swarm(config)

    swarm.subscribe(print_event(swarm.context.agents))
    loop = asyncio.get_running_loop()

    def on_question(event: str, payload: Any) -> None:
        if event == "question" and payload:
            answer_from_stdin(swarm, payload, loop)

    swarm.subscribe(on_question)

    print("🚀 Starting research...\n")
    start_time = datetime.now()
    saved = await swarm.start_research(topic, instruction)
    elapsed = (datetime.now() - start_time).total_seconds()

    print(f"\n\n✅ Research finished in {elapsed:.1f}s\n")
    print("-" * 60)

    state = swarm.snapshot()
    if state["error"]:
        print(f"❌ Error: {state['error']}")
    elif saved is not None:
        print("\n📊 FINAL REPORT\n")
        print(saved.final_report)
        print(f"\n💾 Saved as run {saved.id} with {len(saved.log)} log entries")
    else:
        print("🛑 Research stopped before the final report.")

    print("\n" + "=" * 60)
    print("Demo complete!")
    print("=" * 60 + "\n")


def main():
    parser = argparse.ArgumentParser(description="Research Swarm Demo")
    parser.add_argument("topic", nargs="?", default="Renewable energy storage",
                        help="Research topic to investigate")
    parser.add_argument("--mock", action="store_true", help="Use mock LLM (no API key needed)")
    parser.add_argument("--ask", action="store_true", help="Have the mock manager ask you questions")
    parser.add_argument("--instruction", default=None, help="Custom instruction for every phase")
    args = parser.parse_args()

    setup_logging(config.log_level, config.log_file)
    asyncio.run(run_demo(args.topic, args.mock, args.ask, args.instruction))


if __name__ == "__main__":
    main()
