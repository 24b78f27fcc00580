import asyncio
import json
import logging
from typing import Any, Dict, List, Optional
from dataclasses import dataclass, field

from ..core.base_agent import Agent, AgentConfig, Sleep
from ..core.llm import assistant_message
from ..core.types import AgentState, DelegationRecord, GroundingSource
from .delegation_agent import DelegationResolver

logger = logging.getLogger(__name__)


@dataclass
class TaskResult:
    text: str
    sources: List[GroundingSource] = field(default_factory=list)
    delegations: List[DelegationRecord] = field(default_factory=list)


class AgentTaskRunner(Agent):
    """
    Agent Task Runner: drives one persona through its research task.

    Flow:
    1. Tool-calling generation describing the persona's role and the topic
    2. No tool calls: that answer is final
    3. Otherwise resolve the delegations, then run a second, grounded
       generation over the original turn plus the delegated results
    """

    def __init__(
        self,
        llm_client: Any,
        resolver: DelegationResolver,
        config: Optional[AgentConfig] = None,
        sleep: Sleep = asyncio.sleep,
    ):
        config = config or AgentConfig(
            name="Agent Task Runner",
            description="Runs one persona's individual research task",
        )
        super().__init__(config, llm_client, sleep)
        self.resolver = resolver

    def build_prompt(
        self,
        agent: AgentState,
        topic: str,
        refinement_context: str = "",
        custom_instruction: str = "",
    ) -> str:
        instruction = (
            f'There is an important overarching instruction from the user that you must follow: "{custom_instruction}"\n'
            if custom_instruction else ""
        )
        context = f"Additional context for this task: {refinement_context}\n" if refinement_context else ""
        return f"""You are an AI agent named {agent.name}.
Your role is: {agent.role}.
Your goal is: {agent.persona.description}.
The main research topic is: "{topic}".
{instruction}{context}
Perform your task diligently.
You have access to a team of specialist agents you can delegate tasks to if needed. Use the available tools to call upon them. For example, if you encounter a claim you cannot verify, use 'factCheck'. If you need specific data, use 'findData'.
After any delegations, synthesize their responses with your own findings to produce a comprehensive answer for your primary role.
Provide a concise summary of your findings, analysis, or questions based on your specific role.
Keep your response focused on your designated role."""

    async def run(
        self,
        agent: AgentState,
        roster: List[AgentState],
        topic: str,
        refinement_context: str = "",
        custom_instruction: str = "",
    ) -> TaskResult:
        """
        Run one persona's task.

        Args:
            agent: Snapshot of the persona doing the work
            roster: Snapshots of every persona in the run (delegation targets)
            topic: Research topic
            refinement_context: Prior-round summary, empty in the first round
            custom_instruction: Optional global instruction from the user

        Returns:
            TaskResult with the final text, its sources and the delegation trace
        """
        messages: List[Dict[str, Any]] = [
            {"role": "user", "content": self.build_prompt(agent, topic, refinement_context, custom_instruction)}
        ]

        first = await self._call_llm(
            messages,
            agent.model,
            tools=self.resolver.tool_registry.to_openai_format(),
        )
        if not first.tool_calls:
            return TaskResult(text=first.text, sources=list(first.sources))

        logger.info(f"🛠️  {agent.name} requested {len(first.tool_calls)} delegation(s)")
        delegation = await self.resolver.resolve(
            first.tool_calls, agent, roster, topic, custom_instruction
        )

        # Only answered calls go back into the conversation, and it must end on a user or tool turn
        answered = [tc for tc in first.tool_calls if tc.id in delegation.results_by_call]
        if answered:
            messages.append(assistant_message(first.text, answered))
        for tc in answered:
            messages.append({
                "role": "tool",
                "tool_call_id": tc.id,
                "name": tc.name,
                "content": json.dumps({"result": delegation.results_by_call[tc.id]}),
            })

        second = await self._call_llm(messages, agent.model, grounding=True)
        return TaskResult(
            text=second.text,
            sources=list(second.sources),
            delegations=delegation.records,
        )
