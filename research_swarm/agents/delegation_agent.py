import asyncio
import json
import logging
from typing import Any, Dict, List, Optional
from dataclasses import dataclass, field

from ..core.base_agent import Agent, AgentConfig, Sleep
from ..core.personas import find_by_role
from ..core.tools import ToolInvocation, ToolRegistry, create_delegation_tools
from ..core.types import AgentState, DelegationKind, DelegationRecord

logger = logging.getLogger(__name__)


@dataclass
class DelegationResult:
    """Trace of one delegation pass and the results to fold back into the requester's turn."""
    records: List[DelegationRecord] = field(default_factory=list)
    results: Dict[str, str] = field(default_factory=dict)  # tool name -> result text
    results_by_call: Dict[str, str] = field(default_factory=dict)  # tool call id -> result text


class DelegationResolver(Agent):
    """
    Delegation Resolver: hands tool calls off to the specialist personas.

    Each tool call is routed through the Tool-Role Map to the persona holding
    that role and answered by one grounded generation addressed to it. Calls
    are processed in the order received, one at a time, with a short pause
    between them. Calls whose role nobody in the roster fills are skipped.
    """

    def __init__(
        self,
        llm_client: Any,
        tool_registry: Optional[ToolRegistry] = None,
        config: Optional[AgentConfig] = None,
        sleep: Sleep = asyncio.sleep,
    ):
        config = config or AgentConfig(
            name="Delegation Resolver",
            description="Routes delegated sub-tasks to specialist personas",
            step_delay_seconds=1.0,
        )
        super().__init__(config, llm_client, sleep)
        self.tool_registry = tool_registry or create_delegation_tools()

    def build_prompt(
        self,
        requester: AgentState,
        target: AgentState,
        invocation: ToolInvocation,
        topic: str,
        custom_instruction: str = "",
    ) -> str:
        instruction = (
            f'The user has provided a global instruction for all agents: "{custom_instruction}"\n'
            if custom_instruction else ""
        )
        return f"""You are {target.name}, the {target.role}.
Your colleague, {requester.name} ({requester.role}), has delegated a task to you.
The main research topic is "{topic}".
{instruction}Your assigned task is: {invocation.name}.
The details are: {json.dumps(invocation.arguments)}
Perform this specific task and provide a direct, concise answer."""

    async def resolve(
        self,
        invocations: List[ToolInvocation],
        requester: AgentState,
        roster: List[AgentState],
        topic: str,
        custom_instruction: str = "",
    ) -> DelegationResult:
        """
        Resolve tool calls into delegated sub-tasks.

        Args:
            invocations: Tool calls from the requester's turn, in order
            requester: The persona that issued the calls
            roster: All personas of the run
            topic: Research topic
            custom_instruction: Optional global instruction from the user

        Returns:
            DelegationResult with Request/Response pairs and per-call results
        """
        outcome = DelegationResult()

        for index, invocation in enumerate(invocations):
            target_role = self.tool_registry.role_for(invocation.name)
            target = find_by_role(roster, target_role) if target_role else None
            if target is None:
                logger.debug(f"Skipping unroutable delegation {invocation.name} from {requester.name}")
                continue

            arguments = json.dumps(invocation.arguments)[1:-1]
            outcome.records.append(DelegationRecord(
                kind=DelegationKind.REQUEST,
                source_agent_id=requester.id,
                target_agent_id=target.id,
                text=f"Tasked to perform: {invocation.name}({arguments})",
            ))
            logger.info(f"📨 {requester.name} delegated {invocation.name} to {target.name}")

            prompt = self.build_prompt(requester, target, invocation, topic, custom_instruction)
            response = await self._call_llm(prompt, target.model, grounding=True)

            outcome.records.append(DelegationRecord(
                kind=DelegationKind.RESPONSE,
                source_agent_id=target.id,
                target_agent_id=requester.id,
                text=response.text,
                sources=list(response.sources),
            ))
            outcome.results[invocation.name] = response.text
            outcome.results_by_call[invocation.id] = response.text

            if index < len(invocations) - 1:
                await self._pause()

        return outcome
