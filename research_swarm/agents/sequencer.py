import asyncio
import logging
import time
from datetime import datetime
from typing import Any, List, Optional, Tuple
from dataclasses import dataclass

from ..core.base_agent import AgentConfig, Sleep
from ..core.context import RunContext
from ..core.errors import ResearchStopped, classify_error, error_message
from ..core.personas import MANAGER_ROLE, SYNTHESIZER_ROLE, require_role, validate_roster
from ..core.retry import MAX_RETRIES
from ..core.tools import ToolRegistry
from ..core.types import (
    AgentState,
    AgentStatus,
    CollaborationEntry,
    CollaborationTranscript,
    CollaborationType,
    Decision,
    DecisionAction,
    Finding,
    IndividualEntry,
    PhaseEntry,
    SavedRun,
    SynthesisEntry,
    UserInteractionEntry,
)
from ..core.utils import merge_sources
from .collaboration_agent import CollaborationResult, CollaborationRunner, CollaborationRunnerConfig
from .delegation_agent import DelegationResolver
from .manager_agent import DecisionEngine
from .synthesizer_agent import SynthesisRunner
from .task_agent import AgentTaskRunner

logger = logging.getLogger(__name__)

ROUND_SEPARATOR = "\n\n---\n\n"
USER_INPUT_ROLE = "User Input"


@dataclass(frozen=True)
class Checkpoint:
    """A decision point where the manager may ask the requester a question."""
    label: str
    fallback: CollaborationType
    fallback_reasoning: str


FIRST_CHECKPOINT = Checkpoint(
    label="Phase 2",
    fallback=CollaborationType.MEETING,
    fallback_reasoning="Defaulted to a meeting after user interaction to synthesize new input.",
)
FINAL_CHECKPOINT = Checkpoint(
    label="Phase 4",
    fallback=CollaborationType.DEBATE,
    fallback_reasoning="Defaulted to a debate after user interaction to challenge all perspectives.",
)


@dataclass
class SequencerConfig:
    """Timing and policy for one research run."""
    max_retries: int = MAX_RETRIES
    agent_delay_seconds: float = 1.5
    delegation_delay_seconds: float = 1.0
    checkpoint_timeout_seconds: float = 300.0
    enable_human_checkpoints: bool = True
    narrator_model: Optional[str] = None


class PhaseSequencer:
    """
    Phase Sequencer: drives one research run through its fixed phases.

    Init -> individual round 1 -> decision 1 [-> checkpoint] -> collaboration 1
    -> individual round 2 (refinement) -> decision 2 [-> checkpoint]
    -> collaboration 2 -> synthesis -> saved.

    All external calls are sequential. The cancel flag is checked at the start
    of every phase and before every persona's turn; once seen, the run unwinds
    without starting another call and without synthesis or persistence.
    """

    def __init__(
        self,
        llm_client: Any,
        context: RunContext,
        config: Optional[SequencerConfig] = None,
        store: Optional[Any] = None,
        tool_registry: Optional[ToolRegistry] = None,
        sleep: Sleep = asyncio.sleep,
    ):
        self.context = context
        self.config = config or SequencerConfig()
        self.store = store
        self.sleep = sleep
        self._pending_answer: Optional[asyncio.Future] = None

        retries = self.config.max_retries
        self.resolver = DelegationResolver(
            llm_client,
            tool_registry=tool_registry,
            config=AgentConfig(
                name="Delegation Resolver",
                description="Routes delegated sub-tasks to specialist personas",
                max_retries=retries,
                step_delay_seconds=self.config.delegation_delay_seconds,
            ),
            sleep=sleep,
        )
        self.task_runner = AgentTaskRunner(
            llm_client,
            self.resolver,
            config=AgentConfig(
                name="Agent Task Runner",
                description="Runs one persona's individual research task",
                max_retries=retries,
            ),
            sleep=sleep,
        )
        self.collaboration_runner = CollaborationRunner(
            llm_client,
            config=CollaborationRunnerConfig(
                name="Collaboration Runner",
                description="Simulates meetings, debates, discussions and Q&A sessions",
                max_retries=retries,
                narrator_model=self.config.narrator_model,
            ),
            sleep=sleep,
        )
        self.decision_engine = DecisionEngine(
            llm_client,
            config=AgentConfig(
                name="Decision Engine",
                description="Chooses the next collaboration mode or asks the requester",
                max_retries=retries,
            ),
            sleep=sleep,
        )
        self.synthesis_runner = SynthesisRunner(
            llm_client,
            config=AgentConfig(
                name="Synthesis Runner",
                description="Compiles the final report",
                max_retries=retries,
            ),
            sleep=sleep,
        )

    # Inbound signals

    @property
    def awaiting_answer(self) -> bool:
        return self._pending_answer is not None and not self._pending_answer.done()

    def answer_checkpoint(self, answer: Optional[str]) -> bool:
        """Resolve the pending checkpoint. Returns False when nothing is waiting."""
        if not self.awaiting_answer:
            return False
        answer = answer.strip() if answer else None
        self._pending_answer.set_result(answer or None)
        return True

    # Run

    async def run(self) -> Optional[SavedRun]:
        """
        Execute every phase.

        Returns:
            The saved run, or None when the run was stopped or failed. Failures
            are reported through context.error rather than raised.
        """
        ctx = self.context
        start_time = time.time()
        logger.info(f"🚀 Starting research run for: {ctx.topic}")

        try:
            saved = await self._execute_phases()
            logger.info(f"🎯 Research run for '{ctx.topic}' finished in {time.time() - start_time:.1f}s")
            return saved
        except ResearchStopped:
            logger.info("🛑 Research run stopped by user")
            ctx.add(PhaseEntry("Research process manually stopped by the user."))
            ctx.error = None
            ctx.error_kind = None
            return None
        except Exception as e:
            kind = classify_error(e)
            logger.exception(f"❌ Research run failed for '{ctx.topic}' after {time.time() - start_time:.1f}s: {e}")
            ctx.error_kind = kind
            ctx.error = error_message(kind)
            ctx.emit("error", ctx.error)
            return None
        finally:
            ctx.transcript = None
            ctx.pending_question = None
            self._pending_answer = None
            ctx.set_all_statuses(AgentStatus.IDLE)
            ctx.cancel.clear()

    async def _execute_phases(self) -> Optional[SavedRun]:
        ctx = self.context
        validate_roster([a.persona for a in ctx.agents])
        manager = require_role(ctx.agents, MANAGER_ROLE)
        synthesizer = require_role(ctx.agents, SYNTHESIZER_ROLE)

        self._check_cancelled()
        ctx.add(PhaseEntry("Phase 1: Initial Individual Research commencing..."))
        await self._individual_round()

        self._check_cancelled()
        decision, findings = await self._decide(ctx.findings(), manager, FIRST_CHECKPOINT)
        first_mode = decision.action.collaboration_type
        ctx.add(PhaseEntry(
            f"Phase 2: Project Manager's Decision: A {first_mode.value.upper()} is required.\n"
            f"Reasoning: {decision.reasoning}"
        ))
        first_collaboration = await self._collaborate(findings, first_mode)

        self._check_cancelled()
        ctx.add(PhaseEntry("Phase 3: Refined individual research based on collaboration outcomes."))
        await self._individual_round(refinement=(first_mode, first_collaboration.text))

        self._check_cancelled()
        decision, findings = await self._decide(ctx.findings(), manager, FINAL_CHECKPOINT)
        second_mode = decision.action.collaboration_type
        ctx.add(PhaseEntry(
            f"Phase 4: Project Manager's Decision: A final {second_mode.value.upper()} will consolidate perspectives.\n"
            f"Reasoning: {decision.reasoning}"
        ))
        await self._collaborate(findings, second_mode)

        self._check_cancelled()
        return await self._synthesize(synthesizer)

    def _check_cancelled(self) -> None:
        if self.context.cancel.cancelled:
            raise ResearchStopped()

    # Phases

    async def _individual_round(self, refinement: Optional[Tuple[CollaborationType, str]] = None) -> None:
        """One task per persona, in roster order, never concurrently."""
        ctx = self.context
        roster = ctx.agent_snapshots()

        for index, agent in enumerate(ctx.agents):
            self._check_cancelled()
            if index > 0:
                await self.sleep(self.config.agent_delay_seconds)
                self._check_cancelled()

            context_text = ""
            if refinement is not None:
                mode, summary = refinement
                context_text = (
                    f"Based on the initial research and the following {mode.value} summary, "
                    f"conduct a more focused investigation from your perspective as {agent.role}. "
                    f"Summary: {summary}"
                )

            ctx.set_status(agent, AgentStatus.RESEARCHING)
            logger.info(f"🔍 {agent.name} ({agent.role}) researching")
            result = await self.task_runner.run(
                agent.snapshot(), roster, ctx.topic, context_text, ctx.custom_instruction
            )

            if refinement is None:
                agent.output = result.text
                agent.sources = list(result.sources)
            else:
                agent.output = f"{agent.output}{ROUND_SEPARATOR}{result.text}"
                agent.sources = merge_sources(agent.sources, result.sources)
            ctx.set_status(agent, AgentStatus.IDLE)

            ctx.add(IndividualEntry(
                agent_id=agent.id,
                text=result.text,
                sources=list(result.sources),
                delegations=list(result.delegations),
            ))

    async def _decide(
        self,
        findings: List[Finding],
        manager: AgentState,
        checkpoint: Checkpoint,
    ) -> Tuple[Decision, List[Finding]]:
        """
        Ask the manager for the next step, running the human checkpoint if requested.

        The returned decision is never ASK_REQUESTER: when the checkpoint is
        disabled, has no question, or the manager asks again afterwards, the
        checkpoint's fallback mode is used.
        """
        ctx = self.context
        fallback = DecisionAction.from_collaboration(checkpoint.fallback)

        decision = await self.decision_engine.choose(findings, ctx.topic, ctx.custom_instruction, manager.model)
        if decision.action is not DecisionAction.ASK_REQUESTER:
            return decision, findings

        if not (self.config.enable_human_checkpoints and decision.question):
            logger.info(f"⏭️  {checkpoint.label}: human checkpoint skipped, using {checkpoint.fallback.value}")
            return Decision(
                action=fallback,
                reasoning=f"Human input unavailable; defaulted to a {checkpoint.fallback.value.lower()}.",
            ), findings

        self._check_cancelled()
        ctx.add(PhaseEntry(
            f"Project Manager's Decision: A question for the user is required.\nReasoning: {decision.reasoning}"
        ))
        ctx.add(UserInteractionEntry(text=f"Question: {decision.question}", question=decision.question))

        answer = await self._await_answer(decision.question)
        self._check_cancelled()

        findings = list(findings)
        if answer:
            ctx.add(UserInteractionEntry(text=f"User Answer: {answer}", answer=answer))
            findings.append(Finding(role=USER_INPUT_ROLE, output=answer))
        else:
            ctx.add(UserInteractionEntry(text="User did not respond in time. Proceeding autonomously."))

        decision = await self.decision_engine.choose(findings, ctx.topic, ctx.custom_instruction, manager.model)
        if decision.action is DecisionAction.ASK_REQUESTER:
            decision = Decision(action=fallback, reasoning=checkpoint.fallback_reasoning)
        return decision, findings

    async def _await_answer(self, question: str) -> Optional[str]:
        """Wait for answer_checkpoint(); a timeout resolves to no answer."""
        ctx = self.context
        self._pending_answer = asyncio.get_running_loop().create_future()
        ctx.pending_question = question
        ctx.emit("question", question)
        logger.info(f"❓ Waiting up to {self.config.checkpoint_timeout_seconds:.0f}s for the requester")
        try:
            return await asyncio.wait_for(self._pending_answer, timeout=self.config.checkpoint_timeout_seconds)
        except asyncio.TimeoutError:
            logger.info("⌛ No answer from the requester, proceeding autonomously")
            return None
        finally:
            self._pending_answer = None
            ctx.pending_question = None
            ctx.emit("question", None)

    async def _collaborate(self, findings: List[Finding], mode: CollaborationType) -> CollaborationResult:
        ctx = self.context
        self._check_cancelled()

        ctx.set_all_statuses(AgentStatus.IN_MEETING)
        ctx.transcript = CollaborationTranscript(mode=mode)
        try:
            result = await self.collaboration_runner.run(
                findings, ctx.topic, mode, ctx.append_transcript, ctx.custom_instruction
            )
        finally:
            ctx.transcript = None
            ctx.set_all_statuses(AgentStatus.IDLE)

        ctx.add(CollaborationEntry(mode=mode, text=result.text, sources=list(result.sources)))
        return result

    async def _synthesize(self, synthesizer: AgentState) -> SavedRun:
        ctx = self.context
        ctx.set_status(synthesizer, AgentStatus.SYNTHESIZING)
        ctx.add(PhaseEntry(f"Phase 5: {synthesizer.role} is compiling the final report."))

        result = await self.synthesis_runner.run(
            ctx.log.entries, ctx.topic, ctx.custom_instruction, synthesizer.snapshot()
        )
        self._check_cancelled()

        ctx.final_report = result.text
        ctx.set_status(synthesizer, AgentStatus.IDLE)
        ctx.emit("report", result.text)
        ctx.add(SynthesisEntry(agent_id=synthesizer.id, text=result.text, sources=list(result.sources)))

        timestamp = datetime.now()
        saved = SavedRun(
            id=int(timestamp.timestamp() * 1000),
            topic=ctx.topic,
            timestamp=timestamp,
            log=ctx.log.entries,
            final_report=result.text,
            agents=[
                AgentState(id=a.id, persona=a.persona, output=a.output, sources=list(a.sources))
                for a in ctx.agents
            ],
        )
        if self.store is not None:
            ctx.saved_run_id = self.store.save(saved)
            saved = self.store.get(ctx.saved_run_id) or saved
        return saved
