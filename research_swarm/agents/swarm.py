import asyncio
import logging
from typing import Any, Dict, List, Optional

from ..config import Config
from ..core.base_agent import Sleep
from ..core.context import CancelToken, Listener, RunContext
from ..core.errors import ConfigurationError, ResearchInProgressError
from ..core.llm import create_llm_client, LLMProvider
from ..core.personas import DEFAULT_PERSONAS, build_personas, initial_agent_states, validate_roster
from ..core.types import AgentState, Persona, ResearchLog, SavedRun
from ..storage.memory import JsonFileRunStore, RunStore
from .sequencer import PhaseSequencer, SequencerConfig

logger = logging.getLogger(__name__)


class ResearchSwarm:
    """
    Inbound facade over the research engine.

    Holds the process-wide cancel flag, the "is running" guard, the saved-run
    store and the outbound state of the current (or last) run. Only one run
    is active at a time.

    Example:
        swarm = ResearchSwarm(llm_client)
        swarm.subscribe(lambda event, payload: print(event))
        saved = await swarm.start_research("renewable energy storage")
    """

    def __init__(
        self,
        llm_client: Any,
        personas: Optional[List[Persona]] = None,
        config: Optional[SequencerConfig] = None,
        store: Optional[RunStore] = None,
        sleep: Sleep = asyncio.sleep,
    ):
        self.llm_client = llm_client
        self.personas = list(personas) if personas is not None else list(DEFAULT_PERSONAS)
        self.config = config or SequencerConfig()
        self.store = store if store is not None else RunStore()
        self.sleep = sleep

        self.cancel = CancelToken()
        self._listeners: List[Listener] = []
        self._sequencer: Optional[PhaseSequencer] = None
        self._running = False
        self.context = self._new_context("")

    def _new_context(self, topic: str, custom_instruction: str = "") -> RunContext:
        return RunContext(
            topic=topic,
            agents=initial_agent_states(self.personas),
            custom_instruction=custom_instruction,
            cancel=self.cancel,
            listeners=self._listeners,
        )

    def subscribe(self, listener: Listener) -> None:
        """Register a callback receiving (event, payload) for every live update."""
        self._listeners.append(listener)

    @property
    def is_running(self) -> bool:
        return self._running

    # Inbound operations

    def prepare_run(self, topic: str, custom_instruction: Optional[str] = None) -> PhaseSequencer:
        """
        Reserve the engine for a new run and reset the outbound state.

        Raises:
            ValueError: if the topic is empty
            ResearchInProgressError: if a run is already active
        """
        topic = (topic or "").strip()
        if not topic:
            raise ValueError("Research topic must not be empty")
        if self._running:
            raise ResearchInProgressError("A research run is already in progress")
        validate_roster(self.personas)

        self._running = True
        self.cancel.clear()
        self.context = self._new_context(topic, (custom_instruction or "").strip())
        self._sequencer = PhaseSequencer(
            self.llm_client,
            self.context,
            config=self.config,
            store=self.store,
            sleep=self.sleep,
        )
        return self._sequencer

    async def execute(self, sequencer: PhaseSequencer) -> Optional[SavedRun]:
        """Run a prepared sequencer to completion and release the running guard."""
        try:
            return await sequencer.run()
        finally:
            self._running = False
            self._sequencer = None

    async def start_research(self, topic: str, custom_instruction: Optional[str] = None) -> Optional[SavedRun]:
        sequencer = self.prepare_run(topic, custom_instruction)
        return await self.execute(sequencer)

    def stop_research(self) -> bool:
        """
        Request a cooperative stop.

        The in-flight call is allowed to finish; a pending checkpoint is
        resolved with no answer so the run does not wait for its timeout.
        """
        if not self._running:
            return False
        logger.info("🛑 Stop requested")
        self.cancel.cancel()
        if self._sequencer is not None:
            self._sequencer.answer_checkpoint(None)
        return True

    def answer_human_checkpoint(self, answer: Optional[str]) -> bool:
        if self._sequencer is None:
            return False
        return self._sequencer.answer_checkpoint(answer)

    def snapshot(self) -> Dict[str, Any]:
        state = self.context.to_dict()
        state["is_running"] = self._running
        return state

    # Saved runs

    def list_saved_runs(self) -> List[SavedRun]:
        return self.store.list()

    def get_saved_run(self, run_id: int) -> Optional[SavedRun]:
        return self.store.get(run_id)

    def delete_saved_run(self, run_id: int) -> bool:
        return self.store.delete(run_id)

    def load_saved_run(self, run_id: int) -> Optional[SavedRun]:
        """Restore a saved run into the outbound state. Returns None if it does not exist."""
        if self._running:
            raise ResearchInProgressError("Cannot load a saved run while research is in progress")
        run = self.store.get(run_id)
        if run is None:
            return None

        self.context = RunContext(
            topic=run.topic,
            agents=[AgentState(id=a.id, persona=a.persona, output=a.output, sources=list(a.sources)) for a in run.agents],
            log=ResearchLog(run.log),
            final_report=run.final_report,
            saved_run_id=run.id,
            cancel=self.cancel,
            listeners=self._listeners,
        )
        logger.info(f"📂 Loaded saved run {run.id}: {run.topic}")
        return run


def create_swarm(
    config: Config,
    llm_client: Optional[Any] = None,
    store: Optional[RunStore] = None,
) -> ResearchSwarm:
    """Build a swarm from application configuration."""
    if llm_client is None:
        try:
            provider = LLMProvider(config.llm_provider)
        except ValueError as e:
            raise ConfigurationError(f"Unknown provider: {config.llm_provider}") from e
        llm_client = create_llm_client(
            provider=provider,
            api_key=config.get_api_key(),
            model=config.llm_model,
        )
    if store is None:
        store = JsonFileRunStore(config.runs_file) if config.runs_file else RunStore()

    return ResearchSwarm(
        llm_client,
        personas=build_personas(config.llm_model, config.llm_light_model),
        config=SequencerConfig(
            max_retries=config.max_retries,
            agent_delay_seconds=config.agent_delay_seconds,
            delegation_delay_seconds=config.delegation_delay_seconds,
            checkpoint_timeout_seconds=config.checkpoint_timeout_seconds,
            enable_human_checkpoints=config.enable_human_checkpoints,
            narrator_model=config.llm_light_model,
        ),
        store=store,
    )
