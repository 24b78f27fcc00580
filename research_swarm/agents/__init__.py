from .delegation_agent import DelegationResolver, DelegationResult
from .task_agent import AgentTaskRunner, TaskResult
from .collaboration_agent import CollaborationRunner, CollaborationRunnerConfig, CollaborationResult
from .manager_agent import DecisionEngine
from .synthesizer_agent import SynthesisRunner
from .sequencer import PhaseSequencer, SequencerConfig
from .swarm import ResearchSwarm, create_swarm

__all__ = [
    "DelegationResolver",
    "DelegationResult",
    "AgentTaskRunner",
    "TaskResult",
    "CollaborationRunner",
    "CollaborationRunnerConfig",
    "CollaborationResult",
    "DecisionEngine",
    "SynthesisRunner",
    "PhaseSequencer",
    "SequencerConfig",
    "ResearchSwarm",
    "create_swarm",
]
