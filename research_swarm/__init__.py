"""
Research Swarm

A research orchestration engine in which a fixed roster of persona agents
research a topic together:
- Agent Task Runner: individual research with tool-based delegation
- Delegation Resolver: hands sub-tasks to the Fact-Checker, Data Analyst,
  Historical Context Analyst and Critic
- Decision Engine: the Project Manager picks the next collaboration mode
  or asks the requester a question
- Collaboration Runner: streamed meetings, debates, discussions and Q&A
- Phase Sequencer: two research rounds, two decisions, two collaborations
  and a final synthesized report

Key Features:
- Rate-limit aware retry with exponential backoff and jitter
- Human-in-the-loop checkpoints with a bounded wait
- Cooperative cancellation between steps
- Strictly ordered, replayable research log and saved runs
"""

__version__ = "1.0.0"
__author__ = "Research Swarm Team"

from .agents.swarm import ResearchSwarm, create_swarm
from .agents.sequencer import PhaseSequencer, SequencerConfig

__all__ = [
    "ResearchSwarm",
    "create_swarm",
    "PhaseSequencer",
    "SequencerConfig",
]
