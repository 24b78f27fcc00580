from .types import (
    AgentStatus,
    CollaborationType,
    DecisionAction,
    DelegationKind,
    LogEntryKind,
    GroundingSource,
    Persona,
    AgentState,
    Finding,
    DelegationRecord,
    Decision,
    PhaseEntry,
    IndividualEntry,
    CollaborationEntry,
    SynthesisEntry,
    UserInteractionEntry,
    LogEntry,
    ResearchLog,
    CollaborationTranscript,
    SavedRun,
)
from .errors import (
    ErrorKind,
    ResearchSwarmError,
    ConfigurationError,
    ResearchStopped,
    ResearchInProgressError,
    classify_error,
    error_message,
    is_rate_limit_error,
)
from .base_agent import Agent, AgentConfig
from .tools import Tool, ToolInvocation, ToolRegistry, create_delegation_tools
from .retry import with_retry
from .llm import LLMProvider, GenerationResult, StreamChunk, create_llm_client, get_default_model

__all__ = [
    "AgentStatus",
    "CollaborationType",
    "DecisionAction",
    "DelegationKind",
    "LogEntryKind",
    "GroundingSource",
    "Persona",
    "AgentState",
    "Finding",
    "DelegationRecord",
    "Decision",
    "PhaseEntry",
    "IndividualEntry",
    "CollaborationEntry",
    "SynthesisEntry",
    "UserInteractionEntry",
    "LogEntry",
    "ResearchLog",
    "CollaborationTranscript",
    "SavedRun",
    "ErrorKind",
    "ResearchSwarmError",
    "ConfigurationError",
    "ResearchStopped",
    "ResearchInProgressError",
    "classify_error",
    "error_message",
    "is_rate_limit_error",
    "Agent",
    "AgentConfig",
    "Tool",
    "ToolInvocation",
    "ToolRegistry",
    "create_delegation_tools",
    "with_retry",
    "LLMProvider",
    "GenerationResult",
    "StreamChunk",
    "create_llm_client",
    "get_default_model",
]
