from enum import Enum
from typing import List, Dict, Any, Optional, Union
from dataclasses import dataclass, field, replace
from datetime import datetime


class AgentStatus(Enum):
    IDLE = "Idle"
    RESEARCHING = "Researching"
    IN_MEETING = "In Meeting"
    SYNTHESIZING = "Synthesizing"


class CollaborationType(Enum):
    MEETING = "Meeting"
    DEBATE = "Debate"
    DISCUSSION = "Discussion"
    QNA = "Q&A"


class DecisionAction(Enum):
    MEETING = "Meeting"
    DEBATE = "Debate"
    DISCUSSION = "Discussion"
    QNA = "Q&A"
    ASK_REQUESTER = "ASK_REQUESTER"

    @property
    def collaboration_type(self) -> CollaborationType:
        if self is DecisionAction.ASK_REQUESTER:
            raise ValueError("ASK_REQUESTER is not a collaboration mode")
        return CollaborationType(self.value)

    @classmethod
    def from_collaboration(cls, mode: CollaborationType) -> "DecisionAction":
        return cls(mode.value)


class DelegationKind(Enum):
    REQUEST = "Request"
    RESPONSE = "Response"


class LogEntryKind(Enum):
    PHASE = "Phase"
    INDIVIDUAL = "Individual"
    COLLABORATION = "Collaboration"
    SYNTHESIS = "Synthesis"
    USER_INTERACTION = "UserInteraction"


@dataclass(frozen=True)
class GroundingSource:
    """A web citation returned alongside grounded text."""
    uri: str
    title: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"uri": self.uri, "title": self.title}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GroundingSource":
        return cls(uri=data.get("uri", ""), title=data.get("title", ""))


@dataclass(frozen=True)
class Persona:
    """A named role definition with a fixed backing model."""
    name: str
    role: str
    description: str
    model: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "role": self.role,
            "description": self.description,
            "model": self.model,
        }


@dataclass
class AgentState:
    """Per-run projection of a persona. Mutated only by the phase sequencer."""
    id: int
    persona: Persona
    status: AgentStatus = AgentStatus.IDLE
    output: str = ""
    sources: List[GroundingSource] = field(default_factory=list)

    @property
    def name(self) -> str:
        return self.persona.name

    @property
    def role(self) -> str:
        return self.persona.role

    @property
    def model(self) -> str:
        return self.persona.model

    def snapshot(self) -> "AgentState":
        return replace(self, sources=list(self.sources))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            **self.persona.to_dict(),
            "status": self.status.value,
            "output": self.output,
            "sources": [s.to_dict() for s in self.sources],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AgentState":
        return cls(
            id=data["id"],
            persona=Persona(
                name=data.get("name", ""),
                role=data.get("role", ""),
                description=data.get("description", ""),
                model=data.get("model", ""),
            ),
            status=AgentStatus(data.get("status", AgentStatus.IDLE.value)),
            output=data.get("output", ""),
            sources=[GroundingSource.from_dict(s) for s in data.get("sources", [])],
        )


@dataclass(frozen=True)
class Finding:
    """Snapshot of one persona's output, handed to the manager and narrator."""
    role: str
    output: str


@dataclass(frozen=True)
class DelegationRecord:
    """One directed edge in a delegation trace."""
    kind: DelegationKind
    source_agent_id: int
    target_agent_id: int
    text: str
    sources: List[GroundingSource] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.kind.value,
            "source_agent_id": self.source_agent_id,
            "target_agent_id": self.target_agent_id,
            "log": self.text,
            "sources": [s.to_dict() for s in self.sources],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DelegationRecord":
        return cls(
            kind=DelegationKind(data["type"]),
            source_agent_id=data["source_agent_id"],
            target_agent_id=data["target_agent_id"],
            text=data.get("log", ""),
            sources=[GroundingSource.from_dict(s) for s in data.get("sources", [])],
        )


@dataclass(frozen=True)
class Decision:
    action: DecisionAction
    reasoning: str
    question: Optional[str] = None


# Log entries. The id is assigned by ResearchLog.append and equals the append index.

@dataclass(frozen=True)
class PhaseEntry:
    text: str
    id: int = -1
    kind = LogEntryKind.PHASE

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "type": self.kind.value, "log": self.text}


@dataclass(frozen=True)
class IndividualEntry:
    agent_id: int
    text: str
    sources: List[GroundingSource] = field(default_factory=list)
    delegations: List[DelegationRecord] = field(default_factory=list)
    id: int = -1
    kind = LogEntryKind.INDIVIDUAL

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.kind.value,
            "agent_id": self.agent_id,
            "log": self.text,
            "sources": [s.to_dict() for s in self.sources],
            "delegated_logs": [d.to_dict() for d in self.delegations],
        }


@dataclass(frozen=True)
class CollaborationEntry:
    mode: CollaborationType
    text: str
    sources: List[GroundingSource] = field(default_factory=list)
    id: int = -1
    kind = LogEntryKind.COLLABORATION

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.kind.value,
            "collaboration_type": self.mode.value,
            "log": self.text,
            "sources": [s.to_dict() for s in self.sources],
        }


@dataclass(frozen=True)
class SynthesisEntry:
    agent_id: int
    text: str
    sources: List[GroundingSource] = field(default_factory=list)
    id: int = -1
    kind = LogEntryKind.SYNTHESIS

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.kind.value,
            "agent_id": self.agent_id,
            "log": self.text,
            "sources": [s.to_dict() for s in self.sources],
        }


@dataclass(frozen=True)
class UserInteractionEntry:
    text: str
    question: Optional[str] = None
    answer: Optional[str] = None
    id: int = -1
    kind = LogEntryKind.USER_INTERACTION

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.kind.value,
            "log": self.text,
            "question": self.question,
            "answer": self.answer,
        }


LogEntry = Union[PhaseEntry, IndividualEntry, CollaborationEntry, SynthesisEntry, UserInteractionEntry]


def log_entry_from_dict(data: Dict[str, Any]) -> LogEntry:
    """Rebuild a log entry from its stored form."""
    kind = LogEntryKind(data["type"])
    entry_id = data.get("id", -1)
    sources = [GroundingSource.from_dict(s) for s in data.get("sources", [])]

    if kind is LogEntryKind.PHASE:
        return PhaseEntry(text=data.get("log", ""), id=entry_id)
    if kind is LogEntryKind.INDIVIDUAL:
        return IndividualEntry(
            agent_id=data["agent_id"],
            text=data.get("log", ""),
            sources=sources,
            delegations=[DelegationRecord.from_dict(d) for d in data.get("delegated_logs", [])],
            id=entry_id,
        )
    if kind is LogEntryKind.COLLABORATION:
        return CollaborationEntry(
            mode=CollaborationType(data["collaboration_type"]),
            text=data.get("log", ""),
            sources=sources,
            id=entry_id,
        )
    if kind is LogEntryKind.SYNTHESIS:
        return SynthesisEntry(agent_id=data["agent_id"], text=data.get("log", ""), sources=sources, id=entry_id)
    return UserInteractionEntry(
        text=data.get("log", ""),
        question=data.get("question"),
        answer=data.get("answer"),
        id=entry_id,
    )


class ResearchLog:
    """
    Append-only, strictly ordered record of one run.

    Each appended entry receives an id equal to its append index, so ids
    are always the contiguous sequence 0..N-1.
    """

    def __init__(self, entries: Optional[List[LogEntry]] = None):
        self._entries: List[LogEntry] = []
        for entry in entries or []:
            self.append(entry)

    def append(self, entry: LogEntry) -> LogEntry:
        stamped = replace(entry, id=len(self._entries))
        self._entries.append(stamped)
        return stamped

    @property
    def entries(self) -> List[LogEntry]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self):
        return iter(list(self._entries))

    def __getitem__(self, index: int) -> LogEntry:
        return self._entries[index]

    def to_list(self) -> List[Dict[str, Any]]:
        return [e.to_dict() for e in self._entries]


@dataclass
class CollaborationTranscript:
    """Live transcript of the collaboration currently being streamed."""
    mode: CollaborationType
    text: str = ""
    sources: List[GroundingSource] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.mode.value,
            "transcript": self.text,
            "sources": [s.to_dict() for s in self.sources],
        }


@dataclass(frozen=True)
class SavedRun:
    """A completed research session as handed to the persistence layer."""
    id: int
    topic: str
    timestamp: datetime
    log: List[LogEntry]
    final_report: str
    agents: List[AgentState]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "topic": self.topic,
            "date": self.timestamp.isoformat(),
            "research_log": [e.to_dict() for e in self.log],
            "final_report": self.final_report,
            "agents": [a.to_dict() for a in self.agents],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SavedRun":
        return cls(
            id=data["id"],
            topic=data["topic"],
            timestamp=datetime.fromisoformat(data["date"]),
            log=[log_entry_from_dict(e) for e in data.get("research_log", [])],
            final_report=data.get("final_report", ""),
            agents=[AgentState.from_dict(a) for a in data.get("agents", [])],
        )
