from typing import Any, Callable, Dict, List, Optional
from dataclasses import dataclass, field

from .errors import ErrorKind
from .types import (
    AgentState,
    AgentStatus,
    CollaborationTranscript,
    Finding,
    LogEntry,
    ResearchLog,
)

Listener = Callable[[str, Any], None]


class CancelToken:
    """Cooperative stop flag shared by every run of one swarm."""

    def __init__(self):
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True

    def clear(self) -> None:
        self._cancelled = False


@dataclass
class RunContext:
    """
    Mutable state of one research run.

    Owned by the phase sequencer for the duration of the run; other
    components only ever receive snapshots taken from it. Listeners are
    notified with ("status", agent), ("log", entry), ("chunk", text),
    ("question", text or None), ("report", text) and ("error", message).
    """
    topic: str
    agents: List[AgentState]
    custom_instruction: str = ""
    log: ResearchLog = field(default_factory=ResearchLog)
    transcript: Optional[CollaborationTranscript] = None
    final_report: str = ""
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None
    pending_question: Optional[str] = None
    saved_run_id: Optional[int] = None
    cancel: CancelToken = field(default_factory=CancelToken)
    listeners: List[Listener] = field(default_factory=list)

    def emit(self, event: str, payload: Any = None) -> None:
        for listener in list(self.listeners):
            listener(event, payload)

    def add(self, entry: LogEntry) -> LogEntry:
        stamped = self.log.append(entry)
        self.emit("log", stamped)
        return stamped

    def set_status(self, agent: AgentState, status: AgentStatus) -> None:
        agent.status = status
        self.emit("status", agent)

    def set_all_statuses(self, status: AgentStatus) -> None:
        for agent in self.agents:
            if agent.status is not status:
                self.set_status(agent, status)

    def append_transcript(self, chunk: str) -> None:
        if self.transcript is not None:
            self.transcript.text += chunk
        self.emit("chunk", chunk)

    def findings(self) -> List[Finding]:
        return [Finding(role=a.role, output=a.output) for a in self.agents]

    def agent_snapshots(self) -> List[AgentState]:
        return [a.snapshot() for a in self.agents]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "topic": self.topic,
            "custom_instruction": self.custom_instruction,
            "agents": [a.to_dict() for a in self.agents],
            "research_log": self.log.to_list(),
            "current_collaboration": self.transcript.to_dict() if self.transcript else None,
            "final_report": self.final_report,
            "error": self.error,
            "error_kind": self.error_kind.value if self.error_kind else None,
            "pending_question": self.pending_question,
            "saved_run_id": self.saved_run_id,
        }
