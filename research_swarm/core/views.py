"""
Views derived from a research log.

Everything here is a pure function of the ordered log (plus the agent list
for display names), so a saved run can be re-rendered without re-running it.
"""

from typing import Any, Dict, Iterable, List, Optional

from .types import (
    AgentState,
    CollaborationEntry,
    IndividualEntry,
    LogEntry,
    PhaseEntry,
    SynthesisEntry,
    UserInteractionEntry,
)


def _agent_name(agents: Optional[Iterable[AgentState]], agent_id: int) -> str:
    for agent in agents or []:
        if agent.id == agent_id:
            return agent.name
    return f"Agent {agent_id}"


def entry_label(entry: LogEntry, agents: Optional[Iterable[AgentState]] = None) -> str:
    """Short human-readable label for one log entry."""
    if isinstance(entry, PhaseEntry):
        return entry.text
    if isinstance(entry, IndividualEntry):
        return f"{_agent_name(agents, entry.agent_id)}'s Research"
    if isinstance(entry, CollaborationEntry):
        return entry.mode.value
    if isinstance(entry, SynthesisEntry):
        return "Final Report Synthesis"
    if isinstance(entry, UserInteractionEntry):
        return "User Input"
    raise TypeError(f"Unknown log entry: {entry!r}")


def workflow_by_phase(log: Iterable[LogEntry]) -> List[List[LogEntry]]:
    """Group entries into phases; each Phase entry opens a new group."""
    phases: List[List[LogEntry]] = []
    current: List[LogEntry] = []
    for entry in log:
        if isinstance(entry, PhaseEntry) and current:
            phases.append(current)
            current = [entry]
        else:
            current.append(entry)
    if current:
        phases.append(current)
    return phases


def timeline(log: Iterable[LogEntry], agents: Optional[Iterable[AgentState]] = None) -> List[Dict[str, Any]]:
    agents = list(agents or [])
    return [
        {"id": entry.id, "type": entry.kind.value, "label": entry_label(entry, agents)}
        for entry in log
    ]


def delegation_edges(log: Iterable[LogEntry]) -> List[Dict[str, Any]]:
    """Flatten every delegation trace into directed edges, in log order."""
    edges = []
    for entry in log:
        if not isinstance(entry, IndividualEntry):
            continue
        for record in entry.delegations:
            edges.append({
                "entry_id": entry.id,
                "type": record.kind.value,
                "source": record.source_agent_id,
                "target": record.target_agent_id,
                "text": record.text,
            })
    return edges


def render_log_for_synthesis(log: Iterable[LogEntry]) -> str:
    """Render the full log as the evidence block of the final report prompt."""
    blocks = []
    for entry in log:
        if isinstance(entry, IndividualEntry):
            block = f"[Individual Work - Agent {entry.agent_id}]:\n{entry.text}"
            if entry.delegations:
                block += "\n\n  [Begin Internal Communications Log]\n"
                block += "\n".join(
                    f"    - {d.kind.value} from Agent {d.source_agent_id} to Agent {d.target_agent_id}: {d.text}"
                    for d in entry.delegations
                )
                block += "\n  [End Internal Communications Log]\n"
        elif isinstance(entry, CollaborationEntry):
            block = f"[{entry.mode.value} Transcript]:\n{entry.text}"
        elif isinstance(entry, UserInteractionEntry):
            block = "[User Interaction]"
            if entry.question:
                block += f"\nQuestion: {entry.question}"
            if entry.answer:
                block += f"\nAnswer: {entry.answer}"
            if not entry.question and not entry.answer:
                block += f"\n{entry.text}"
        elif isinstance(entry, SynthesisEntry):
            block = f"[Previous Synthesis]:\n{entry.text}"
        else:
            block = f"[Phase Update]: {entry.text}"
        blocks.append(block)
    return "\n\n".join(blocks)
