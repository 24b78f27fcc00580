"""
Tests for the research log, log entries and saved-run records.
"""

from dataclasses import FrozenInstanceError
from datetime import datetime

import pytest

from research_swarm.core.personas import (
    DEFAULT_PERSONAS,
    MANAGER_ROLE,
    SYNTHESIZER_ROLE,
    initial_agent_states,
    validate_roster,
)
from research_swarm.core.errors import ConfigurationError
from research_swarm.core.types import (
    AgentState,
    CollaborationEntry,
    CollaborationType,
    DecisionAction,
    DelegationKind,
    DelegationRecord,
    GroundingSource,
    IndividualEntry,
    LogEntryKind,
    PhaseEntry,
    ResearchLog,
    SavedRun,
    SynthesisEntry,
    UserInteractionEntry,
    log_entry_from_dict,
)


class TestResearchLog:

    def test_ids_are_append_indices(self):
        log = ResearchLog()
        log.append(PhaseEntry("Phase 1"))
        log.append(IndividualEntry(agent_id=3, text="finding"))
        log.append(UserInteractionEntry(text="Question: why?", question="why?"))

        assert [e.id for e in log] == [0, 1, 2]
        assert len(log) == 3

    def test_caller_supplied_ids_are_replaced(self):
        log = ResearchLog()
        log.append(PhaseEntry("first", id=41))
        stamped = log.append(PhaseEntry("second", id=7))

        assert stamped.id == 1
        assert log[0].id == 0

    def test_constructing_from_entries_renumbers(self):
        log = ResearchLog([PhaseEntry("a", id=5), PhaseEntry("b", id=9)])
        assert [e.id for e in log.entries] == [0, 1]

    def test_entries_is_a_copy(self):
        log = ResearchLog()
        log.append(PhaseEntry("a"))
        log.entries.append(PhaseEntry("b"))
        assert len(log) == 1

    def test_entries_are_immutable(self):
        entry = ResearchLog().append(PhaseEntry("a"))
        with pytest.raises(FrozenInstanceError):
            entry.text = "changed"


class TestLogEntryRoundTrip:

    def test_individual_entry_with_delegations(self):
        entry = IndividualEntry(
            agent_id=1,
            text="Lead findings",
            sources=[GroundingSource(uri="https://example.org", title="Example")],
            delegations=[
                DelegationRecord(DelegationKind.REQUEST, 1, 3, 'Tasked to perform: factCheck("claim": "x")'),
                DelegationRecord(DelegationKind.RESPONSE, 3, 1, "Verified", [GroundingSource("https://a", "A")]),
            ],
            id=4,
        )

        data = entry.to_dict()
        assert data["type"] == "Individual"
        assert data["delegated_logs"][0]["type"] == "Request"
        assert log_entry_from_dict(data) == entry

    def test_each_kind_restores_its_variant(self):
        entries = [
            PhaseEntry("Phase 1", id=0),
            CollaborationEntry(CollaborationType.QNA, "transcript", id=1),
            SynthesisEntry(agent_id=9, text="report", id=2),
            UserInteractionEntry(text="User Answer: yes", answer="yes", id=3),
        ]
        restored = [log_entry_from_dict(e.to_dict()) for e in entries]

        assert restored == entries
        assert [e.kind for e in restored] == [
            LogEntryKind.PHASE,
            LogEntryKind.COLLABORATION,
            LogEntryKind.SYNTHESIS,
            LogEntryKind.USER_INTERACTION,
        ]


class TestDecisionAction:

    def test_collaboration_modes_map_both_ways(self):
        for mode in CollaborationType:
            assert DecisionAction.from_collaboration(mode).collaboration_type is mode

    def test_ask_requester_is_not_a_collaboration(self):
        with pytest.raises(ValueError):
            DecisionAction.ASK_REQUESTER.collaboration_type


class TestSavedRun:

    def test_to_dict_and_back(self):
        agents = initial_agent_states(DEFAULT_PERSONAS[:2])
        agents[0].output = "done"
        run = SavedRun(
            id=1700000000000,
            topic="renewable energy storage",
            timestamp=datetime(2024, 5, 1, 12, 30),
            log=[PhaseEntry("Phase 1", id=0), SynthesisEntry(agent_id=9, text="report", id=1)],
            final_report="report",
            agents=agents,
        )

        data = run.to_dict()
        assert data["date"] == "2024-05-01T12:30:00"
        assert SavedRun.from_dict(data) == run

    def test_agent_state_snapshot_is_independent(self):
        agent = AgentState(id=0, persona=DEFAULT_PERSONAS[0], sources=[GroundingSource("https://a", "A")])
        snapshot = agent.snapshot()
        agent.sources.append(GroundingSource("https://b", "B"))
        assert len(snapshot.sources) == 1


class TestRoster:

    def test_reference_roster(self):
        assert len(DEFAULT_PERSONAS) == 11
        assert DEFAULT_PERSONAS[0].role == MANAGER_ROLE
        assert [p.name for p in DEFAULT_PERSONAS][-2:] == ["Nexus", "Draco"]
        validate_roster(DEFAULT_PERSONAS)

    def test_missing_manager_is_rejected(self):
        personas = [p for p in DEFAULT_PERSONAS if p.role != MANAGER_ROLE]
        with pytest.raises(ConfigurationError):
            validate_roster(personas)

    def test_duplicate_synthesizer_is_rejected(self):
        synthesizer = next(p for p in DEFAULT_PERSONAS if p.role == SYNTHESIZER_ROLE)
        with pytest.raises(ConfigurationError):
            validate_roster(list(DEFAULT_PERSONAS) + [synthesizer])
