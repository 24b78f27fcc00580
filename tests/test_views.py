"""
Tests for the views derived from a research log.
"""

from research_swarm.core.personas import initial_agent_states
from research_swarm.core.types import (
    CollaborationEntry,
    CollaborationType,
    DelegationKind,
    DelegationRecord,
    IndividualEntry,
    PhaseEntry,
    ResearchLog,
    SynthesisEntry,
    UserInteractionEntry,
)
from research_swarm.core.views import (
    delegation_edges,
    entry_label,
    render_log_for_synthesis,
    timeline,
    workflow_by_phase,
)

from conftest import small_roster


def sample_log():
    log = ResearchLog()
    log.append(PhaseEntry("Phase 1: Initial Individual Research commencing..."))
    log.append(IndividualEntry(
        agent_id=1,
        text="Lead findings",
        delegations=[
            DelegationRecord(DelegationKind.REQUEST, 1, 3, 'Tasked to perform: factCheck("claim": "x")'),
            DelegationRecord(DelegationKind.RESPONSE, 3, 1, "Verified."),
        ],
    ))
    log.append(IndividualEntry(agent_id=2, text="Data findings"))
    log.append(PhaseEntry("Project Manager's Decision: A question for the user is required."))
    log.append(UserInteractionEntry(text="Question: Grid or home?", question="Grid or home?"))
    log.append(UserInteractionEntry(text="User Answer: grid", answer="grid"))
    log.append(PhaseEntry("Phase 2: Project Manager's Decision: A MEETING is required."))
    log.append(CollaborationEntry(CollaborationType.MEETING, "Orion: Welcome."))
    log.append(SynthesisEntry(agent_id=4, text="report"))
    return log.entries


class TestWorkflowByPhase:

    def test_each_phase_entry_opens_a_group(self):
        groups = workflow_by_phase(sample_log())

        assert [len(g) for g in groups] == [3, 3, 3]
        assert all(isinstance(g[0], PhaseEntry) for g in groups)

    def test_entries_before_the_first_phase_form_a_group(self):
        groups = workflow_by_phase([IndividualEntry(agent_id=0, text="x", id=0), PhaseEntry("p", id=1)])
        assert [len(g) for g in groups] == [1, 1]

    def test_empty_log(self):
        assert workflow_by_phase([]) == []


class TestTimeline:

    def test_labels_use_agent_names(self):
        agents = initial_agent_states(small_roster())
        items = timeline(sample_log(), agents)

        assert [i["id"] for i in items] == list(range(9))
        assert items[1] == {"id": 1, "type": "Individual", "label": "Lyra's Research"}
        assert items[4]["label"] == "User Input"
        assert items[7]["label"] == "Meeting"
        assert items[8]["label"] == "Final Report Synthesis"

    def test_unknown_agents_fall_back_to_ids(self):
        assert entry_label(IndividualEntry(agent_id=42, text="x")) == "Agent 42's Research"


class TestDelegationEdges:

    def test_edges_follow_log_order(self):
        edges = delegation_edges(sample_log())

        assert edges == [
            {"entry_id": 1, "type": "Request", "source": 1, "target": 3,
             "text": 'Tasked to perform: factCheck("claim": "x")'},
            {"entry_id": 1, "type": "Response", "source": 3, "target": 1, "text": "Verified."},
        ]


class TestRenderLogForSynthesis:

    def test_every_entry_is_rendered(self):
        text = render_log_for_synthesis(sample_log())

        assert "[Phase Update]: Phase 1: Initial Individual Research commencing..." in text
        assert "[Individual Work - Agent 1]:\nLead findings" in text
        assert "[Begin Internal Communications Log]" in text
        assert "    - Request from Agent 1 to Agent 3: Tasked to perform" in text
        assert "[User Interaction]\nQuestion: Grid or home?" in text
        assert "[User Interaction]\nAnswer: grid" in text
        assert "[Meeting Transcript]:\nOrion: Welcome." in text

    def test_entries_without_delegations_have_no_communications_block(self):
        text = render_log_for_synthesis([IndividualEntry(agent_id=0, text="solo", id=0)])
        assert text == "[Individual Work - Agent 0]:\nsolo"
