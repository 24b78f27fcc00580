"""
Tests for the HTTP API.
"""

import pytest
from fastapi.testclient import TestClient

from research_swarm.agents.sequencer import SequencerConfig
from research_swarm.api.main import app

from conftest import FINAL_REPORT, FakeLLMClient, SleepRecorder, make_swarm, small_roster

TOPIC = "renewable energy storage"
SMALL_RUN_LENGTH = 18


@pytest.fixture
def swarm():
    swarm = make_swarm(
        FakeLLMClient(),
        SleepRecorder(),
        personas=small_roster(),
        config=SequencerConfig(enable_human_checkpoints=False),
    )
    app.state.swarm = swarm
    yield swarm
    app.state.swarm = None


@pytest.fixture
def client(swarm):
    return TestClient(app)


def run_once(client):
    response = client.post("/research", json={"topic": TOPIC})
    assert response.status_code == 202
    return response


class TestHealth:

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_root(self, client):
        assert client.get("/").json()["name"] == "Research Swarm"


class TestResearchEndpoints:

    def test_start_runs_in_the_background(self, client):
        response = run_once(client)
        assert response.json()["topic"] == TOPIC

        state = client.get("/research/state").json()
        assert state["is_running"] is False
        assert state["final_report"] == FINAL_REPORT
        assert len(state["research_log"]) == SMALL_RUN_LENGTH
        assert [e["id"] for e in state["research_log"]] == list(range(SMALL_RUN_LENGTH))
        assert all(a["status"] == "Idle" for a in state["agents"])
        assert state["error"] is None

    def test_empty_topic_is_rejected(self, client):
        assert client.post("/research", json={"topic": "   "}).status_code == 422
        assert client.post("/research", json={}).status_code == 422

    def test_second_start_conflicts(self, client, swarm):
        swarm.prepare_run("already running")

        response = client.post("/research", json={"topic": TOPIC})

        assert response.status_code == 409

    def test_stop_when_idle(self, client):
        assert client.post("/research/stop").json() == {"stopped": False}

    def test_answer_without_question_conflicts(self, client):
        response = client.post("/research/answer", json={"answer": "grid-scale"})
        assert response.status_code == 409

    def test_views_are_derived_from_the_log(self, client):
        run_once(client)

        views = client.get("/research/views").json()

        assert len(views["workflow"]) == 5
        assert len(views["timeline"]) == SMALL_RUN_LENGTH
        assert views["timeline"][1]["label"] == "Orion's Research"
        assert views["delegations"] == []


class TestRunEndpoints:

    def test_saved_run_lifecycle(self, client):
        run_once(client)

        runs = client.get("/runs").json()["runs"]
        assert len(runs) == 1
        run_id = runs[0]["id"]
        assert runs[0]["topic"] == TOPIC

        detail = client.get(f"/runs/{run_id}").json()
        assert detail["final_report"] == FINAL_REPORT
        assert len(detail["research_log"]) == SMALL_RUN_LENGTH

        loaded = client.post(f"/runs/{run_id}/load").json()
        assert loaded["saved_run_id"] == run_id
        assert loaded["topic"] == TOPIC

        assert client.delete(f"/runs/{run_id}").status_code == 200
        assert client.delete(f"/runs/{run_id}").status_code == 404
        assert client.get(f"/runs/{run_id}").status_code == 404

    def test_unknown_run(self, client):
        assert client.get("/runs/12345").status_code == 404
        assert client.post("/runs/12345/load").status_code == 404
