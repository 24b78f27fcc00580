import logging
from typing import Optional
from datetime import datetime
from contextlib import asynccontextmanager

from fastapi import BackgroundTasks, Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from ..agents.swarm import ResearchSwarm, create_swarm
from ..config import config
from ..core.errors import ResearchInProgressError
from ..core.views import delegation_edges, timeline, workflow_by_phase
from ..logger import setup_logging

logger = logging.getLogger(__name__)


# Request Models
class ResearchRequest(BaseModel):
    topic: str = Field(..., description="The research topic to investigate")
    custom_instruction: Optional[str] = Field(default=None, description="Instruction that guides every phase")


class AnswerRequest(BaseModel):
    answer: Optional[str] = Field(default=None, description="Answer to the pending question; empty means no answer")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    setup_logging(config.log_level, config.log_file)
    logger.info("🚀 Research Swarm API starting...")
    yield
    # Shutdown
    logger.info("👋 Research Swarm API shutting down...")


def get_swarm(request: Request) -> ResearchSwarm:
    """The process-wide swarm, created on first use."""
    swarm = getattr(request.app.state, "swarm", None)
    if swarm is None:
        swarm = create_swarm(config)
        request.app.state.swarm = swarm
    return swarm


app = FastAPI(
    title="Research Swarm",
    description="""
    A research orchestration engine in which eleven persona agents research a topic together:
    - **Individual research** with delegation to specialist personas
    - **Project Manager decisions** choosing a meeting, debate, discussion or Q&A
    - **Human-in-the-loop checkpoints** when the manager needs the requester's input
    - **Final report** synthesized from the complete research log
    """,
    version="1.0.0",
    lifespan=lifespan
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
async def root():
    return {
        "name": "Research Swarm",
        "version": "1.0.0",
        "status": "running",
        "phases": [
            "individual research",
            "manager decision",
            "collaboration",
            "refined research",
            "manager decision",
            "collaboration",
            "synthesis",
        ],
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "timestamp": datetime.now().isoformat(),
        "llm_provider": config.llm_provider,
        "anthropic_configured": bool(config.anthropic_api_key),
        "openai_configured": bool(config.openai_api_key),
        "human_checkpoints": config.enable_human_checkpoints,
    }


@app.post("/research", status_code=202)
async def start_research(
    request: ResearchRequest,
    background_tasks: BackgroundTasks,
    swarm: ResearchSwarm = Depends(get_swarm),
):
    """
    Start a research run.

    The run executes in the background. Poll /research/state for progress.
    """
    try:
        sequencer = swarm.prepare_run(request.topic, request.custom_instruction)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except ResearchInProgressError as e:
        raise HTTPException(status_code=409, detail=str(e))

    background_tasks.add_task(swarm.execute, sequencer)
    return {
        "status": "started",
        "topic": swarm.context.topic,
        "message": "Research started. Use /research/state to follow progress.",
    }


@app.post("/research/stop")
async def stop_research(swarm: ResearchSwarm = Depends(get_swarm)):
    return {"stopped": swarm.stop_research()}


@app.post("/research/answer")
async def answer_checkpoint(request: AnswerRequest, swarm: ResearchSwarm = Depends(get_swarm)):
    """Answer the Project Manager's pending question."""
    if not swarm.answer_human_checkpoint(request.answer):
        raise HTTPException(status_code=409, detail="No question is waiting for an answer")
    return {"status": "answered"}


@app.get("/research/state")
async def research_state(swarm: ResearchSwarm = Depends(get_swarm)):
    """Live agents, log, transcript, report, error and pending question."""
    return swarm.snapshot()


@app.get("/research/views")
async def research_views(swarm: ResearchSwarm = Depends(get_swarm)):
    """Workflow, timeline and delegation graph derived from the current log."""
    entries = swarm.context.log.entries
    return {
        "workflow": [[e.to_dict() for e in phase] for phase in workflow_by_phase(entries)],
        "timeline": timeline(entries, swarm.context.agents),
        "delegations": delegation_edges(entries),
    }


@app.get("/runs")
async def list_runs(swarm: ResearchSwarm = Depends(get_swarm)):
    """List saved runs, newest first."""
    return {
        "runs": [
            {"id": run.id, "topic": run.topic, "date": run.timestamp.isoformat()}
            for run in swarm.list_saved_runs()
        ]
    }


@app.get("/runs/{run_id}")
async def get_run(run_id: int, swarm: ResearchSwarm = Depends(get_swarm)):
    run = swarm.get_saved_run(run_id)
    if run is None:
        raise HTTPException(status_code=404, detail="Run not found")
    return run.to_dict()


@app.post("/runs/{run_id}/load")
async def load_run(run_id: int, swarm: ResearchSwarm = Depends(get_swarm)):
    """Restore a saved run into the live state."""
    try:
        run = swarm.load_saved_run(run_id)
    except ResearchInProgressError as e:
        raise HTTPException(status_code=409, detail=str(e))
    if run is None:
        raise HTTPException(status_code=404, detail="Run not found")
    return swarm.snapshot()


@app.delete("/runs/{run_id}")
async def delete_run(run_id: int, swarm: ResearchSwarm = Depends(get_swarm)):
    if not swarm.delete_saved_run(run_id):
        raise HTTPException(status_code=404, detail="Run not found")
    return {"status": "deleted", "run_id": run_id}


# Run with: uvicorn research_swarm.api.main:app --reload
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=config.api_host, port=config.api_port)
