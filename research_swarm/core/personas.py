"""
The reference roster of research personas.

Order defines the default sequencing of individual research rounds and the
default display order. Exactly one persona must hold the manager role and
one the synthesizer role.
"""

from typing import List, Optional

from .errors import ConfigurationError
from .types import AgentState, Persona

MANAGER_ROLE = "Project Manager"
SYNTHESIZER_ROLE = "Final Report Synthesizer"

PRIMARY_MODEL = "claude-sonnet-4-20250514"
LIGHT_MODEL = "claude-3-5-haiku-20241022"


def build_personas(primary_model: str = PRIMARY_MODEL, light_model: str = LIGHT_MODEL) -> List[Persona]:
    """The reference roster, with heavier roles on the primary model."""
    return [
        Persona(
            name="Orion",
            role=MANAGER_ROLE,
            description="Oversees the entire research process, assigns tasks, and ensures the team stays on track.",
            model=primary_model,
        ),
        Persona(
            name="Lyra",
            role="Lead Researcher",
            description="Conducts deep, foundational research and identifies primary sources and avenues of investigation.",
            model=light_model,
        ),
        Persona(
            name="Vela",
            role="Data Analyst",
            description="Specializes in finding, interpreting, and visualizing quantitative data and statistics.",
            model=light_model,
        ),
        Persona(
            name="Caelus",
            role="Fact-Checker",
            description="Meticulously verifies all claims, data points, and sources for accuracy and reliability.",
            model=light_model,
        ),
        Persona(
            name="Eris",
            role="Critic & Devil's Advocate",
            description="Challenges assumptions, questions conclusions, and identifies potential flaws in arguments.",
            model=primary_model,
        ),
        Persona(
            name="Cygnus",
            role="Creative Thinker",
            description="Explores unconventional angles, brainstorms innovative ideas, and connects disparate concepts.",
            model=light_model,
        ),
        Persona(
            name="Clio",
            role="Historical Context Analyst",
            description="Provides historical background and context to understand the evolution of the topic.",
            model=light_model,
        ),
        Persona(
            name="Techne",
            role="Technological Feasibility Expert",
            description="Assesses the technical aspects, feasibility, and implications of technologies related to the topic.",
            model=primary_model,
        ),
        Persona(
            name="Astra",
            role="Ethical & Societal Impact Analyst",
            description="Examines the ethical considerations and broader societal impact of the research findings.",
            model=primary_model,
        ),
        Persona(
            name="Nexus",
            role=SYNTHESIZER_ROLE,
            description="Weaves all the verified findings and diverse perspectives into a coherent, comprehensive final report.",
            model=primary_model,
        ),
        Persona(
            name="Draco",
            role="Web Intelligence Analyst",
            description="Scours the web for public sentiment, trends, and discussions related to the topic.",
            model=light_model,
        ),
    ]


DEFAULT_PERSONAS: List[Persona] = build_personas()


def validate_roster(personas: List[Persona]) -> None:
    """Raise ConfigurationError unless there is exactly one manager and one synthesizer."""
    for role in (MANAGER_ROLE, SYNTHESIZER_ROLE):
        count = sum(1 for p in personas if p.role == role)
        if count != 1:
            raise ConfigurationError(f"Roster must contain exactly one '{role}' persona, found {count}")


def initial_agent_states(personas: List[Persona]) -> List[AgentState]:
    return [AgentState(id=i, persona=p) for i, p in enumerate(personas)]


def find_by_role(agents: List[AgentState], role: str) -> Optional[AgentState]:
    return next((a for a in agents if a.role == role), None)


def require_role(agents: List[AgentState], role: str) -> AgentState:
    agent = find_by_role(agents, role)
    if agent is None:
        raise ConfigurationError(f"No '{role}' persona in the roster")
    return agent
