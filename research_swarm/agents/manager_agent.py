import asyncio
import json
import logging
from typing import Any, Dict, List, Optional

from ..core.base_agent import Agent, AgentConfig, Sleep
from ..core.types import CollaborationType, Decision, DecisionAction, Finding
from ..core.utils import clean_json_response, format_findings

logger = logging.getLogger(__name__)

INVALID_DECISION_REASONING = "Defaulted due to invalid response."

DECISION_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "action": {
            "type": "string",
            "enum": [a.value for a in DecisionAction],
            "description": "The chosen action type, e.g., 'Meeting' or 'ASK_REQUESTER'.",
        },
        "reasoning": {
            "type": "string",
            "description": "A brief justification for the chosen action.",
        },
        "question": {
            "type": "string",
            "description": "The question to ask the user, ONLY if the action is 'ASK_REQUESTER'.",
        },
    },
    "required": ["action", "reasoning"],
}


def parse_action(value: Any) -> Optional[DecisionAction]:
    """Match a model-supplied action against the closed set, ignoring case and spacing."""
    if not isinstance(value, str):
        return None
    normalized = value.strip().lower()
    for action in DecisionAction:
        if normalized in (action.value.lower(), action.name.lower()):
            return action
    return None


class DecisionEngine(Agent):
    """
    Decision Engine: asks the manager persona how the team should collaborate next.

    The answer is schema-constrained. An action outside the closed set is
    replaced by a Meeting; capability failures propagate to the caller.
    """

    def __init__(self, llm_client: Any, config: Optional[AgentConfig] = None, sleep: Sleep = asyncio.sleep):
        config = config or AgentConfig(
            name="Decision Engine",
            description="Chooses the next collaboration mode or asks the requester",
        )
        super().__init__(config, llm_client, sleep)

    def build_prompt(self, findings: List[Finding], topic: str, custom_instruction: str = "") -> str:
        instruction = (
            f'\nThere is an important instruction from the user you must follow: "{custom_instruction}"\n'
            if custom_instruction else ""
        )
        return f"""You are the Project Manager for a team of AI agents researching: "{topic}".
{instruction}
Review the following findings from your team:
{format_findings(findings)}

Based on these findings, decide the most effective type of collaboration for the next step.
Your options are:
- "{CollaborationType.MEETING.value}": For general synchronization and synthesis of ideas.
- "{CollaborationType.DISCUSSION.value}": For exploring a topic in-depth and brainstorming new angles.
- "{CollaborationType.DEBATE.value}": To resolve conflicting information or challenge weak arguments.
- "{CollaborationType.QNA.value}": To clarify specific points or have experts answer questions from the team.
- "{DecisionAction.ASK_REQUESTER.value}": Use this sparingly. Only when there is a critical ambiguity, a need for a subjective choice, or a fundamental pivot in research direction that requires the user's input.

If you choose "{DecisionAction.ASK_REQUESTER.value}", you MUST formulate a clear, concise question for the user.
Otherwise, just choose one of the collaboration actions.

Choose one action and provide a brief reasoning for your choice."""

    async def choose(
        self,
        findings: List[Finding],
        topic: str,
        custom_instruction: str,
        manager_model: str,
    ) -> Decision:
        prompt = self.build_prompt(findings, topic, custom_instruction)
        response = await self._call_llm(prompt, manager_model, response_schema=DECISION_SCHEMA)

        try:
            data = json.loads(clean_json_response(response.text))
        except json.JSONDecodeError:
            logger.warning(f"Manager returned unparseable decision, defaulting to Meeting: {response.text[:200]!r}")
            return Decision(action=DecisionAction.MEETING, reasoning=INVALID_DECISION_REASONING)

        action = parse_action(data.get("action")) if isinstance(data, dict) else None
        if action is None:
            logger.warning(f"Model returned invalid action type, defaulting to Meeting: {data!r}")
            return Decision(action=DecisionAction.MEETING, reasoning=INVALID_DECISION_REASONING)

        question = data.get("question") if action is DecisionAction.ASK_REQUESTER else None
        if isinstance(question, str):
            question = question.strip() or None
        else:
            question = None

        decision = Decision(action=action, reasoning=str(data.get("reasoning", "")), question=question)
        logger.info(f"🧭 Manager chose {decision.action.value}")
        return decision
