import asyncio
import logging
from typing import Any, AsyncIterator, Callable, List, Optional, Union
from dataclasses import dataclass, field

from ..core.base_agent import Agent, AgentConfig, Sleep
from ..core.types import CollaborationType, Finding, GroundingSource
from ..core.utils import format_findings

logger = logging.getLogger(__name__)

COLLABORATION_ERROR_CHUNK = (
    "\n\n--- An error occurred during the live collaboration. "
    "This may be due to API rate limits. ---"
)

COLLABORATION_INSTRUCTIONS = {
    CollaborationType.MEETING: "facilitate a collaborative meeting.",
    CollaborationType.DEBATE: "moderate a structured debate.",
    CollaborationType.DISCUSSION: "guide a round-table discussion.",
    CollaborationType.QNA: "conduct a question-and-answer session.",
}


@dataclass
class CollaborationResult:
    """Final record of a collaboration stream."""
    text: str
    sources: List[GroundingSource] = field(default_factory=list)


@dataclass
class CollaborationRunnerConfig(AgentConfig):
    narrator_model: Optional[str] = None


class CollaborationRunner(Agent):
    """
    Collaboration Runner: narrates a simulated multi-persona session.

    The session is one streamed, grounded generation. `stream()` yields text
    chunks followed by a single CollaborationResult; `run()` consumes it and
    forwards each chunk to a callback.
    """

    def __init__(
        self,
        llm_client: Any,
        config: Optional[CollaborationRunnerConfig] = None,
        sleep: Sleep = asyncio.sleep,
    ):
        config = config or CollaborationRunnerConfig(
            name="Collaboration Runner",
            description="Simulates meetings, debates, discussions and Q&A sessions",
        )
        super().__init__(config, llm_client, sleep)
        self.narrator_model = config.narrator_model

    def build_prompt(
        self,
        findings: List[Finding],
        topic: str,
        mode: CollaborationType,
        custom_instruction: str = "",
    ) -> str:
        instruction = (
            f'\nThe user has provided an important instruction that should guide this entire collaboration: "{custom_instruction}"\n'
            if custom_instruction else ""
        )
        return f"""You are an AI meeting facilitator. Your task is to {COLLABORATION_INSTRUCTIONS[mode]}
The participants are a team of AI agents researching the topic: "{topic}".
{instruction}
Here are their latest findings, which may include direct input from the user:
{format_findings(findings)}

Based on these inputs, generate a transcript of the {mode.value.lower()}.
The conversation should be dynamic, with agents interacting, challenging each other (especially in a debate), and building upon each other's ideas.
Ensure the conversation flows logically and makes progress on the research topic.
Use your search capabilities to inject new, relevant information into the conversation if needed to resolve disputes or fill knowledge gaps.
The output should be a formatted transcript. For example:
Lyra (Lead Researcher): "Based on my findings..."
Eris (Critic): "I'd like to challenge that assumption..."
"""

    async def stream(
        self,
        findings: List[Finding],
        topic: str,
        mode: CollaborationType,
        custom_instruction: str = "",
    ) -> AsyncIterator[Union[str, CollaborationResult]]:
        """
        Yield transcript chunks, then one CollaborationResult.

        On failure the error chunk is yielded before the failure is re-raised;
        chunks already delivered stay delivered.
        """
        prompt = self.build_prompt(findings, topic, mode, custom_instruction)
        full_text = ""
        sources: List[GroundingSource] = []
        try:
            chunks = await self._open_stream(prompt, self.narrator_model, grounding=True)
            async for chunk in chunks:
                if chunk.text:
                    full_text += chunk.text
                    yield chunk.text
                if chunk.sources is not None:
                    sources = list(chunk.sources)
        except Exception as e:
            logger.error(f"❌ Error during {mode.value} stream: {e}")
            yield COLLABORATION_ERROR_CHUNK
            raise

        yield CollaborationResult(text=full_text, sources=sources)

    async def run(
        self,
        findings: List[Finding],
        topic: str,
        mode: CollaborationType,
        on_chunk: Callable[[str], None],
        custom_instruction: str = "",
    ) -> CollaborationResult:
        logger.info(f"🗣️  Starting {mode.value} among {len(findings)} participant(s)")
        result = CollaborationResult(text="")
        async for item in self.stream(findings, topic, mode, custom_instruction):
            if isinstance(item, CollaborationResult):
                result = item
            else:
                on_chunk(item)
        return result
