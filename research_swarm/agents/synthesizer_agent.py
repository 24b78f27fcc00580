import asyncio
from typing import Any, List, Optional

from ..core.base_agent import Agent, AgentConfig, Sleep
from ..core.llm import GenerationResult
from ..core.types import AgentState, LogEntry
from ..core.views import render_log_for_synthesis


class SynthesisRunner(Agent):
    """Writes the final report from the complete research log."""

    def __init__(self, llm_client: Any, config: Optional[AgentConfig] = None, sleep: Sleep = asyncio.sleep):
        config = config or AgentConfig(
            name="Synthesis Runner",
            description="Compiles the final report",
        )
        super().__init__(config, llm_client, sleep)

    def build_prompt(self, log: List[LogEntry], topic: str, custom_instruction: str = "") -> str:
        instruction = (
            f'\nCRITICAL INSTRUCTION FROM THE USER: You must adhere to the following instruction when writing the report: "{custom_instruction}"\n'
            if custom_instruction else ""
        )
        return f"""You are the 'Final Report Synthesizer' AI agent.
Your task is to create a comprehensive, well-structured final report on the topic: "{topic}".
{instruction}
You have been provided with the complete log of the research process, including individual findings from multiple specialized agents, transcripts of their collaborative meetings, any questions put to the user and their answers, and logs of their internal task delegations.

Here is the full research log:
{render_log_for_synthesis(log)}

Synthesize all this information into a single, coherent report.
Every individual finding, collaboration transcript and user interaction above must be reflected in the report.
The report should be well-organized, insightful, and cover the topic from multiple perspectives as explored by the agent team.
Start with an executive summary, followed by detailed sections.
Use Markdown for formatting (e.g., # for headings, * for bullet points).
Use your search capabilities to verify final points and ensure the report is up-to-date."""

    async def run(
        self,
        log: List[LogEntry],
        topic: str,
        custom_instruction: str,
        synthesizer: AgentState,
    ) -> GenerationResult:
        prompt = self.build_prompt(log, topic, custom_instruction)
        return await self._call_llm(prompt, synthesizer.model, grounding=True)
