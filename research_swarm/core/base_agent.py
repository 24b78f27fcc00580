import asyncio
from abc import ABC, abstractmethod
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, List, Optional
from dataclasses import dataclass

from .llm import GenerationResult, Prompt, StreamChunk
from .retry import MAX_RETRIES, with_retry

Sleep = Callable[[float], Awaitable[Any]]


@dataclass
class AgentConfig:
    """Configuration for an orchestration component."""
    name: str
    description: str
    max_retries: int = MAX_RETRIES
    step_delay_seconds: float = 0.0


class Agent(ABC):
    """
    Base class for the components that talk to the capability client.

    Every external call goes through `_call_llm` or `_open_stream`, which apply
    the rate-limit retry policy; subclasses never retry on their own.
    """

    def __init__(self, config: AgentConfig, llm_client: Any, sleep: Sleep = asyncio.sleep):
        self.config = config
        self.llm_client = llm_client
        self.sleep = sleep

    @property
    def name(self) -> str:
        return self.config.name

    @property
    def description(self) -> str:
        return self.config.description

    @abstractmethod
    def build_prompt(self, *args: Any, **kwargs: Any) -> str:
        """Return the prompt this component sends to the model."""
        pass

    async def _call_llm(
        self,
        prompt: Prompt,
        model: Optional[str] = None,
        grounding: bool = False,
        tools: Optional[List[Dict]] = None,
        response_schema: Optional[Dict[str, Any]] = None,
    ) -> GenerationResult:
        """Make a single generation call with rate-limit retry."""
        return await with_retry(
            lambda: self.llm_client.generate(
                prompt,
                model,
                grounding=grounding,
                tools=tools,
                response_schema=response_schema,
            ),
            max_attempts=self.config.max_retries,
            sleep=self.sleep,
        )

    async def _open_stream(
        self,
        prompt: Prompt,
        model: Optional[str] = None,
        grounding: bool = False,
    ) -> AsyncIterator[StreamChunk]:
        """Open a streamed generation with rate-limit retry on the opening request."""
        return await with_retry(
            lambda: self.llm_client.open_stream(prompt, model, grounding=grounding),
            max_attempts=self.config.max_retries,
            sleep=self.sleep,
        )

    async def _pause(self, seconds: Optional[float] = None) -> None:
        delay = self.config.step_delay_seconds if seconds is None else seconds
        if delay > 0:
            await self.sleep(delay)
