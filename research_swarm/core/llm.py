"""
LLM Provider abstraction supporting Claude (Anthropic) and OpenAI.

Both clients expose the same capability surface:

    result = await client.generate(prompt, model, grounding=True)
    result = await client.generate(messages, model, tools=[...])
    result = await client.generate(prompt, model, response_schema={...})
    stream = await client.open_stream(prompt, model, grounding=True)
    async for chunk in stream: ...

Usage:
    from research_swarm.core.llm import create_llm_client, LLMProvider

    # Use Claude (default/recommended)
    client = create_llm_client(LLMProvider.ANTHROPIC, api_key="...")

    # Or use OpenAI
    client = create_llm_client(LLMProvider.OPENAI, api_key="...")

The clients never retry; wrap calls with `research_swarm.core.retry.with_retry`.
"""

import json
import logging
import os
from enum import Enum
from typing import Any, AsyncIterator, Dict, List, Optional, Union
from dataclasses import dataclass, field

from .errors import ConfigurationError
from .tools import ToolInvocation
from .types import GroundingSource
from .utils import merge_sources

logger = logging.getLogger(__name__)

Prompt = Union[str, List[Dict[str, Any]]]

STRUCTURED_OUTPUT_TOOL = "structured_output"


class LLMProvider(Enum):
    ANTHROPIC = "anthropic"
    OPENAI = "openai"


@dataclass
class GenerationResult:
    """Text, citations and tool calls from one generation."""
    text: str = ""
    sources: List[GroundingSource] = field(default_factory=list)
    tool_calls: List[ToolInvocation] = field(default_factory=list)
    message: Dict[str, Any] = field(default_factory=dict)  # assistant turn, chat format


@dataclass
class StreamChunk:
    """One increment of a streamed generation. `sources` is set when grounding metadata arrives."""
    text: str = ""
    sources: Optional[List[GroundingSource]] = None


def to_messages(prompt: Prompt) -> List[Dict[str, Any]]:
    if isinstance(prompt, str):
        return [{"role": "user", "content": prompt}]
    return list(prompt)


def assistant_message(text: str, tool_calls: List[ToolInvocation]) -> Dict[str, Any]:
    """Build a chat-format assistant turn that can be sent back to either provider."""
    message: Dict[str, Any] = {"role": "assistant", "content": text or None}
    if tool_calls:
        message["tool_calls"] = [
            {
                "id": tc.id,
                "type": "function",
                "function": {"name": tc.name, "arguments": json.dumps(tc.arguments)},
            }
            for tc in tool_calls
        ]
    return message


class AnthropicLLMClient:
    """Wrapper for Anthropic's Claude API with web-search grounding."""

    def __init__(
        self,
        api_key: str,
        default_model: str = "claude-sonnet-4-20250514",
        base_url: str = None,
        max_tokens: int = 4096,
        temperature: float = 0.7,
        max_searches: int = 5,
    ):
        from anthropic import AsyncAnthropic

        if base_url:
            self.client = AsyncAnthropic(api_key=api_key, base_url=base_url)
        else:
            self.client = AsyncAnthropic(api_key=api_key)
            base_url = os.getenv("ANTHROPIC_BASE_URL", "https://api.anthropic.com")
        logger.info(f"🔗 Anthropic client using base URL: {base_url}")

        self.default_model = default_model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.max_searches = max_searches

    async def generate(
        self,
        prompt: Prompt,
        model: Optional[str] = None,
        grounding: bool = False,
        tools: Optional[List[Dict]] = None,
        response_schema: Optional[Dict[str, Any]] = None,
    ) -> GenerationResult:
        """Create a single message using Claude."""
        request = self._build_request(prompt, model, grounding, tools, response_schema)
        response = await self.client.messages.create(**request)
        return self._convert_response(response, structured=response_schema is not None)

    async def open_stream(
        self,
        prompt: Prompt,
        model: Optional[str] = None,
        grounding: bool = False,
    ) -> AsyncIterator[StreamChunk]:
        """
        Start a streamed message. The request is made here, so connection and
        rate-limit failures surface from this call rather than mid-iteration.
        """
        request = self._build_request(prompt, model, grounding, None, None)
        stream = await self.client.messages.create(stream=True, **request)
        return self._iter_stream(stream)

    async def _iter_stream(self, stream: Any) -> AsyncIterator[StreamChunk]:
        sources: List[GroundingSource] = []
        async for event in stream:
            if event.type == "content_block_delta" and getattr(event.delta, "type", "") == "text_delta":
                yield StreamChunk(text=event.delta.text)
            elif event.type == "content_block_start" and event.content_block.type == "web_search_tool_result":
                sources = merge_sources(sources, self._parse_search_results(event.content_block))
                yield StreamChunk(sources=list(sources))

    def _build_request(
        self,
        prompt: Prompt,
        model: Optional[str],
        grounding: bool,
        tools: Optional[List[Dict]],
        response_schema: Optional[Dict[str, Any]],
    ) -> Dict[str, Any]:
        system_content, chat_messages = self._to_claude_messages(to_messages(prompt), declared_tools=bool(tools))

        request_kwargs: Dict[str, Any] = {
            "model": model or self.default_model,
            "max_tokens": self.max_tokens,
            "messages": chat_messages,
            "temperature": self.temperature,
        }
        if system_content:
            request_kwargs["system"] = system_content.strip()

        claude_tools = []
        if response_schema:
            # Forcing a single tool whose input schema is the requested shape
            claude_tools.append({
                "name": STRUCTURED_OUTPUT_TOOL,
                "description": "Record the response in the required structure.",
                "input_schema": response_schema,
            })
            request_kwargs["tool_choice"] = {"type": "tool", "name": STRUCTURED_OUTPUT_TOOL}
        else:
            for tool in tools or []:
                if tool.get("type") == "function":
                    func = tool["function"]
                    claude_tools.append({
                        "name": func["name"],
                        "description": func.get("description", ""),
                        "input_schema": func.get("parameters", {"type": "object", "properties": {}})
                    })
            if grounding:
                claude_tools.append({
                    "type": "web_search_20250305",
                    "name": "web_search",
                    "max_uses": self.max_searches,
                })
        if claude_tools:
            request_kwargs["tools"] = claude_tools
        return request_kwargs

    def _to_claude_messages(self, messages: List[Dict[str, Any]], declared_tools: bool):
        """
        Convert chat-format messages to Claude format.

        tool_use blocks are only valid when the request declares tools; otherwise
        the tool exchange is replayed as plain text turns.
        """
        system_content = ""
        chat_messages: List[Dict[str, Any]] = []

        for msg in messages:
            role = msg.get("role", "user")
            content = msg.get("content") or ""

            if role == "system":
                system_content += content + "\n"
            elif role == "tool":
                tool_call_id = msg.get("tool_call_id", "unknown")
                text = content if isinstance(content, str) else json.dumps(content)
                if declared_tools:
                    block = {"type": "tool_result", "tool_use_id": tool_call_id, "content": text}
                else:
                    block = {"type": "text", "text": f"Result of {msg.get('name', tool_call_id)}:\n{text}"}
                previous = chat_messages[-1] if chat_messages else None
                if previous and previous.get("_tool_results"):
                    previous["content"].append(block)
                else:
                    chat_messages.append({"role": "user", "content": [block], "_tool_results": True})
            elif role == "assistant" and msg.get("tool_calls"):
                content_blocks = []
                if content:
                    content_blocks.append({"type": "text", "text": content})
                for tc in msg["tool_calls"]:
                    args = tc["function"]["arguments"]
                    args = json.loads(args) if isinstance(args, str) else args
                    if declared_tools:
                        content_blocks.append({
                            "type": "tool_use",
                            "id": tc["id"],
                            "name": tc["function"]["name"],
                            "input": args,
                        })
                    else:
                        content_blocks.append({
                            "type": "text",
                            "text": f"Calling {tc['function']['name']} with {json.dumps(args)}",
                        })
                chat_messages.append({"role": "assistant", "content": content_blocks})
            else:
                chat_messages.append({"role": role, "content": content})

        for message in chat_messages:
            message.pop("_tool_results", None)
        return system_content, chat_messages

    def _convert_response(self, response: Any, structured: bool = False) -> GenerationResult:
        """Convert an Anthropic response into a GenerationResult."""
        text_content = ""
        tool_calls: List[ToolInvocation] = []
        sources: List[GroundingSource] = []

        for block in response.content:
            block_type = getattr(block, "type", "")
            if block_type == "text":
                text_content += block.text
            elif block_type == "tool_use":
                if structured and block.name == STRUCTURED_OUTPUT_TOOL:
                    text_content = json.dumps(block.input)
                else:
                    tool_calls.append(ToolInvocation(id=block.id, name=block.name, arguments=dict(block.input or {})))
            elif block_type == "web_search_tool_result":
                sources = merge_sources(sources, self._parse_search_results(block))

        return GenerationResult(
            text=text_content,
            sources=sources,
            tool_calls=tool_calls,
            message=assistant_message(text_content, tool_calls),
        )

    @staticmethod
    def _parse_search_results(block: Any) -> List[GroundingSource]:
        results = getattr(block, "content", None)
        if not isinstance(results, list):
            # An error result carries an error object instead of a list
            return []
        return [
            GroundingSource(uri=item.url, title=getattr(item, "title", "") or "")
            for item in results
            if getattr(item, "url", None)
        ]


class OpenAILLMClient:
    """Wrapper for OpenAI API. Chat completions carry no web grounding, so sources are always empty."""

    def __init__(self, api_key: str, default_model: str = "gpt-4-turbo-preview", temperature: float = 0.7):
        from openai import AsyncOpenAI
        self.client = AsyncOpenAI(api_key=api_key)
        self.default_model = default_model
        self.temperature = temperature

    async def generate(
        self,
        prompt: Prompt,
        model: Optional[str] = None,
        grounding: bool = False,
        tools: Optional[List[Dict]] = None,
        response_schema: Optional[Dict[str, Any]] = None,
    ) -> GenerationResult:
        kwargs: Dict[str, Any] = {
            "model": model or self.default_model,
            "messages": to_messages(prompt),
            "temperature": self.temperature,
        }
        if tools:
            kwargs["tools"] = tools
            kwargs["tool_choice"] = "auto"
        if response_schema:
            kwargs["response_format"] = {
                "type": "json_schema",
                "json_schema": {"name": STRUCTURED_OUTPUT_TOOL, "schema": response_schema},
            }

        response = await self.client.chat.completions.create(**kwargs)
        message = response.choices[0].message

        tool_calls = [
            ToolInvocation(
                id=tc.id,
                name=tc.function.name,
                arguments=json.loads(tc.function.arguments or "{}"),
            )
            for tc in (message.tool_calls or [])
        ]
        text = message.content or ""
        return GenerationResult(text=text, tool_calls=tool_calls, message=assistant_message(text, tool_calls))

    async def open_stream(
        self,
        prompt: Prompt,
        model: Optional[str] = None,
        grounding: bool = False,
    ) -> AsyncIterator[StreamChunk]:
        stream = await self.client.chat.completions.create(
            model=model or self.default_model,
            messages=to_messages(prompt),
            temperature=self.temperature,
            stream=True,
        )
        return self._iter_stream(stream)

    async def _iter_stream(self, stream: Any) -> AsyncIterator[StreamChunk]:
        async for chunk in stream:
            if chunk.choices and chunk.choices[0].delta.content:
                yield StreamChunk(text=chunk.choices[0].delta.content)


def create_llm_client(
    provider: LLMProvider = None,
    api_key: str = None,
    model: str = None
) -> Any:
    """
    Create an LLM client based on provider.

    Args:
        provider: LLM provider (anthropic or openai). Auto-detects if not specified.
        api_key: API key. Uses environment variable if not specified.
        model: Model to use. Uses provider default if not specified.

    Returns:
        LLM client exposing generate() and open_stream()
    """
    if provider is None:
        if os.getenv("ANTHROPIC_API_KEY"):
            provider = LLMProvider.ANTHROPIC
        elif os.getenv("OPENAI_API_KEY"):
            provider = LLMProvider.OPENAI
        else:
            raise ConfigurationError("No API key found. Set ANTHROPIC_API_KEY or OPENAI_API_KEY")

    if provider == LLMProvider.ANTHROPIC:
        api_key = api_key or os.getenv("ANTHROPIC_API_KEY")
        if not api_key:
            raise ConfigurationError("ANTHROPIC_API_KEY is required")
        return AnthropicLLMClient(api_key=api_key, default_model=model or get_default_model(provider))

    elif provider == LLMProvider.OPENAI:
        api_key = api_key or os.getenv("OPENAI_API_KEY")
        if not api_key:
            raise ConfigurationError("OPENAI_API_KEY is required")
        return OpenAILLMClient(api_key=api_key, default_model=model or get_default_model(provider))

    else:
        raise ConfigurationError(f"Unknown provider: {provider}")


def get_default_model(provider: LLMProvider) -> str:
    """Get the default model for a provider."""
    defaults = {
        LLMProvider.ANTHROPIC: "claude-sonnet-4-20250514",
        LLMProvider.OPENAI: "gpt-4-turbo-preview"
    }
    return defaults.get(provider, "claude-sonnet-4-20250514")
