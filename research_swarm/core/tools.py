from typing import Any, Optional, Dict, List
from dataclasses import dataclass


@dataclass
class ToolInvocation:
    """A tool call requested by the model."""
    id: str
    name: str
    arguments: Dict[str, Any]


class Tool:
    """A delegable tool. Calling it hands a sub-task to the persona holding `target_role`."""

    def __init__(
        self,
        name: str,
        description: str,
        target_role: str,
        parameters: Optional[Dict[str, Any]] = None
    ):
        self.name = name
        self.description = description
        self.target_role = target_role
        self.parameters = parameters or {"type": "object", "properties": {}}

    def to_openai_format(self) -> Dict[str, Any]:
        """Convert to OpenAI function calling format."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters
            }
        }


class ToolRegistry:
    """Registry for the tools agents may call."""

    def __init__(self):
        self._tools: Dict[str, Tool] = {}

    def register(self, tool: Tool) -> None:
        """Register a tool."""
        self._tools[tool.name] = tool

    def get(self, name: str) -> Optional[Tool]:
        """Get a tool by name."""
        return self._tools.get(name)

    def role_for(self, name: str) -> Optional[str]:
        """The roster role that fulfils a tool, or None for unknown tools."""
        tool = self.get(name)
        return tool.target_role if tool else None

    def role_map(self) -> Dict[str, str]:
        return {tool.name: tool.target_role for tool in self._tools.values()}

    def to_openai_format(self) -> List[Dict[str, Any]]:
        """Convert all tools to OpenAI format."""
        return [tool.to_openai_format() for tool in self._tools.values()]


def _single_string_parameter(name: str, description: str) -> Dict[str, Any]:
    return {
        "type": "object",
        "properties": {
            name: {"type": "string", "description": description}
        },
        "required": [name]
    }


def create_delegation_tools() -> ToolRegistry:
    """Build the registry of delegation tools and their target roles."""
    registry = ToolRegistry()
    registry.register(Tool(
        name="factCheck",
        description="Verify a specific claim for accuracy using reliable sources.",
        target_role="Fact-Checker",
        parameters=_single_string_parameter("claim", "The specific claim to be verified."),
    ))
    registry.register(Tool(
        name="findData",
        description="Find quantitative data, statistics, or specific numbers related to a query.",
        target_role="Data Analyst",
        parameters=_single_string_parameter("query", "The specific data or statistic being requested."),
    ))
    registry.register(Tool(
        name="getHistoricalContext",
        description="Provide historical background or context for a particular event, person, or topic.",
        target_role="Historical Context Analyst",
        parameters=_single_string_parameter("topic", "The topic needing historical context."),
    ))
    registry.register(Tool(
        name="challengeAssumption",
        description="Challenge an assumption or argument to test its validity. Identify potential flaws.",
        target_role="Critic & Devil's Advocate",
        parameters=_single_string_parameter("assumption", "The assumption or argument to be challenged."),
    ))
    return registry
