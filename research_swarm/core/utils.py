import re
from typing import Iterable, List

from .types import Finding, GroundingSource


def clean_json_response(content: str) -> str:
    """
    Clean JSON response from LLM by removing markdown code blocks.

    Args:
        content: The raw string response from LLM

    Returns:
        Cleaned string containing just the JSON content
    """
    pattern = r"```(?:json)?\s*(.*?)\s*```"
    match = re.search(pattern, content, re.DOTALL)
    if match:
        return match.group(1)

    return content.strip()


def format_findings(findings: Iterable[Finding]) -> str:
    """Render findings as role-headed blocks for a prompt."""
    return "\n".join(f"--- [{f.role}] ---\n{f.output}\n" for f in findings)


def merge_sources(*groups: Iterable[GroundingSource]) -> List[GroundingSource]:
    """Concatenate source lists, keeping order and dropping repeated URIs."""
    merged: List[GroundingSource] = []
    seen = set()
    for group in groups:
        for source in group:
            if source.uri in seen:
                continue
            seen.add(source.uri)
            merged.append(source)
    return merged
