"""
Configuration for the Research Swarm.

Environment Variables:
    ANTHROPIC_API_KEY           - Primary: Your Anthropic/Claude API key
    OPENAI_API_KEY              - Fallback: Your OpenAI API key (if no Anthropic key)
    LLM_PROVIDER                - Optional: anthropic or openai (auto-detected)
    LLM_MODEL                   - Optional: model for the heavier personas
    LLM_LIGHT_MODEL             - Optional: model for lighter personas and the collaboration narrator
    MAX_RETRIES                 - Optional: attempts per rate-limited call (default: 5)
    AGENT_DELAY_SECONDS         - Optional: pause between personas in a round (default: 1.5)
    DELEGATION_DELAY_SECONDS    - Optional: pause between delegated sub-tasks (default: 1.0)
    CHECKPOINT_TIMEOUT_SECONDS  - Optional: how long to wait for a human answer (default: 300)
    ENABLE_HUMAN_CHECKPOINTS    - Optional: let the manager ask the requester (default: true)
    RUNS_FILE                   - Optional: JSON file for saved runs (in-memory if unset)
    LOG_LEVEL / LOG_FILE        - Optional: logging setup

Create a .env file in the project root with:

    ANTHROPIC_API_KEY=sk-ant-your-key-here
    LLM_MODEL=claude-sonnet-4-20250514
"""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

load_dotenv()


DEFAULT_MODELS = {
    "anthropic": ("claude-sonnet-4-20250514", "claude-3-5-haiku-20241022"),
    "openai": ("gpt-4o", "gpt-4o-mini"),
}


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Config:
    """Application configuration."""

    # LLM Settings (Claude/Anthropic is primary)
    anthropic_api_key: Optional[str] = None
    openai_api_key: Optional[str] = None  # Fallback
    llm_provider: str = "anthropic"
    llm_model: str = "claude-sonnet-4-20250514"
    llm_light_model: str = "claude-3-5-haiku-20241022"

    # Orchestration Settings
    max_retries: int = 5
    agent_delay_seconds: float = 1.5
    delegation_delay_seconds: float = 1.0
    checkpoint_timeout_seconds: float = 300.0
    enable_human_checkpoints: bool = True

    # Storage / Logging
    runs_file: Optional[str] = None
    log_level: str = "INFO"
    log_file: Optional[str] = "logs/research_swarm.log"

    # API Settings
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables."""
        anthropic_key = os.getenv("ANTHROPIC_API_KEY")
        openai_key = os.getenv("OPENAI_API_KEY")

        # Auto-detect provider based on available keys
        if anthropic_key:
            provider = "anthropic"
        elif openai_key:
            provider = "openai"
        else:
            provider = "anthropic"
        provider = os.getenv("LLM_PROVIDER", provider)
        default_model, default_light_model = DEFAULT_MODELS.get(provider, DEFAULT_MODELS["anthropic"])

        return cls(
            anthropic_api_key=anthropic_key,
            openai_api_key=openai_key,
            llm_provider=provider,
            llm_model=os.getenv("LLM_MODEL", default_model),
            llm_light_model=os.getenv("LLM_LIGHT_MODEL", default_light_model),
            max_retries=int(os.getenv("MAX_RETRIES", "5")),
            agent_delay_seconds=float(os.getenv("AGENT_DELAY_SECONDS", "1.5")),
            delegation_delay_seconds=float(os.getenv("DELEGATION_DELAY_SECONDS", "1.0")),
            checkpoint_timeout_seconds=float(os.getenv("CHECKPOINT_TIMEOUT_SECONDS", "300")),
            enable_human_checkpoints=_env_flag("ENABLE_HUMAN_CHECKPOINTS", True),
            runs_file=os.getenv("RUNS_FILE") or None,
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_file=os.getenv("LOG_FILE", "logs/research_swarm.log") or None,
            api_host=os.getenv("API_HOST", "0.0.0.0"),
            api_port=int(os.getenv("API_PORT", "8000")),
        )

    def validate(self) -> bool:
        """Check if required configuration is present."""
        return bool(self.anthropic_api_key or self.openai_api_key)

    def get_api_key(self) -> Optional[str]:
        """Get the appropriate API key based on provider."""
        if self.llm_provider == "anthropic":
            return self.anthropic_api_key
        return self.openai_api_key


# Global config instance
config = Config.from_env()
