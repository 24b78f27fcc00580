"""
Error taxonomy for research runs.

Capability failures are raised by the provider SDKs and propagate unchanged;
this module only names the failures the engine raises itself and classifies
everything else for the single user-facing message of a failed run.
"""

from enum import Enum


RATE_LIMIT_MARKERS = ("429", "resource_exhausted", "rate_limit", "rate limit")

RATE_LIMIT_MESSAGE = (
    "The AI is experiencing high demand and has reached a rate limit. "
    "The research process has been stopped. Please wait a moment and try again, "
    "or check your API key's usage plan."
)
GENERIC_MESSAGE = "An error occurred during the research process. Please check the logs for details."


class ErrorKind(Enum):
    RATE_LIMIT = "rate_limit"
    GENERIC = "generic"


class ResearchSwarmError(Exception):
    """Base class for errors raised by the research engine."""


class ConfigurationError(ResearchSwarmError):
    """The roster or provider setup cannot support a run."""


class ResearchStopped(ResearchSwarmError):
    """The user asked the current run to stop. Not a failure."""

    def __init__(self, message: str = "Research stopped by user."):
        super().__init__(message)


class ResearchInProgressError(ResearchSwarmError):
    """A run was started while another one is still active."""


def is_rate_limit_error(error: BaseException) -> bool:
    """Match the failure's textual signature against the rate-limit markers."""
    signature = f"{type(error).__name__}: {error}".lower()
    return any(marker in signature for marker in RATE_LIMIT_MARKERS)


def classify_error(error: BaseException) -> ErrorKind:
    return ErrorKind.RATE_LIMIT if is_rate_limit_error(error) else ErrorKind.GENERIC


def error_message(kind: ErrorKind) -> str:
    if kind is ErrorKind.RATE_LIMIT:
        return RATE_LIMIT_MESSAGE
    return GENERIC_MESSAGE
