"""
Error taxonomy for the WhatsApp concierge.

Only InvalidPromptShape and the send-client errors are ever raised;
unrecognised input and empty catalogues are ordinary outcomes of the
router and show up in logs under their ErrorKind value.
"""

from enum import Enum


class ErrorKind(str, Enum):
    UNRECOGNIZED_INPUT = "unrecognized_input"
    UPSTREAM_LOOKUP_FAILURE = "upstream_lookup_failure"
    INVALID_PROMPT_SHAPE = "invalid_prompt_shape"
    EMPTY_CATALOG = "empty_catalog"


class ConciergeError(Exception):
    """Base class for errors raised by the concierge."""

    kind: ErrorKind | None = None


class InvalidPromptShape(ConciergeError):
    """A prompt breaks the platform's button/row limits (programmer error)."""

    kind = ErrorKind.INVALID_PROMPT_SHAPE


class WhatsAppNotConfigured(ConciergeError):
    """No Cloud API credentials for the tenant and none in the environment."""


class WhatsAppSendError(ConciergeError):
    """The Cloud API rejected a message or could not be reached."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code
