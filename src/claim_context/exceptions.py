"""Exception hierarchy for claim-context."""

from __future__ import annotations


class ClaimContextError(Exception):
    """Base exception for all claim-context errors."""


class LLMClientError(ClaimContextError):
    """Raised when the generation call cannot produce a response."""


class TransportError(LLMClientError):
    """The generation gateway was unreachable, rate-limited, or out of quota.

    ``status_code`` carries the provider's HTTP status when one was returned.
    """

    retryable: bool = True

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class RetryableError(TransportError):
    """Rate limits, timeouts, 5xx — safe for the orchestrator to retry."""

    retryable = True


class NonRetryableError(TransportError):
    """Auth errors, bad requests, 4xx (non-429) — fail immediately."""

    retryable = False


class MalformedOutputError(ClaimContextError):
    """Generator output did not match the shape a stage expects."""

    def __init__(self, message: str, raw_response: str = "") -> None:
        super().__init__(message)
        self.raw_response = raw_response


class JSONParseError(MalformedOutputError):
    """LLM response contained no extractable JSON object or array."""


class InsufficientEvidenceError(ClaimContextError):
    """Estimate requested without any description, findings, or measurements."""


class StageOrderError(ClaimContextError):
    """A stage was invoked before the context carried its required input."""


class PersistenceError(ClaimContextError):
    """Raised when a persistence backend operation fails."""


class InvalidRequestError(ClaimContextError):
    """Request payload could not be decoded (e.g. invalid base64 document)."""
