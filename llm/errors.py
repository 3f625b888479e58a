"""
Nitya Proxy - LLM Errors
Failures raised by the completion client and the tool-use loop
"""

from typing import Optional


class UpstreamError(Exception):
    """
    The completion API call did not succeed.

    Fatal for a chat request: the tool-use loop never retries or
    suppresses it.

    Attributes:
        status_code: HTTP status from the API, or None for transport failures
        body: Raw response body (or the transport error text)
    """

    def __init__(self, message: str, status_code: Optional[int] = None, body: str = ""):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.body = body

    @classmethod
    def from_status(cls, status_code: int, body: str) -> "UpstreamError":
        """Build the error for a non-success HTTP response."""
        return cls(
            f"Anthropic API error ({status_code}): {body}",
            status_code=status_code,
            body=body
        )


class OrchestrationCancelled(Exception):
    """An external cancellation signal stopped the run."""

    def __init__(self, message: str = "Chat request was cancelled"):
        super().__init__(message)
        self.message = message
