"""
Nitya Proxy - Anthropic Claude Client
One-shot completion calls with native tool use.

Each call is independent: the full message history, system prompt and
tool schemas are sent every time. There is no retry here; any failure is
raised as UpstreamError for the caller to surface.
"""

import threading
from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any

from core.logger import log_info, log_error
from llm.errors import UpstreamError, OrchestrationCancelled


@dataclass
class ToolCall:
    """A tool call from Claude's response."""
    id: str
    name: str
    input: Dict[str, Any]


@dataclass(frozen=True)
class CompletionResponse:
    """
    Response from one completion call.

    Attributes:
        content: Content blocks as plain dicts, in upstream order
        stop_reason: "end_turn", "tool_use", "max_tokens", ...
        input_tokens: Prompt tokens billed for the call
        output_tokens: Completion tokens billed for the call
        raw: Full upstream payload, returned verbatim to HTTP callers
    """
    content: List[Dict[str, Any]]
    stop_reason: Optional[str] = None
    input_tokens: int = 0
    output_tokens: int = 0
    raw: Optional[Dict[str, Any]] = field(default=None, compare=False)

    @property
    def text(self) -> str:
        """Concatenated text blocks."""
        return "".join(
            block.get("text", "") for block in self.content
            if block.get("type") == "text"
        )

    def tool_calls(self) -> List[ToolCall]:
        """Extract tool_use blocks in the order Claude emitted them."""
        return [
            ToolCall(id=block["id"], name=block["name"], input=block.get("input") or {})
            for block in self.content
            if block.get("type") == "tool_use"
        ]

    def has_tool_calls(self) -> bool:
        """Check if response contains tool calls."""
        return any(block.get("type") == "tool_use" for block in self.content)

    def to_dict(self) -> Dict[str, Any]:
        """Upstream-shaped JSON payload for the chat endpoint."""
        if self.raw is not None:
            return self.raw
        return {
            "type": "message",
            "role": "assistant",
            "content": self.content,
            "stop_reason": self.stop_reason,
            "usage": {
                "input_tokens": self.input_tokens,
                "output_tokens": self.output_tokens,
            },
        }


def normalize_content_block(block: Any) -> Dict[str, Any]:
    """
    Convert an SDK content block into a plain dict suitable for resending.

    Args:
        block: SDK content block object (TextBlock, ToolUseBlock, ...)

    Returns:
        Dict with only the fields the Messages API accepts back
    """
    block_type = getattr(block, "type", None)

    if block_type == "text":
        return {"type": "text", "text": block.text}
    if block_type == "tool_use":
        return {
            "type": "tool_use",
            "id": block.id,
            "name": block.name,
            "input": block.input,
        }
    if block_type == "thinking":
        return {
            "type": "thinking",
            "thinking": block.thinking,
            "signature": block.signature,
        }
    if block_type == "redacted_thinking":
        return {"type": "redacted_thinking", "data": block.data}

    # Unknown block types are kept so the assistant turn is resent intact
    return block.model_dump(mode="json", exclude_none=True)


class AnthropicClient:
    """
    Client for Anthropic Claude API.

    Implements the completion step of the tool-use loop: one request,
    one response, no state between calls.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "claude-sonnet-4-5-20250929",
        max_tokens: int = 4096,
        temperature: float = 1.0,
        timeout: float = 120,
        base_url: Optional[str] = None,
        sdk_client: Any = None
    ):
        """
        Initialize the Anthropic client.

        Args:
            api_key: Anthropic API key
            model: Model to use
            max_tokens: Maximum tokens to generate
            temperature: Sampling temperature
            timeout: Request timeout in seconds
            base_url: Optional API base URL override
            sdk_client: Pre-built anthropic.Anthropic instance (tests)
        """
        self.api_key = api_key
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.timeout = timeout
        self.base_url = base_url
        self._client = sdk_client

    def _get_client(self):
        """Lazy-load the Anthropic client."""
        if self._client is None:
            import anthropic

            if not self.api_key:
                raise UpstreamError("ANTHROPIC_API_KEY is not configured")

            kwargs: Dict[str, Any] = {
                "api_key": self.api_key,
                "timeout": self.timeout,
                "max_retries": 0,
            }
            if self.base_url:
                kwargs["base_url"] = self.base_url
            self._client = anthropic.Anthropic(**kwargs)
        return self._client

    def is_available(self) -> bool:
        """Check if the API key is configured."""
        return bool(self.api_key) or self._client is not None

    def _to_upstream_error(self, error: Exception) -> UpstreamError:
        """Map an SDK exception to UpstreamError with status and body."""
        import anthropic

        if isinstance(error, anthropic.APIStatusError):
            return UpstreamError.from_status(error.status_code, error.response.text)

        if isinstance(error, anthropic.APITimeoutError):
            return UpstreamError(f"Anthropic API timed out after {self.timeout}s", body=str(error))

        if isinstance(error, anthropic.APIConnectionError):
            return UpstreamError(f"Anthropic API connection failed: {error}", body=str(error))

        return UpstreamError(f"Anthropic API call failed: {error}", body=str(error))

    def complete(
        self,
        messages: List[Dict[str, Any]],
        system_prompt: Optional[str] = None,
        tools: Optional[List[Dict[str, Any]]] = None,
        cancel_event: Optional[threading.Event] = None
    ) -> CompletionResponse:
        """
        Perform exactly one completion request.

        Args:
            messages: Full message history (role/content dicts)
            system_prompt: Optional system prompt
            tools: Tool definitions to advertise
            cancel_event: When set, the call is abandoned with OrchestrationCancelled

        Returns:
            CompletionResponse

        Raises:
            UpstreamError: On any non-success result from the API
            OrchestrationCancelled: If cancel_event is set before or during the call
        """
        if cancel_event is not None and cancel_event.is_set():
            raise OrchestrationCancelled()

        import anthropic

        client = self._get_client()

        request_params: Dict[str, Any] = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
            "messages": messages,
        }
        if system_prompt:
            request_params["system"] = system_prompt
        if tools:
            request_params["tools"] = tools

        log_info(
            f"Calling Anthropic API ({self.model}, {len(messages)} messages, "
            f"{len(tools or [])} tools)",
            prefix="🤖"
        )

        try:
            message = client.messages.create(**request_params)
        except anthropic.AnthropicError as e:
            upstream_error = self._to_upstream_error(e)
            log_error(upstream_error.message)
            raise upstream_error from e

        # The SDK call cannot be interrupted; drop the result if cancelled meanwhile
        if cancel_event is not None and cancel_event.is_set():
            raise OrchestrationCancelled()

        usage = getattr(message, "usage", None)
        return CompletionResponse(
            content=[normalize_content_block(block) for block in message.content],
            stop_reason=message.stop_reason,
            input_tokens=getattr(usage, "input_tokens", 0) or 0,
            output_tokens=getattr(usage, "output_tokens", 0) or 0,
            raw=message.model_dump(mode="json")
        )
