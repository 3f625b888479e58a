"""
Nitya Proxy - Tool Use Orchestrator
Drives the completion -> tool execution -> completion loop for one chat request.

Flow per iteration:
1. Call the completion client with the full message history
2. stop_reason != "tool_use": done, return that response
3. Otherwise append the assistant turn (all content blocks, original order)
4. Execute every tool call and append one user turn of tool_result blocks
5. Repeat, at most max_iterations completion calls in total

The final response is returned, not appended; callers persist it if they choose.
"""

import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional

from agency.tools.processor import ToolProcessor
from agency.tools.registry import ToolRegistry
from core.logger import log_info, log_warning, log_success
from llm.anthropic_client import CompletionResponse
from llm.errors import OrchestrationCancelled


class OrchestrationOutcome(Enum):
    """How a run ended."""
    COMPLETED = "completed"                     # stop_reason was not tool_use
    MALFORMED_TOOL_USE = "malformed_tool_use"   # tool_use stop without tool_use blocks
    MAX_ITERATIONS = "max_iterations"           # still asking for tools at the bound


class MessageLog:
    """
    Append-only message buffer owned by a single orchestration run.

    Starts from a copy of the caller's messages; entries are never edited
    or removed once appended.
    """

    def __init__(self, initial: List[Dict[str, Any]]):
        self._messages: List[Dict[str, Any]] = [dict(message) for message in initial]

    def append(self, role: str, content: Any) -> None:
        """Add a message at the tail."""
        self._messages.append({"role": role, "content": content})

    def snapshot(self) -> List[Dict[str, Any]]:
        """Current history as a new list (the buffer itself stays private)."""
        return list(self._messages)

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[Dict[str, Any]]:
        return iter(self.snapshot())


@dataclass
class OrchestrationResult:
    """
    Result of one orchestration run.

    Attributes:
        final_response: Last completion response received
        messages: Input messages plus every assistant/tool_result turn appended
        completion_calls: Number of completion requests made
        tool_rounds: Number of tool batches executed
        outcome: Why the loop stopped
    """
    final_response: CompletionResponse
    messages: List[Dict[str, Any]] = field(default_factory=list)
    completion_calls: int = 0
    tool_rounds: int = 0
    outcome: OrchestrationOutcome = OrchestrationOutcome.COMPLETED

    @property
    def hit_iteration_limit(self) -> bool:
        return self.outcome == OrchestrationOutcome.MAX_ITERATIONS


class ToolUseOrchestrator:
    """
    Bounded tool-use loop.

    Tool failures are isolated by the ToolProcessor and fed back to the
    model. UpstreamError from the completion client propagates immediately
    and nothing is returned for the partial run.

    Usage:
        orchestrator = ToolUseOrchestrator(client, registry)
        result = orchestrator.run(messages, system_prompt)
        return result.final_response.to_dict()
    """

    def __init__(
        self,
        client,
        registry: ToolRegistry,
        processor: Optional[ToolProcessor] = None,
        max_iterations: int = 5
    ):
        """
        Initialize the orchestrator.

        Args:
            client: Completion client exposing complete(messages, system_prompt, tools, cancel_event=)
            registry: Tool registry (source of default tool definitions)
            processor: Tool batch executor (defaults to a sequential ToolProcessor)
            max_iterations: Maximum completion calls per run
        """
        if max_iterations < 1:
            raise ValueError("max_iterations must be at least 1")
        self._client = client
        self._registry = registry
        self._processor = processor or ToolProcessor(registry)
        self._max_iterations = max_iterations

    @staticmethod
    def _check_cancelled(cancel_event: Optional[threading.Event]) -> None:
        if cancel_event is not None and cancel_event.is_set():
            log_warning("Tool use loop cancelled")
            raise OrchestrationCancelled()

    def run(
        self,
        messages: List[Dict[str, Any]],
        system_prompt: Optional[str],
        tools: Optional[List[Dict[str, Any]]] = None,
        cancel_event: Optional[threading.Event] = None
    ) -> OrchestrationResult:
        """
        Drive the conversation until Claude stops asking for tools.

        Args:
            messages: Conversation so far (not modified)
            system_prompt: System prompt for every call
            tools: Tool definitions (defaults to the registry's)
            cancel_event: Checked before every completion call

        Returns:
            OrchestrationResult

        Raises:
            UpstreamError: From any completion call
            OrchestrationCancelled: If cancel_event is set
        """
        if tools is None:
            tools = self._registry.definitions()

        history = MessageLog(messages)
        completion_calls = 0
        tool_rounds = 0

        while True:
            self._check_cancelled(cancel_event)

            response = self._client.complete(
                history.snapshot(),
                system_prompt,
                tools,
                cancel_event=cancel_event
            )
            completion_calls += 1

            if response.stop_reason != "tool_use":
                outcome = OrchestrationOutcome.COMPLETED
                break

            tool_calls = response.tool_calls()
            if not tool_calls:
                log_warning("No tool use blocks found despite stop_reason=tool_use")
                outcome = OrchestrationOutcome.MALFORMED_TOOL_USE
                break

            if completion_calls >= self._max_iterations:
                log_warning(
                    f"Max tool use iterations reached ({self._max_iterations}); "
                    f"returning last response with {len(tool_calls)} unanswered tool call(s)"
                )
                outcome = OrchestrationOutcome.MAX_ITERATIONS
                break

            tool_rounds += 1
            log_info(
                f"Tool use loop iteration {tool_rounds}: "
                f"{', '.join(call.name for call in tool_calls)}",
                prefix="🔄"
            )

            # Assistant turn keeps text + tool_use blocks in original order
            history.append("assistant", list(response.content))

            batch = self._processor.execute_batch(tool_calls)
            history.append("user", batch.tool_result_message["content"])

        if outcome == OrchestrationOutcome.COMPLETED:
            log_success(
                f"Tool use loop completed ({completion_calls} call(s), {tool_rounds} tool round(s))"
            )

        return OrchestrationResult(
            final_response=response,
            messages=history.snapshot(),
            completion_calls=completion_calls,
            tool_rounds=tool_rounds,
            outcome=outcome
        )
