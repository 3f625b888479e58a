"""
Nitya Proxy - Tool Processor
Executes one turn's tool calls and builds the tool_result message.

This processor handles the tool_use batch flow:
1. Execute every tool call via the ToolRegistry (optionally in parallel)
2. Convert each outcome (result or failure) into a tool_result block
3. Return a single user-role message with the blocks in request order
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Dict, List

from agency.tools.errors import ToolError
from agency.tools.registry import ToolRegistry
from agency.tools.results import ErrorResult
from core.logger import log_info, log_warning, log_error
from llm.anthropic_client import ToolCall


@dataclass
class ToolCallResult:
    """Outcome of a single tool call."""
    tool_use_id: str
    tool_name: str
    content: str  # JSON text sent back to Claude
    is_error: bool = False

    def to_block(self) -> Dict[str, Any]:
        """tool_result content block for the continuation message."""
        block: Dict[str, Any] = {
            "type": "tool_result",
            "tool_use_id": self.tool_use_id,
            "content": self.content,
        }
        if self.is_error:
            block["is_error"] = True
        return block


@dataclass
class ProcessedToolBatch:
    """
    Result of executing one turn's tool calls.

    Attributes:
        results: One ToolCallResult per call, in request order
        tool_result_message: Message dict to send the results back to Claude
    """
    results: List[ToolCallResult] = field(default_factory=list)
    tool_result_message: Dict[str, Any] = field(default_factory=dict)

    @property
    def error_count(self) -> int:
        return sum(1 for r in self.results if r.is_error)


class ToolProcessor:
    """
    Runs tool calls against the registry with per-call error isolation.

    A failing call becomes an is_error block; its siblings still run.

    Usage:
        processor = ToolProcessor(registry, max_workers=4)
        batch = processor.execute_batch(response.tool_calls())
        messages.append(batch.tool_result_message)
    """

    def __init__(self, registry: ToolRegistry, max_workers: int = 1):
        """
        Initialize the processor.

        Args:
            registry: Tool registry to dispatch to
            max_workers: Threads per batch (1 = sequential)
        """
        self._registry = registry
        self._max_workers = max(1, max_workers)

    def execute_one(self, tool_call: ToolCall) -> ToolCallResult:
        """Execute a single tool call; never raises for tool failures."""
        try:
            result = self._registry.execute(tool_call.name, tool_call.input)
        except ToolError as e:
            log_warning(e.format_for_log())
            return ToolCallResult(
                tool_use_id=tool_call.id,
                tool_name=tool_call.name,
                content=ErrorResult(error=e.message).to_json(),
                is_error=True
            )
        except Exception as e:
            log_error(f"Tool execution failed for {tool_call.name}: {e}")
            return ToolCallResult(
                tool_use_id=tool_call.id,
                tool_name=tool_call.name,
                content=ErrorResult(error=str(e)).to_json(),
                is_error=True
            )

        return ToolCallResult(
            tool_use_id=tool_call.id,
            tool_name=tool_call.name,
            content=result.to_json()
        )

    def execute_batch(self, tool_calls: List[ToolCall]) -> ProcessedToolBatch:
        """
        Execute all tool calls from one assistant turn.

        Args:
            tool_calls: Calls in the order Claude emitted them

        Returns:
            ProcessedToolBatch with results in the same order
        """
        workers = min(self._max_workers, len(tool_calls))

        if workers > 1:
            # map() yields in submission order regardless of completion order
            with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="tool") as pool:
                results = list(pool.map(self.execute_one, tool_calls))
        else:
            results = [self.execute_one(call) for call in tool_calls]

        for result in results:
            status = "error" if result.is_error else "success"
            log_info(f"Tool {result.tool_name}: {status}", prefix="🔧")

        return ProcessedToolBatch(
            results=results,
            tool_result_message=self._build_tool_result_message(results)
        )

    def _build_tool_result_message(self, results: List[ToolCallResult]) -> Dict[str, Any]:
        """
        Build the message to send tool results back to Claude.

        The message uses role="user" with tool_result content blocks.
        Each block correlates to a tool_use via tool_use_id.
        """
        return {"role": "user", "content": [result.to_block() for result in results]}
