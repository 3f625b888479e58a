"""
Tests for the tool-use loop (ToolUseOrchestrator) and the ToolProcessor.

The completion client is replaced by a scripted fake, so these tests
exercise the loop contract without network access: bounded iterations,
per-call error isolation, upstream error propagation and cancellation.
"""

import json
import shutil
import tempfile
import threading
import time
import unittest
from pathlib import Path

from agency.tools.errors import ResourceNotFoundError
from agency.tools.orchestrator import (
    MessageLog,
    OrchestrationOutcome,
    ToolUseOrchestrator,
)
from agency.tools.processor import ToolProcessor
from agency.tools.registry import build_default_registry
from agency.tools.results import AssetsResult
from llm.anthropic_client import CompletionResponse, ToolCall
from llm.errors import OrchestrationCancelled, UpstreamError
from memory.prospect_store import ProspectStore


def text_response(text: str) -> CompletionResponse:
    return CompletionResponse(
        content=[{"type": "text", "text": text}],
        stop_reason="end_turn"
    )


def tool_use_response(*calls, text: str = None) -> CompletionResponse:
    """Build a tool_use response from (id, name, input) triples."""
    content = [{"type": "text", "text": text}] if text else []
    for call_id, name, tool_input in calls:
        content.append({"type": "tool_use", "id": call_id, "name": name, "input": tool_input})
    return CompletionResponse(content=content, stop_reason="tool_use")


class FakeCompletionClient:
    """Replays scripted responses and records what it was sent."""

    def __init__(self, responses):
        self._responses = list(responses)
        self.calls = []

    def complete(self, messages, system_prompt=None, tools=None, cancel_event=None):
        self.calls.append({
            "messages": messages,
            "system_prompt": system_prompt,
            "tools": tools,
        })
        response = self._responses.pop(0)
        if isinstance(response, Exception):
            raise response
        if callable(response):
            return response(len(self.calls))
        return response


class FakeRegistry:
    """Registry stand-in with a pluggable execute function."""

    def __init__(self, execute):
        self._execute = execute

    def definitions(self):
        return [{"name": "read_user_assets", "description": "", "input_schema": {"type": "object"}}]

    def execute(self, name, tool_input):
        return self._execute(name, tool_input)


class TestOrchestrator(unittest.TestCase):
    """Loop behavior against a real registry over a temporary store."""

    def setUp(self):
        self.root = Path(tempfile.mkdtemp())
        self.registry = build_default_registry(ProspectStore(self.root))

    def tearDown(self):
        shutil.rmtree(self.root, ignore_errors=True)

    def test_no_tools_requested(self):
        client = FakeCompletionClient([text_response("Hello!")])
        orchestrator = ToolUseOrchestrator(client, self.registry)
        messages = [{"role": "user", "content": "hi"}]

        result = orchestrator.run(messages, "system")

        self.assertEqual(result.completion_calls, 1)
        self.assertEqual(result.tool_rounds, 0)
        self.assertEqual(result.outcome, OrchestrationOutcome.COMPLETED)
        self.assertEqual(result.final_response.text, "Hello!")
        self.assertEqual(result.messages, messages)
        self.assertEqual(client.calls[0]["system_prompt"], "system")
        self.assertEqual(client.calls[0]["tools"], self.registry.definitions())

    def test_single_tool_round(self):
        first = tool_use_response(("toolu_1", "read_sitemap", {"userId": "u1"}), text="Let me check.")
        final = text_response("You have no pages yet.")
        client = FakeCompletionClient([first, final])
        orchestrator = ToolUseOrchestrator(client, self.registry)
        messages = [{"role": "user", "content": "What pages do I have?"}]

        result = orchestrator.run(messages, "system")

        self.assertEqual(result.completion_calls, 2)
        self.assertEqual(result.tool_rounds, 1)
        self.assertIs(result.final_response, final)
        self.assertEqual(len(result.messages), 3)

        # Assistant turn carries every block in original order
        self.assertEqual(result.messages[1], {"role": "assistant", "content": first.content})

        tool_turn = result.messages[2]
        self.assertEqual(tool_turn["role"], "user")
        self.assertEqual(len(tool_turn["content"]), 1)
        block = tool_turn["content"][0]
        self.assertEqual(block["type"], "tool_result")
        self.assertEqual(block["tool_use_id"], "toolu_1")
        self.assertNotIn("is_error", block)
        self.assertEqual(json.loads(block["content"])["pageCount"], 0)

        # Second call saw the extended history
        self.assertEqual(len(client.calls[1]["messages"]), 3)
        # Caller's list is untouched
        self.assertEqual(len(messages), 1)

    def test_iteration_bound_returns_last_response(self):
        def always_tool_use(call_number):
            return tool_use_response((f"toolu_{call_number}", "read_styles", {"userId": "u1"}))

        client = FakeCompletionClient([always_tool_use] * 10)
        orchestrator = ToolUseOrchestrator(client, self.registry, max_iterations=5)

        result = orchestrator.run([{"role": "user", "content": "loop"}], "system")

        self.assertEqual(len(client.calls), 5)
        self.assertEqual(result.completion_calls, 5)
        self.assertEqual(result.tool_rounds, 4)
        self.assertEqual(result.outcome, OrchestrationOutcome.MAX_ITERATIONS)
        self.assertTrue(result.hit_iteration_limit)
        self.assertEqual(result.final_response.stop_reason, "tool_use")
        self.assertEqual(result.final_response.content[0]["id"], "toolu_5")
        self.assertEqual(len(result.messages), 1 + 2 * 4)

    def test_partial_failure_is_isolated(self):
        first = tool_use_response(
            ("toolu_ok", "read_sitemap", {"userId": "u1"}),
            ("toolu_bad", "delete_everything", {"userId": "u1"}),
            ("toolu_missing", "read_metadata", {}),
        )
        client = FakeCompletionClient([first, text_response("done")])
        orchestrator = ToolUseOrchestrator(client, self.registry)

        result = orchestrator.run([{"role": "user", "content": "go"}], "system")

        self.assertEqual(result.completion_calls, 2)
        blocks = result.messages[2]["content"]
        self.assertEqual([b["tool_use_id"] for b in blocks], ["toolu_ok", "toolu_bad", "toolu_missing"])

        self.assertNotIn("is_error", blocks[0])
        self.assertTrue(json.loads(blocks[0]["content"])["success"])

        self.assertTrue(blocks[1]["is_error"])
        self.assertEqual(blocks[1]["content"], '{"success":false,"error":"Unknown tool: delete_everything"}')

        self.assertTrue(blocks[2]["is_error"])
        self.assertEqual(json.loads(blocks[2]["content"])["error"], "Missing required field: userId")

    def test_upstream_error_propagates(self):
        error = UpstreamError.from_status(529, '{"type":"overloaded_error"}')
        client = FakeCompletionClient([error])
        orchestrator = ToolUseOrchestrator(client, self.registry)
        messages = [{"role": "user", "content": "hi"}]

        with self.assertRaises(UpstreamError) as ctx:
            orchestrator.run(messages, "system")

        self.assertIs(ctx.exception, error)
        self.assertEqual(ctx.exception.status_code, 529)
        self.assertEqual(messages, [{"role": "user", "content": "hi"}])

    def test_upstream_error_after_tool_round(self):
        first = tool_use_response(("toolu_1", "read_sitemap", {"userId": "u1"}))
        client = FakeCompletionClient([first, UpstreamError("Anthropic API error (500): boom", 500)])
        orchestrator = ToolUseOrchestrator(client, self.registry)
        messages = [{"role": "user", "content": "hi"}]

        with self.assertRaises(UpstreamError):
            orchestrator.run(messages, "system")

        self.assertEqual(len(client.calls), 2)
        self.assertEqual(len(messages), 1)

    def test_tool_use_without_blocks(self):
        malformed = CompletionResponse(content=[{"type": "text", "text": "hmm"}], stop_reason="tool_use")
        client = FakeCompletionClient([malformed])
        orchestrator = ToolUseOrchestrator(client, self.registry)

        result = orchestrator.run([{"role": "user", "content": "hi"}], "system")

        self.assertEqual(result.completion_calls, 1)
        self.assertEqual(result.outcome, OrchestrationOutcome.MALFORMED_TOOL_USE)
        self.assertIs(result.final_response, malformed)
        self.assertEqual(len(result.messages), 1)

    def test_explicit_empty_tool_list(self):
        client = FakeCompletionClient([text_response("no tools")])
        orchestrator = ToolUseOrchestrator(client, self.registry)

        orchestrator.run([{"role": "user", "content": "hi"}], "system", tools=[])

        self.assertEqual(client.calls[0]["tools"], [])

    def test_invalid_max_iterations(self):
        with self.assertRaises(ValueError):
            ToolUseOrchestrator(FakeCompletionClient([]), self.registry, max_iterations=0)


class TestExampleScenario(unittest.TestCase):
    """One read_user_assets round trip with a stubbed registry."""

    def test_assets_round_trip(self):
        registry = FakeRegistry(lambda name, tool_input: AssetsResult.found(["a.jpg"]))
        client = FakeCompletionClient([
            tool_use_response(("t1", "read_user_assets", {"userId": "u1"})),
            text_response("You have a.jpg"),
        ])
        orchestrator = ToolUseOrchestrator(client, registry)

        result = orchestrator.run([{"role": "user", "content": "What assets do I have?"}], "system")

        self.assertEqual(result.final_response.text, "You have a.jpg")
        second_call = client.calls[1]["messages"]
        self.assertEqual(len(second_call), 3)
        self.assertEqual(second_call[2], {
            "role": "user",
            "content": [{
                "type": "tool_result",
                "tool_use_id": "t1",
                "content": '{"success":true,"files":["a.jpg"],"count":1,"message":"Found 1 file(s): a.jpg"}',
            }],
        })


class TestCancellation(unittest.TestCase):
    """Cancellation aborts the run between steps."""

    def test_cancelled_before_first_call(self):
        client = FakeCompletionClient([text_response("never")])
        orchestrator = ToolUseOrchestrator(client, FakeRegistry(lambda n, i: None))
        cancel = threading.Event()
        cancel.set()

        with self.assertRaises(OrchestrationCancelled):
            orchestrator.run([{"role": "user", "content": "hi"}], "system", cancel_event=cancel)

        self.assertEqual(client.calls, [])

    def test_cancelled_during_tool_execution(self):
        cancel = threading.Event()

        def execute(name, tool_input):
            cancel.set()
            return AssetsResult.not_found()

        client = FakeCompletionClient([
            tool_use_response(("t1", "read_user_assets", {"userId": "u1"})),
            text_response("never"),
        ])
        orchestrator = ToolUseOrchestrator(client, FakeRegistry(execute))

        with self.assertRaises(OrchestrationCancelled):
            orchestrator.run([{"role": "user", "content": "hi"}], "system", cancel_event=cancel)

        self.assertEqual(len(client.calls), 1)


class TestToolProcessor(unittest.TestCase):
    """Batch execution keeps request order and isolates failures."""

    def test_parallel_batch_preserves_order(self):
        delays = {"first": 0.2, "second": 0.0, "third": 0.1}

        def execute(name, tool_input):
            time.sleep(delays[tool_input["tag"]])
            return AssetsResult.found([tool_input["tag"]])

        processor = ToolProcessor(FakeRegistry(execute), max_workers=3)
        calls = [
            ToolCall(id=f"t{i}", name="read_user_assets", input={"tag": tag})
            for i, tag in enumerate(["first", "second", "third"])
        ]

        batch = processor.execute_batch(calls)

        self.assertEqual([r.tool_use_id for r in batch.results], ["t0", "t1", "t2"])
        self.assertEqual(
            [json.loads(r.content)["files"] for r in batch.results],
            [["first"], ["second"], ["third"]]
        )
        self.assertEqual(batch.error_count, 0)

    def test_unexpected_exception_becomes_error_block(self):
        def execute(name, tool_input):
            raise PermissionError("Permission denied: metadata.json")

        processor = ToolProcessor(FakeRegistry(execute))
        batch = processor.execute_batch([ToolCall(id="t1", name="read_metadata", input={"userId": "u1"})])

        self.assertEqual(batch.error_count, 1)
        self.assertEqual(batch.tool_result_message["role"], "user")
        block = batch.tool_result_message["content"][0]
        self.assertTrue(block["is_error"])
        self.assertEqual(block["content"], '{"success":false,"error":"Permission denied: metadata.json"}')

    def test_tool_error_message_is_reported(self):
        def execute(name, tool_input):
            raise ResourceNotFoundError("gone", tool_name=name)

        processor = ToolProcessor(FakeRegistry(execute))
        result = processor.execute_one(ToolCall(id="t1", name="read_styles", input={}))

        self.assertTrue(result.is_error)
        self.assertEqual(json.loads(result.content), {"success": False, "error": "gone"})


class TestMessageLog(unittest.TestCase):
    """MessageLog copies its input and only grows."""

    def test_append_and_snapshot(self):
        initial = [{"role": "user", "content": "hi"}]
        log = MessageLog(initial)
        log.append("assistant", [{"type": "text", "text": "hello"}])

        snapshot = log.snapshot()
        snapshot.append({"role": "user", "content": "ignored"})

        self.assertEqual(len(log), 2)
        self.assertEqual(len(initial), 1)
        self.assertEqual([m["role"] for m in log], ["user", "assistant"])


if __name__ == '__main__':
    unittest.main()
