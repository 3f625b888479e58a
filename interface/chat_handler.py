"""
Nitya Proxy - Chat Request Handler
Validates a chat request, builds the system prompt and runs the tool-use loop.
"""

import threading
from typing import Any, Dict, List, Optional

from agency.tools.orchestrator import OrchestrationResult, ToolUseOrchestrator
from concurrency.locks import ProspectLockManager
from core.logger import log_info, log_success
from memory.prospect_store import is_safe_segment
from memory.session import SessionManager
from prompt_builder.builder import PromptBuilder

VALID_ROLES = ("user", "assistant")


class ChatRequestError(Exception):
    """Inbound chat request is malformed (HTTP 400)."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


def validate_messages(messages: Any) -> List[Dict[str, Any]]:
    """
    Check the inbound message list.

    Raises:
        ChatRequestError: Describing the first problem found
    """
    if not isinstance(messages, list):
        raise ChatRequestError("Messages array required")
    if not messages:
        raise ChatRequestError("Messages array cannot be empty")

    for message in messages:
        if not isinstance(message, dict) or "role" not in message or "content" not in message:
            raise ChatRequestError("Each message must have role and content")
        if message["role"] not in VALID_ROLES:
            raise ChatRequestError("Message role must be 'user' or 'assistant'")

    return messages


class ChatRequestHandler:
    """
    Thin boundary between the HTTP layer and the orchestrator.

    Runs for the same prospect are serialized through the lock manager;
    different prospects proceed in parallel.
    """

    def __init__(
        self,
        orchestrator: ToolUseOrchestrator,
        prompt_builder: PromptBuilder,
        sessions: SessionManager,
        locks: ProspectLockManager,
        default_user_id: str = "test_user_001"
    ):
        self._orchestrator = orchestrator
        self._prompt_builder = prompt_builder
        self._sessions = sessions
        self._locks = locks
        self._default_user_id = default_user_id

    def build_system_prompt(self, user_id: str, disable_tools: bool = False) -> str:
        """System prompt for one prospect's request."""
        context = self._sessions.get_session_context(user_id)
        context["disableTools"] = disable_tools
        return self._prompt_builder.build(context)

    def handle(
        self,
        payload: Any,
        cancel_event: Optional[threading.Event] = None
    ) -> OrchestrationResult:
        """
        Process one chat request.

        Args:
            payload: Request body {messages, userId?, disableTools?}
            cancel_event: Optional cancellation signal for the run

        Returns:
            OrchestrationResult (final_response is sent back verbatim)

        Raises:
            ChatRequestError: Invalid request
            UpstreamError: Completion API failure
            OrchestrationCancelled: Run cancelled
        """
        if not isinstance(payload, dict):
            raise ChatRequestError("Messages array required")

        messages = validate_messages(payload.get("messages"))
        user_id = payload.get("userId") or self._default_user_id
        if not is_safe_segment(user_id):
            raise ChatRequestError("Invalid userId")
        disable_tools = bool(payload.get("disableTools"))

        log_info(f"Processing chat for {user_id} ({len(messages)} messages)", prefix="💬")

        with self._locks.acquire(user_id):
            system_prompt = self.build_system_prompt(user_id, disable_tools)
            result = self._orchestrator.run(
                messages,
                system_prompt,
                tools=[] if disable_tools else None,
                cancel_event=cancel_event
            )
            self._sessions.touch(user_id)

        log_success(f"Chat processed for {user_id} ({result.outcome.value})")
        return result
