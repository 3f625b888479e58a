"""
Nitya Proxy - Service Container
Builds every service once at startup and wires them together explicitly.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import config
from agency.tools.orchestrator import ToolUseOrchestrator
from agency.tools.processor import ToolProcessor
from agency.tools.registry import ToolRegistry, build_default_registry
from concurrency.locks import ProspectLockManager
from core.logger import log_section, log_subsection
from interface.chat_handler import ChatRequestHandler
from llm.anthropic_client import AnthropicClient
from memory.prospect_store import ProspectStore
from memory.session import SessionManager
from prompt_builder.builder import PromptBuilder, create_default_builder


@dataclass
class ServiceContainer:
    """All long-lived services for one process."""
    store: ProspectStore
    sessions: SessionManager
    locks: ProspectLockManager
    registry: ToolRegistry
    completion_client: Any
    orchestrator: ToolUseOrchestrator
    prompt_builder: PromptBuilder
    chat_handler: ChatRequestHandler
    default_user_id: str = config.DEFAULT_USER_ID
    upload_max_bytes: int = config.UPLOAD_MAX_BYTES
    debug: bool = False


def build_services(
    completion_client: Any = None,
    prospects_dir: Optional[Path] = None,
    brain_modules_dir: Optional[Path] = None,
    max_iterations: int = config.TOOL_USE_MAX_ITERATIONS,
    max_workers: int = config.TOOL_BATCH_MAX_WORKERS,
    serialize_per_prospect: bool = config.CHAT_SERIALIZE_PER_PROSPECT,
    debug: bool = config.HTTP_DEBUG
) -> ServiceContainer:
    """
    Create and wire all services.

    Args:
        completion_client: Client with complete(); defaults to AnthropicClient from config
        prospects_dir: Root of the prospect folders (defaults to config.PROSPECTS_DIR)
        brain_modules_dir: Brain module directory (defaults to config.BRAIN_MODULES_DIR)
        max_iterations: Completion calls allowed per chat request
        max_workers: Threads per tool batch
        serialize_per_prospect: Serialize chat runs and writes per prospect
        debug: Include error details in HTTP error envelopes

    Returns:
        ServiceContainer
    """
    store = ProspectStore(prospects_dir or config.PROSPECTS_DIR, config.IMAGE_EXTENSIONS)
    sessions = SessionManager(store)
    locks = ProspectLockManager(
        enabled=serialize_per_prospect,
        default_timeout=config.PROSPECT_LOCK_TIMEOUT
    )
    registry = build_default_registry(store, styles_preview_chars=config.STYLES_PREVIEW_CHARS)

    if completion_client is None:
        completion_client = AnthropicClient(
            api_key=config.ANTHROPIC_API_KEY,
            model=config.ANTHROPIC_MODEL,
            max_tokens=config.ANTHROPIC_MAX_TOKENS,
            temperature=config.ANTHROPIC_TEMPERATURE,
            timeout=config.ANTHROPIC_TIMEOUT,
            base_url=config.ANTHROPIC_BASE_URL
        )

    orchestrator = ToolUseOrchestrator(
        completion_client,
        registry,
        processor=ToolProcessor(registry, max_workers=max_workers),
        max_iterations=max_iterations
    )
    prompt_builder = create_default_builder(
        assistant_name=config.ASSISTANT_NAME,
        assistant_role=config.ASSISTANT_ROLE,
        brain_modules_dir=brain_modules_dir or config.BRAIN_MODULES_DIR,
        brain_modules=config.BRAIN_MODULES
    )
    chat_handler = ChatRequestHandler(
        orchestrator,
        prompt_builder,
        sessions,
        locks,
        default_user_id=config.DEFAULT_USER_ID
    )

    return ServiceContainer(
        store=store,
        sessions=sessions,
        locks=locks,
        registry=registry,
        completion_client=completion_client,
        orchestrator=orchestrator,
        prompt_builder=prompt_builder,
        chat_handler=chat_handler,
        debug=debug
    )


def log_services(services: ServiceContainer) -> None:
    """Print the wiring summary at startup."""
    log_section("Services", "🧩")
    log_subsection(f"Prospects: {services.store.root}")
    log_subsection(f"Tools: {', '.join(services.registry.names())}")
    log_subsection(f"Prompt sources: {', '.join(services.prompt_builder.list_sources())}")
    log_subsection(f"Per-prospect serialization: {'on' if services.locks.enabled else 'off'}")
