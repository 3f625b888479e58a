"""
Nitya Proxy - Prospect Tool System
Claude's native tool calling over per-prospect design state.

Components:
    - definitions: Tool names and schemas for the Anthropic API
    - errors: Tool failure taxonomy
    - results: Typed result records, serialized into tool_result blocks
    - prospect_tools: The five read-only prospect tools
    - registry: Name -> tool mapping (built once, passed explicitly)
    - processor: Executes one turn's tool calls with error isolation
    - orchestrator: The bounded completion/tool-use loop

Usage:
    from agency.tools.registry import build_default_registry
    from agency.tools.orchestrator import ToolUseOrchestrator

    registry = build_default_registry(store)
    orchestrator = ToolUseOrchestrator(client, registry)
    result = orchestrator.run(messages, system_prompt)

Only the leaf modules are re-exported here; memory.prospect_store imports
the error types, so the registry side is imported from its own modules.
"""

from agency.tools.definitions import ToolName, get_tool_definitions
from agency.tools.errors import (
    ToolErrorType,
    ToolError,
    UnknownToolError,
    ToolValidationError,
    ValidationError,
    MissingFieldError,
    InvalidUserIdError,
    ResourceNotFoundError,
    CorruptDataError,
)
from agency.tools.results import (
    ToolResult,
    ErrorResult,
    AssetsResult,
    ConversationResult,
    MetadataResult,
    SitemapResult,
    StylesResult,
)


__all__ = [
    # Definitions
    'ToolName',
    'get_tool_definitions',
    # Errors
    'ToolErrorType',
    'ToolError',
    'UnknownToolError',
    'ToolValidationError',
    'ValidationError',
    'MissingFieldError',
    'InvalidUserIdError',
    'ResourceNotFoundError',
    'CorruptDataError',
    # Results
    'ToolResult',
    'ErrorResult',
    'AssetsResult',
    'ConversationResult',
    'MetadataResult',
    'SitemapResult',
    'StylesResult',
]
