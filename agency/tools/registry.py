"""
Nitya Proxy - Tool Registry
Fixed mapping from tool name to prospect tool.

Built once at startup (see core/services.py) and passed by reference to
the orchestrator and HTTP layer; there is no module-level instance.
"""

import copy
from typing import Any, Dict, Iterable, List, Optional

from agency.tools.base import ProspectTool
from agency.tools.definitions import ToolName
from agency.tools.errors import UnknownToolError
from agency.tools.prospect_tools import (
    ReadUserAssetsTool,
    ReadConversationTool,
    ReadMetadataTool,
    ReadSitemapTool,
    ReadStylesTool,
)
from agency.tools.results import ToolResult
from core.logger import log_info, log_success
from memory.prospect_store import ProspectStore


class ToolRegistry:
    """
    Registry of the tools the model may call.

    The key set is the ToolName enum, so free-form names from the model
    are resolved (or rejected) in exactly one place.
    """

    def __init__(self, tools: Iterable[ProspectTool]):
        """
        Initialize the registry.

        Args:
            tools: Tool instances; each name must be a ToolName and unique
        """
        self._tools: Dict[ToolName, ProspectTool] = {}
        for tool in tools:
            key = ToolName(tool.name)
            if key in self._tools:
                raise ValueError(f"Duplicate tool registration: {tool.name}")
            self._tools[key] = tool
            log_info(f"Registered tool: {tool.name}", prefix="🔧")

        log_success(f"{len(self._tools)} tools registered")

    def definitions(self) -> List[Dict[str, Any]]:
        """Tool schemas to advertise to the model, in registration order."""
        return [copy.deepcopy(tool.definition) for tool in self._tools.values()]

    def names(self) -> List[str]:
        """Registered tool names."""
        return [key.value for key in self._tools]

    def resolve(self, name: str) -> ToolName:
        """
        Map a requested name onto the closed tool set.

        Raises:
            UnknownToolError: If no registered tool has this name
        """
        try:
            key = ToolName(name)
        except ValueError:
            raise UnknownToolError(str(name))
        if key not in self._tools:
            raise UnknownToolError(name)
        return key

    def get(self, name: str) -> Optional[ProspectTool]:
        """Look up a tool without raising."""
        try:
            return self._tools[self.resolve(name)]
        except UnknownToolError:
            return None

    def execute(self, name: str, tool_input: Dict[str, Any]) -> ToolResult:
        """
        Execute a tool by exact name.

        Args:
            name: Tool name from the model's tool_use block
            tool_input: Tool arguments

        Returns:
            The tool's result record

        Raises:
            UnknownToolError: If name is not registered
            ToolValidationError: If required input is missing or malformed
        """
        tool = self._tools[self.resolve(name)]
        log_info(f"Tool called: {name} {tool_input}", prefix="🔧")
        return tool.execute(tool_input)


def build_default_registry(store: ProspectStore, styles_preview_chars: int = 500) -> ToolRegistry:
    """
    Create a registry with all prospect tools bound to one store.

    Args:
        store: Prospect storage the tools read from
        styles_preview_chars: Length of the rawCSS preview

    Returns:
        Configured ToolRegistry
    """
    return ToolRegistry([
        ReadUserAssetsTool(store),
        ReadConversationTool(store),
        ReadMetadataTool(store),
        ReadSitemapTool(store),
        ReadStylesTool(store, preview_chars=styles_preview_chars),
    ])
