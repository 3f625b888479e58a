"""
Nitya Proxy - Tool Definitions
Anthropic-format tool schemas for the prospect tools.

The descriptions are part of the prompt the model sees; keep them stable.
"""

from enum import Enum
from typing import Any, Dict, List


class ToolName(str, Enum):
    """Closed set of tool names the model may call."""
    READ_USER_ASSETS = "read_user_assets"
    READ_CONVERSATION = "read_conversation"
    READ_METADATA = "read_metadata"
    READ_SITEMAP = "read_sitemap"
    READ_STYLES = "read_styles"


def _user_id_schema(description: str) -> Dict[str, Any]:
    """Input schema shared by every prospect tool: a single required userId."""
    return {
        "type": "object",
        "properties": {
            "userId": {
                "type": "string",
                "description": description
            }
        },
        "required": ["userId"]
    }


READ_USER_ASSETS_TOOL: Dict[str, Any] = {
    "name": ToolName.READ_USER_ASSETS.value,
    "description": (
        "Lists all files in the user's assets folder. Use this to see what images/files "
        "the user has uploaded so you can reference them by their exact filenames. Call "
        "this immediately when user mentions uploading files or when you need to suggest "
        "which files to use where."
    ),
    "input_schema": _user_id_schema(
        "The user ID whose assets folder to read (e.g., 'test_user_001')"
    )
}

READ_CONVERSATION_TOOL: Dict[str, Any] = {
    "name": ToolName.READ_CONVERSATION.value,
    "description": (
        "Reads the full conversation history from conversation.json. Use this when "
        "resuming a session to catch up on what's been discussed."
    ),
    "input_schema": _user_id_schema("The user ID whose conversation to read")
}

READ_METADATA_TOOL: Dict[str, Any] = {
    "name": ToolName.READ_METADATA.value,
    "description": (
        "Reads business data and asset mappings from metadata.json. Shows what business "
        "info has been collected."
    ),
    "input_schema": _user_id_schema("The user ID whose metadata to read")
}

READ_SITEMAP_TOOL: Dict[str, Any] = {
    "name": ToolName.READ_SITEMAP.value,
    "description": "Reads the page structure from sitemap.json. Shows what pages have been defined.",
    "input_schema": _user_id_schema("The user ID whose sitemap to read")
}

READ_STYLES_TOOL: Dict[str, Any] = {
    "name": ToolName.READ_STYLES.value,
    "description": (
        "Reads brand colors, fonts, and reference site from styles.css. Shows what brand "
        "identity has been set."
    ),
    "input_schema": _user_id_schema("The user ID whose styles to read")
}


def get_tool_definitions() -> List[Dict[str, Any]]:
    """
    Get all prospect tool definitions, in registration order.

    Returns:
        List of tool definition dicts for the Anthropic API
    """
    return [
        READ_USER_ASSETS_TOOL,
        READ_CONVERSATION_TOOL,
        READ_METADATA_TOOL,
        READ_SITEMAP_TOOL,
        READ_STYLES_TOOL,
    ]
