"""
Nitya Proxy - Prospect Tools
Read-only views of a prospect's design-session state.
"""

import re
from typing import Any, Dict, Optional

from agency.tools.base import ProspectTool
from agency.tools.definitions import (
    ToolName,
    READ_USER_ASSETS_TOOL,
    READ_CONVERSATION_TOOL,
    READ_METADATA_TOOL,
    READ_SITEMAP_TOOL,
    READ_STYLES_TOOL,
)
from agency.tools.errors import ResourceNotFoundError
from agency.tools.results import (
    AssetsResult,
    ConversationResult,
    MetadataResult,
    SitemapResult,
    StylesResult,
)
from memory.prospect_store import (
    ProspectStore,
    CONVERSATION_FILE,
    METADATA_FILE,
    SITEMAP_FILE,
    STYLES_FILE,
)

# Values pulled out of styles.css
PRIMARY_COLOR_PATTERN = re.compile(r"--primary-color:\s*([^;]+)")
FONT_HEADING_PATTERN = re.compile(r"--font-heading:\s*([^;]+)")
REFERENCE_PATTERN = re.compile(r"/\*\s*Reference:\s*([^*]+)\*/")


class ReadUserAssetsTool(ProspectTool):
    """Lists uploaded images so the model can use exact filenames."""

    name = ToolName.READ_USER_ASSETS.value
    definition = READ_USER_ASSETS_TOOL

    def run(self, tool_input: Dict[str, Any]) -> AssetsResult:
        try:
            files = self._store.list_assets(tool_input["userId"])
        except ResourceNotFoundError:
            return AssetsResult.not_found()
        return AssetsResult.found(files)


class ReadConversationTool(ProspectTool):
    """Returns the saved chat history for session resumption."""

    name = ToolName.READ_CONVERSATION.value
    definition = READ_CONVERSATION_TOOL

    def run(self, tool_input: Dict[str, Any]) -> ConversationResult:
        try:
            data = self._store.read_json_object(tool_input["userId"], CONVERSATION_FILE)
        except ResourceNotFoundError:
            return ConversationResult.not_found()

        return ConversationResult(
            messages=list(data.get("messages") or []),
            last_updated=data.get("updatedAt") or "unknown"
        )


class ReadMetadataTool(ProspectTool):
    """Returns collected business data plus logo/hero flags."""

    name = ToolName.READ_METADATA.value
    definition = READ_METADATA_TOOL

    def run(self, tool_input: Dict[str, Any]) -> MetadataResult:
        try:
            data = self._store.read_json_object(tool_input["userId"], METADATA_FILE)
        except ResourceNotFoundError:
            return MetadataResult.not_found()

        return MetadataResult(
            metadata=data,
            business_name=data.get("businessName") or None,
            has_logo=bool(data.get("logo")),
            has_hero_image=bool(data.get("heroImage"))
        )


class ReadSitemapTool(ProspectTool):
    """Returns the defined pages."""

    name = ToolName.READ_SITEMAP.value
    definition = READ_SITEMAP_TOOL

    def run(self, tool_input: Dict[str, Any]) -> SitemapResult:
        try:
            data = self._store.read_json_object(tool_input["userId"], SITEMAP_FILE)
        except ResourceNotFoundError:
            return SitemapResult.not_found()

        return SitemapResult(pages=list(data.get("pages") or []))


class ReadStylesTool(ProspectTool):
    """Returns brand CSS with primary color, heading font and reference site parsed out."""

    name = ToolName.READ_STYLES.value
    definition = READ_STYLES_TOOL

    def __init__(self, store: ProspectStore, preview_chars: int = 500):
        super().__init__(store)
        self._preview_chars = preview_chars

    @staticmethod
    def _extract(pattern: "re.Pattern[str]", css: str) -> Optional[str]:
        match = pattern.search(css)
        return match.group(1).strip() if match else None

    def run(self, tool_input: Dict[str, Any]) -> StylesResult:
        try:
            css = self._store.read_text(tool_input["userId"], STYLES_FILE)
        except ResourceNotFoundError:
            return StylesResult.not_found()

        return StylesResult(
            styles=css,
            primary_color=self._extract(PRIMARY_COLOR_PATTERN, css),
            font_heading=self._extract(FONT_HEADING_PATTERN, css),
            reference_site=self._extract(REFERENCE_PATTERN, css),
            raw_css=css[:self._preview_chars] + "..."
        )
