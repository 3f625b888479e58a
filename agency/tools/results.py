"""
Nitya Proxy - Tool Result Records
One record type per prospect tool, serialized at the tool_result boundary.

The JSON field names and their order are what the model has always seen
in its context window, so to_dict() spells them out explicitly rather
than deriving them from the dataclass fields.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


def to_compact_json(payload: Any) -> str:
    """Serialize like a browser JSON.stringify: no spaces, raw unicode."""
    return json.dumps(payload, separators=(",", ":"), ensure_ascii=False)


class ToolResult:
    """Base for tool result records."""

    success: bool = True

    def to_dict(self) -> Dict[str, Any]:
        raise NotImplementedError

    def to_json(self) -> str:
        """Content string for the tool_result block."""
        return to_compact_json(self.to_dict())


@dataclass(frozen=True)
class ErrorResult(ToolResult):
    """Payload sent back for a failed tool call."""
    error: str
    success: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {"success": self.success, "error": self.error}


@dataclass(frozen=True)
class AssetsResult(ToolResult):
    """Image files in the prospect's assets folder."""
    files: List[str] = field(default_factory=list)
    message: str = ""
    success: bool = True

    @property
    def count(self) -> int:
        return len(self.files)

    @classmethod
    def found(cls, files: List[str]) -> "AssetsResult":
        if files:
            message = f"Found {len(files)} file(s): {', '.join(files)}"
        else:
            message = "No files uploaded yet"
        return cls(files=list(files), message=message)

    @classmethod
    def not_found(cls) -> "AssetsResult":
        return cls(files=[], message="No files uploaded yet (assets folder does not exist)")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "files": list(self.files),
            "count": self.count,
            "message": self.message,
        }


@dataclass(frozen=True)
class ConversationResult(ToolResult):
    """Saved chat history for a prospect."""
    messages: List[Any] = field(default_factory=list)
    last_updated: Optional[str] = None
    message: Optional[str] = None
    success: bool = True

    @property
    def message_count(self) -> int:
        return len(self.messages)

    @classmethod
    def not_found(cls) -> "ConversationResult":
        return cls(messages=[], message="No conversation history yet (new session)")

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "success": self.success,
            "messages": list(self.messages),
            "messageCount": self.message_count,
        }
        if self.last_updated is not None:
            payload["lastUpdated"] = self.last_updated
        if self.message is not None:
            payload["message"] = self.message
        return payload


@dataclass(frozen=True)
class MetadataResult(ToolResult):
    """Business data and asset mappings collected so far."""
    metadata: Dict[str, Any] = field(default_factory=dict)
    business_name: Optional[Any] = None
    has_logo: bool = False
    has_hero_image: bool = False
    message: Optional[str] = None
    success: bool = True

    @classmethod
    def not_found(cls) -> "MetadataResult":
        return cls(message="No metadata collected yet")

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "success": self.success,
            "metadata": dict(self.metadata),
            "businessName": self.business_name,
            "hasLogo": self.has_logo,
            "hasHeroImage": self.has_hero_image,
        }
        if self.message is not None:
            payload["message"] = self.message
        return payload


@dataclass(frozen=True)
class SitemapResult(ToolResult):
    """Pages defined for the prospect's site."""
    pages: List[Any] = field(default_factory=list)
    message: Optional[str] = None
    success: bool = True

    @property
    def page_count(self) -> int:
        return len(self.pages)

    @classmethod
    def not_found(cls) -> "SitemapResult":
        return cls(pages=[], message="No pages defined yet")

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "success": self.success,
            "pages": list(self.pages),
            "pageCount": self.page_count,
        }
        if self.message is not None:
            payload["message"] = self.message
        return payload


@dataclass(frozen=True)
class StylesResult(ToolResult):
    """Brand styles parsed from styles.css."""
    styles: str = ""
    primary_color: Optional[str] = None
    font_heading: Optional[str] = None
    reference_site: Optional[str] = None
    raw_css: Optional[str] = None
    message: Optional[str] = None
    success: bool = True

    @classmethod
    def not_found(cls) -> "StylesResult":
        return cls(message="No brand styles set yet")

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "success": self.success,
            "styles": self.styles,
            "primaryColor": self.primary_color,
            "fontHeading": self.font_heading,
            "referenceSite": self.reference_site,
        }
        if self.raw_css is not None:
            payload["rawCSS"] = self.raw_css
        if self.message is not None:
            payload["message"] = self.message
        return payload
