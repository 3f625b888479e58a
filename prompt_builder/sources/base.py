"""
Nitya Proxy - Base Context Source
Abstract interface for all system prompt sections
"""

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional, Dict, Any
from enum import IntEnum

PLACEHOLDER_PATTERN = re.compile(r"\{\{(\w+)\}\}")


class SourcePriority(IntEnum):
    """
    Priority levels for prompt sections.
    Lower numbers = higher priority (included first in prompt).
    """
    PERSONALITY = 10   # Persona, sales training, service, pricing
    SESSION = 20       # New vs resumed session protocol
    TAGGING = 30       # Data collection tags and preview workflow
    TOOL_GUIDE = 40    # How and when to call the prospect tools


@dataclass
class ContextBlock:
    """
    A block of context from a source.

    Attributes:
        source_name: Identifier for the source
        content: The formatted context text
        priority: Lower = higher priority (placed earlier in prompt)
        metadata: Additional data about this block
    """
    source_name: str
    content: str
    priority: int
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __bool__(self) -> bool:
        """Block is truthy if it has content."""
        return bool(self.content and self.content.strip())


def populate(template: str, context: Dict[str, Any]) -> str:
    """
    Fill {{key}} placeholders from context.

    Unknown keys are left in place.
    """
    def replace(match: "re.Match[str]") -> str:
        key = match.group(1)
        value = context.get(key)
        return str(value) if value is not None else match.group(0)

    return PLACEHOLDER_PATTERN.sub(replace, template)


class ContextSource(ABC):
    """
    Abstract base class for prompt sections.

    Each source is responsible for:
    1. Deciding whether it applies to this request
    2. Producing its text (templates get {{key}} values from the context)
    3. Returning a ContextBlock (or None if nothing to add)

    Sources are pluggable - new sources can be added without
    modifying the PromptBuilder.
    """

    @property
    @abstractmethod
    def source_name(self) -> str:
        """Unique identifier for this source."""
        pass

    @property
    @abstractmethod
    def priority(self) -> int:
        """
        Priority for ordering in prompt.
        Use SourcePriority enum values.
        """
        pass

    def should_include(self, session_context: Dict[str, Any]) -> bool:
        """Whether this section applies to the request."""
        return True

    @abstractmethod
    def get_context(self, session_context: Dict[str, Any]) -> Optional[ContextBlock]:
        """
        Generate context block for the current prompt.

        Args:
            session_context: Request context. Keys may include:
                - 'userId': Prospect identifier
                - 'sessionType': "new" or "resumed"
                - 'messageCount': Saved message count
                - 'disableTools': Omit the tool guide

        Returns:
            ContextBlock with formatted context, or None if no context
        """
        pass
