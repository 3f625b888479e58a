"""
Nitya Proxy - Context Sources
Pluggable sections of the system prompt
"""

from prompt_builder.sources.base import ContextSource, ContextBlock, SourcePriority, populate
from prompt_builder.sources.personality import PersonalitySource
from prompt_builder.sources.session import SessionSource
from prompt_builder.sources.tagging import TaggingSource
from prompt_builder.sources.tool_guide import ToolGuideSource

__all__ = [
    "ContextSource",
    "ContextBlock",
    "SourcePriority",
    "populate",
    "PersonalitySource",
    "SessionSource",
    "TaggingSource",
    "ToolGuideSource",
]
