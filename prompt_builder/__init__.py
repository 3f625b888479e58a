"""
Nitya Proxy - Prompt Builder
Modular system prompt assembly from prioritized sources
"""

from prompt_builder.builder import PromptBuilder, AssembledPrompt, create_default_builder
from prompt_builder.sources.base import ContextSource, ContextBlock, SourcePriority

__all__ = [
    "PromptBuilder",
    "AssembledPrompt",
    "create_default_builder",
    "ContextSource",
    "ContextBlock",
    "SourcePriority",
]
