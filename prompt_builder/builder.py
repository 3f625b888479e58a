"""
Nitya Proxy - Prompt Builder
Orchestrates context sources to assemble the system prompt
"""

from pathlib import Path
from typing import Optional, List, Dict, Any, Sequence, Tuple
from dataclasses import dataclass, field

from prompt_builder.sources.base import ContextSource, ContextBlock
from core.logger import log_info, log_error


@dataclass
class AssembledPrompt:
    """The final assembled prompt with metadata."""
    header: str
    context_blocks: List[ContextBlock]
    session_context: Dict[str, Any]
    skipped_sources: List[str] = field(default_factory=list)

    @property
    def full_system_prompt(self) -> str:
        """Header, separator, then every block in priority order."""
        lines = [self.header, "", "---", ""]
        for block in sorted(self.context_blocks, key=lambda b: b.priority):
            lines.append(block.content)
            lines.append("")
        return "\n".join(lines)


class PromptBuilder:
    """
    Orchestrates context sources to build the system prompt.

    Features:
    - Pluggable source architecture
    - Priority-based ordering
    - A failing source is logged and left out; the prompt is still built
    """

    def __init__(self, header: str):
        """
        Args:
            header: First line of every prompt (persona introduction)
        """
        self._header = header
        self._sources: List[ContextSource] = []

    def register_source(self, source: ContextSource) -> bool:
        """
        Register a context source.

        Returns:
            True if registration successful
        """
        if self.get_source(source.source_name) is not None:
            log_error(f"Source already registered: {source.source_name}")
            return False

        self._sources.append(source)
        self._sources.sort(key=lambda s: s.priority)

        log_info(f"Registered prompt source: {source.source_name} (priority {source.priority})", prefix="📝")
        return True

    def unregister_source(self, source_name: str) -> bool:
        """Remove a source by name. Returns True if it was registered."""
        for i, source in enumerate(self._sources):
            if source.source_name == source_name:
                self._sources.pop(i)
                return True
        return False

    def assemble(self, context: Optional[Dict[str, Any]] = None) -> AssembledPrompt:
        """
        Gather blocks from all applicable sources.

        Args:
            context: Request context (userId, sessionType, disableTools, ...)

        Returns:
            AssembledPrompt with all context assembled
        """
        session_context: Dict[str, Any] = dict(context) if context else {}
        blocks: List[ContextBlock] = []
        skipped: List[str] = []

        for source in self._sources:
            if not source.should_include(session_context):
                skipped.append(source.source_name)
                continue
            try:
                block = source.get_context(session_context)
            except Exception as e:
                log_error(f"Error getting context from {source.source_name}: {e}")
                skipped.append(source.source_name)
                continue
            if block:
                blocks.append(block)

        return AssembledPrompt(
            header=self._header,
            context_blocks=blocks,
            session_context=session_context,
            skipped_sources=skipped
        )

    def build(self, context: Optional[Dict[str, Any]] = None) -> str:
        """Build the complete system prompt string."""
        assembled = self.assemble(context)
        prompt = assembled.full_system_prompt
        log_info(
            f"Built prompt ({len(prompt)} characters, {len(assembled.context_blocks)} sections)",
            prefix="📝"
        )
        return prompt

    def get_source(self, source_name: str) -> Optional[ContextSource]:
        """Get a registered source by name."""
        for source in self._sources:
            if source.source_name == source_name:
                return source
        return None

    def list_sources(self) -> List[str]:
        """Get list of registered source names."""
        return [s.source_name for s in self._sources]


def create_default_builder(
    assistant_name: str,
    assistant_role: str,
    brain_modules_dir: Path,
    brain_modules: Sequence[Tuple[str, str]]
) -> PromptBuilder:
    """
    Create a PromptBuilder with the default sources.

    Returns:
        Configured PromptBuilder
    """
    from prompt_builder.sources.personality import PersonalitySource
    from prompt_builder.sources.session import SessionSource
    from prompt_builder.sources.tagging import TaggingSource
    from prompt_builder.sources.tool_guide import ToolGuideSource

    builder = PromptBuilder(header=f"You are {assistant_name} - {assistant_role}.")
    builder.register_source(PersonalitySource(brain_modules_dir, brain_modules))
    builder.register_source(SessionSource())
    builder.register_source(TaggingSource())
    builder.register_source(ToolGuideSource())
    return builder
