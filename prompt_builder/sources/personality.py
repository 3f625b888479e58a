"""
Nitya Proxy - Personality Source
Persona and sales training loaded from brain module JSON files
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

from core.logger import log_warning
from prompt_builder.sources.base import ContextSource, ContextBlock, SourcePriority


class PersonalitySource(ContextSource):
    """
    Renders each brain module under its own heading.

    A missing or unreadable module is skipped with a warning; the rest of
    the prompt is still built.
    """

    def __init__(self, modules_dir: Path, modules: Sequence[Tuple[str, str]]):
        """
        Args:
            modules_dir: Directory holding the brain module files
            modules: (heading, filename) pairs in prompt order
        """
        self._modules_dir = Path(modules_dir)
        self._modules = list(modules)

    @property
    def source_name(self) -> str:
        return "personality"

    @property
    def priority(self) -> int:
        return SourcePriority.PERSONALITY

    def _load_module(self, filename: str) -> Optional[Any]:
        path = self._modules_dir / filename
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            log_warning(f"Brain module not found: {filename}")
        except json.JSONDecodeError as e:
            log_warning(f"Brain module {filename} is not valid JSON: {e.msg}")
        return None

    def get_context(self, session_context: Dict[str, Any]) -> Optional[ContextBlock]:
        parts: List[str] = []
        loaded: List[str] = []

        for heading, filename in self._modules:
            data = self._load_module(filename)
            if data is None:
                continue
            parts.append(f"# {heading}\n{json.dumps(data, indent=2, ensure_ascii=False)}")
            loaded.append(filename)

        if not parts:
            return None

        return ContextBlock(
            source_name=self.source_name,
            content="\n\n".join(parts),
            priority=self.priority,
            metadata={"modules": loaded}
        )
