"""
Nitya Proxy - Base Prospect Tool
Common interface for all tools the model can call
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List

from agency.tools.errors import InvalidUserIdError, MissingFieldError, ToolValidationError
from agency.tools.results import ToolResult
from memory.prospect_store import ProspectStore, is_safe_segment


class ProspectTool(ABC):
    """
    Abstract base class for prospect tools.

    Each tool:
    1. Publishes a static definition (name, description, input_schema)
    2. Validates its input before touching the filesystem
    3. Reads prospect state through the store and returns a typed result

    "Not created yet" is a normal state for an in-progress session, so
    run() returns a success result with default fields for it; only
    unexpected failures raise.
    """

    def __init__(self, store: ProspectStore):
        self._store = store

    @property
    @abstractmethod
    def name(self) -> str:
        """Tool name advertised to the model."""
        pass

    @property
    @abstractmethod
    def definition(self) -> Dict[str, Any]:
        """Tool schema in Anthropic format."""
        pass

    @property
    def required_fields(self) -> List[str]:
        return list(self.definition["input_schema"].get("required", []))

    def validate(self, tool_input: Any) -> None:
        """
        Check required fields and userId shape.

        Raises:
            ToolValidationError: Input is not an object
            MissingFieldError: A required field is absent or empty
            InvalidUserIdError: userId is not a safe folder name
        """
        if not isinstance(tool_input, dict):
            raise ToolValidationError("Tool input must be an object", tool_name=self.name)

        for field_name in self.required_fields:
            if not tool_input.get(field_name):
                raise MissingFieldError(field_name, tool_name=self.name)

        if "userId" in tool_input and not is_safe_segment(tool_input["userId"]):
            raise InvalidUserIdError(tool_input["userId"], tool_name=self.name)

    def execute(self, tool_input: Dict[str, Any]) -> ToolResult:
        """Validate, then run."""
        self.validate(tool_input)
        return self.run(tool_input)

    @abstractmethod
    def run(self, tool_input: Dict[str, Any]) -> ToolResult:
        """Read prospect state and build the result record."""
        pass
