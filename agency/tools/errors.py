"""
Nitya Proxy - Tool Error Types
Structured failures raised by prospect tools and the registry.

Every ToolError raised inside the tool-use loop is turned into an
is_error tool_result block; none of them abort the loop.
"""

from enum import Enum
from typing import Optional


class ToolErrorType(Enum):
    """
    Categories of tool failures.

    Logged alongside the error; the model only ever sees the message.
    """
    UNKNOWN_TOOL = "unknown_tool"  # Name not in the registry
    VALIDATION = "validation"      # Missing or malformed input
    NOT_FOUND = "not_found"        # Resource doesn't exist
    CORRUPT_DATA = "corrupt_data"  # File exists but can't be parsed
    SYSTEM_ERROR = "system"        # Filesystem/internal failure


class ToolError(Exception):
    """
    Base class for tool failures.

    Attributes:
        message: Human-readable error description (sent to the model)
        error_type: Category of the error
        tool_name: Tool that failed, when known
    """
    error_type: ToolErrorType = ToolErrorType.SYSTEM_ERROR

    def __init__(
        self,
        message: str,
        tool_name: Optional[str] = None,
        error_type: Optional[ToolErrorType] = None
    ):
        super().__init__(message)
        self.message = message
        self.tool_name = tool_name
        if error_type is not None:
            self.error_type = error_type

    def format_for_log(self) -> str:
        """One-line description with category, for diagnostics."""
        where = f" [{self.tool_name}]" if self.tool_name else ""
        return f"Tool error ({self.error_type.value}){where}: {self.message}"


class UnknownToolError(ToolError):
    """Requested tool name is not registered."""
    error_type = ToolErrorType.UNKNOWN_TOOL

    def __init__(self, tool_name: str):
        super().__init__(f"Unknown tool: {tool_name}", tool_name=tool_name)


class ToolValidationError(ToolError):
    """Tool input failed validation (raised before any filesystem access)."""
    error_type = ToolErrorType.VALIDATION


# Name used in the error taxonomy of the tool-call contract
ValidationError = ToolValidationError


class MissingFieldError(ToolValidationError):
    """A required input field is absent or empty."""

    def __init__(self, field_name: str, tool_name: Optional[str] = None):
        super().__init__(f"Missing required field: {field_name}", tool_name=tool_name)
        self.field_name = field_name


class InvalidUserIdError(ToolValidationError):
    """userId is not a safe single path segment."""

    def __init__(self, user_id: object, tool_name: Optional[str] = None):
        super().__init__(f"Invalid userId: {user_id!r}", tool_name=tool_name)
        self.user_id = user_id


class ResourceNotFoundError(ToolError):
    """
    A prospect file or folder does not exist.

    Tools translate this into a success result with default payload;
    it only escapes from the storage layer.
    """
    error_type = ToolErrorType.NOT_FOUND


class CorruptDataError(ToolError):
    """A prospect file exists but holds unusable data."""
    error_type = ToolErrorType.CORRUPT_DATA
