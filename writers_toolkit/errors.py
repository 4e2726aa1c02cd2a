# ============================================================================
# writers_toolkit/errors.py
# Structured error taxonomy for the tool execution core
# ============================================================================
#
# ERROR CODE FORMAT:
# - TOOL_XXX: Tool resolution / spawn errors (a run never started)
# - RUN_XXX: Run bookkeeping errors
# - CATALOG_XXX: Tool catalog errors
# - SYSTEM_XXX: Anything wrapped by handle_error()
#
# USAGE:
#   from writers_toolkit.errors import ToolNotFoundError
#
#   raise ToolNotFoundError(
#       "Cannot find tool at path: /app/tools/missing.js",
#       details={"tool": "missing.js"},
#   )
#
# Only failures that prevent a child process from running are raised to callers.
# A tool that ran and exited non-zero is reported through RunResult, not here.
#
# ============================================================================

import json
from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(Enum):
    # Tool Errors
    TOOL_NOT_FOUND = "TOOL_001"
    TOOL_UNSUPPORTED_TYPE = "TOOL_002"
    TOOL_SPAWN_FAILED = "TOOL_003"
    TOOL_TRACKING_UNREADABLE = "TOOL_004"

    # Run Errors
    RUN_NOT_FOUND = "RUN_001"

    # Catalog Errors
    CATALOG_PARSE_ERROR = "CATALOG_001"
    CATALOG_WRITE_FAILED = "CATALOG_002"

    # System Errors
    SYSTEM_INTERNAL_ERROR = "SYSTEM_001"
    SYSTEM_PERMISSION_DENIED = "SYSTEM_002"


class ToolkitError(Exception):
    """
    Base exception with structured error information.

    Attributes:
        code: ErrorCode enum value (e.g., "TOOL_001")
        message: Human-readable error message (safe to show in an output pane)
        details: Optional dictionary with additional context
    """

    default_code: ErrorCode = ErrorCode.SYSTEM_INTERNAL_ERROR

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        code: Optional[ErrorCode] = None,
    ):
        self.code = code or self.default_code
        self.message = message
        self.details = details or {}

        # Code prefix keeps log lines searchable
        super().__init__(f"[{self.code.value}] {message}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code.value,
            "message": self.message,
            "details": self.details,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), default=str)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ToolkitError":
        """
        Rebuild an error from to_dict() output.

        The concrete subclass is recovered from the code when one is registered
        for it, so a round trip through JSON keeps isinstance() checks working.
        """
        code = ErrorCode(data["code"])
        error_cls = _ERRORS_BY_CODE.get(code, cls)
        return error_cls(data["message"], details=data.get("details", {}), code=code)


class ToolNotFoundError(ToolkitError):
    """The resolved tool script does not exist on disk."""

    default_code = ErrorCode.TOOL_NOT_FOUND


class UnsupportedToolTypeError(ToolkitError):
    """The tool identifier does not map to a runnable interpreter."""

    default_code = ErrorCode.TOOL_UNSUPPORTED_TYPE


class SpawnFailureError(ToolkitError):
    """The OS refused to create the child process."""

    default_code = ErrorCode.TOOL_SPAWN_FAILED


class TrackingFileUnreadableError(ToolkitError):
    """The tracking file exists but could not be read or decoded."""

    default_code = ErrorCode.TOOL_TRACKING_UNREADABLE


class RunNotFoundError(ToolkitError):
    """No completion is pending for the given run id."""

    default_code = ErrorCode.RUN_NOT_FOUND


class CatalogError(ToolkitError):
    """The tool catalog could not be parsed or written."""

    default_code = ErrorCode.CATALOG_PARSE_ERROR


_ERRORS_BY_CODE: Dict[ErrorCode, type] = {
    ErrorCode.TOOL_NOT_FOUND: ToolNotFoundError,
    ErrorCode.TOOL_UNSUPPORTED_TYPE: UnsupportedToolTypeError,
    ErrorCode.TOOL_SPAWN_FAILED: SpawnFailureError,
    ErrorCode.TOOL_TRACKING_UNREADABLE: TrackingFileUnreadableError,
    ErrorCode.RUN_NOT_FOUND: RunNotFoundError,
    ErrorCode.CATALOG_PARSE_ERROR: CatalogError,
    ErrorCode.CATALOG_WRITE_FAILED: CatalogError,
}


# ============================================================================
# Convenience Functions
# ============================================================================

def handle_error(error: Exception, context: Optional[str] = None) -> ToolkitError:
    """
    Convert a generic exception to a ToolkitError.

    Args:
        error: The original exception
        context: Optional context string (e.g., "while reading tool catalog")

    Returns:
        ToolkitError with an appropriate code and message
    """
    if isinstance(error, ToolkitError):
        return error

    error_type = type(error).__name__

    if isinstance(error, PermissionError):
        code = ErrorCode.SYSTEM_PERMISSION_DENIED
    else:
        code = ErrorCode.SYSTEM_INTERNAL_ERROR

    message = str(error)
    if context:
        message = f"{context}: {message}"

    return ToolkitError(
        message,
        details={
            "original_type": error_type,
            "original_message": str(error),
        },
        code=code,
    )


__all__ = [
    "ErrorCode",
    "ToolkitError",
    "ToolNotFoundError",
    "UnsupportedToolTypeError",
    "SpawnFailureError",
    "TrackingFileUnreadableError",
    "RunNotFoundError",
    "CatalogError",
    "handle_error",
]
