"""Unit tests for the error taxonomy."""
import json

from writers_toolkit.errors import (
    ErrorCode,
    SpawnFailureError,
    ToolkitError,
    ToolNotFoundError,
    handle_error,
)


def test_subclasses_carry_their_code():
    err = ToolNotFoundError("Cannot find tool at path: /x.js", details={"tool": "x.js"})
    assert err.code is ErrorCode.TOOL_NOT_FOUND
    assert str(err) == "[TOOL_001] Cannot find tool at path: /x.js"
    assert err.to_dict() == {
        "code": "TOOL_001",
        "message": "Cannot find tool at path: /x.js",
        "details": {"tool": "x.js"},
    }


def test_from_dict_recovers_subclass():
    original = SpawnFailureError("Failed to start x.js: [Errno 2]", details={"argv": ["node"]})
    restored = ToolkitError.from_dict(json.loads(original.to_json()))
    assert isinstance(restored, SpawnFailureError)
    assert restored.details == {"argv": ["node"]}


def test_handle_error_wraps_foreign_exceptions():
    err = handle_error(PermissionError("denied"), "while spawning")
    assert err.code is ErrorCode.SYSTEM_PERMISSION_DENIED
    assert err.message == "while spawning: denied"
    assert err.details["original_type"] == "PermissionError"


def test_handle_error_passes_through_toolkit_errors():
    err = ToolNotFoundError("gone")
    assert handle_error(err) is err
