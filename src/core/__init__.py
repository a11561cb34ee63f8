"""
Core Module - Shared error taxonomy.

All packages (scripting, learning, delivery, cli) raise the errors defined
in src.core.exceptions so the CLI can report them uniformly.
"""

from src.core.exceptions import (
    CancelledError,
    DrillError,
    EmptySetError,
    InvalidResponseError,
    MethodMismatchError,
    RegexError,
    SchemaError,
    ScriptCompileError,
    ScriptNotFoundError,
    ScriptRuntimeError,
    ScriptTimeoutError,
    SetIOError,
)

__all__ = [
    "CancelledError",
    "DrillError",
    "EmptySetError",
    "InvalidResponseError",
    "MethodMismatchError",
    "RegexError",
    "SchemaError",
    "ScriptCompileError",
    "ScriptNotFoundError",
    "ScriptRuntimeError",
    "ScriptTimeoutError",
    "SetIOError",
]
