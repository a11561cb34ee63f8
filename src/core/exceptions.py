"""
Error taxonomy for the drill engine.

Every error raised by the engine derives from DrillError and may carry the
script, phase and card it originated from, so operators can fix the script
or set file that caused it.
"""

from __future__ import annotations


class DrillError(Exception):
    """Base class for all engine errors."""

    def __init__(
        self,
        message: str,
        *,
        script: str | None = None,
        phase: str | None = None,
        card_id: str | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.script = script
        self.phase = phase
        self.card_id = card_id

    def with_context(
        self,
        *,
        script: str | None = None,
        phase: str | None = None,
        card_id: str | None = None,
    ) -> DrillError:
        """Fill in context fields that are not already set."""
        self.script = self.script or script
        self.phase = self.phase or phase
        self.card_id = self.card_id or card_id
        return self

    def __str__(self) -> str:
        parts = []
        if self.script:
            parts.append(f"script '{self.script}'")
        if self.phase:
            parts.append(f"during {self.phase}")
        if self.card_id:
            parts.append(f"card {self.card_id}")
        if not parts:
            return self.message
        return f"{self.message} ({', '.join(parts)})"


class ScriptCompileError(DrillError):
    """A script failed to parse or violates the restricted language."""


class ScriptRuntimeError(DrillError):
    """A script raised an exception while executing."""


class ScriptTimeoutError(ScriptRuntimeError):
    """A script call exceeded the configured time limit."""


class ScriptNotFoundError(DrillError):
    """Neither an inbuilt script nor a readable script file matched the identifier."""


class SchemaError(DrillError):
    """A script returned (or a set file contains) data of the wrong shape."""


class InvalidResponseError(DrillError):
    """A response outside the permissible set was submitted."""


class MethodMismatchError(DrillError):
    """The requested method differs from the method bound to the set."""


class EmptySetError(DrillError):
    """No card is eligible for the next draw (the pass is complete)."""


class RegexError(DrillError):
    """A pattern passed to a host regex function was invalid or did not fit a match."""


class SetIOError(DrillError):
    """Reading or writing the persisted set file failed."""


class CancelledError(DrillError):
    """The operator ended input early; progress made so far is kept."""
