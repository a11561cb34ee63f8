"""
Method Contract: pluggable learning algorithms.

A method script defines:
- RESPONSES: the ordered responses a user may give after seeing an answer
- get_weight(data, difficult): non-negative selection weight (0 = done for this pass)
- adjust_card(response, data, difficult): (new_data, new_difficult)
- get_default_metadata(): data for a newly created card

Card data is handed to scripts by value and validated as plain JSON on the
way back, so the engine never depends on its shape.
"""

from __future__ import annotations

import copy
import json
import math
from dataclasses import dataclass, field
from typing import Any

from loguru import logger
from pydantic import JsonValue, TypeAdapter, ValidationError

from src.core.exceptions import InvalidResponseError, SchemaError
from src.scripting import LoadedScript, Sandbox

from .registry import METHODS, read_script

REQUIRED_FUNCTIONS = ("get_weight", "adjust_card", "get_default_metadata")

_json_value = TypeAdapter(JsonValue)


def to_plain_data(
    value: Any,
    script: str | None = None,
    phase: str | None = None,
    card_id: str | None = None,
) -> JsonValue:
    """
    Validate a script-produced value as JSON data and detach it.

    Raises:
        SchemaError: the value is not made of dicts, lists and primitives
    """
    try:
        validated = _json_value.validate_python(value)
    except ValidationError as e:
        raise SchemaError(
            f"card data must be plain JSON data: {e.errors()[0]['msg']}",
            script=script,
            phase=phase,
            card_id=card_id,
        ) from e
    try:
        json.dumps(validated, allow_nan=False)
    except ValueError as e:
        raise SchemaError(
            f"card data must be plain JSON data: {e}",
            script=script,
            phase=phase,
            card_id=card_id,
        ) from e
    return copy.deepcopy(validated)


@dataclass
class Method:
    """A loaded learning method bound to the sandbox that runs it."""

    name: str
    responses: tuple[str, ...]
    script: LoadedScript = field(repr=False)
    sandbox: Sandbox = field(repr=False)

    def check_response(self, response: str, card_id: str | None = None) -> None:
        """Reject a response the method did not declare."""
        if response not in self.responses:
            raise InvalidResponseError(
                f"invalid response {response!r} (expected one of {'/'.join(self.responses)})",
                script=self.name,
                card_id=card_id,
            )

    def get_weight(self, data: JsonValue, difficult: bool, card_id: str | None = None) -> float:
        """Selection weight of one card."""
        weight = self.sandbox.call(
            self.script, "get_weight", copy.deepcopy(data), difficult, card_id=card_id
        )
        if isinstance(weight, bool) or not isinstance(weight, (int, float)):
            raise SchemaError(
                f"weight must be a number, got {type(weight).__name__}",
                script=self.name,
                phase="get_weight",
                card_id=card_id,
            )
        if not math.isfinite(weight) or weight < 0:
            raise SchemaError(
                f"weight must be finite and non-negative, got {weight}",
                script=self.name,
                phase="get_weight",
                card_id=card_id,
            )
        return float(weight)

    def adjust_card(
        self,
        response: str,
        data: JsonValue,
        difficult: bool,
        card_id: str | None = None,
    ) -> tuple[JsonValue, bool]:
        """
        Compute a card's new data and difficulty from a response.

        The response is checked before the script runs.

        Returns:
            (new_data, new_difficult)
        """
        self.check_response(response, card_id=card_id)
        result = self.sandbox.call(
            self.script, "adjust_card", response, copy.deepcopy(data), difficult, card_id=card_id
        )
        if not isinstance(result, (list, tuple)) or len(result) != 2:
            raise SchemaError(
                "adjust_card must return (data, difficult)",
                script=self.name,
                phase="adjust_card",
                card_id=card_id,
            )
        new_data, new_difficult = result
        if not isinstance(new_difficult, bool):
            raise SchemaError(
                f"difficult flag must be a bool, got {type(new_difficult).__name__}",
                script=self.name,
                phase="adjust_card",
                card_id=card_id,
            )
        return to_plain_data(new_data, self.name, "adjust_card", card_id), new_difficult

    def get_default_metadata(self) -> JsonValue:
        """Data for a freshly created card."""
        data = self.sandbox.call(self.script, "get_default_metadata")
        return to_plain_data(data, self.name, "get_default_metadata")


def _read_responses(loaded: LoadedScript) -> tuple[str, ...]:
    raw = loaded.get("RESPONSES")
    if not isinstance(raw, (list, tuple)) or not raw:
        raise SchemaError("method must define a non-empty RESPONSES list", script=loaded.name)
    responses = tuple(raw)
    if not all(isinstance(r, str) and r for r in responses):
        raise SchemaError("RESPONSES must contain non-empty strings", script=loaded.name)
    if len(set(responses)) != len(responses):
        raise SchemaError("RESPONSES must not contain duplicates", script=loaded.name)
    return responses


def load_method_source(identifier: str, source: str, sandbox: Sandbox) -> Method:
    """
    Compile and load a method from source text.

    Raises:
        ScriptCompileError: the script does not compile
        ScriptRuntimeError: the top-level body fails
        SchemaError: RESPONSES or an entry point is missing or malformed
    """
    compiled = sandbox.compile(source, identifier)
    loaded = sandbox.execute(compiled)

    responses = _read_responses(loaded)
    missing = [name for name in REQUIRED_FUNCTIONS if not loaded.has_function(name)]
    if missing:
        raise SchemaError(
            f"method does not define {', '.join(missing)}",
            script=identifier,
        )

    logger.debug(f"Loaded method {identifier} with responses {responses}")
    return Method(name=identifier, responses=responses, script=loaded, sandbox=sandbox)


def load_method(identifier: str, sandbox: Sandbox) -> Method:
    """Resolve an inbuilt method name or custom script path and load it."""
    return load_method_source(identifier, read_script(identifier, METHODS), sandbox)
