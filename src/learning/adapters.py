"""
Adapter Contract: raw source text to question/answer pairs.

An adapter script runs once with SOURCE bound to the raw text and must bind
PAIRS to a sequence of (question, answer) string pairs. Content is taken
verbatim: no deduplication, trimming or length checks.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from loguru import logger

from src.core.exceptions import SchemaError
from src.scripting import CompiledScript, Sandbox

from .registry import ADAPTERS, read_script

SOURCE_NAME = "SOURCE"
RESULT_NAME = "PAIRS"


@dataclass
class Adapter:
    """A compiled adapter script."""

    name: str
    compiled: CompiledScript = field(repr=False)
    sandbox: Sandbox = field(repr=False)

    def run(self, source: str) -> list[tuple[str, str]]:
        """
        Convert source text into ordered question/answer pairs.

        Raises:
            ScriptRuntimeError: the script failed
            RegexError: a host regex call failed
            SchemaError: PAIRS missing or not a sequence of string pairs
        """
        loaded = self.sandbox.execute(self.compiled, {SOURCE_NAME: source}, phase="adapt")
        raw = loaded.get(RESULT_NAME)
        if not isinstance(raw, (list, tuple)):
            raise SchemaError(
                f"adapter must bind {RESULT_NAME} to a list of (question, answer) pairs",
                script=self.name,
                phase="adapt",
            )

        pairs = []
        for index, pair in enumerate(raw):
            if (
                not isinstance(pair, (list, tuple))
                or len(pair) != 2
                or not all(isinstance(part, str) for part in pair)
            ):
                raise SchemaError(
                    f"entry {index} of {RESULT_NAME} is not a (question, answer) string pair",
                    script=self.name,
                    phase="adapt",
                )
            pairs.append((pair[0], pair[1]))

        logger.debug(f"Adapter {self.name} produced {len(pairs)} pairs")
        return pairs


def load_adapter_source(identifier: str, source: str, sandbox: Sandbox) -> Adapter:
    """Compile an adapter from source text."""
    return Adapter(name=identifier, compiled=sandbox.compile(source, identifier), sandbox=sandbox)


def load_adapter(identifier: str, sandbox: Sandbox) -> Adapter:
    """Resolve an inbuilt adapter name or custom script path and compile it."""
    return load_adapter_source(identifier, read_script(identifier, ADAPTERS), sandbox)
