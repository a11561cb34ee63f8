"""
Set Store: JSON persistence for card sets.

Set files are human-readable JSON. Every save writes a complete replacement
to a temporary file beside the target and renames it into place, so a crash
mid-write leaves the previous file intact.

No locking: running two sessions against one file at the same time is the
caller's problem.
"""

from __future__ import annotations

import contextlib
import json
import os
import tempfile
from pathlib import Path

from loguru import logger
from pydantic import ValidationError

from src.core.exceptions import SchemaError, SetIOError

from .card_set import CardSet


def dumps_set(card_set: CardSet, indent: int | None = 2) -> str:
    """
    Serialize a set to JSON text.

    The session block is only written while a run is in progress.
    """
    payload = card_set.model_dump(mode="json")
    if payload.get("session") is None:
        payload.pop("session", None)
    try:
        return json.dumps(payload, indent=indent, ensure_ascii=False, allow_nan=False) + "\n"
    except ValueError as e:
        raise SchemaError(f"set cannot be stored as JSON: {e}") from e


def loads_set(text: str, source: str = "<string>") -> CardSet:
    """
    Parse a set from JSON text.

    Raises:
        SchemaError: invalid JSON or wrong structure
    """
    try:
        return CardSet.model_validate_json(text)
    except ValidationError as e:
        first = e.errors()[0]
        location = ".".join(str(part) for part in first.get("loc", ()))
        raise SchemaError(
            f"{source} is not a valid set file: {first['msg']}"
            + (f" at {location}" if location else "")
        ) from e


class SetStore:
    """Loads and saves one set file."""

    def __init__(self, path: Path, indent: int | None = 2):
        """
        Initialize the store.

        Args:
            path: Location of the set file
            indent: JSON indentation (None = compact)
        """
        self.path = Path(path)
        self.indent = indent

    def exists(self) -> bool:
        return self.path.is_file()

    def read_text(self) -> str:
        try:
            return self.path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise SetIOError(f"could not read set file {self.path}: {e}") from e

    def load(self) -> CardSet:
        """Load the set from disk."""
        card_set = loads_set(self.read_text(), source=str(self.path))
        logger.debug(f"Loaded set {card_set.name or card_set.id} from {self.path}")
        return card_set

    def save(self, card_set: CardSet) -> None:
        """Atomically replace the set file with the given set."""
        text = dumps_set(card_set, indent=self.indent)
        try:
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
            )
        except OSError as e:
            raise SetIOError(f"could not write set file {self.path}: {e}") from e

        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(text)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, self.path)
        except OSError as e:
            with contextlib.suppress(OSError):
                os.unlink(tmp_name)
            raise SetIOError(f"could not write set file {self.path}: {e}") from e

        logger.debug(f"Saved set {card_set.name or card_set.id} to {self.path}")
