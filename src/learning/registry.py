"""
Script registry: resolves method and adapter identifiers to script source.

An identifier naming an inbuilt script (shipped under builtin/<kind>/) wins;
anything else is read as a path to a custom script file.
"""

from __future__ import annotations

from importlib import resources
from pathlib import Path

from loguru import logger

from src.core.exceptions import ScriptNotFoundError

SCRIPT_SUFFIX = ".rpy"

METHODS = "methods"
ADAPTERS = "adapters"


def _builtin_dir(kind: str):
    return resources.files("src.learning").joinpath("builtin", kind)


def list_inbuilt(kind: str) -> list[str]:
    """Names of the inbuilt scripts of one kind, sorted."""
    names = []
    for entry in _builtin_dir(kind).iterdir():
        if entry.name.endswith(SCRIPT_SUFFIX):
            names.append(entry.name[: -len(SCRIPT_SUFFIX)])
    return sorted(names)


def is_inbuilt(identifier: str, kind: str) -> bool:
    return identifier in list_inbuilt(kind)


def read_script(identifier: str, kind: str) -> str:
    """
    Read the source of a method or adapter script.

    Args:
        identifier: Inbuilt name or path to a custom script
        kind: METHODS or ADAPTERS

    Returns:
        Script source text

    Raises:
        ScriptNotFoundError: not inbuilt and not a readable file
    """
    if is_inbuilt(identifier, kind):
        logger.debug(f"Using inbuilt {kind[:-1]} '{identifier}'")
        return _builtin_dir(kind).joinpath(identifier + SCRIPT_SUFFIX).read_text(encoding="utf-8")

    path = Path(identifier)
    if not path.is_file():
        raise ScriptNotFoundError(
            f"'{identifier}' is not an inbuilt {kind[:-1]} and not a path to a script file",
            script=identifier,
        )
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ScriptNotFoundError(f"could not read script file: {e}", script=identifier) from e
