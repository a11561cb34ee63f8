"""
Host functions exposed to adapter and method scripts.

Scripts have no I/O of their own. Everything they can reach outside the
restricted language is listed in the capability table built here:

- is_match / matches / captures: pattern queries
- replace_one / replace_all: substitutions (re replacement syntax, \\1 or \\g<name>)
- regexp_to_pairs: question/answer pairs straight from capture groups
- get_seconds_since_epoch: wall-clock reads

Patterns use Python `re` syntax; inline flags such as (?m) or (?s)
configure the syntax per pattern.
"""

from __future__ import annotations

import re
import time
from collections.abc import Callable, Mapping
from types import MappingProxyType

from src.core.exceptions import RegexError


def _compile(pattern: str) -> re.Pattern[str]:
    if not isinstance(pattern, str):
        raise RegexError(f"pattern must be a string, got {type(pattern).__name__}")
    try:
        return re.compile(pattern)
    except re.error as e:
        raise RegexError(f"invalid pattern {pattern!r}: {e}") from e


def is_match(pattern: str, text: str) -> bool:
    """Whether the pattern matches anywhere in the text."""
    return _compile(pattern).search(text) is not None


def matches(pattern: str, text: str) -> list[str]:
    """All non-overlapping matched substrings, in order."""
    return [m.group(0) for m in _compile(pattern).finditer(text)]


def captures(pattern: str, text: str) -> list[list[str]]:
    """
    Capture groups of every match.

    Each inner list starts with the full match (group 0). A group that did
    not participate in a match is an error, as scripts cannot tell it apart
    from an empty capture otherwise.
    """
    compiled = _compile(pattern)
    result = []
    for m in compiled.finditer(text):
        groups = []
        for index in range(compiled.groups + 1):
            value = m.group(index)
            if value is None:
                raise RegexError(
                    f"group {index} of {pattern!r} did not participate in the match at {m.start()}"
                )
            groups.append(value)
        result.append(groups)
    return result


def replace_one(pattern: str, replacement: str, text: str) -> str:
    """Replace the first match."""
    try:
        return _compile(pattern).sub(replacement, text, count=1)
    except re.error as e:
        raise RegexError(f"invalid replacement {replacement!r}: {e}") from e


def replace_all(pattern: str, replacement: str, text: str) -> str:
    """Replace every match."""
    try:
        return _compile(pattern).sub(replacement, text)
    except re.error as e:
        raise RegexError(f"invalid replacement {replacement!r}: {e}") from e


def regexp_to_pairs(
    pattern: str,
    question_group_index: int,
    answer_group_index: int,
    text: str,
) -> list[list[str]]:
    """
    Build question/answer pairs from two capture groups of every match.

    Args:
        pattern: Pattern with at least the two referenced groups
        question_group_index: Group holding the question (groups start at 1)
        answer_group_index: Group holding the answer
        text: Text to scan

    Returns:
        List of [question, answer] lists in match order

    Raises:
        RegexError: invalid pattern, or a referenced group missing from a match
    """
    compiled = _compile(pattern)
    pairs = []
    for m in compiled.finditer(text):
        try:
            question = m.group(question_group_index)
            answer = m.group(answer_group_index)
        except (IndexError, TypeError) as e:
            raise RegexError(
                f"group index does not exist in {pattern!r} (did you start from 1?)"
            ) from e
        if question is None or answer is None:
            raise RegexError(
                f"question or answer group did not participate in the match at {m.start()}"
            )
        pairs.append([question, answer])
    return pairs


def build_capabilities(clock: Callable[[], float] = time.time) -> Mapping[str, Callable]:
    """
    Build the immutable capability table handed to one sandbox.

    Args:
        clock: Source of seconds since the epoch (injectable for tests)

    Returns:
        Read-only mapping of script-visible name to host function
    """

    def get_seconds_since_epoch() -> int:
        return int(clock())

    return MappingProxyType(
        {
            "is_match": is_match,
            "matches": matches,
            "captures": captures,
            "replace_one": replace_one,
            "replace_all": replace_all,
            "regexp_to_pairs": regexp_to_pairs,
            "get_seconds_since_epoch": get_seconds_since_epoch,
        }
    )
