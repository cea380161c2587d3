"""Deduplicator: collapses repeated, corrected and superseded commands.

One forward pass.  Each command is compared with the last command kept so
far; the survivor of any collapse is always the later command, so output
order is input order with some entries missing.
"""

from __future__ import annotations
import logging
import re
from datetime import timedelta
from typing import Sequence

from .types import Entry

logger = logging.getLogger(__name__)

DEFAULT_TIME_GAP = timedelta(seconds=30)

# Typo corrections: lengths within this many characters, and between
# MIN and MAX edits allowed (one edit per 10 characters in between).
MAX_LENGTH_DIFF = 5
MIN_EDITS = 2
MAX_EDITS = 5

_ASSIGNMENT = re.compile(r"^(?:export|declare -x|setenv)\s+([A-Za-z_][A-Za-z0-9_]*)[=\s]")


class Deduplicator:
    """Removes redundant commands while keeping meaningful repetition."""

    def __init__(self, time_gap: timedelta = DEFAULT_TIME_GAP) -> None:
        # repeats further apart than this are treated as intentional
        self.time_gap = time_gap

    def process(self, entries: Sequence[Entry]) -> list[Entry]:
        result: list[Entry] = []

        for i, entry in enumerate(entries):
            if not entry.command.strip():
                continue

            if not result:
                result.append(entry)
                continue

            prev = result[-1]

            if is_exact_duplicate(prev, entry):
                if self.has_significant_gap(prev, entry):
                    result.append(entry)
                else:
                    result[-1] = entry
                continue

            if is_typo_correction(prev.command, entry.command):
                result[-1] = entry
                continue

            if should_collapse(prev.command, entry.command):
                result[-1] = entry
                continue

            # drop a command the very next one corrects
            upcoming = _next_command(entries, i + 1)
            if upcoming is not None and is_typo_correction(entry.command, upcoming.command):
                continue

            result.append(entry)

        logger.debug("dedup kept %d of %d entries", len(result), len(entries))
        return result

    def has_significant_gap(self, a: Entry, b: Entry) -> bool:
        if a.timestamp is None or b.timestamp is None:
            return False
        return b.timestamp - a.timestamp > self.time_gap


def _next_command(entries: Sequence[Entry], start: int) -> Entry | None:
    for entry in entries[start:]:
        if entry.command.strip():
            return entry
    return None


def is_exact_duplicate(a: Entry, b: Entry) -> bool:
    return a.command.strip() == b.command.strip()


def is_typo_correction(a: str, b: str) -> bool:
    """True if ``b`` looks like a small edit of ``a``."""
    a = a.strip()
    b = b.strip()
    if abs(len(a) - len(b)) > MAX_LENGTH_DIFF:
        return False

    threshold = min(max(max(len(a), len(b)) // 10, MIN_EDITS), MAX_EDITS)
    distance = levenshtein(a, b)
    return 0 < distance <= threshold


def should_collapse(a: str, b: str) -> bool:
    """True if ``b`` supersedes ``a`` (consecutive cd, same-variable export)."""
    a = a.strip()
    b = b.strip()

    if a.startswith("cd ") and b.startswith("cd "):
        return True

    var_a = assigned_variable(a)
    return var_a is not None and var_a == assigned_variable(b)


def assigned_variable(command: str) -> str | None:
    """Name of the variable an ``export NAME=...`` style command sets."""
    m = _ASSIGNMENT.match(command.strip())
    return m.group(1) if m else None


def levenshtein(a: str, b: str) -> int:
    """Classic edit distance (insert, delete, substitute all cost 1)."""
    if not a:
        return len(b)
    if not b:
        return len(a)

    matrix = [[0] * (len(b) + 1) for _ in range(len(a) + 1)]
    for i in range(len(a) + 1):
        matrix[i][0] = i
    for j in range(len(b) + 1):
        matrix[0][j] = j

    for i in range(1, len(a) + 1):
        for j in range(1, len(b) + 1):
            cost = 0 if a[i - 1] == b[j - 1] else 1
            matrix[i][j] = min(
                matrix[i - 1][j] + 1,         # deletion
                matrix[i][j - 1] + 1,         # insertion
                matrix[i - 1][j - 1] + cost,  # substitution
            )
    return matrix[len(a)][len(b)]
