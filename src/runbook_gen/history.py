"""Zsh history extraction.

Reads the extended history format written with ``setopt EXTENDED_HISTORY``:

    : 1699000000:0;git status

Entry numbers count commands from the top of the file, so they line up
with what ``history`` prints in the shell.
"""

from __future__ import annotations
import logging
import os
import re
from datetime import datetime
from pathlib import Path

from .types import Entry

logger = logging.getLogger(__name__)

DEFAULT_HISTORY = os.environ.get(
    "RUNBOOK_GEN_HISTORY",
    str(Path.home() / ".zsh_history"),
)

_ZSH_LINE = re.compile(r"^: ([0-9]+):[0-9]+;(.*)$")


class HistoryError(Exception):
    """History could not be read or yielded nothing usable."""


class HistoryNotFoundError(HistoryError):
    pass


class InvalidRangeError(HistoryError):
    pass


class EmptyResultError(HistoryError):
    pass


def parse_timestamp(raw: str) -> datetime | None:
    try:
        return datetime.fromtimestamp(int(raw))
    except (ValueError, OverflowError, OSError):
        return None


class HistoryExtractor:
    """Reads numbered commands out of a zsh history file."""

    def __init__(self, path: str | Path | None = None) -> None:
        self.path = Path(path or DEFAULT_HISTORY).expanduser()
        if not self.path.is_file():
            raise HistoryNotFoundError(f"zsh history file not found at {self.path}")

    def extract(self, first: int, last: int) -> list[Entry]:
        """Return commands numbered ``first`` through ``last`` inclusive."""
        if first > last:
            raise InvalidRangeError(
                f"invalid range: 'from' ({first}) must be <= 'to' ({last})"
            )

        try:
            with open(self.path, encoding="utf-8", errors="replace") as f:
                lines = f.read().splitlines()
        except OSError as e:
            raise HistoryError(f"cannot read history file {self.path}: {e}") from e

        entries = [e for e in self.parse(lines) if first <= e.number <= last]
        if not entries:
            raise EmptyResultError(f"no commands found in range {first}-{last}")

        logger.debug("extracted %d commands from %s", len(entries), self.path)
        return entries

    @staticmethod
    def parse(lines: list[str]) -> list[Entry]:
        """Parse history lines into numbered entries.

        A command ending in a backslash continues on the next raw line;
        other lines outside the extended format are ignored.
        """
        records: list[tuple[str, list[str]]] = []
        for line in lines:
            m = _ZSH_LINE.match(line)
            if m:
                records.append((m.group(1), [m.group(2)]))
            elif records and records[-1][1][-1].endswith("\\"):
                parts = records[-1][1]
                parts[-1] = parts[-1][:-1]
                parts.append(line)

        return [
            Entry(number=n, command="\n".join(parts), timestamp=parse_timestamp(ts))
            for n, (ts, parts) in enumerate(records, start=1)
        ]
