"""Core types."""

from __future__ import annotations
import re
from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True, slots=True)
class Entry:
    """One command from shell history."""
    number: int                         # history number, strictly increasing
    command: str
    timestamp: datetime | None = None   # None when missing or unparseable

    @property
    def has_time(self) -> bool:
        return self.timestamp is not None


@dataclass(frozen=True, slots=True)
class Redaction:
    """One rule applied to one entry."""
    number: int
    pattern_name: str
    original: str | None = None         # strict mode only


@dataclass(frozen=True, slots=True)
class Pattern:
    """A secret-detection rule.  Build with ``patterns.pattern()``."""
    name: str
    regex: re.Pattern
    replacement: str                    # re.sub template, e.g. r"\g<1><REDACTED>"
    full_remove: bool = False           # drop the whole entry on match


@dataclass(frozen=True, slots=True)
class Workflow:
    """A named set of command prefixes used to label a group."""
    name: str
    prefixes: tuple[str, ...]
    description: str


@dataclass(frozen=True, slots=True)
class CommandGroup:
    """A contiguous run of entries forming one runbook step."""
    title: str
    description: str
    commands: tuple[Entry, ...]
    intent: str = ""
    explanation: str = ""
