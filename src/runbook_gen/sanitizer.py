"""Sanitizer: ordered, rule-based secret redaction for shell commands.

Usage:
    from runbook_gen import Sanitizer

    sanitizer = Sanitizer()           # reusable, holds no per-call state
    entries, redactions = sanitizer.process(entries)

    sanitizer.sanitize_text("mysql -u root -p'secret123' mydb")
    # "mysql -u root -p'<REDACTED>' mydb"

Detection is best-effort.  An unmatched secret format is a silent false
negative, so an empty redaction list does not prove a command is clean.
"""

from __future__ import annotations
import logging
import re
from dataclasses import dataclass, field, replace
from typing import Iterable

from .patterns import DEFAULT_PATTERNS
from .types import Entry, Pattern, Redaction

logger = logging.getLogger(__name__)

REMOVED_PLACEHOLDER = "[REDACTED - contains sensitive data]"


@dataclass(frozen=True)
class SanitizerConfig:
    """Configuration for the Sanitizer."""
    patterns: tuple[Pattern, ...] = DEFAULT_PATTERNS
    # Values that should NEVER be redacted (e.g. a known dummy password)
    allow_list: frozenset[str] = field(default_factory=frozenset)
    # Keep the original command on each Redaction, for review only
    strict: bool = False


class Sanitizer:
    """Applies the rule table to each command, in rule order."""

    def __init__(self, config: SanitizerConfig | None = None) -> None:
        self.config = config or SanitizerConfig()

    def process(self, entries: Iterable[Entry]) -> tuple[list[Entry], list[Redaction]]:
        """Sanitize entries.

        Returns the surviving entries (masked where needed) and one
        Redaction per rule that changed or removed a command.
        """
        result: list[Entry] = []
        redactions: list[Redaction] = []
        for entry in entries:
            sanitized, found = self._sanitize_entry(entry)
            if sanitized is not None:
                result.append(sanitized)
            redactions.extend(found)
        if redactions:
            logger.debug("sanitized %d values across %d entries", len(redactions), len(result))
        return result, redactions

    def sanitize_text(self, command: str) -> str:
        """Sanitize a single command string."""
        for p in self.config.patterns:
            if p.full_remove:
                if p.regex.search(command):
                    return REMOVED_PLACEHOLDER
                continue
            command = self._apply(p, command)
        return command

    # ------------------------------------------------------------------

    def _sanitize_entry(self, entry: Entry) -> tuple[Entry | None, list[Redaction]]:
        original = entry.command
        kept = original if self.config.strict else None
        command = original
        redactions: list[Redaction] = []

        for p in self.config.patterns:
            if not p.regex.search(command):
                continue

            if p.full_remove:
                logger.debug("entry %d removed by %s", entry.number, p.name)
                return None, [Redaction(entry.number, p.name, kept)]

            updated = self._apply(p, command)
            if updated != command:
                redactions.append(Redaction(entry.number, p.name, kept))
                command = updated

        if command == original:
            return entry, redactions
        return replace(entry, command=command), redactions

    def _apply(self, p: Pattern, text: str) -> str:
        allow = self.config.allow_list
        if not allow:
            return p.regex.sub(p.replacement, text)

        def _expand(m: re.Match) -> str:
            matched = m.group(0)
            if any(value in matched for value in allow):
                return matched
            return m.expand(p.replacement)

        return p.regex.sub(_expand, text)
