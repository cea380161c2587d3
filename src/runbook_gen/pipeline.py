"""Pipeline: dedup, sanitize, group, with optional AI enhancement.

Usage:

    pipeline = Pipeline.create()
    result = pipeline.run(entries)
    result.groups          # labelled steps, ready to render
    result.redactions      # what the sanitizer touched

The enhancer only ever sees sanitized commands.  Its failures are logged
and the local result is used instead.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import Sequence

from .dedup import Deduplicator
from .enhance import EnhancementError, Enhancer, Explanations, apply_plan, enhance_groups
from .intent import IntentAnalyzer
from .sanitizer import Sanitizer
from .types import CommandGroup, Entry, Redaction

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PipelineResult:
    """Output of one pipeline run."""
    entries: list[Entry]                                 # sanitized, deduplicated
    groups: list[CommandGroup]
    redactions: list[Redaction] = field(default_factory=list)
    summaries: list[str] = field(default_factory=list)   # semantic merge reasons
    overview: str = ""
    prerequisites: tuple[str, ...] = ()


@dataclass
class Pipeline:
    """Runs the processing stages in order."""

    deduplicator: Deduplicator
    sanitizer: Sanitizer
    analyzer: IntentAnalyzer
    enhancer: Enhancer | None = None

    @classmethod
    def create(cls, *, enhancer: Enhancer | None = None) -> "Pipeline":
        """Factory: default stages, optional enhancer."""
        return cls(
            deduplicator=Deduplicator(),
            sanitizer=Sanitizer(),
            analyzer=IntentAnalyzer(),
            enhancer=enhancer,
        )

    def run(self, entries: Sequence[Entry]) -> PipelineResult:
        deduped = self.deduplicator.process(entries)
        logger.info("after deduplication: %d of %d commands", len(deduped), len(entries))

        sanitized, redactions = self.sanitizer.process(deduped)
        if redactions:
            logger.info("sanitized %d sensitive values", len(redactions))

        summaries: list[str] = []
        if self.enhancer is not None:
            sanitized, summaries = self._semantic_dedup(sanitized)

        groups = self.analyzer.analyze(sanitized)
        logger.info("organized into %d steps", len(groups))

        explanations = Explanations()
        if self.enhancer is not None:
            explanations = self._explain(groups)

        return PipelineResult(
            entries=sanitized,
            groups=enhance_groups(groups, explanations),
            redactions=redactions,
            summaries=summaries,
            overview=explanations.overview,
            prerequisites=explanations.prerequisites,
        )

    def _semantic_dedup(self, entries: list[Entry]) -> tuple[list[Entry], list[str]]:
        try:
            plan = self.enhancer.deduplicate(entries)
        except EnhancementError as e:
            logger.warning("AI deduplication failed, keeping local result: %s", e)
            return entries, []
        kept, summaries = apply_plan(entries, plan)
        if summaries:
            logger.info("AI deduplication merged %d groups", len(summaries))
        return kept, summaries

    def _explain(self, groups: list[CommandGroup]) -> Explanations:
        try:
            return self.enhancer.explain(groups)
        except EnhancementError as e:
            logger.warning("AI explanation generation failed: %s", e)
            return Explanations()
