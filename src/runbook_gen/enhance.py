"""Optional AI enhancement: semantic dedup and step explanations via Claude.

Only sanitized commands are ever sent.  Results can merge entries or
relabel groups; they never edit command text or entry numbers.  Every
failure surfaces as ``EnhancementError`` so the caller can fall back to
the local result.
"""

from __future__ import annotations
import json
import logging
import os
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any, Sequence

from .types import CommandGroup, Entry

if TYPE_CHECKING:
    from anthropic import Anthropic

logger = logging.getLogger(__name__)

DEFAULT_MODEL = os.environ.get("RUNBOOK_GEN_MODEL", "claude-3-5-haiku-latest")
DEFAULT_TIMEOUT = 60.0


class EnhancementError(RuntimeError):
    """The enhancement service failed or answered with something unusable."""


def available() -> bool:
    """True if an Anthropic API key is configured."""
    return bool(os.environ.get("ANTHROPIC_API_KEY"))


# ── Result types ─────────────────────────────────────────────────────

@dataclass(frozen=True, slots=True)
class MergeGroup:
    representative: int                 # index of the entry to keep
    indices: tuple[int, ...]            # every index in the merge
    reason: str = ""


@dataclass(frozen=True, slots=True)
class DedupPlan:
    groups: tuple[MergeGroup, ...] = ()


@dataclass(frozen=True, slots=True)
class StepExplanation:
    title: str = ""
    description: str = ""
    why: str = ""
    notes: str = ""


@dataclass(frozen=True, slots=True)
class Explanations:
    overview: str = ""
    prerequisites: tuple[str, ...] = ()
    steps: tuple[StepExplanation, ...] = field(default_factory=tuple)


# ── Prompts ──────────────────────────────────────────────────────────

DEDUP_SYSTEM_PROMPT = """You are a command-line expert analyzing shell command sequences.
Your task is to identify semantically similar or duplicate commands that should be deduplicated.

Group commands that are:
- Exact duplicates
- Typo corrections (e.g., "git stauts" followed by "git status")
- Same command with minor flag variations that don't change intent
- Failed attempts followed by successful versions (keep the successful one)
- Repeated status checks (e.g., multiple "kubectl get pods" - keep the last one)

Do NOT group commands that are:
- Intentionally repeated for different purposes
- Similar but operating on different targets
- Part of a deliberate retry pattern with meaningful changes

Return a JSON object with this structure:
{
  "groups": [
    {
      "representative": 2,
      "indices": [0, 1, 2],
      "reason": "Typo correction: 'git stauts' corrected to 'git status'"
    }
  ]
}

Only include groups with more than one command. Commands not in any group will be kept as-is.
Use 0-based indices matching the input order."""

EXPLAIN_SYSTEM_PROMPT = """You are a technical writer creating runbook documentation from shell command sequences.
Your task is to analyze commands and generate clear, actionable explanations.

For each group of commands, provide:
1. A concise title (3-7 words)
2. A description of what the commands do
3. The "why" - explain the purpose and when someone would need to do this
4. Optional notes about prerequisites, gotchas, or alternatives

Also provide:
- An overview summarizing what this entire runbook accomplishes
- A list of prerequisites (tools, access, permissions needed)

Return a JSON object with this structure:
{
  "overview": "This runbook guides you through deploying a containerized application to Kubernetes.",
  "prerequisites": ["kubectl configured", "Docker installed", "Access to container registry"],
  "steps": [
    {
      "title": "Build the Docker Image",
      "description": "Compile the application and create a container image.",
      "why": "The container image packages your application with all dependencies.",
      "notes": "Ensure you're in the project root directory before building."
    }
  ]
}

Return exactly one step per group, in group order.
Be practical and helpful. Focus on what engineers actually need to know."""


# ── Client ───────────────────────────────────────────────────────────

class Enhancer:
    """Wraps the Anthropic SDK for runbook enhancement tasks."""

    def __init__(
        self,
        client: Anthropic | Any | None = None,
        *,
        model: str = DEFAULT_MODEL,
        max_tokens: int = 4096,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        if client is None:
            from anthropic import Anthropic  # optional dependency
            client = Anthropic(timeout=timeout)
        self.client = client
        self.model = model
        self.max_tokens = max_tokens

    def deduplicate(self, entries: Sequence[Entry]) -> DedupPlan:
        """Ask for groups of semantically duplicate commands."""
        if not entries:
            return DedupPlan()

        lines = ["Analyze these commands for semantic duplicates:", ""]
        lines.extend(f"{i}: {e.command}" for i, e in enumerate(entries))
        data = self._ask(DEDUP_SYSTEM_PROMPT, "\n".join(lines))

        try:
            groups = tuple(
                MergeGroup(
                    representative=int(g["representative"]),
                    indices=tuple(int(i) for i in g.get("indices", ())),
                    reason=str(g.get("reason", "")),
                )
                for g in data.get("groups", ())
            )
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise EnhancementError(f"malformed dedup response: {e}") from e
        return DedupPlan(groups=groups)

    def explain(self, groups: Sequence[CommandGroup]) -> Explanations:
        """Ask for a title, description and rationale per group."""
        if not groups:
            return Explanations()

        lines = ["Generate explanations for this command sequence:", ""]
        for i, group in enumerate(groups, start=1):
            lines.append(f"## Group {i}: {group.title}" if group.title else f"## Group {i}")
            lines.extend(f"  $ {e.command}" for e in group.commands)
            lines.append("")
        data = self._ask(EXPLAIN_SYSTEM_PROMPT, "\n".join(lines))

        try:
            return Explanations(
                overview=str(data.get("overview", "")),
                prerequisites=tuple(str(p) for p in data.get("prerequisites", ())),
                steps=tuple(
                    StepExplanation(
                        title=str(s.get("title", "")),
                        description=str(s.get("description", "")),
                        why=str(s.get("why", "")),
                        notes=str(s.get("notes", "")),
                    )
                    for s in data.get("steps", ())
                ),
            )
        except (TypeError, AttributeError) as e:
            raise EnhancementError(f"malformed explanation response: {e}") from e

    def _ask(self, system: str, prompt: str) -> dict[str, Any]:
        logger.debug("enhancement request: model=%s, prompt_length=%d", self.model, len(prompt))
        try:
            message = self.client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                system=system,
                messages=[{"role": "user", "content": prompt}],
            )
        except Exception as e:
            raise EnhancementError(f"enhancement request failed: {e}") from e

        try:
            text = next((b.text for b in message.content if b.type == "text"), "")
        except (AttributeError, TypeError) as e:
            raise EnhancementError(f"unexpected response shape: {e}") from e
        return parse_json_object(text)


def parse_json_object(text: str) -> dict[str, Any]:
    """Pull the outermost JSON object out of a reply that may wrap it in prose."""
    start = text.find("{")
    end = text.rfind("}")
    if start < 0 or end <= start:
        raise EnhancementError("response contained no JSON object")
    try:
        data = json.loads(text[start:end + 1])
    except json.JSONDecodeError as e:
        raise EnhancementError(f"response was not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise EnhancementError("response JSON was not an object")
    return data


# ── Applying results ─────────────────────────────────────────────────

def apply_plan(entries: Sequence[Entry], plan: DedupPlan) -> tuple[list[Entry], list[str]]:
    """Drop every merged entry except each group's representative.

    Out-of-range indices are ignored.  Returns the kept entries (in input
    order, unmodified) and the reasons given for each merge.
    """
    remove: set[int] = set()
    summaries: list[str] = []
    for group in plan.groups:
        if not 0 <= group.representative < len(entries):
            continue
        remove.update(
            i for i in group.indices
            if i != group.representative and 0 <= i < len(entries)
        )
        if group.reason:
            summaries.append(group.reason)
    return [e for i, e in enumerate(entries) if i not in remove], summaries


def enhance_groups(
    groups: Sequence[CommandGroup],
    explanations: Explanations,
) -> list[CommandGroup]:
    """Relabel groups with explanations; commands are left untouched."""
    enhanced: list[CommandGroup] = []
    for group, step in zip(groups, explanations.steps):
        enhanced.append(replace(
            group,
            title=step.title or group.title,
            description=step.description or group.description,
            explanation=step.why or group.explanation,
        ))
    enhanced.extend(groups[len(enhanced):])
    return enhanced
