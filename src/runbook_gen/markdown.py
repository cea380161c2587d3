"""Markdown rendering of processed command groups."""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from typing import Sequence

from .intent import extract_tool
from .types import CommandGroup

_INTENT_NAMES: dict[str, str] = {
    "git-commit": "Git version control",
    "git-branch": "Git branching",
    "git-sync": "Git synchronization",
    "docker-build": "Docker image building",
    "docker-run": "Docker container management",
    "docker-compose": "Docker Compose orchestration",
    "npm-build": "Node.js build process",
    "npm-dev": "Node.js development",
    "go-build": "Go compilation",
    "go-mod": "Go module management",
    "python-venv": "Python environment setup",
    "kubectl-deploy": "Kubernetes deployment",
    "kubectl-debug": "Kubernetes debugging",
    "terraform": "Infrastructure provisioning",
    "ssh-scp": "Remote operations",
}

_PREREQUISITES: dict[str, str] = {
    "git": "Git CLI installed",
    "docker": "Docker installed and running",
    "docker-compose": "Docker Compose installed",
    "kubectl": "kubectl installed with cluster access configured",
    "helm": "Helm CLI installed",
    "terraform": "Terraform CLI installed",
    "aws": "AWS CLI installed and configured",
    "gcloud": "Google Cloud SDK installed and configured",
    "az": "Azure CLI installed and configured",
    "npm": "Node.js and npm installed",
    "yarn": "Yarn package manager installed",
    "go": "Go toolchain installed",
    "python": "Python installed",
    "python3": "Python 3 installed",
    "pip": "pip package manager installed",
    "pip3": "pip3 package manager installed",
    "ssh": "SSH client and appropriate key access",
    "scp": "SSH/SCP access to remote hosts",
    "mysql": "MySQL client installed with database access",
    "psql": "PostgreSQL client installed with database access",
    "redis-cli": "Redis CLI installed with server access",
    "mongosh": "MongoDB shell installed with database access",
    "make": "Make build tool installed",
    "cargo": "Rust toolchain installed",
    "bundle": "Ruby and Bundler installed",
    "rails": "Ruby on Rails installed",
    "composer": "PHP Composer installed",
}


@dataclass
class RunbookData:
    """Everything needed to render one runbook."""
    title: str
    generated: datetime
    groups: Sequence[CommandGroup]
    redacted_count: int = 0
    time_range: str = ""
    overview: str = ""                  # from the enhancer, if any
    prerequisites: Sequence[str] = field(default_factory=tuple)


def format_intent(intent: str) -> str:
    return _INTENT_NAMES.get(intent, intent.replace("-", " "))


def _tools(groups: Sequence[CommandGroup]) -> list[str]:
    seen: dict[str, None] = {}
    for group in groups:
        for entry in group.commands:
            tool = extract_tool(entry.command)
            if tool:
                seen.setdefault(tool)
    return list(seen)


class MarkdownRenderer:
    """Renders a runbook as markdown."""

    def __init__(self, *, include_timestamps: bool = False) -> None:
        self.include_timestamps = include_timestamps

    def render(self, data: RunbookData) -> str:
        out: list[str] = [f"# {data.title}\n\n"]

        out.append("## Overview\n\n")
        out.append(data.overview or self.overview(data.groups))
        out.append("\n\n")

        prereqs = list(data.prerequisites) or self.prerequisites(data.groups)
        if prereqs:
            out.append("## Prerequisites\n\n")
            out.extend(f"- {p}\n" for p in prereqs)
            out.append("\n")

        out.append("## Steps\n\n")
        for num, group in enumerate(data.groups, start=1):
            out.append(self.step(num, group))
            out.append("\n")

        out.append("## Notes\n\n")
        out.append(f"- Generated from shell history on {data.generated:%Y-%m-%d %H:%M:%S}\n")
        if data.time_range:
            out.append(f"- Time range: {data.time_range}\n")
        if data.redacted_count:
            out.append(f"- Commands sanitized: {data.redacted_count}\n")

        return "".join(out)

    def overview(self, groups: Sequence[CommandGroup]) -> str:
        if not groups:
            return "This runbook contains no commands."

        parts: list[str] = []
        intents = list(dict.fromkeys(g.intent for g in groups if g.intent))
        if intents:
            covered = ", ".join(format_intent(i) for i in intents)
            parts.append(f"This runbook covers: {covered}.")

        total = sum(len(g.commands) for g in groups)
        parts.append(f"It contains {len(groups)} steps with {total} commands total.")
        return " ".join(parts)

    def prerequisites(self, groups: Sequence[CommandGroup]) -> list[str]:
        found = (_PREREQUISITES.get(tool) for tool in _tools(groups))
        return list(dict.fromkeys(p for p in found if p))

    def step(self, num: int, group: CommandGroup) -> str:
        out = [f"### Step {num}: {group.title}\n\n"]
        if group.description:
            out.append(f"{group.description}\n\n")

        out.append("```bash\n")
        for entry in group.commands:
            if self.include_timestamps and entry.timestamp is not None:
                out.append(f"# {entry.timestamp:%H:%M:%S}\n")
            out.append(f"{entry.command}\n")
        out.append("```\n")

        why = group.explanation or (format_intent(group.intent) if group.intent else "")
        if why:
            out.append(f"\n**Why:** {why}\n")
        return "".join(out)
