"""IntentAnalyzer: splits a command stream into labelled runbook steps.

A new step starts when the tool family changes, when there is a long
pause between commands, or when a step that already has an intent meets a
command with a different one.  Steps are finalised (titled) once closed.
"""

from __future__ import annotations
import logging
from collections import Counter
from datetime import timedelta
from typing import Sequence

from .types import CommandGroup, Entry, Workflow

logger = logging.getLogger(__name__)

DEFAULT_GROUP_GAP = timedelta(seconds=60)

DEFAULT_WORKFLOWS: tuple[Workflow, ...] = (
    Workflow("git-commit", ("git add", "git commit", "git push"), "Commit and push changes"),
    Workflow("git-branch", ("git checkout", "git branch", "git switch"), "Branch management"),
    Workflow("git-sync", ("git fetch", "git pull", "git merge", "git rebase"), "Sync with remote"),
    Workflow("docker-build", ("docker build", "docker tag", "docker push"),
             "Build and publish container image"),
    Workflow("docker-run", ("docker run", "docker exec", "docker logs"),
             "Run and manage containers"),
    Workflow("docker-compose", ("docker-compose", "docker compose"),
             "Manage multi-container application"),
    Workflow("npm-build", ("npm install", "npm run build", "npm test"),
             "Install dependencies and build"),
    Workflow("npm-dev", ("npm install", "npm run dev", "npm start"),
             "Set up development environment"),
    Workflow("go-build", ("go build", "go test", "go run"), "Build and test Go application"),
    Workflow("go-mod", ("go mod init", "go mod tidy", "go get"), "Manage Go modules"),
    Workflow("python-venv", ("python -m venv", "source", "pip install"),
             "Set up Python virtual environment"),
    Workflow("kubectl-deploy", ("kubectl apply", "kubectl rollout", "kubectl get"),
             "Deploy to Kubernetes"),
    Workflow("kubectl-debug", ("kubectl describe", "kubectl logs", "kubectl exec"),
             "Debug Kubernetes resources"),
    Workflow("terraform", ("terraform init", "terraform plan", "terraform apply"),
             "Provision infrastructure"),
    Workflow("ssh-scp", ("ssh", "scp", "rsync"), "Remote file operations"),
)

# Tools in the same family never split a step.
TOOL_FAMILIES: tuple[frozenset[str], ...] = (
    frozenset({"git", "gh"}),
    frozenset({"docker", "docker-compose"}),
    frozenset({"kubectl", "helm", "k9s"}),
    frozenset({"npm", "npx", "yarn", "pnpm"}),
    frozenset({"go", "gofmt", "golangci-lint"}),
    frozenset({"python", "pip", "python3", "pip3"}),
    frozenset({"terraform", "tf"}),
    frozenset({"aws", "awscli"}),
    frozenset({"gcloud", "gsutil"}),
    frozenset({"az", "azure"}),
)

_FAMILY_OF: dict[str, int] = {
    tool: idx for idx, family in enumerate(TOOL_FAMILIES) for tool in family
}

_WRAPPERS = frozenset({"sudo", "time", "nice", "nohup"})

# Fallback titles keyed by the most common tool in a step
_TOOL_TITLES: dict[str, str] = {
    "git": "Git operations",
    "docker": "Docker operations",
    "docker-compose": "Docker operations",
    "kubectl": "Kubernetes operations",
    "helm": "Kubernetes operations",
    "npm": "Node.js package operations",
    "yarn": "Node.js package operations",
    "pnpm": "Node.js package operations",
    "go": "Go operations",
    "python": "Python operations",
    "python3": "Python operations",
    "pip": "Python operations",
    "terraform": "Terraform operations",
    "tf": "Terraform operations",
    "ssh": "Remote operations",
    "scp": "Remote operations",
    "rsync": "Remote operations",
    "curl": "HTTP requests",
    "wget": "HTTP requests",
    "cd": "File system operations",
    "ls": "File system operations",
    "mkdir": "File system operations",
    "rm": "File system operations",
    "cp": "File system operations",
    "mv": "File system operations",
}


def extract_tool(command: str) -> str:
    """Return the program a command runs, looking through sudo/time/nice/nohup."""
    parts = command.split()
    while len(parts) > 1 and parts[0] in _WRAPPERS:
        parts = parts[1:]
    return parts[0] if parts else ""


def are_related_tools(a: str, b: str) -> bool:
    if a == b:
        return True
    family = _FAMILY_OF.get(a)
    return family is not None and family == _FAMILY_OF.get(b)


def generate_title(commands: Sequence[Entry]) -> str:
    """Title a step after its most common tool (first seen wins a tie)."""
    if not commands:
        return "Commands"

    counts = Counter(t for t in (extract_tool(c.command) for c in commands) if t)
    if not counts:
        return "Shell commands"

    # Counter keeps first-insertion order and max() returns the first maximum
    primary = max(counts, key=counts.__getitem__)
    return _TOOL_TITLES.get(primary, f"{primary} operations")


class IntentAnalyzer:
    """Groups commands into logical steps and infers their purpose."""

    def __init__(
        self,
        workflows: Sequence[Workflow] = DEFAULT_WORKFLOWS,
        threshold: timedelta = DEFAULT_GROUP_GAP,
    ) -> None:
        self.workflows = tuple(workflows)
        self.threshold = threshold
        self._descriptions: dict[str, str] = {}
        for w in self.workflows:
            self._descriptions.setdefault(w.name, w.description)

    def analyze(self, entries: Sequence[Entry]) -> list[CommandGroup]:
        groups: list[CommandGroup] = []
        current: list[Entry] = []
        current_intent = ""
        prev_tool = ""

        for entry in entries:
            tool = extract_tool(entry.command)
            intent = self.infer_intent(entry.command)

            if current and not self._breaks(current[-1], prev_tool, entry, tool,
                                             current_intent, intent):
                current.append(entry)
                if not current_intent:
                    current_intent = intent
            else:
                if current:
                    groups.append(self.finalize(current, current_intent))
                current = [entry]
                current_intent = intent
            prev_tool = tool

        if current:
            groups.append(self.finalize(current, current_intent))

        logger.debug("grouped %d entries into %d steps", len(entries), len(groups))
        return groups

    def infer_intent(self, command: str) -> str:
        """Name of the first workflow with a prefix the command starts with."""
        command = command.strip()
        for workflow in self.workflows:
            for prefix in workflow.prefixes:
                if command.startswith(prefix):
                    return workflow.name
        return ""

    def finalize(self, commands: Sequence[Entry], intent: str) -> CommandGroup:
        title = self._descriptions.get(intent, "") if intent else ""
        return CommandGroup(
            title=title or generate_title(commands),
            description="",
            commands=tuple(commands),
            intent=intent,
        )

    def has_time_gap(self, prev: Entry, curr: Entry) -> bool:
        if prev.timestamp is None or curr.timestamp is None:
            return False
        return curr.timestamp - prev.timestamp > self.threshold

    def _breaks(self, prev: Entry, prev_tool: str, entry: Entry, tool: str,
                group_intent: str, intent: str) -> bool:
        if not are_related_tools(prev_tool, tool):
            return True
        if self.has_time_gap(prev, entry):
            return True
        return bool(group_intent) and group_intent != intent
