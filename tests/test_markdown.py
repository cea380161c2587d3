"""Tests for markdown rendering."""

import sys, os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from datetime import datetime

from runbook_gen import CommandGroup, Entry
from runbook_gen.markdown import MarkdownRenderer, RunbookData, format_intent

GENERATED = datetime(2024, 5, 1, 14, 30, 0)

GROUPS = [
    CommandGroup(
        title="Commit and push changes",
        description="",
        commands=(
            Entry(1, "git add .", timestamp=datetime(2024, 5, 1, 10, 0, 0)),
            Entry(2, "git push"),
        ),
        intent="git-commit",
    ),
    CommandGroup(
        title="Kubernetes operations",
        description="Check rollout status.",
        commands=(Entry(3, "kubectl rollout status deploy/api"),),
        explanation="Confirms the new pods are serving.",
    ),
]


def render(**kwargs):
    renderer = MarkdownRenderer(include_timestamps=kwargs.pop("timestamps", False))
    return renderer.render(RunbookData(title="Deploy", generated=GENERATED, groups=GROUPS, **kwargs))


def test_document_structure():
    doc = render(redacted_count=2, time_range="commands #1 to #3")
    assert doc.startswith("# Deploy\n\n## Overview\n\n")
    assert "### Step 1: Commit and push changes\n\n```bash\ngit add .\ngit push\n```\n" in doc
    assert "### Step 2: Kubernetes operations\n\nCheck rollout status.\n\n" in doc
    assert "- Generated from shell history on 2024-05-01 14:30:00\n" in doc
    assert "- Time range: commands #1 to #3\n" in doc
    assert "- Commands sanitized: 2\n" in doc


def test_why_prefers_explanation_over_intent():
    doc = render()
    assert "**Why:** Git version control" in doc
    assert "**Why:** Confirms the new pods are serving." in doc


def test_generated_overview_and_prerequisites():
    doc = render()
    assert "This runbook covers: Git version control. It contains 2 steps with 3 commands total." in doc
    assert "## Prerequisites\n\n- Git CLI installed\n- kubectl installed with cluster access configured\n" in doc


def test_given_overview_and_prerequisites_win():
    doc = render(overview="Ship the API.", prerequisites=("VPN access",))
    assert "## Overview\n\nShip the API.\n\n" in doc
    assert "- VPN access\n" in doc
    assert "Git CLI installed" not in doc


def test_timestamps_optional():
    assert "# 10:00:00\n" not in render()
    assert "# 10:00:00\ngit add .\n" in render(timestamps=True)


def test_empty_runbook():
    doc = MarkdownRenderer().render(RunbookData(title="Empty", generated=GENERATED, groups=[]))
    assert "This runbook contains no commands." in doc
    assert "## Prerequisites" not in doc
    assert "Commands sanitized" not in doc


def test_format_intent():
    assert format_intent("kubectl-deploy") == "Kubernetes deployment"
    assert format_intent("make-build") == "make build"


if __name__ == "__main__":
    import pytest
    pytest.main([__file__, "-v"])
