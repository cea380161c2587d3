"""Tests for the processing pipeline and the AI enhancer."""

import sys, os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

import json
from types import SimpleNamespace

import pytest

from runbook_gen import CommandGroup, Entry, Pipeline
from runbook_gen.enhance import (
    DedupPlan, EnhancementError, Enhancer, Explanations, MergeGroup,
    StepExplanation, apply_plan, enhance_groups, parse_json_object,
)


class FakeMessages:
    """Stands in for ``client.messages``; replies from a queue."""

    def __init__(self, replies):
        self.replies = list(replies)
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        text = reply if isinstance(reply, str) else json.dumps(reply)
        return SimpleNamespace(content=[SimpleNamespace(type="text", text=text)])


def fake_client(*replies):
    return SimpleNamespace(messages=FakeMessages(replies))


def entries(*commands):
    return [Entry(number=i, command=c) for i, c in enumerate(commands, start=1)]


SAMPLE = entries(
    "git stauts",
    "git status",
    "git add .",
    "mysql -u root -p'secret123' mydb",
    "docker build -t app .",
)


# ── Local pipeline ───────────────────────────────────────────────────

def test_local_pipeline():
    result = Pipeline.create().run(SAMPLE)
    assert [e.number for e in result.entries] == [2, 3, 4, 5]
    assert "secret123" not in result.entries[2].command
    assert len(result.redactions) == 1
    assert result.summaries == []
    assert result.overview == ""


def test_groups_partition_entries():
    result = Pipeline.create().run(SAMPLE)
    flattened = [e for g in result.groups for e in g.commands]
    assert flattened == result.entries


def test_empty_input():
    result = Pipeline.create().run([])
    assert result.entries == []
    assert result.groups == []


# ── With enhancer ────────────────────────────────────────────────────

def test_enhancer_only_sees_sanitized_commands():
    client = fake_client({"groups": []}, {"steps": []})
    Pipeline.create(enhancer=Enhancer(client)).run(SAMPLE)
    prompts = [call["messages"][0]["content"] for call in client.messages.calls]
    assert len(prompts) == 2
    assert all("secret123" not in p for p in prompts)


def test_enhancer_merges_and_explains():
    client = fake_client(
        {"groups": [{"representative": 1, "indices": [0, 1], "reason": "same status check"}]},
        "Here you go:\n" + json.dumps({
            "overview": "Commit and build.",
            "prerequisites": ["Git", "Docker"],
            "steps": [{"title": "Stage files", "description": "Stage work.", "why": "Prepare a commit."}],
        }),
    )
    result = Pipeline.create(enhancer=Enhancer(client, model="test-model")).run(
        entries("git status", "git status -s", "git add .", "docker build -t app ."),
    )
    assert [e.number for e in result.entries] == [2, 3, 4]
    assert result.summaries == ["same status check"]
    assert result.overview == "Commit and build."
    assert result.prerequisites == ("Git", "Docker")
    assert result.groups[0].title == "Stage files"
    assert result.groups[0].explanation == "Prepare a commit."
    assert client.messages.calls[0]["model"] == "test-model"


def test_enhancer_failure_falls_back_to_local_result():
    client = fake_client(RuntimeError("boom"), "not json at all")
    local = Pipeline.create().run(SAMPLE)
    result = Pipeline.create(enhancer=Enhancer(client)).run(SAMPLE)
    assert result.entries == local.entries
    assert result.groups == local.groups
    assert result.overview == ""


# ── Enhancer helpers ─────────────────────────────────────────────────

def test_parse_json_object():
    assert parse_json_object('```json\n{"a": 1}\n```') == {"a": 1}
    with pytest.raises(EnhancementError):
        parse_json_object("no object here")
    with pytest.raises(EnhancementError):
        parse_json_object("{broken")
    with pytest.raises(EnhancementError):
        parse_json_object("{not: json}")


def test_malformed_dedup_response():
    enhancer = Enhancer(fake_client({"groups": [{"indices": [0, 1]}]}))
    with pytest.raises(EnhancementError):
        enhancer.deduplicate(entries("ls", "ls -la"))


def test_unexpected_reply_shape():
    client = SimpleNamespace(messages=SimpleNamespace(create=lambda **kwargs: SimpleNamespace()))
    with pytest.raises(EnhancementError):
        Enhancer(client).deduplicate(entries("ls", "ls -la"))

    local = Pipeline.create().run(SAMPLE)
    result = Pipeline.create(enhancer=Enhancer(client)).run(SAMPLE)
    assert result.entries == local.entries
    assert result.groups == local.groups


def test_result_is_immutable():
    result = Pipeline.create().run(SAMPLE)
    with pytest.raises(AttributeError):
        result.overview = "changed"


def test_empty_input_makes_no_request():
    client = fake_client()
    enhancer = Enhancer(client)
    assert enhancer.deduplicate([]) == DedupPlan()
    assert enhancer.explain([]) == Explanations()
    assert client.messages.calls == []


def test_apply_plan_ignores_bad_indices():
    sample = entries("a", "b", "c")
    plan = DedupPlan(groups=(
        MergeGroup(representative=2, indices=(0, 2, 7), reason="merged"),
        MergeGroup(representative=9, indices=(1,), reason="bogus"),
    ))
    kept, summaries = apply_plan(sample, plan)
    assert [e.command for e in kept] == ["b", "c"]
    assert summaries == ["merged"]


def test_enhance_groups_keeps_commands():
    groups = [
        CommandGroup("Git operations", "", tuple(entries("git log")), intent="git-commit"),
        CommandGroup("Docker operations", "", tuple(entries("docker ps"))),
    ]
    explanations = Explanations(steps=(StepExplanation(title="Review history", why="See what changed."),))
    enhanced = enhance_groups(groups, explanations)
    assert enhanced[0].title == "Review history"
    assert enhanced[0].explanation == "See what changed."
    assert enhanced[0].commands == groups[0].commands
    assert enhanced[0].intent == "git-commit"
    assert enhanced[1] == groups[1]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
