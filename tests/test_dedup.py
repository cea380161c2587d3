"""Tests for the deduplicator."""

import sys, os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from datetime import datetime, timedelta

from runbook_gen import Deduplicator, Entry
from runbook_gen.dedup import (
    assigned_variable, is_typo_correction, levenshtein, should_collapse,
)

T0 = datetime(2024, 1, 1, 12, 0, 0)


def entries(*commands):
    return [Entry(number=i, command=c) for i, c in enumerate(commands, start=1)]


def timed(*pairs):
    return [
        Entry(number=i, command=c, timestamp=T0 + timedelta(seconds=s))
        for i, (c, s) in enumerate(pairs, start=1)
    ]


def commands(result):
    return [e.command for e in result]


# ── Exact duplicates ─────────────────────────────────────────────────

def test_exact_duplicates_collapse():
    result = Deduplicator().process(entries("ls -la", "ls -la", "ls -la", "pwd"))
    assert commands(result) == ["ls -la", "pwd"]


def test_intentional_repetition_kept():
    dedup = Deduplicator(time_gap=timedelta(seconds=30))
    result = dedup.process(timed(
        ("kubectl get pods", 0),
        ("kubectl get pods", 45),
        ("kubectl get pods", 90),
    ))
    assert len(result) == 3


def test_quick_duplicates_keep_last_occurrence():
    dedup = Deduplicator(time_gap=timedelta(seconds=30))
    result = dedup.process(timed(("ls", 0), ("ls", 2), ("ls", 4)))
    assert len(result) == 1
    assert result[0].number == 3
    assert result[0].timestamp == T0 + timedelta(seconds=4)


def test_duplicates_without_timestamps_never_count_as_gap():
    dedup = Deduplicator(time_gap=timedelta(seconds=0))
    mixed = [
        Entry(1, "make", timestamp=T0),
        Entry(2, "make"),
        Entry(3, "make", timestamp=T0 + timedelta(hours=1)),
    ]
    assert len(dedup.process(mixed)) == 1


def test_whitespace_only_differences_are_duplicates():
    result = Deduplicator().process(entries("git status", "  git status  "))
    assert len(result) == 1


# ── Typos and collapsible pairs ──────────────────────────────────────

def test_typo_correction_replaces_previous():
    result = Deduplicator().process(entries("git stauts", "git status"))
    assert commands(result) == ["git status"]
    assert result[0].number == 2


def test_lookahead_drops_command_about_to_be_corrected():
    result = Deduplicator().process(entries("ls", "git stauts", "", "git status"))
    assert commands(result) == ["ls", "git status"]
    assert [e.number for e in result] == [1, 4]


def test_cd_commands_collapse():
    result = Deduplicator().process(entries(
        "cd /home/user",
        "cd /home/user/projects",
        "cd /home/user/projects/myapp",
        "ls",
    ))
    assert commands(result) == ["cd /home/user/projects/myapp", "ls"]


def test_export_same_variable_collapses():
    result = Deduplicator().process(entries(
        "export PATH=/usr/bin",
        "export PATH=/usr/bin:/usr/local/bin",
        "export OTHER=value",
    ))
    assert commands(result) == ["export PATH=/usr/bin:/usr/local/bin", "export OTHER=value"]


def test_different_commands_preserved():
    cmds = ("git status", "git add .", "git commit -m 'test'", "git push")
    assert commands(Deduplicator().process(entries(*cmds))) == list(cmds)


# ── Edge cases and properties ────────────────────────────────────────

def test_empty_input():
    assert Deduplicator().process([]) == []


def test_skips_empty_commands():
    result = Deduplicator().process(entries("ls", "", "   ", "pwd"))
    assert commands(result) == ["ls", "pwd"]


def test_all_blank_input():
    assert Deduplicator().process(entries("", "  ", "\t")) == []


def test_never_expands_and_keeps_order():
    samples = [
        entries("a", "b", "a", "b"),
        entries("cd /a", "cd /b", "make", "make", "make test"),
        entries("git stauts", "git status", "git status", "docker ps"),
    ]
    for sample in samples:
        result = Deduplicator().process(sample)
        assert len(result) <= len(sample)
        numbers = [e.number for e in result]
        assert numbers == sorted(numbers)


def test_input_entries_are_not_mutated():
    original = entries("cd /a", "cd /b")
    Deduplicator().process(original)
    assert commands(original) == ["cd /a", "cd /b"]


# ── Helpers ──────────────────────────────────────────────────────────

def test_levenshtein():
    cases = [
        ("", "", 0),
        ("a", "", 1),
        ("", "a", 1),
        ("abc", "abc", 0),
        ("abc", "abd", 1),
        ("abc", "ab", 1),
        ("abc", "abcd", 1),
        ("kitten", "sitting", 3),
        ("git stauts", "git status", 2),
    ]
    for a, b, expected in cases:
        assert levenshtein(a, b) == expected, (a, b)


def test_typo_threshold_scales_with_length():
    assert is_typo_correction("git stauts", "git status")
    assert not is_typo_correction("ls", "ls")
    assert not is_typo_correction("ls", "ls -la --color=auto")
    long_cmd = "kubectl get pods --namespace production -o wide --watch"
    # 6 substitutions on a 55-char command is over the 5-edit ceiling
    assert not is_typo_correction(long_cmd, long_cmd[:-6] + "XXXXXX")
    assert is_typo_correction(long_cmd, long_cmd[:-5] + "XXXXX")


def test_should_collapse():
    assert should_collapse("cd /a", "cd /b")
    assert should_collapse("export A=1", "export A=2")
    assert not should_collapse("export A=1", "export B=1")
    assert not should_collapse("cd /a", "ls /a")


def test_assigned_variable():
    assert assigned_variable("export PATH=/usr/bin") == "PATH"
    assert assigned_variable("export  KUBECONFIG=~/.kube/dev") == "KUBECONFIG"
    assert assigned_variable("echo PATH=/usr/bin") is None


if __name__ == "__main__":
    import pytest
    pytest.main([__file__, "-v"])
