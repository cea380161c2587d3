"""YAML/dict config loader for runbook-gen.

Supports loading from a YAML file or a plain dict.

Example YAML:

    runbook_gen:
      title: Deploy the API
      dedup:
        time_gap: 30            # seconds; slower repeats are kept
      grouping:
        time_gap: 60            # seconds; longer pauses start a new step
      sanitizer:
        strict: false
        allow_list:
          - changeme
        patterns:
          - name: internal-token
            regex: 'itk_[A-Za-z0-9]{32}'
            replacement: '<REDACTED>'
          - name: vpn-profile
            regex: '<ca>'
            full_remove: true
      workflows:
        - name: make-build
          prefixes: [make build, make test]
          description: Build and test with make
      ai:
        enabled: true
        model: claude-3-5-haiku-latest
      output:
        timestamps: false
"""

from __future__ import annotations
import logging
import re
from datetime import timedelta
from pathlib import Path
from typing import Any

from .dedup import Deduplicator
from .enhance import DEFAULT_MODEL, Enhancer, available
from .intent import DEFAULT_WORKFLOWS, IntentAnalyzer
from .patterns import PatternError, build_patterns, pattern
from .pipeline import Pipeline
from .sanitizer import Sanitizer, SanitizerConfig
from .types import Pattern, Workflow

logger = logging.getLogger(__name__)


class ConfigError(ValueError):
    """Configuration is invalid."""


def load_config(data: dict[str, Any] | None) -> dict[str, Any]:
    """Normalize a config dict (from YAML or inline)."""
    data = data or {}
    # Support nested under "runbook_gen" key or flat
    if "runbook_gen" in data:
        data = data["runbook_gen"] or {}
    if not isinstance(data, dict):
        raise ConfigError("config must be a mapping")

    dedup = _section(data, "dedup")
    grouping = _section(data, "grouping")
    sanitizer = _section(data, "sanitizer")
    ai = _section(data, "ai")
    output = _section(data, "output")

    return {
        "title": data.get("title", "Runbook"),
        "dedup_time_gap": _seconds(dedup.get("time_gap", 30), "dedup.time_gap"),
        "group_time_gap": _seconds(grouping.get("time_gap", 60), "grouping.time_gap"),
        "strict": bool(sanitizer.get("strict", False)),
        "allow_list": _allow_list(_items(sanitizer, "allow_list", "sanitizer.allow_list")),
        "patterns": _items(sanitizer, "patterns", "sanitizer.patterns"),
        "workflows": _items(data, "workflows", "workflows"),
        "ai_enabled": bool(ai.get("enabled", True)),
        "ai_model": ai.get("model", DEFAULT_MODEL),
        "include_timestamps": bool(output.get("timestamps", False)),
    }


def load_from_yaml(path: str | Path) -> dict[str, Any]:
    """Load config from a YAML file."""
    import yaml

    try:
        with open(path) as f:
            return load_config(yaml.safe_load(f))
    except OSError as e:
        raise ConfigError(f"cannot read config {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid YAML in {path}: {e}") from e


def _section(data: dict[str, Any], key: str) -> dict[str, Any]:
    section = data.get(key) or {}
    if not isinstance(section, dict):
        raise ConfigError(f"{key} must be a mapping, got {type(section).__name__}")
    return section


def _items(data: dict[str, Any], key: str, label: str) -> list[Any]:
    items = data.get(key) or []
    if not isinstance(items, list):
        raise ConfigError(f"{label} must be a list, got {type(items).__name__}")
    return list(items)


def _allow_list(values: list[Any]) -> set[str]:
    # an empty value is a substring of every match and would disable masking
    for value in values:
        if not isinstance(value, str) or not value:
            raise ConfigError(f"sanitizer.allow_list values must be non-empty strings, got {value!r}")
    return set(values)


def _seconds(value: Any, key: str) -> float:
    try:
        seconds = float(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"{key} must be a number of seconds, got {value!r}") from e
    if seconds < 0:
        raise ConfigError(f"{key} must not be negative")
    return seconds


def build_pattern(raw: dict[str, Any]) -> Pattern:
    """Build one custom rule from its config mapping."""
    if not isinstance(raw, dict):
        raise ConfigError(f"custom pattern must be a mapping, got {raw!r}")
    try:
        return pattern(
            raw["name"],
            raw["regex"],
            raw.get("replacement", "<REDACTED>"),
            flags=re.IGNORECASE if raw.get("ignore_case") else 0,
            full_remove=bool(raw.get("full_remove", False)),
        )
    except KeyError as e:
        raise ConfigError(f"custom pattern is missing {e}") from e
    except (TypeError, PatternError) as e:
        raise ConfigError(str(e)) from e


def build_workflow(raw: dict[str, Any]) -> Workflow:
    if not isinstance(raw, dict):
        raise ConfigError(f"workflow must be a mapping, got {raw!r}")
    try:
        prefixes = raw["prefixes"]
        if isinstance(prefixes, str):
            prefixes = [prefixes]
        return Workflow(
            name=raw["name"],
            prefixes=tuple(str(p) for p in prefixes),
            description=raw.get("description", raw["name"]),
        )
    except (KeyError, TypeError) as e:
        raise ConfigError(f"invalid workflow {raw!r}: {e}") from e


def create_pipeline(config: dict[str, Any]) -> Pipeline:
    """Create a fully configured pipeline from a config dict.

    Every rule and workflow is built here, so misconfiguration fails
    before any history is processed.
    """
    cfg = load_config(config) if "dedup_time_gap" not in config else config

    try:
        patterns = build_patterns(build_pattern(p) for p in cfg["patterns"])
    except PatternError as e:
        raise ConfigError(str(e)) from e

    workflows = DEFAULT_WORKFLOWS + tuple(build_workflow(w) for w in cfg["workflows"])

    enhancer = None
    if cfg["ai_enabled"] and available():
        try:
            enhancer = Enhancer(model=cfg["ai_model"])
            logger.info("AI enhancement enabled: model=%s", cfg["ai_model"])
        except ImportError:
            logger.warning("ANTHROPIC_API_KEY is set but the anthropic package is missing; "
                           "install with: pip install 'runbook-gen[ai]'")

    return Pipeline(
        deduplicator=Deduplicator(timedelta(seconds=cfg["dedup_time_gap"])),
        sanitizer=Sanitizer(SanitizerConfig(
            patterns=patterns,
            allow_list=frozenset(cfg["allow_list"]),
            strict=cfg["strict"],
        )),
        analyzer=IntentAnalyzer(workflows, timedelta(seconds=cfg["group_time_gap"])),
        enhancer=enhancer,
    )
