"""runbook-gen: turn raw shell history into clean, grouped runbooks."""

from .types import Entry, Redaction, Pattern, Workflow, CommandGroup
from .patterns import DEFAULT_PATTERNS, PatternError, build_patterns, pattern
from .dedup import Deduplicator
from .sanitizer import Sanitizer, SanitizerConfig
from .intent import DEFAULT_WORKFLOWS, IntentAnalyzer
from .pipeline import Pipeline, PipelineResult
from .config import ConfigError, create_pipeline, load_config, load_from_yaml

__all__ = [
    "Entry", "Redaction", "Pattern", "Workflow", "CommandGroup",
    "DEFAULT_PATTERNS", "PatternError", "build_patterns", "pattern",
    "Deduplicator",
    "Sanitizer", "SanitizerConfig",
    "DEFAULT_WORKFLOWS", "IntentAnalyzer",
    "Pipeline", "PipelineResult",
    "ConfigError", "create_pipeline", "load_config", "load_from_yaml",
]
__version__ = "0.1.0"
