"""CLI interface for runbook-gen.

Usage:
    # Build a runbook from zsh history commands 120 through 160
    runbook-gen generate --from 120 --to 160 --title "Deploy the API" -o deploy.md

    # Sanitize arbitrary commands (stdin: one per line, stdout: sanitized)
    echo "mysql -u root -p'secret123' mydb" | runbook-gen sanitize

    # List the redaction rules in evaluation order
    runbook-gen patterns

Progress goes to stderr so stdout can be piped.
"""

from __future__ import annotations
import argparse
import logging
import os
import sys
from datetime import datetime

from . import __version__
from .config import ConfigError, create_pipeline, load_config, load_from_yaml
from .history import DEFAULT_HISTORY, HistoryError, HistoryExtractor
from .markdown import MarkdownRenderer, RunbookData
from .patterns import PatternError

DEFAULT_CONFIG = os.environ.get("RUNBOOK_GEN_CONFIG", "")


def _load(args: argparse.Namespace) -> dict:
    cfg = load_from_yaml(args.config) if args.config else load_config({})
    if getattr(args, "title", None):
        cfg["title"] = args.title
    if getattr(args, "strict", False):
        cfg["strict"] = True
    if getattr(args, "no_ai", False):
        cfg["ai_enabled"] = False
    if getattr(args, "timestamps", False):
        cfg["include_timestamps"] = True
    return cfg


def cmd_generate(args: argparse.Namespace) -> None:
    """Extract history, process it and write a markdown runbook."""
    cfg = _load(args)
    pipeline = create_pipeline(cfg)

    entries = HistoryExtractor(args.history).extract(args.from_, args.to)
    sys.stderr.write(f"Extracted {len(entries)} commands from history\n")
    if pipeline.enhancer is not None:
        sys.stderr.write("AI features enabled (ANTHROPIC_API_KEY detected)\n")

    result = pipeline.run(entries)
    sys.stderr.write(f"After deduplication: {len(result.entries)} commands\n")
    if result.redactions:
        sys.stderr.write(f"Sanitized {len(result.redactions)} sensitive values\n")
    sys.stderr.write(f"Organized into {len(result.groups)} steps\n")

    output = MarkdownRenderer(include_timestamps=cfg["include_timestamps"]).render(RunbookData(
        title=cfg["title"],
        generated=datetime.now(),
        groups=result.groups,
        redacted_count=len(result.redactions),
        time_range=f"commands #{args.from_} to #{args.to}",
        overview=result.overview,
        prerequisites=result.prerequisites,
    ))

    if args.output:
        fd = os.open(args.output, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w") as f:
            f.write(output)
        sys.stderr.write(f"Runbook written to {args.output}\n")
    else:
        sys.stdout.write(output)


def cmd_sanitize(args: argparse.Namespace) -> None:
    """Sanitize commands on stdin, one per line."""
    cfg = _load(args)
    cfg["ai_enabled"] = False
    sanitizer = create_pipeline(cfg).sanitizer
    for line in sys.stdin:
        sys.stdout.write(sanitizer.sanitize_text(line.rstrip("\n")) + "\n")


def cmd_patterns(args: argparse.Namespace) -> None:
    """List redaction rules in evaluation order."""
    cfg = _load(args)
    cfg["ai_enabled"] = False
    sanitizer = create_pipeline(cfg).sanitizer
    for p in sanitizer.config.patterns:
        marker = "remove" if p.full_remove else "mask"
        sys.stdout.write(f"{p.name}\t{marker}\n")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="runbook-gen",
        description="Generate runbooks from zsh history",
    )
    parser.add_argument("--config", default=DEFAULT_CONFIG, help="YAML config file")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    sub = parser.add_subparsers(dest="command", required=True)

    gen = sub.add_parser("generate", help="Generate a markdown runbook")
    gen.add_argument("--from", "-f", dest="from_", type=int, required=True,
                     help="First command number")
    gen.add_argument("--to", "-t", type=int, required=True, help="Last command number")
    gen.add_argument("--history", default=DEFAULT_HISTORY, help="zsh history file")
    gen.add_argument("--output", "-o", default="", help="Output file (default: stdout)")
    gen.add_argument("--title", default=None, help="Runbook title")
    gen.add_argument("--strict", action="store_true", help="Keep originals on redactions")
    gen.add_argument("--timestamps", action="store_true", help="Include command times")
    gen.add_argument("--no-ai", action="store_true", help="Never call the AI service")

    sub.add_parser("sanitize", help="Sanitize commands (stdin)")
    sub.add_parser("patterns", help="List redaction rules")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    cmds = {
        "generate": cmd_generate,
        "sanitize": cmd_sanitize,
        "patterns": cmd_patterns,
    }
    try:
        cmds[args.command](args)
    except (ConfigError, PatternError, HistoryError, OSError) as e:
        sys.stderr.write(f"Error: {e}\n")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
