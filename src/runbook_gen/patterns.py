"""Secret-detection rule table.

Rules run in list order against the text left by the previous rule, so
narrow rules that keep flag or quote syntax intact (``--password="..."``)
must sit above the generic catch-alls that would otherwise swallow them.
Rules marked ``full_remove`` drop the whole command instead of masking it.
"""

from __future__ import annotations
import re
from typing import Iterable

from .types import Pattern

REDACTED = "<REDACTED>"


class PatternError(ValueError):
    """A rule could not be built (bad regex, bad template, duplicate name)."""


def pattern(
    name: str,
    matcher: str,
    replacement: str = REDACTED,
    *,
    flags: int = 0,
    full_remove: bool = False,
) -> Pattern:
    """Compile a rule, failing fast on an invalid matcher or template."""
    if not name:
        raise PatternError("pattern name must not be empty")
    try:
        regex = re.compile(matcher, flags)
    except re.error as e:
        raise PatternError(f"pattern {name!r}: invalid regex: {e}") from e
    try:
        # compiles the template too; bad group references surface here
        regex.sub(replacement, "")
    except (re.error, IndexError) as e:
        raise PatternError(f"pattern {name!r}: invalid replacement: {e}") from e
    return Pattern(name=name, regex=regex, replacement=replacement, full_remove=full_remove)


# Masked value keeps the flag, assignment and quoting around it.
_KEEP = r"\g<1><REDACTED>\g<3>"

_RULES: list[Pattern] = [
    # ── Password flags (long flags first) ─────────────────────────────
    pattern("password-flag-quoted-double", r'(--password[=\s]+)"([^"]+)"',
            r'\g<1>"<REDACTED>"'),
    pattern("password-flag-quoted-single", r"(--password[=\s]+)'([^']+)'",
            r"\g<1>'<REDACTED>'"),
    pattern("password-flag-unquoted", r"""(--password[=\s]+)([^'"\s]+)""",
            r"\g<1><REDACTED>"),
    pattern("passwd-flag", r"""(--passwd[=\s]+)(['"]?)([^'"\s]+)(['"]?)""",
            r"\g<1>\g<2><REDACTED>\g<4>"),
    # MySQL-style -p, never a long --p... flag
    pattern("mysql-password", r"""(\s-p)(['"]?)([^'"\s-][^'"\s]*)(['"]?)""",
            r"\g<1>\g<2><REDACTED>\g<4>"),

    # ── Token and key flags ───────────────────────────────────────────
    pattern("token-flag", r"""(--token[=\s]+['"]?)([^'"\s]+)(['"]?)""", _KEEP),
    pattern("api-key-flag", r"""(--api-key[=\s]+['"]?)([^'"\s]+)(['"]?)""", _KEEP),
    pattern("secret-flag", r"""(--secret[=\s]+['"]?)([^'"\s]+)(['"]?)""", _KEEP),

    # ── Environment exports ───────────────────────────────────────────
    pattern("api-key-export",
            r"""(export\s+[A-Z_]*API_?KEY\s*=\s*['"]?)([^'"\s]+)(['"]?)""", _KEEP),
    pattern("secret-export",
            r"""(export\s+[A-Z_]*SECRET[A-Z_]*\s*=\s*['"]?)([^'"\s]+)(['"]?)""", _KEEP),
    pattern("password-export",
            r"""(export\s+[A-Z_]*PASS(?:WORD)?[A-Z_]*\s*=\s*['"]?)([^'"\s]+)(['"]?)""", _KEEP),
    pattern("token-export",
            r"""(export\s+[A-Z_]*TOKEN\s*=\s*['"]?)([^'"\s]+)(['"]?)""", _KEEP),
    pattern("credentials-export",
            r"""(export\s+[A-Z_]*CRED(?:ENTIAL)?S?[A-Z_]*\s*=\s*['"]?)([^'"\s]+)(['"]?)""", _KEEP),

    # ── AWS ───────────────────────────────────────────────────────────
    pattern("aws-access-key-id",
            r"""(AWS_ACCESS_KEY_ID\s*=\s*['"]?)([A-Z0-9]{20})(['"]?)""", _KEEP),
    pattern("aws-secret-key",
            r"""(AWS_SECRET_ACCESS_KEY\s*=\s*['"]?)([A-Za-z0-9/+=]{40})(['"]?)""", _KEEP),
    pattern("aws-session-token",
            r"""(AWS_SESSION_TOKEN\s*=\s*['"]?)([^'"\s]+)(['"]?)""", _KEEP),

    # ── Connection strings ────────────────────────────────────────────
    pattern("connection-string-password", r"(://[^:]+:)([^@]+)(@)", _KEEP),

    # ── Authorization headers ─────────────────────────────────────────
    pattern("bearer-token", r"""(Authorization:\s*Bearer\s+)([^\s'"]+)""",
            r"\g<1><REDACTED>"),
    pattern("basic-auth", r"""(Authorization:\s*Basic\s+)([^\s'"]+)""",
            r"\g<1><REDACTED>"),
    pattern("auth-header-h-flag",
            r"""(-H\s+['"]?Authorization:\s*(?:Bearer|Basic)\s+)([^'"\s]+)(['"]?)""", _KEEP),

    # ── Private keys: masking cannot contain a key block ──────────────
    pattern("private-key",
            r"-----BEGIN\s+(?:RSA\s+|EC\s+|OPENSSH\s+|ENCRYPTED\s+|DSA\s+)?PRIVATE\s+KEY-----",
            "", full_remove=True),
    pattern("pgp-private-key", r"-----BEGIN\s+PGP\s+PRIVATE\s+KEY\s+BLOCK-----",
            "", full_remove=True),

    # ── GitHub ────────────────────────────────────────────────────────
    pattern("github-token", r"(gh[ps]_[A-Za-z0-9]{36,})"),
    pattern("github-pat", r"(github_pat_[A-Za-z0-9_]{22,})"),

    # ── JWT (header.payload.signature) ────────────────────────────────
    pattern("jwt-token", r"\beyJ[A-Za-z0-9_-]+\.eyJ[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+\b",
            "<REDACTED_JWT>"),

    # ── Chat tokens and webhooks ──────────────────────────────────────
    pattern("slack-bot-token", r"xoxb-[0-9]+-[0-9]+-[A-Za-z0-9]+"),
    pattern("slack-user-token", r"xoxp-[0-9]+-[0-9]+-[0-9]+-[A-Za-z0-9]+"),
    pattern("slack-app-token", r"xapp-[0-9]+-[A-Za-z0-9]+-[0-9]+-[A-Za-z0-9]+"),
    pattern("slack-refresh-token", r"xoxr-[0-9]+-[A-Za-z0-9]+"),
    pattern("slack-webhook",
            r"https://hooks\.slack\.com/services/T[A-Z0-9]+/B[A-Z0-9]+/[A-Za-z0-9]+",
            "<REDACTED_SLACK_WEBHOOK>"),
    pattern("discord-webhook",
            r"https://discord(?:app)?\.com/api/webhooks/[0-9]+/[A-Za-z0-9_-]+",
            "<REDACTED_DISCORD_WEBHOOK>"),
    pattern("generic-webhook-secret", r"(https?://[^/\s]+/webhooks?/)[A-Za-z0-9_-]{20,}",
            r"\g<1><REDACTED>"),

    # ── Cloud providers and SaaS keys ─────────────────────────────────
    pattern("gcp-api-key", r"AIza[A-Za-z0-9_-]{35}"),
    pattern("google-oauth", r"ya29\.[A-Za-z0-9_-]+"),
    pattern("azure-storage-key", r"(AccountKey\s*=\s*)([A-Za-z0-9+/=]{88})",
            r"\g<1><REDACTED>", flags=re.IGNORECASE),
    pattern("azure-connection-string",
            r"(DefaultEndpointsProtocol=https?;AccountName=[^;]+;AccountKey=)([A-Za-z0-9+/=]+)",
            r"\g<1><REDACTED>", flags=re.IGNORECASE),
    pattern("azure-sas-token", r"(\?|&)(sig|sv|ss|srt|sp|se|st|spr|sr)=[^&\s]+",
            r"\g<1>\g<2>=<REDACTED>"),
    pattern("digitalocean-token", r"dop_v1_[a-f0-9]{64}"),
    pattern("digitalocean-oauth", r"doo_v1_[a-f0-9]{64}"),
    pattern("stripe-secret-key", r"sk_live_[A-Za-z0-9]{24,}"),
    pattern("stripe-test-key", r"sk_test_[A-Za-z0-9]{24,}"),
    pattern("stripe-restricted-key", r"rk_live_[A-Za-z0-9]{24,}"),
    pattern("twilio-account-sid", r"AC[a-f0-9]{32}"),
    pattern("twilio-api-key", r"SK[a-f0-9]{32}"),
    pattern("sendgrid-api-key", r"SG\.[A-Za-z0-9_-]{22}\.[A-Za-z0-9_-]{43}"),
    pattern("mailgun-api-key", r"key-[a-f0-9]{32}"),
    pattern("npm-token", r"npm_[A-Za-z0-9]{36,}"),
    pattern("pypi-token", r"pypi-[A-Za-z0-9_-]{50,}"),
    pattern("heroku-api-key", r"""(HEROKU_API_KEY\s*=\s*['"]?)([a-f0-9-]{36})(['"]?)""",
            _KEEP, flags=re.IGNORECASE),
    pattern("shopify-access-token", r"shpat_[a-f0-9]{32}"),
    pattern("shopify-shared-secret", r"shpss_[a-f0-9]{32}"),
    pattern("square-access-token", r"sq0atp-[A-Za-z0-9_-]{22}"),
    pattern("square-oauth-secret", r"sq0csp-[A-Za-z0-9_-]{43}"),
    pattern("datadog-api-key", r"""(DD_API_KEY\s*=\s*['"]?)([a-f0-9]{32})(['"]?)""",
            _KEEP, flags=re.IGNORECASE),
    pattern("newrelic-api-key", r"NRAK-[A-Z0-9]{27}"),
    pattern("vault-token", r"""(VAULT_TOKEN\s*=\s*['"]?)([shrs]\.[A-Za-z0-9_-]+)(['"]?)""",
            _KEEP, flags=re.IGNORECASE),
    pattern("mongodb-connection-string", r"mongodb(?:\+srv)?://[^:\s]+:([^@\s]+)@",
            "mongodb://[user]:<REDACTED>@"),

    # ── Generic catch-alls (keep last) ────────────────────────────────
    # \w{0,20} is bounded to keep backtracking cheap
    pattern("generic-secret-assignment",
            r"""((?:secret|password|passwd|pwd|token|api_key|apikey|auth)[_-]?\w{0,20}\s{0,3}[=:]\s{0,3}['"]?)([^'"\s]{8,})(['"]?)""",
            _KEEP, flags=re.IGNORECASE),
    pattern("inline-secret-var",
            r"""(\b(?:PASSWORD|SECRET|TOKEN|API_KEY)\s*=\s*['"]?)([^'"\s]+)(['"]?\s)""", _KEEP),
    pattern("curl-password-data",
            r"""(-d\s+['"]?[^'"]*(?:password|passwd|secret|token)['"]*\s*[=:]\s*['"]?)([^'"&\s]+)(['"]?)""",
            _KEEP),
    pattern("docker-secret-env",
            r"(-e\s+[A-Z_]*(?:PASSWORD|SECRET|TOKEN|API_KEY)[A-Z_]*=)(\S+)",
            r"\g<1><REDACTED>"),
    pattern("kubectl-secret",
            r"(--from-literal=[A-Za-z_-]*(?:password|secret|token|key)[A-Za-z_-]*=)(\S+)",
            r"\g<1><REDACTED>"),
]


def build_patterns(
    extra: Iterable[Pattern] = (),
    *,
    include_defaults: bool = True,
) -> tuple[Pattern, ...]:
    """Return a frozen rule table: the defaults (optionally) then ``extra``."""
    table: list[Pattern] = list(_RULES) if include_defaults else []
    table.extend(extra)
    seen: set[str] = set()
    for p in table:
        if p.name in seen:
            raise PatternError(f"duplicate pattern name {p.name!r}")
        seen.add(p.name)
    return tuple(table)


DEFAULT_PATTERNS: tuple[Pattern, ...] = build_patterns()
