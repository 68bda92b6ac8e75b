from __future__ import annotations

import re
from typing import Any


_REPLACEMENT = "[REDACTED]"


_PATTERNS: list[tuple[re.Pattern[str], str]] = [
    # Generic "key=value" / "key: value" patterns.
    (re.compile(r"(?i)\b(api[_-]?key|secret[_-]?key|token|secret|password)\b\s*[:=]\s*([^\s'\"\\]+)"), r"\1=" + _REPLACEMENT),
    # Authorization headers.
    (re.compile(r"(?i)\b(authorization)\s*:\s*(bearer|basic)\s+([^\s]+)"), r"\1: \2 " + _REPLACEMENT),
    # Stripe secret / restricted keys and webhook signing secrets.
    (re.compile(r"\b((?:sk|rk)_(?:test|live)_[A-Za-z0-9]{6,})\b"), _REPLACEMENT),
    (re.compile(r"\b(whsec_[A-Za-z0-9]{6,})\b"), _REPLACEMENT),
]

# Only these fixed prefixes survive masking; anything after them is secret.
_KNOWN_PREFIX = re.compile(r"(?:pk|sk|rk)_(?:test|live)_|whsec_|org_|acct_")

# JSON keys of a project record that are masked by `config show`.
_SECRET_KEYS = ("secretKey", "webhookSecret", "publishableKey")


def redact_text(text: str) -> str:
    """Redact common secret/token patterns from text for safe display.

    This is best-effort and intended for CLI display only (the stored config is unchanged).
    """

    out = text or ""
    for pat, repl in _PATTERNS:
        out = pat.sub(repl, out)
    return out


def mask_secret(value: str) -> str:
    """Keep the key prefix and last 4 chars: sk_test_abcdef1234 -> sk_test_...1234."""

    s = str(value or "")
    if not s:
        return s
    if len(s) <= 8:
        return "*" * len(s)
    m = _KNOWN_PREFIX.match(s[:-4])
    prefix = m.group(0) if m else ""
    return f"{prefix}...{s[-4:]}"


def redact_project(obj: dict[str, Any]) -> dict[str, Any]:
    out = dict(obj)
    for k in _SECRET_KEYS:
        if isinstance(out.get(k), str):
            out[k] = mask_secret(out[k])
    return out


def redact_config(obj: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of a config document dict with credential fields masked."""

    out = dict(obj)
    out["projects"] = [redact_project(p) for p in obj.get("projects") or []]
    return out
