"""Format checks for user input, applied before anything reaches the store or API."""

from __future__ import annotations

from urllib.parse import urlparse

from .errors import ValidationError
from .project_store import ENVIRONMENTS


def validate_project_name(value: str) -> str:
    s = str(value or "").strip()
    if not s:
        raise ValidationError("Project name is required", field="name")
    return s


def validate_environment(value: str) -> str:
    s = str(value or "").strip().lower()
    if s not in ENVIRONMENTS:
        raise ValidationError(f"Environment must be one of: {', '.join(ENVIRONMENTS)}", field="environment")
    return s


def _require_prefix(value: str, *, prefix: str, field: str, label: str) -> str:
    s = str(value or "").strip()
    if not s:
        raise ValidationError(f"{label} is required", field=field)
    if not s.startswith(prefix):
        raise ValidationError(f"Invalid {label.lower()} format (should start with {prefix})", field=field)
    return s


def validate_publishable_key(value: str) -> str:
    return _require_prefix(value, prefix="pk_", field="publishable_key", label="Publishable key")


def validate_secret_key(value: str) -> str:
    return _require_prefix(value, prefix="sk_", field="secret_key", label="Secret key")


def validate_webhook_secret(value: str | None) -> str | None:
    """Optional; returns None when empty."""

    s = str(value or "").strip()
    if not s:
        return None
    return _require_prefix(s, prefix="whsec_", field="webhook_secret", label="Webhook secret")


def validate_org_id(value: str | None) -> str | None:
    """Optional; returns None when empty."""

    s = str(value or "").strip()
    if not s:
        return None
    return _require_prefix(s, prefix="org_", field="org_id", label="Org ID")


def validate_currency(value: str) -> str:
    s = str(value or "").strip()
    if not s:
        raise ValidationError("Currency is required", field="currency")
    if len(s) != 3 or not s.isalpha():
        raise ValidationError("Currency must be a 3-letter ISO code (e.g., usd, eur)", field="currency")
    return s.lower()


def validate_url(value: str, *, field: str = "url") -> str:
    s = str(value or "").strip()
    if not s:
        raise ValidationError("URL is required", field=field)
    p = urlparse(s)
    if p.scheme not in ("http", "https") or not p.netloc:
        raise ValidationError(f"Must be a valid URL: {s!r}", field=field)
    return s


def parse_metadata(pairs: list[str] | None) -> dict[str, str]:
    """Parse repeated `KEY=VALUE` CLI arguments into a metadata dict."""

    out: dict[str, str] = {}
    for raw in pairs or []:
        key, sep, value = str(raw).partition("=")
        key = key.strip()
        if not sep or not key:
            raise ValidationError(f"Invalid metadata entry {raw!r} (expected KEY=VALUE)", field="metadata")
        out[key] = value
    return out
