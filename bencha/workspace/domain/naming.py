"""Run id and workspace directory naming."""

import re
import secrets
from datetime import datetime

_MAX_NAME_LENGTH = 100
_FALLBACK_NAME = "workspace"
_WHITESPACE = re.compile(r"\s+")
_DISALLOWED = re.compile(r"[^A-Za-z0-9._-]")
_LEADING_NON_ALNUM = re.compile(r"^[^A-Za-z0-9]+")


def sanitize_workspace_name(name: str) -> str:
    """Reduce name to a safe directory component of at most 100 chars.

    Whitespace becomes '-', anything outside [A-Za-z0-9._-] is dropped, and
    leading punctuation is stripped so the result can never be '.' or '..'.
    """
    cleaned = _WHITESPACE.sub("-", name.strip())
    cleaned = _DISALLOWED.sub("", cleaned)
    cleaned = _LEADING_NON_ALNUM.sub("", cleaned)
    cleaned = cleaned[:_MAX_NAME_LENGTH]
    return cleaned or _FALLBACK_NAME


def generate_run_id(name: str | None, now: datetime) -> str:
    """Unique run id: '<sanitized-name>-YYYYMMDD-HHMMSS-<8 hex>', or 'run-...' without a name."""
    prefix = sanitize_workspace_name(name) if name else "run"
    return f"{prefix}-{now.strftime('%Y%m%d-%H%M%S')}-{secrets.token_hex(4)}"
