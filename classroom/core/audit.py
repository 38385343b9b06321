"""Signed audit trail of student account lifecycle events.

One JSON object per line in ``AUDIT_LOG_FILE``. When ``AUDIT_LOG_SIGNING_KEY``
is set, each line carries an HMAC-SHA256 ``signature`` over its canonical
form (sorted keys, compact separators), which ``verify_audit_log`` recomputes.
Credentials are stripped from ``details`` before anything is written.
"""

from __future__ import annotations
import hashlib
import hmac
import json
import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterator, Literal

AUDIT_LOG_DIR = Path(os.environ.get("AUDIT_LOG_DIR", ".runtime/audit"))
AUDIT_LOG_FILE = AUDIT_LOG_DIR / "account-events.jsonl"

AccountEvent = Literal[
    "student_created",
    "student_deleted",
    "student_password_reset",
]

_REDACTED_KEYS = frozenset({"password", "token", "access_token", "client_secret"})

logger = logging.getLogger(__name__)


def _signing_key() -> bytes:
    # Read per call: settings may export a key loaded from /run/secrets after import
    return os.environ.get("AUDIT_LOG_SIGNING_KEY", "").strip().encode("utf-8")


def _signature(event: dict[str, Any]) -> str:
    key = _signing_key()
    if not key:
        return ""
    canonical = json.dumps(event, sort_keys=True, separators=(",", ":")).encode("utf-8")
    return hmac.new(key, canonical, hashlib.sha256).hexdigest()


def _redact(details: dict[str, Any] | None) -> dict[str, Any]:
    return {k: v for k, v in (details or {}).items() if k.lower() not in _REDACTED_KEYS}


def _build_event(
    event_type: AccountEvent,
    tenant: str,
    user_id: str,
    username: str | None,
    operator: str,
    details: dict[str, Any] | None,
    success: bool,
) -> dict[str, Any]:
    event = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "event_type": event_type,
        "tenant": tenant,
        "user_id": user_id,
        "username": username,
        "operator": operator,
        "success": success,
        "details": _redact(details),
    }
    signature = _signature(event)
    if signature:
        event["signature"] = signature
    return event


def _append(event: dict[str, Any]) -> None:
    AUDIT_LOG_DIR.mkdir(parents=True, exist_ok=True)
    AUDIT_LOG_DIR.chmod(0o700)
    with AUDIT_LOG_FILE.open("a", encoding="utf-8") as fh:
        fh.write(json.dumps(event, ensure_ascii=False) + "\n")
    AUDIT_LOG_FILE.chmod(0o600)


def log_account_event(
    event_type: AccountEvent,
    tenant: str,
    user_id: str,
    *,
    username: str | None = None,
    operator: str = "system",
    details: dict[str, Any] | None = None,
    success: bool = True,
) -> None:
    """Append one account event to the audit trail.

    Args:
        event_type: Lifecycle operation that happened
        tenant: Class the account belongs to
        user_id: Provider id of the affected account
        username: Username of the affected account
        operator: Caller id that performed the operation
        details: Extra context; credential keys are dropped
        success: Outcome of the operation

    Raises:
        OSError: If the audit directory or file cannot be written
    """
    _append(_build_event(event_type, tenant, user_id, username, operator, details, success))


def safe_log_account_event(event_type: AccountEvent, tenant: str, user_id: str, **kwargs: Any) -> bool:
    """Like ``log_account_event`` but reports failure instead of raising.

    Used after the provider call has already succeeded, where an unwritable
    audit directory must not turn the request into an error.
    """
    try:
        log_account_event(event_type, tenant, user_id, **kwargs)
    except Exception as exc:
        logger.warning("Audit write failed for %s on %s: %s", event_type, user_id, exc)
        return False
    return True


def _read_lines() -> Iterator[dict[str, Any] | None]:
    # One item per non-blank line; None marks a line that is not a JSON object
    if not AUDIT_LOG_FILE.exists():
        return
    with AUDIT_LOG_FILE.open("r", encoding="utf-8") as fh:
        for lineno, line in enumerate(fh, start=1):
            if not line.strip():
                continue
            try:
                event = json.loads(line)
            except json.JSONDecodeError:
                event = None
            if not isinstance(event, dict):
                logger.warning("Malformed audit line %d in %s", lineno, AUDIT_LOG_FILE)
                event = None
            yield event


def iter_audit_events() -> Iterator[dict[str, Any]]:
    """Yield every parseable event in the audit file, oldest first.

    Malformed lines are logged and skipped.
    """
    for event in _read_lines():
        if event is not None:
            yield event


def verify_audit_log() -> tuple[int, int]:
    """Count audit lines and how many carry a signature matching the current key.

    Malformed lines count toward the total but never as valid.

    Returns:
        ``(total_lines, valid_signatures)``
    """
    total = valid = 0
    for event in _read_lines():
        total += 1
        if event is None:
            continue
        stored = event.pop("signature", "")
        if stored and hmac.compare_digest(stored, _signature(event)):
            valid += 1
    return total, valid
