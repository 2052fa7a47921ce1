"""Masking helpers for values that end up in log lines."""

from typing import Any, Dict, Iterable

SENSITIVE_KEYS = frozenset({"email", "phone", "tax_id", "bank_account", "provider_tx_id", "client_secret"})


def mask_email(email: str) -> str:
    local, _, domain = email.partition("@")
    return f"{local[:2]}***@{domain}" if local else f"***@{domain}"


def mask_value(value: Any) -> Any:
    """Mask a string for logging: emails keep their domain, long ids their ends."""
    if not isinstance(value, str):
        return value
    if "@" in value:
        return mask_email(value)
    if len(value) > 12:
        return f"{value[:4]}...{value[-4:]}"
    return "***"


def sanitize_payload(payload: Dict, allowed_keys: Iterable[str]) -> Dict:
    """Copy of ``payload`` restricted to ``allowed_keys``; sensitive keys are masked."""
    return {
        key: mask_value(payload[key]) if key in SENSITIVE_KEYS else payload[key]
        for key in allowed_keys
        if key in payload
    }
