from __future__ import annotations


def normalize_captured_text(value: str | None) -> str:
    if value is None:
        return ""
    return value.strip()


def redact_secret(value: str, secret: str) -> str:
    if not secret:
        return value
    return value.replace(secret, "***")
