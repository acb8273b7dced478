"""Redaction of secrets from URLs before they reach the logs."""

import re

# Sensitive parameters to redact from URLs
SENSITIVE_PARAMS = [
    "token",
    "password",
    "secret",
    "refresh_token",
    "access_token",
    "client_secret",
    "code",
    "authorization",
    "bearer",
]


def redact_sensitive_data(url: str) -> str:
    """Redact sensitive query parameters from URL."""
    redacted = url
    for param in SENSITIVE_PARAMS:
        pattern = rf"\b{param}=([^&\s\"]+)"
        redacted = re.sub(pattern, f"{param}=***REDACTED***", redacted)
    return redacted


def redact_headers(headers: dict[str, str]) -> dict[str, str]:
    """Return a copy of headers with the Authorization value masked."""
    return {key: ("***REDACTED***" if key.lower() == "authorization" else value) for key, value in headers.items()}
