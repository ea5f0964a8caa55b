from __future__ import annotations

from typing import Any, Dict

import httpx

from .exceptions import ThreadRelayError

API_KEY_PLACEHOLDER = "<redacted>"


def extract_error_message(response: httpx.Response) -> str:
    """Best-effort extraction of the provider's error message."""
    try:
        payload: Any = response.json()
    except ValueError:
        payload = None

    if isinstance(payload, dict):
        error = payload.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if isinstance(error, str) and error:
            return error
        if payload.get("message"):
            return str(payload["message"])

    text = response.text.strip()
    if text:
        return text[:500]
    return f"HTTP {response.status_code}"


def require_id(value: str, name: str) -> str:
    if not str(value).strip():
        raise ThreadRelayError(f"{name} must be a non-empty string")
    return str(value).strip()


def redact_headers(headers: Dict[str, str]) -> Dict[str, str]:
    return {
        key: (API_KEY_PLACEHOLDER if key.lower() == "authorization" else value)
        for key, value in headers.items()
    }
