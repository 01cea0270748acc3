from __future__ import annotations
import os
from typing import Any, Dict, List

DEFAULT_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o-mini").strip() or "gpt-4o-mini"
DEFAULT_MAX_TOKENS = 500
MAX_TOKENS_CEILING = 1000


def collect_errors(payload: Any) -> List[Dict[str, str]]:
    """
    Return a list of {"path": "...", "message": "..."} error dicts for a chat proxy body.
    The first message is what the caller sees, so keep them short.
    """
    errors: List[Dict[str, str]] = []

    if not isinstance(payload, dict):
        errors.append({"path": "(root)", "message": "request body must be a JSON object"})
        return errors

    messages = payload.get("messages")
    if not isinstance(messages, list):
        errors.append({"path": "messages", "message": "messages array required"})

    mt = payload.get("max_tokens")
    # Only numbers are held to the ceiling; other values go upstream untouched
    if isinstance(mt, (int, float)) and not isinstance(mt, bool) and mt > MAX_TOKENS_CEILING:
        errors.append({"path": "max_tokens", "message": f"max_tokens limited to {MAX_TOKENS_CEILING}"})

    return errors


def validate_chat_request(payload: Any) -> Dict[str, Any]:
    """
    Raise ValueError with the first problem; otherwise return the request with defaults filled in.
    """
    errs = collect_errors(payload)
    if errs:
        raise ValueError(errs[0]["message"])
    model = payload.get("model")
    if model is None:
        model = DEFAULT_MODEL
    max_tokens = payload.get("max_tokens")
    if max_tokens is None:
        max_tokens = DEFAULT_MAX_TOKENS
    return {
        "model": model,
        "messages": payload["messages"],
        "max_tokens": max_tokens,
    }
