from __future__ import annotations
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union
import requests

from hub.validators import DEFAULT_MAX_TOKENS, DEFAULT_MODEL

log = logging.getLogger(__name__)

OPENAI_BASE_URL = os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1").strip().rstrip("/")
OPENAI_ENDPOINT = f"{OPENAI_BASE_URL}/chat/completions"
TEMPERATURE = 0.7

# No timeout unless configured; a hung upstream only holds its own request
_timeout_raw = os.getenv("LLM_TIMEOUT_SECS", "").strip()
try:
    LLM_TIMEOUT_SECS: Optional[float] = float(_timeout_raw) if _timeout_raw else None
except ValueError:
    LLM_TIMEOUT_SECS = None

DEFAULT_FALLBACK = "Unable to reach the AI right now. Please try again in a moment."


class UpstreamError(Exception):
    """Non-success answer from the completion API. `detail` is for logs only."""

    def __init__(self, status_code: int, detail: str = "") -> None:
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"upstream HTTP {status_code}")


class MissingCredentialsError(RuntimeError):
    pass


@dataclass
class Completion:
    content: str
    model: Optional[str] = None
    usage: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"content": self.content, "model": self.model, "usage": self.usage}


@dataclass
class Fallback:
    content: str
    reason: str = ""
    meta: Dict[str, Any] = field(default_factory=dict)


def api_key() -> str:
    # Read per call so the key can be configured without reloading the module
    return os.getenv("OPENAI_API_KEY", "").strip()


def status() -> Dict[str, Any]:
    return {
        "provider": "openai",
        "model": DEFAULT_MODEL,
        "has_token": bool(api_key()),
    }


def chat_completion(
    messages: List[Dict[str, Any]],
    model: str = DEFAULT_MODEL,
    max_tokens: int = DEFAULT_MAX_TOKENS,
) -> Completion:
    """
    Forward one chat request upstream using the server-held key.

    Raises MissingCredentialsError when no key is configured, UpstreamError on a
    non-2xx or undecodable response, and lets requests.RequestException through
    for transport failures.
    """
    key = api_key()
    if not key:
        raise MissingCredentialsError("OPENAI_API_KEY is not set")

    headers = {
        "Authorization": f"Bearer {key}",
        "Content-Type": "application/json",
    }
    body = {
        "model": model,
        "messages": messages,
        "max_tokens": max_tokens,
        "temperature": TEMPERATURE,
    }
    resp = requests.post(OPENAI_ENDPOINT, headers=headers, json=body, timeout=LLM_TIMEOUT_SECS)

    if not 200 <= resp.status_code < 300:
        try:
            msg = (resp.text or "")[:400]
        except Exception:
            msg = ""
        log.error("OpenAI HTTP %s: %s", resp.status_code, msg)
        raise UpstreamError(resp.status_code, msg)

    try:
        data = resp.json()
    except ValueError:
        log.error("OpenAI: non-JSON HTTP body (status=%s)", resp.status_code)
        raise UpstreamError(502, "non-JSON body")
    if not isinstance(data, dict):
        raise UpstreamError(502, "unexpected body shape")

    text = None
    choices = data.get("choices")
    if isinstance(choices, list) and choices and isinstance(choices[0], dict):
        message = choices[0].get("message") or {}
        if isinstance(message, dict):
            text = message.get("content")
    return Completion(
        content=text if isinstance(text, str) else "",
        model=data.get("model"),
        usage=data.get("usage"),
    )


def ask(
    messages: List[Dict[str, Any]],
    fallback: str = DEFAULT_FALLBACK,
    model: str = DEFAULT_MODEL,
    max_tokens: int = DEFAULT_MAX_TOKENS,
) -> Union[Completion, Fallback]:
    """Like chat_completion, but any failure becomes a Fallback carrying the canned text."""
    try:
        return chat_completion(messages, model=model, max_tokens=max_tokens)
    except MissingCredentialsError as exc:
        return Fallback(content=fallback, reason=str(exc))
    except UpstreamError as exc:
        return Fallback(content=fallback, reason=str(exc), meta={"status": exc.status_code})
    except requests.RequestException as exc:
        log.warning("OpenAI request error: %r", exc)
        return Fallback(content=fallback, reason=exc.__class__.__name__)
