"""
Groq chat-completion client (OpenAI-compatible).

Credential presence is answered by has_credential() before any request is
made, so the orchestrator can skip the remote chain without burning a
deadline on a call that is guaranteed to fail.

Invariants:
- The API key is never logged or placed in the request body
- Calling without a credential raises NoCredentialError, no network I/O
- The read budget of a call is the attempt deadline it is given
"""

import logging
import os
from typing import Any, Dict, List, Optional

import httpx

from .base import RemoteCompletionBackend
from .errors import (
    BackendResponseError,
    BackendTimeoutError,
    BackendUnreachableError,
    NoCredentialError,
)

logger = logging.getLogger(__name__)

DEFAULT_GROQ_ENDPOINT = "https://api.groq.com/openai/v1/chat/completions"

# Placeholder values copied from .env.example do not count as credentials
_PLACEHOLDER_PREFIX = "your_"


class GroqCompletionBackend(RemoteCompletionBackend):
    """Remote fallback over the Groq OpenAI-compatible endpoint."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        endpoint: str = DEFAULT_GROQ_ENDPOINT,
        request_timeout_s: float = 30.0,
        connect_timeout_s: float = 5.0,
    ):
        self._api_key = api_key if api_key is not None else os.getenv("GROQ_API_KEY", "")
        self.endpoint = endpoint
        self.request_timeout_s = request_timeout_s
        self.connect_timeout_s = connect_timeout_s

    def has_credential(self) -> bool:
        key = (self._api_key or "").strip()
        return bool(key) and not key.startswith(_PLACEHOLDER_PREFIX)

    def _build_headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }

    async def chat_completion(
        self,
        model: str,
        messages: List[Dict[str, str]],
        max_tokens: int,
        temperature: float,
        top_p: float,
        timeout_s: Optional[float] = None,
    ) -> Dict[str, Any]:
        if not self.has_credential():
            raise NoCredentialError("GROQ_API_KEY not configured")

        payload = {
            "model": model,
            "messages": [{"role": m["role"], "content": m["content"]} for m in messages],
            "max_tokens": max_tokens,
            "temperature": temperature,
            "top_p": top_p,
        }

        budget = self.request_timeout_s if timeout_s is None else timeout_s
        timeout = httpx.Timeout(budget, connect=min(self.connect_timeout_s, budget))

        try:
            async with httpx.AsyncClient(timeout=timeout) as client:
                response = await client.post(
                    self.endpoint, json=payload, headers=self._build_headers()
                )
                response.raise_for_status()
                return response.json()

        except httpx.TimeoutException as e:
            raise BackendTimeoutError(f"transport timeout: {type(e).__name__}") from e

        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.warning(
                f"Groq API returned {status}",
                extra={"status_code": status, "error_body": e.response.text[:500]},
            )
            raise BackendResponseError(f"Groq API error: HTTP {status}") from e

        except httpx.TransportError as e:
            raise BackendUnreachableError(f"cannot reach Groq API: {type(e).__name__}") from e

        except ValueError as e:
            raise BackendResponseError("undecodable JSON from Groq API") from e
