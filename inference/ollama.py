"""
Ollama host client.

One local server reachable two ways:
  POST /api/generate  single prompt  -> {response, done, ...}
  POST /api/chat      message list   -> {message: {role, content}, ...}
  GET  /api/tags      installed models

A fresh AsyncClient is opened per call so that cancelling a call (deadline
expiry in the executor) closes its connection with it. Generation calls are
given the attempt deadline as their read budget; only connecting has its
own, shorter limit.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from .base import LocalModelHost
from .errors import BackendResponseError, BackendTimeoutError, BackendUnreachableError

logger = logging.getLogger(__name__)


class OllamaModelHost(LocalModelHost):
    """
    Ollama backend for local model inference.

    Errors are translated into the inference taxonomy; the executor decides
    what a failure means for the request.
    """

    def __init__(
        self,
        base_url: str = "http://127.0.0.1:11434",
        request_timeout_s: float = 60.0,
        connect_timeout_s: float = 5.0,
    ):
        """
        Initialize Ollama host client.

        Args:
            base_url:          Base URL of the Ollama service
            request_timeout_s: Budget for calls made without a deadline
                               (model listing)
            connect_timeout_s: Limit for opening the connection
        """
        self.base_url = base_url.rstrip("/")
        self.request_timeout_s = request_timeout_s
        self.connect_timeout_s = connect_timeout_s

    async def generate(
        self,
        model: str,
        prompt: str,
        options: Dict[str, Any],
        timeout_s: Optional[float] = None,
    ) -> Dict[str, Any]:
        payload = {
            "model": model,
            "prompt": prompt,
            "stream": False,
            "options": options,
        }
        return await self._request("POST", "/api/generate", timeout_s, json=payload)

    async def chat(
        self,
        model: str,
        messages: List[Dict[str, str]],
        options: Dict[str, Any],
        timeout_s: Optional[float] = None,
    ) -> Dict[str, Any]:
        payload = {
            "model": model,
            "messages": messages,
            "stream": False,
            "options": options,
        }
        return await self._request("POST", "/api/chat", timeout_s, json=payload)

    async def list_models(self) -> List[str]:
        data = await self._request("GET", "/api/tags", None)
        models = data.get("models") if isinstance(data, dict) else None
        names = []
        for entry in models or []:
            if isinstance(entry, dict):
                name = entry.get("name") or entry.get("model")
                if name:
                    names.append(name)
            elif isinstance(entry, str):
                names.append(entry)
        return names

    def _timeout(self, timeout_s: Optional[float]) -> httpx.Timeout:
        budget = self.request_timeout_s if timeout_s is None else timeout_s
        return httpx.Timeout(budget, connect=min(self.connect_timeout_s, budget))

    async def _request(
        self, method: str, path: str, timeout_s: Optional[float], **kwargs: Any
    ) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        try:
            async with httpx.AsyncClient(timeout=self._timeout(timeout_s)) as client:
                response = await client.request(method, url, **kwargs)
                response.raise_for_status()
                return response.json()

        except httpx.TimeoutException as e:
            raise BackendTimeoutError(f"transport timeout: {type(e).__name__}") from e

        except httpx.HTTPStatusError as e:
            body = e.response.text[:200] if e.response is not None else ""
            raise BackendResponseError(
                f"HTTP {e.response.status_code} from {path}: {body}"
            ) from e

        except httpx.TransportError as e:
            raise BackendUnreachableError(f"cannot reach local host: {type(e).__name__}") from e

        except ValueError as e:
            raise BackendResponseError(f"undecodable JSON from {path}") from e
