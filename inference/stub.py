import asyncio
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from .base import LocalModelHost, RemoteCompletionBackend
from .errors import NoCredentialError

STUB_TEXT = (
    "```\nconst answer = 42;\n```\n"
    "This is a stubbed response from the deterministic stub backend."
)


@dataclass
class StubReply:
    """Scripted behavior for one model id."""

    body: Any = None
    delay_s: float = 0.0
    error: Optional[Exception] = None


async def _play(reply: StubReply) -> Any:
    if reply.delay_s:
        await asyncio.sleep(reply.delay_s)
    if reply.error is not None:
        raise reply.error
    return reply.body


class StubModelHost(LocalModelHost):
    """
    Deterministic fake local host for testing and CI.

    Unscripted models answer with STUB_TEXT in the shape of the convention
    that was called. Every call is recorded in `calls` as (method, model); the transport
    budget each generation call received is kept in `timeouts`.
    """

    def __init__(
        self,
        replies: Optional[Dict[str, StubReply]] = None,
        installed: Optional[List[str]] = None,
        list_error: Optional[Exception] = None,
        text: str = STUB_TEXT,
    ):
        self.replies = dict(replies or {})
        self.installed = list(installed or [])
        self.list_error = list_error
        self.text = text
        self.calls: List[Tuple[str, str]] = []
        self.timeouts: List[Optional[float]] = []

    async def generate(
        self,
        model: str,
        prompt: str,
        options: Dict[str, Any],
        timeout_s: Optional[float] = None,
    ) -> Dict[str, Any]:
        self.calls.append(("generate", model))
        self.timeouts.append(timeout_s)
        if model in self.replies:
            return await _play(self.replies[model])
        return {"model": model, "response": self.text, "done": True}

    async def chat(
        self,
        model: str,
        messages: List[Dict[str, str]],
        options: Dict[str, Any],
        timeout_s: Optional[float] = None,
    ) -> Dict[str, Any]:
        self.calls.append(("chat", model))
        self.timeouts.append(timeout_s)
        if model in self.replies:
            return await _play(self.replies[model])
        return {
            "model": model,
            "message": {"role": "assistant", "content": self.text},
            "done": True,
        }

    async def list_models(self) -> List[str]:
        self.calls.append(("list_models", ""))
        if self.list_error is not None:
            raise self.list_error
        return list(self.installed)


class StubCompletionBackend(RemoteCompletionBackend):
    """Deterministic fake remote API. Calls are recorded as model ids, budgets in `timeouts`."""

    def __init__(
        self,
        credential: bool = True,
        replies: Optional[Dict[str, StubReply]] = None,
        text: str = STUB_TEXT,
    ):
        self.credential = credential
        self.replies = dict(replies or {})
        self.text = text
        self.calls: List[str] = []
        self.timeouts: List[Optional[float]] = []

    def has_credential(self) -> bool:
        return self.credential

    async def chat_completion(
        self,
        model: str,
        messages: List[Dict[str, str]],
        max_tokens: int,
        temperature: float,
        top_p: float,
        timeout_s: Optional[float] = None,
    ) -> Dict[str, Any]:
        if not self.credential:
            raise NoCredentialError("stub remote has no credential")
        self.calls.append(model)
        self.timeouts.append(timeout_s)
        if model in self.replies:
            return await _play(self.replies[model])
        return {
            "model": model,
            "choices": [{"index": 0, "message": {"role": "assistant", "content": self.text}}],
        }
