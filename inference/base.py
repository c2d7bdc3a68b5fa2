from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional


class LocalModelHost(ABC):
    """
    Abstract local model host (one server, two calling conventions).
    Orchestration code must depend ONLY on this interface.

    timeout_s is the transport budget for one call. The executor passes its
    attempt deadline here so that the client never gives up sooner.
    """

    @abstractmethod
    async def generate(
        self,
        model: str,
        prompt: str,
        options: Dict[str, Any],
        timeout_s: Optional[float] = None,
    ) -> Dict[str, Any]:
        """Single-prompt generation. Returns the raw response body."""
        raise NotImplementedError

    @abstractmethod
    async def chat(
        self,
        model: str,
        messages: List[Dict[str, str]],
        options: Dict[str, Any],
        timeout_s: Optional[float] = None,
    ) -> Dict[str, Any]:
        """Multi-turn chat. Returns the raw response body."""
        raise NotImplementedError

    @abstractmethod
    async def list_models(self) -> List[str]:
        """Identifiers of the installed models."""
        raise NotImplementedError


class RemoteCompletionBackend(ABC):
    """Abstract metered cloud chat-completion API."""

    @abstractmethod
    def has_credential(self) -> bool:
        """Whether a usable credential is configured. Never touches the network."""
        raise NotImplementedError

    @abstractmethod
    async def chat_completion(
        self,
        model: str,
        messages: List[Dict[str, str]],
        max_tokens: int,
        temperature: float,
        top_p: float,
        timeout_s: Optional[float] = None,
    ) -> Dict[str, Any]:
        """OpenAI-compatible chat completion. Returns the raw response body."""
        raise NotImplementedError
