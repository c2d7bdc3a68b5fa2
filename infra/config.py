"""
Infrastructure configuration system.

Environment-based backend selection with sensible defaults.
Defaults to the local-first stack: Ollama on localhost, Groq only when a
key is present.
"""

import os
from typing import Literal, Optional, Tuple
from dataclasses import dataclass

from inference import (
    BackendRegistry,
    GroqCompletionBackend,
    LocalModelHost,
    OllamaModelHost,
    RemoteCompletionBackend,
    StubCompletionBackend,
    StubModelHost,
)
from inference.groq import DEFAULT_GROQ_ENDPOINT
from inference.registry import (
    DEFAULT_LOCAL_PRIMARY,
    DEFAULT_LOCAL_PRIORITY,
    DEFAULT_LOCAL_SECONDARY,
    DEFAULT_REMOTE_PRIMARY,
    DEFAULT_REMOTE_SECONDARY,
)
from orchestration import FallbackOrchestrator, LocalModelSelector


LLMBackendType = Literal["stub", "ollama"]


def _split_list(value: str) -> Tuple[str, ...]:
    return tuple(item.strip() for item in value.split(",") if item.strip())


@dataclass
class InfraConfig:
    """Infrastructure configuration from environment."""

    # Local host
    llm_backend: LLMBackendType
    ollama_host: str                     # empty disables the local stages
    ollama_request_timeout_s: float
    local_primary_model: str
    local_secondary_model: str
    local_model_priority: Tuple[str, ...]

    # Remote
    groq_api_key: Optional[str]
    groq_endpoint: str
    groq_primary_model: str
    groq_secondary_model: str

    # Policy
    default_timeout_ms: int
    min_content_chars: int

    @classmethod
    def from_env(cls) -> "InfraConfig":
        """
        Load configuration from environment variables.

        Defaults prioritize the free, local-first stack:
        - Local: Ollama at 127.0.0.1:11434
        - Remote: Groq, only when GROQ_API_KEY is set
        """
        return cls(
            llm_backend=os.getenv("LLM_BACKEND", "ollama"),  # type: ignore
            ollama_host=os.getenv("OLLAMA_HOST", "http://127.0.0.1:11434"),
            ollama_request_timeout_s=float(os.getenv("OLLAMA_REQUEST_TIMEOUT_S", "60")),
            local_primary_model=os.getenv("LOCAL_PRIMARY_MODEL", DEFAULT_LOCAL_PRIMARY),
            local_secondary_model=os.getenv("LOCAL_SECONDARY_MODEL", DEFAULT_LOCAL_SECONDARY),
            local_model_priority=_split_list(
                os.getenv("LOCAL_MODEL_PRIORITY", ",".join(DEFAULT_LOCAL_PRIORITY))
            ),
            groq_api_key=os.getenv("GROQ_API_KEY") or None,
            groq_endpoint=os.getenv("GROQ_ENDPOINT", DEFAULT_GROQ_ENDPOINT),
            groq_primary_model=os.getenv("GROQ_PRIMARY_MODEL", DEFAULT_REMOTE_PRIMARY),
            groq_secondary_model=os.getenv("GROQ_SECONDARY_MODEL", DEFAULT_REMOTE_SECONDARY),
            default_timeout_ms=int(os.getenv("DEFAULT_TIMEOUT_MS", "30000")),
            min_content_chars=int(os.getenv("MIN_CONTENT_CHARS", "2")),
        )

    def create_local_host(self) -> Optional[LocalModelHost]:
        """Create local host client, or None when no local host is configured."""
        if self.llm_backend == "stub":
            return StubModelHost(installed=list(self.local_model_priority[:1]))
        if not self.ollama_host:
            return None
        return OllamaModelHost(
            base_url=self.ollama_host,
            request_timeout_s=self.ollama_request_timeout_s,
        )

    def create_remote_backend(self) -> Optional[RemoteCompletionBackend]:
        """Create remote backend. Credential absence is checked per request, not here."""
        if self.llm_backend == "stub":
            return StubCompletionBackend(credential=False)
        return GroqCompletionBackend(
            api_key=self.groq_api_key or "",
            endpoint=self.groq_endpoint,
        )

    def create_registry(self) -> BackendRegistry:
        return BackendRegistry(
            local_primary=self.local_primary_model,
            local_secondary=self.local_secondary_model,
            local_priority=self.local_model_priority,
            remote_primary=self.groq_primary_model,
            remote_secondary=self.groq_secondary_model,
        )

    def create_orchestrator(self, tracer=None) -> FallbackOrchestrator:
        """Wire the orchestrator from this configuration."""
        local_host = self.create_local_host()
        registry = self.create_registry()
        selector = (
            LocalModelSelector(local_host, registry.local_priority)
            if local_host is not None
            else None
        )
        return FallbackOrchestrator(
            local_host=local_host,
            remote_backend=self.create_remote_backend(),
            registry=registry,
            selector=selector,
            default_timeout_ms=self.default_timeout_ms,
            default_min_content_chars=self.min_content_chars,
            tracer=tracer,
        )


def get_config() -> InfraConfig:
    """Get infrastructure configuration from the current environment."""
    return InfraConfig.from_env()
