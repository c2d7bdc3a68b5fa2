"""
Model boundary layer for LLM inference.

This package provides the backend clients and shared types the fallback
orchestrator is built on. Orchestration code depends only on the
LocalModelHost / RemoteCompletionBackend interfaces.

Supported backends:
- OllamaModelHost: Local Ollama host (generate + chat conventions)
- GroqCompletionBackend: Remote OpenAI-compatible chat completions
- StubModelHost / StubCompletionBackend: Deterministic fakes (CI/tests)

Example usage:
    from inference import StubModelHost, Message

    host = StubModelHost()
    body = await host.chat("qwen2.5:3b", [{"role": "user", "content": "hi"}], {})
"""

from .types import (
    AttemptOutcome,
    BackendDescriptor,
    CallingConvention,
    ChainStage,
    ChatPayload,
    CompletionPayload,
    FallbackChain,
    GeneratePayload,
    GenerationOptions,
    GenerationResult,
    Message,
    NormalizedResult,
    OrchestratorState,
    Payload,
)
from .errors import (
    AllBackendsFailedError,
    BackendResponseError,
    BackendTimeoutError,
    BackendUnreachableError,
    FailureKind,
    InferenceError,
    InvalidContentError,
    NoCredentialError,
    OrchestratorError,
)
from .base import LocalModelHost, RemoteCompletionBackend
from .registry import BackendRegistry
from .stub import StubCompletionBackend, StubModelHost, StubReply
from .ollama import OllamaModelHost
from .groq import GroqCompletionBackend

__all__ = [
    "AttemptOutcome",
    "BackendDescriptor",
    "CallingConvention",
    "ChainStage",
    "ChatPayload",
    "CompletionPayload",
    "FallbackChain",
    "GeneratePayload",
    "GenerationOptions",
    "GenerationResult",
    "Message",
    "NormalizedResult",
    "OrchestratorState",
    "Payload",
    "AllBackendsFailedError",
    "BackendResponseError",
    "BackendTimeoutError",
    "BackendUnreachableError",
    "FailureKind",
    "InferenceError",
    "InvalidContentError",
    "NoCredentialError",
    "OrchestratorError",
    "LocalModelHost",
    "RemoteCompletionBackend",
    "BackendRegistry",
    "StubCompletionBackend",
    "StubModelHost",
    "StubReply",
    "OllamaModelHost",
    "GroqCompletionBackend",
]
