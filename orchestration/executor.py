"""
Attempt executor.

One attempt = exactly one underlying backend call, raced against the
attempt deadline. No retries here; retrying across different backends is
the orchestrator's job.

On deadline expiry asyncio.wait_for cancels the in-flight call, which closes
its HTTP connection, so an abandoned attempt stops consuming resources as
soon as the orchestrator moves on. The same deadline is handed to the client
as its transport budget, so the deadline here is the one that governs.

The raw body is decoded into the payload tagged union at this boundary.
"""

import asyncio
import logging
import time
from typing import Any, Dict, List, Optional, Sequence

from inference.base import LocalModelHost, RemoteCompletionBackend
from inference.errors import (
    BackendUnreachableError,
    FailureKind,
    InferenceError,
    NoCredentialError,
)
from inference.types import (
    AttemptOutcome,
    BackendDescriptor,
    CallingConvention,
    ChatPayload,
    CompletionPayload,
    GeneratePayload,
    GenerationOptions,
    Message,
    OrchestratorState,
    Payload,
)

logger = logging.getLogger(__name__)

# Backend defaults applied when an option is absent
LOCAL_NUM_PREDICT = 200
LOCAL_TEMPERATURE = 0.2
LOCAL_TOP_P = 0.95
LOCAL_TOP_K = 40
REMOTE_MAX_TOKENS = 512
REMOTE_TEMPERATURE = 0.2
REMOTE_TOP_P = 0.95


def build_prompt(messages: Sequence[Message]) -> str:
    """Single-prompt serialization: every message content, blank-line separated."""
    return "\n\n".join(m.content for m in messages)


def local_options(options: GenerationOptions) -> Dict[str, Any]:
    return {
        "num_predict": options.num_predict or LOCAL_NUM_PREDICT,
        "temperature": LOCAL_TEMPERATURE if options.temperature is None else options.temperature,
        "top_p": LOCAL_TOP_P if options.top_p is None else options.top_p,
        "top_k": options.top_k or LOCAL_TOP_K,
    }


def _as_dicts(messages: Sequence[Message]) -> List[Dict[str, str]]:
    return [{"role": m.role, "content": m.content} for m in messages]


class AttemptExecutor:
    """Invoke one backend with one message set under one deadline."""

    def __init__(
        self,
        local_host: Optional[LocalModelHost] = None,
        remote_backend: Optional[RemoteCompletionBackend] = None,
    ):
        self.local_host = local_host
        self.remote_backend = remote_backend

    async def attempt(
        self,
        descriptor: BackendDescriptor,
        messages: Sequence[Message],
        options: GenerationOptions,
        timeout_ms: Optional[int] = None,
        state: OrchestratorState = OrchestratorState.TRY_LOCAL_PRIMARY,
    ) -> AttemptOutcome:
        """
        Run a single bounded attempt.

        Args:
            descriptor: Backend to call
            messages:   Conversation, order preserved
            options:    Generation options (defaults filled per backend)
            timeout_ms: Deadline for this attempt (options.timeout_ms if None)
            state:      Chain state this attempt belongs to (for reporting)

        Returns:
            AttemptOutcome; never raises for backend failures
        """
        deadline_ms = timeout_ms if timeout_ms is not None else options.timeout_ms
        started = time.perf_counter()

        def elapsed() -> float:
            return (time.perf_counter() - started) * 1000.0

        try:
            payload = await asyncio.wait_for(
                self._call(descriptor, messages, options, deadline_ms / 1000.0),
                timeout=deadline_ms / 1000.0,
            )
        except asyncio.TimeoutError:
            return AttemptOutcome(
                descriptor=descriptor,
                state=state,
                success=False,
                error=f"timed out after {deadline_ms}ms",
                failure_kind=FailureKind.BACKEND_TIMEOUT,
                elapsed_ms=elapsed(),
            )
        except InferenceError as e:
            return AttemptOutcome(
                descriptor=descriptor,
                state=state,
                success=False,
                error=str(e) or type(e).__name__,
                failure_kind=e.kind,
                elapsed_ms=elapsed(),
            )
        except Exception as e:
            # Client libraries may raise outside the taxonomy; still one failed attempt
            logger.debug(f"Unclassified backend error: {e!r}", exc_info=True)
            return AttemptOutcome(
                descriptor=descriptor,
                state=state,
                success=False,
                error=f"{type(e).__name__}: {e}",
                failure_kind=FailureKind.BACKEND_UNREACHABLE,
                elapsed_ms=elapsed(),
            )

        return AttemptOutcome(
            descriptor=descriptor,
            state=state,
            success=True,
            payload=payload,
            elapsed_ms=elapsed(),
        )

    async def _call(
        self,
        descriptor: BackendDescriptor,
        messages: Sequence[Message],
        options: GenerationOptions,
        timeout_s: float,
    ) -> Payload:
        if descriptor.source_class == "remote":
            if self.remote_backend is None:
                raise NoCredentialError("no remote backend configured")
            body = await self.remote_backend.chat_completion(
                model=descriptor.id,
                messages=_as_dicts(messages),
                max_tokens=options.max_tokens or REMOTE_MAX_TOKENS,
                temperature=REMOTE_TEMPERATURE if options.temperature is None else options.temperature,
                top_p=REMOTE_TOP_P if options.top_p is None else options.top_p,
                timeout_s=timeout_s,
            )
            return CompletionPayload(raw=body)

        if self.local_host is None:
            raise BackendUnreachableError("no local host configured")

        if descriptor.calling_convention == CallingConvention.GENERATE:
            body = await self.local_host.generate(
                descriptor.id, build_prompt(messages), local_options(options),
                timeout_s=timeout_s,
            )
            done = body.get("done") if isinstance(body, dict) else None
            return GeneratePayload(raw=body, done=done if isinstance(done, bool) else None)

        body = await self.local_host.chat(
            descriptor.id, _as_dicts(messages), local_options(options), timeout_s=timeout_s
        )
        return ChatPayload(raw=body)
