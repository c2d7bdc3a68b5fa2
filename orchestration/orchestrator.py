"""
Fallback Orchestrator

Turns one logical "generate text for these messages" request into a usable
string despite independently failing backends.

State machine (strictly sequential, first valid result wins):

    TryLocalPrimary -> TryLocalSecondary -> TryRemotePrimary -> TryRemoteSecondary -> AllFailed
    (any of the first four) -> Succeeded

Invariants:
- At most one successful attempt per request; never two attempts in flight
- Attempts happen in chain order, every time
- Normalizer rejections cascade exactly like backend failures
- Remote stages are left out of the chain when no credential is configured
- Every AttemptOutcome is kept until the request completes
- Only AllBackendsFailedError escapes; it names every attempted backend
"""

import logging
import random
from dataclasses import replace
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Union

from inference.base import LocalModelHost, RemoteCompletionBackend
from inference.errors import AllBackendsFailedError, InvalidContentError
from inference.registry import BackendRegistry
from inference.types import (
    AttemptOutcome,
    ChainStage,
    FallbackChain,
    GenerationOptions,
    GenerationResult,
    Message,
    OrchestratorState,
)

from .code_extractor import extract_code
from .executor import AttemptExecutor
from .normalizer import DEFAULT_MIN_CONTENT_CHARS, ResponseNormalizer
from .profiles import COMPLETE
from .selector import LocalModelSelector

logger = logging.getLogger(__name__)

# The bigger remote model gets twice the deadline: it is the last chance
REMOTE_SECONDARY_DEADLINE_FACTOR = 2.0

# Extracted code this short is replaced by a canned suggestion
MIN_CODE_CHARS = 5

FALLBACK_SUGGESTIONS = (
    "// Suggestion: break function into smaller functions for clarity.",
    "// Suggestion: add basic input validation for this function.",
    "// Suggestion: consider early returns to reduce nesting.",
    "// Suggestion: add try/catch to improve error handling.",
    "// Suggestion: improve naming for readability.",
)

MessageLike = Union[Message, Mapping[str, Any]]


def coerce_messages(messages: Iterable[MessageLike]) -> List[Message]:
    """Accept Message instances or {role, content} mappings, preserving order."""
    coerced = [m if isinstance(m, Message) else Message(**m) for m in messages]
    if not coerced:
        raise ValueError("at least one message is required")
    return coerced


class FallbackOrchestrator:
    """
    Sequence bounded attempts across the fallback chain.

    Backend clients are injected, so tests can hand in fakes that simulate
    slowness and malformed payloads. Either client may be None: a missing
    local host drops the local stages, a missing or credential-less remote
    backend drops the remote stages.
    """

    def __init__(
        self,
        local_host: Optional[LocalModelHost] = None,
        remote_backend: Optional[RemoteCompletionBackend] = None,
        registry: Optional[BackendRegistry] = None,
        selector: Optional[LocalModelSelector] = None,
        executor: Optional[AttemptExecutor] = None,
        default_timeout_ms: int = 30_000,
        default_min_content_chars: int = DEFAULT_MIN_CONTENT_CHARS,
        tracer: Optional[Any] = None,
        rng: Optional[random.Random] = None,
    ):
        self.local_host = local_host
        self.remote_backend = remote_backend
        self.registry = registry or BackendRegistry()
        self.selector = selector or (
            LocalModelSelector(local_host, self.registry.local_priority)
            if local_host is not None
            else None
        )
        self.executor = executor or AttemptExecutor(local_host, remote_backend)
        self.default_timeout_ms = default_timeout_ms
        self.default_min_content_chars = default_min_content_chars
        self.tracer = tracer
        self._rng = rng or random.Random()

    # ── Chain construction ────────────────────────────────────────

    def remote_available(self) -> bool:
        """Credential check done before any remote call is attempted."""
        return self.remote_backend is not None and self.remote_backend.has_credential()

    async def build_chain(self) -> FallbackChain:
        """Build this request's chain. Local selection is re-queried every time."""
        stages: List[ChainStage] = []

        if self.local_host is not None:
            primary_id = self.registry.local_primary
            if self.selector is not None:
                primary_id = await self.selector.select(primary_id)
            stages.append(
                ChainStage(OrchestratorState.TRY_LOCAL_PRIMARY, self.registry.describe_local(primary_id))
            )
            secondary_id = self.registry.local_secondary
            if secondary_id and secondary_id != primary_id:
                stages.append(
                    ChainStage(
                        OrchestratorState.TRY_LOCAL_SECONDARY,
                        self.registry.describe_local(secondary_id),
                    )
                )

        remote_skipped = not self.remote_available()
        if not remote_skipped:
            stages.append(
                ChainStage(
                    OrchestratorState.TRY_REMOTE_PRIMARY,
                    self.registry.describe_remote(self.registry.remote_primary),
                )
            )
            secondary_id = self.registry.remote_secondary
            if secondary_id and secondary_id != self.registry.remote_primary:
                stages.append(
                    ChainStage(
                        OrchestratorState.TRY_REMOTE_SECONDARY,
                        self.registry.describe_remote(secondary_id),
                        deadline_factor=REMOTE_SECONDARY_DEADLINE_FACTOR,
                    )
                )

        return FallbackChain(stages=tuple(stages), remote_skipped=remote_skipped)

    # ── Public API ────────────────────────────────────────────────

    async def generate(
        self,
        messages: Sequence[MessageLike],
        options: Optional[GenerationOptions] = None,
        *,
        min_content_chars: Optional[int] = None,
    ) -> GenerationResult:
        """
        Generate text for a conversation through the fallback chain.

        Args:
            messages:          Ordered conversation (Message or {role, content})
            options:           Generation options; timeout_ms is the per-attempt deadline
            min_content_chars: Content floor for this call (route policy)

        Returns:
            GenerationResult with normalized content, backend id and source class

        Raises:
            AllBackendsFailedError: every attempted backend failed or returned unusable content
        """
        conversation = coerce_messages(messages)
        if options is None:
            options = GenerationOptions(timeout_ms=self.default_timeout_ms)
        floor = self.default_min_content_chars if min_content_chars is None else min_content_chars
        normalizer = ResponseNormalizer(floor)

        chain = await self.build_chain()
        if chain.remote_skipped:
            logger.info("Remote fallback skipped: no remote credential configured")
            self._emit_event("remote_skipped", {"reason": "no_credential"})

        outcomes: List[AttemptOutcome] = []
        for stage in chain.stages:
            timeout_ms = int(options.timeout_ms * stage.deadline_factor)
            self._emit_event("attempt_started", {
                "state": stage.state.value,
                "backend_id": stage.descriptor.id,
                "timeout_ms": timeout_ms,
            })
            logger.info(
                f"Attempting {stage.descriptor.id} ({stage.state.value}, {timeout_ms}ms)",
                extra={"backend_id": stage.descriptor.id, "state": stage.state.value},
            )

            outcome = await self.executor.attempt(
                stage.descriptor, conversation, options, timeout_ms, stage.state
            )

            if outcome.success:
                try:
                    result = normalizer.normalize(outcome)
                except InvalidContentError as e:
                    outcome = replace(outcome, success=False, error=str(e), failure_kind=e.kind)
                else:
                    outcomes.append(outcome)
                    self._emit_event("attempt_succeeded", outcome.to_dict())
                    logger.info(
                        f"Generated {len(result.content)} chars via {result.backend_id} "
                        f"({result.source_class}) in {outcome.elapsed_ms:.0f}ms",
                        extra=outcome.to_dict(),
                    )
                    return GenerationResult(result=result, outcomes=outcomes)

            outcomes.append(outcome)
            self._emit_event("attempt_failed", outcome.to_dict())
            logger.warning(
                f"Attempt {stage.descriptor.id} failed: {outcome.failure_kind.value}: {outcome.error}",
                extra=outcome.to_dict(),
            )

        error = AllBackendsFailedError(outcomes, remote_skipped=chain.remote_skipped)
        self._emit_event("all_backends_failed", {
            "attempts": [o.to_dict() for o in outcomes],
            "remote_skipped": chain.remote_skipped,
        })
        logger.error(str(error))
        raise error

    async def generate_and_extract_code(
        self,
        messages: Sequence[MessageLike],
        options: Optional[GenerationOptions] = None,
    ) -> str:
        """
        Generate, then reduce the answer to code only.

        Extracted code of MIN_CODE_CHARS or fewer is replaced by a canned
        suggestion; code completion never surfaces a blank result.

        Raises:
            AllBackendsFailedError: propagated from generate()
        """
        result = await self.generate(
            messages,
            COMPLETE.options if options is None else options,
            min_content_chars=COMPLETE.min_content_chars,
        )
        code = extract_code(result.content)
        if len(code) <= MIN_CODE_CHARS:
            logger.info(f"Extracted code too short ({len(code)} chars), using canned suggestion")
            return self.canned_suggestion()
        return code

    def canned_suggestion(self) -> str:
        return self._rng.choice(FALLBACK_SUGGESTIONS)

    # ── Tracing ───────────────────────────────────────────────────

    def _emit_event(self, name: str, data: dict) -> None:
        """Forward to the tracer if one is set. Tracing never breaks generation."""
        if self.tracer is None:
            return
        try:
            self.tracer.record_event(name, data)
        except Exception as e:
            logger.debug(f"Tracer failed on {name}: {e}")
