"""
Inference error taxonomy.

Attempt-local failures (unreachable, timeout, bad response, invalid content,
missing credential) are always recovered by advancing the fallback chain.
Only AllBackendsFailedError leaves the orchestrator.
"""

from enum import Enum
from typing import List, TYPE_CHECKING

if TYPE_CHECKING:
    from .types import AttemptOutcome


class FailureKind(str, Enum):
    """Why a single attempt failed."""

    BACKEND_UNREACHABLE = "backend_unreachable"
    BACKEND_TIMEOUT = "backend_timeout"
    BACKEND_RESPONSE = "backend_response"
    INVALID_CONTENT = "invalid_content"
    NO_CREDENTIAL = "no_credential"


class InferenceError(Exception):
    """Base class for failures local to one backend attempt."""

    kind: FailureKind = FailureKind.BACKEND_UNREACHABLE


class BackendUnreachableError(InferenceError):
    """Network or connection failure."""

    kind = FailureKind.BACKEND_UNREACHABLE


class BackendTimeoutError(InferenceError):
    """Deadline exceeded."""

    kind = FailureKind.BACKEND_TIMEOUT


class BackendResponseError(InferenceError):
    """Backend answered with an HTTP error status or an undecodable body."""

    kind = FailureKind.BACKEND_RESPONSE


class InvalidContentError(InferenceError):
    """Normalizer rejected the payload as empty, truncated or too short."""

    kind = FailureKind.INVALID_CONTENT


class NoCredentialError(InferenceError):
    """Remote backend requires a secret that is not configured."""

    kind = FailureKind.NO_CREDENTIAL


MODEL_PLACEHOLDER = "<model>"


def _scrub(reason: str, ids: List[str]) -> str:
    for backend_id in ids:
        reason = reason.replace(backend_id, MODEL_PLACEHOLDER)
    return reason


class OrchestratorError(Exception):
    """Base class for errors that propagate out of the orchestrator."""


class AllBackendsFailedError(OrchestratorError):
    """
    Every attempted backend in the chain failed.

    Carries every AttemptOutcome so operators can tell "everything was down"
    from "everything returned garbage".
    """

    def __init__(self, outcomes: List["AttemptOutcome"], remote_skipped: bool = False):
        self.outcomes = list(outcomes)
        self.remote_skipped = remote_skipped
        super().__init__(self._compose_message())

    def _compose_message(self) -> str:
        # Backend bodies echo model ids; each id appears only in its own prefix
        ids = sorted({o.descriptor.id for o in self.outcomes}, key=len, reverse=True)
        parts = [
            f"{o.descriptor.id} ({o.state.value}): {o.failure_kind.value}: "
            f"{_scrub(o.error or '', ids)}"
            for o in self.outcomes
        ]
        message = f"All backends failed after {len(self.outcomes)} attempt(s)"
        if parts:
            message += ": " + "; ".join(parts)
        if self.remote_skipped:
            message += ". Remote fallback skipped: no remote credential configured."
        return message

    @property
    def timed_out(self) -> bool:
        """True if any attempt in the chain hit its deadline."""
        return any(o.failure_kind == FailureKind.BACKEND_TIMEOUT for o in self.outcomes)
