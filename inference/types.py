from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field

from .errors import FailureKind

Role = Literal["system", "user", "assistant"]
SourceClass = Literal["local", "remote"]


class CallingConvention(str, Enum):
    """How messages are serialized to a backend and how it answers."""

    GENERATE = "single-prompt-generate"
    CHAT = "multi-turn-chat"


class OrchestratorState(str, Enum):
    TRY_LOCAL_PRIMARY = "local-primary"
    TRY_LOCAL_SECONDARY = "local-secondary"
    TRY_REMOTE_PRIMARY = "remote-primary"
    TRY_REMOTE_SECONDARY = "remote-secondary"
    ALL_FAILED = "all-failed"
    SUCCEEDED = "succeeded"


class Message(BaseModel):
    """One conversation turn. Order within a sequence is meaningful."""

    model_config = ConfigDict(frozen=True)

    role: Role
    content: str


class GenerationOptions(BaseModel):
    """
    Per-request generation settings.

    Sampling fields left as None are filled with backend-specific defaults
    at attempt time.
    """

    model_config = ConfigDict(frozen=True)

    timeout_ms: int = Field(default=30000, gt=0)
    num_predict: Optional[int] = Field(default=None, gt=0)
    max_tokens: Optional[int] = Field(default=None, gt=0)
    temperature: Optional[float] = Field(default=None, ge=0.0, le=2.0)
    top_p: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    top_k: Optional[int] = Field(default=None, gt=0)


@dataclass(frozen=True)
class BackendDescriptor:
    id: str
    source_class: SourceClass
    calling_convention: CallingConvention


# ── Payload tagged union ────────────────────────────────────────────────────
# Decoded once at the executor boundary; the normalizer only ever sees these.


@dataclass(frozen=True)
class GeneratePayload:
    """Single-prompt generation body: {response, done, ...}."""

    raw: Any
    done: Optional[bool] = None


@dataclass(frozen=True)
class ChatPayload:
    """Local multi-turn chat body: {message: {role, content}, ...}."""

    raw: Any


@dataclass(frozen=True)
class CompletionPayload:
    """OpenAI-compatible body: {choices: [{message: {content}}]}."""

    raw: Any


Payload = Union[GeneratePayload, ChatPayload, CompletionPayload]


@dataclass
class AttemptOutcome:
    descriptor: BackendDescriptor
    state: OrchestratorState
    success: bool
    payload: Optional[Payload] = None
    error: Optional[str] = None
    failure_kind: Optional[FailureKind] = None
    elapsed_ms: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        """Telemetry-friendly view (payload omitted)."""
        return {
            "backend_id": self.descriptor.id,
            "source_class": self.descriptor.source_class,
            "state": self.state.value,
            "success": self.success,
            "failure_kind": self.failure_kind.value if self.failure_kind else None,
            "error": self.error,
            "elapsed_ms": round(self.elapsed_ms, 1),
        }


@dataclass(frozen=True)
class ChainStage:
    state: OrchestratorState
    descriptor: BackendDescriptor
    deadline_factor: float = 1.0


@dataclass(frozen=True)
class FallbackChain:
    """Ordered backends for one request. Built fresh per request."""

    stages: Tuple[ChainStage, ...]
    remote_skipped: bool = False

    @property
    def descriptors(self) -> List[BackendDescriptor]:
        return [stage.descriptor for stage in self.stages]

    def __len__(self) -> int:
        return len(self.stages)


@dataclass(frozen=True)
class NormalizedResult:
    content: str
    source_class: SourceClass
    backend_id: str


@dataclass
class GenerationResult:
    """Successful generation plus every outcome recorded on the way."""

    result: NormalizedResult
    outcomes: List[AttemptOutcome] = field(default_factory=list)

    @property
    def content(self) -> str:
        return self.result.content

    @property
    def backend_id(self) -> str:
        return self.result.backend_id

    @property
    def source_class(self) -> SourceClass:
        return self.result.source_class
