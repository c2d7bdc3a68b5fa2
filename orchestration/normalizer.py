"""
Response normalizer.

Maps each payload kind to one content string by trying a fixed, ordered
list of extraction paths, then applies the minimum-viable-content check.
A rejection is an attempt failure like any other: a backend returning
garbage is operationally the same as a backend that errored.

Pure and deterministic: normalizing the same outcome twice gives the same
result.
"""

import json
from typing import Any, Dict, Optional, Sequence, Tuple, Type, Union

from inference.errors import InvalidContentError
from inference.types import (
    AttemptOutcome,
    ChatPayload,
    CompletionPayload,
    GeneratePayload,
    NormalizedResult,
    Payload,
)

PathStep = Union[str, int]
ExtractionPath = Tuple[PathStep, ...]

# Ordered extraction paths per payload kind (first non-blank string wins)
EXTRACTION_PATHS: Dict[Type[Any], Tuple[ExtractionPath, ...]] = {
    GeneratePayload: (
        ("response",),
        ("text",),
        ("output",),
    ),
    ChatPayload: (
        ("message", "content"),
        ("output", 0, "content", 0, "text"),
        ("response",),
        ("text",),
    ),
    CompletionPayload: (
        ("choices", 0, "message", "content"),
        ("choices", 0, "text"),
        ("output", 0, "content", 0, "text"),
    ),
}

DEFAULT_MIN_CONTENT_CHARS = 2
_DUMP_LIMIT = 500
_PREVIEW_LIMIT = 40


def _walk(raw: Any, path: Sequence[PathStep]) -> Any:
    node = raw
    for step in path:
        if isinstance(step, int):
            if not isinstance(node, list) or len(node) <= step:
                return None
        elif not isinstance(node, dict) or step not in node:
            return None
        node = node[step]
    return node


def extract_content(payload: Payload) -> Optional[str]:
    """First non-blank string along the payload's extraction paths, or None."""
    for path in EXTRACTION_PATHS[type(payload)]:
        value = _walk(payload.raw, path)
        if isinstance(value, str) and value.strip():
            return value
    # A generate body that is already plain text
    if isinstance(payload, GeneratePayload) and isinstance(payload.raw, str) and payload.raw.strip():
        return payload.raw
    return None


def dump_payload(raw: Any) -> str:
    """Raw textual dump used as diagnostic when no extraction path matches."""
    if isinstance(raw, str):
        text = raw
    else:
        try:
            text = json.dumps(raw, default=str, sort_keys=True)
        except (TypeError, ValueError):
            text = repr(raw)
    return text[:_DUMP_LIMIT]


class ResponseNormalizer:
    """
    Normalize a successful AttemptOutcome into a NormalizedResult.

    min_content_chars is the shortest accepted stripped length; content of
    exactly that length passes. It is policy, tuned per route (a completion
    diff can be short, a multi-section analysis cannot).
    """

    def __init__(self, min_content_chars: int = DEFAULT_MIN_CONTENT_CHARS):
        self.min_content_chars = max(1, min_content_chars)

    def normalize(self, outcome: AttemptOutcome) -> NormalizedResult:
        """
        Raises:
            InvalidContentError: payload missing, truncated, unmatched or too short
        """
        payload = outcome.payload
        if payload is None:
            raise InvalidContentError("attempt produced no payload")

        if isinstance(payload, GeneratePayload) and payload.done is False:
            raise InvalidContentError("generation incomplete (done=false), output truncated")

        content = extract_content(payload)
        if content is None:
            raise InvalidContentError(
                f"no content field in payload; raw: {dump_payload(payload.raw)}"
            )

        trimmed = content.strip()
        if len(trimmed) < self.min_content_chars:
            raise InvalidContentError(
                f"content too short ({len(trimmed)} < {self.min_content_chars} chars): "
                f"{trimmed[:_PREVIEW_LIMIT]!r}"
            )

        return NormalizedResult(
            content=trimmed,
            source_class=outcome.descriptor.source_class,
            backend_id=outcome.descriptor.id,
        )
