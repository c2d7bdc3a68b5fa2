"""
Route profiles.

Route-specific behavior (deadline, token caps, sampling, content floor) is
configuration handed to the one orchestrator, not separate control flow.
"""

from dataclasses import dataclass
from typing import Dict

from inference.types import GenerationOptions


@dataclass(frozen=True)
class GenerationProfile:
    name: str
    options: GenerationOptions
    min_content_chars: int


COMPLETE = GenerationProfile(
    name="complete",
    options=GenerationOptions(timeout_ms=120_000, num_predict=200, temperature=0.2),
    min_content_chars=11,
)

# Analyses are long; a handful of characters means the model truncated
ANALYZE = GenerationProfile(
    name="analyze",
    options=GenerationOptions(
        timeout_ms=300_000, num_predict=3000, max_tokens=4000, temperature=0.4
    ),
    min_content_chars=50,
)

EXPLAIN = GenerationProfile(
    name="explain",
    options=GenerationOptions(timeout_ms=40_000, num_predict=400, temperature=0.3),
    min_content_chars=2,
)

CHAT = GenerationProfile(
    name="chat",
    options=GenerationOptions(timeout_ms=30_000, num_predict=600, temperature=0.6),
    min_content_chars=2,
)

PROFILES: Dict[str, GenerationProfile] = {
    p.name: p for p in (COMPLETE, ANALYZE, EXPLAIN, CHAT)
}


def get_profile(name: str) -> GenerationProfile:
    """Look up a profile by route name. Raises KeyError for unknown names."""
    return PROFILES[name]
