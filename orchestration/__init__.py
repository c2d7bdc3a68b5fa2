"""
Inference fallback orchestration.

Caller -> FallbackOrchestrator -> (LocalModelSelector, AttemptExecutor x N)
       -> ResponseNormalizer -> extract_code (completion routes only)
"""

from .code_extractor import extract_code
from .executor import AttemptExecutor, build_prompt
from .normalizer import ResponseNormalizer, extract_content
from .orchestrator import FALLBACK_SUGGESTIONS, FallbackOrchestrator, coerce_messages
from .profiles import ANALYZE, CHAT, COMPLETE, EXPLAIN, GenerationProfile, get_profile
from .selector import LocalModelSelector

__all__ = [
    "extract_code",
    "AttemptExecutor",
    "build_prompt",
    "ResponseNormalizer",
    "extract_content",
    "FALLBACK_SUGGESTIONS",
    "FallbackOrchestrator",
    "coerce_messages",
    "ANALYZE",
    "CHAT",
    "COMPLETE",
    "EXPLAIN",
    "GenerationProfile",
    "get_profile",
    "LocalModelSelector",
]
