"""HTTP surface. I/O only; orchestration lives in orchestration/."""

from .ai import router as ai_router

__all__ = ["ai_router"]
