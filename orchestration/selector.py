import asyncio
import logging
from typing import Sequence

from inference.base import LocalModelHost

logger = logging.getLogger(__name__)


class LocalModelSelector:
    """
    Pick the best installed local model.

    Walks the priority list (most preferred first) against what the host
    reports as installed. If nothing matches, or the listing itself fails,
    the preferred id is returned unchanged: the attempt may still succeed by
    triggering an on-demand pull, or it fails cleanly in the executor.
    Never raises.
    """

    def __init__(self, host: LocalModelHost, priority: Sequence[str], list_timeout_s: float = 5.0):
        self.host = host
        self.priority = tuple(priority)
        self.list_timeout_s = list_timeout_s

    async def select(self, preferred: str) -> str:
        try:
            installed = set(
                await asyncio.wait_for(self.host.list_models(), timeout=self.list_timeout_s)
            )
        except Exception as e:
            logger.warning(
                f"Could not list local models, using preferred '{preferred}': {e}",
                extra={"preferred": preferred, "error": str(e)},
            )
            return preferred

        for name in self.priority:
            if name in installed:
                return name
        return preferred
