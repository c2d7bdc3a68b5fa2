"""
Backend descriptor registry.

Static knowledge of the known backends: their ids, whether they run on the
local host or a remote API, and which calling convention they speak. Two
local models can use different conventions; instruction-tuned code models
served by the local host only behave with a single concatenated prompt.

Read-only after construction; safe to share across concurrent requests.
"""

from types import MappingProxyType
from typing import Iterable, Mapping, Sequence, Tuple

from .types import BackendDescriptor, CallingConvention

DEFAULT_LOCAL_PRIMARY = "codemindai-gemma:latest"
DEFAULT_LOCAL_SECONDARY = "codegemma:2b"
DEFAULT_LOCAL_PRIORITY: Tuple[str, ...] = (
    "codemindai-gemma:latest",
    "codegemma:2b",
    "qwen2.5:3b",
)
DEFAULT_REMOTE_PRIMARY = "llama-3.1-8b-instant"
DEFAULT_REMOTE_SECONDARY = "llama-3.1-70b-versatile"
DEFAULT_GENERATE_PREFIXES: Tuple[str, ...] = ("codemindai-gemma", "codegemma")


class BackendRegistry:
    """Descriptor lookup for local and remote backend ids."""

    def __init__(
        self,
        local_primary: str = DEFAULT_LOCAL_PRIMARY,
        local_secondary: str = DEFAULT_LOCAL_SECONDARY,
        local_priority: Sequence[str] = DEFAULT_LOCAL_PRIORITY,
        remote_primary: str = DEFAULT_REMOTE_PRIMARY,
        remote_secondary: str = DEFAULT_REMOTE_SECONDARY,
        generate_prefixes: Iterable[str] = DEFAULT_GENERATE_PREFIXES,
    ):
        self.local_primary = local_primary
        self.local_secondary = local_secondary
        self.local_priority: Tuple[str, ...] = tuple(local_priority)
        self.remote_primary = remote_primary
        self.remote_secondary = remote_secondary
        self.generate_prefixes: Tuple[str, ...] = tuple(generate_prefixes)

        known = {}
        for model_id in (local_primary, local_secondary, *self.local_priority):
            known[("local", model_id)] = self._local(model_id)
        for model_id in (remote_primary, remote_secondary):
            known[("remote", model_id)] = BackendDescriptor(
                id=model_id,
                source_class="remote",
                calling_convention=CallingConvention.CHAT,
            )
        self._known: Mapping[Tuple[str, str], BackendDescriptor] = MappingProxyType(known)

    def _local(self, model_id: str) -> BackendDescriptor:
        convention = (
            CallingConvention.GENERATE
            if model_id.startswith(self.generate_prefixes)
            else CallingConvention.CHAT
        )
        return BackendDescriptor(id=model_id, source_class="local", calling_convention=convention)

    def describe_local(self, model_id: str) -> BackendDescriptor:
        """Descriptor for a model served by the local host (unknown ids allowed)."""
        return self._known.get(("local", model_id)) or self._local(model_id)

    def describe_remote(self, model_id: str) -> BackendDescriptor:
        return self._known.get(("remote", model_id)) or BackendDescriptor(
            id=model_id,
            source_class="remote",
            calling_convention=CallingConvention.CHAT,
        )

    @property
    def known(self) -> Mapping[Tuple[str, str], BackendDescriptor]:
        return self._known
