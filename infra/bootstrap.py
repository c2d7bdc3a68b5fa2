"""
Process-wide orchestrator wiring.

The orchestrator holds only read-only configuration and injected clients,
so one instance serves concurrent requests without locking. Routes reach
it through the get_orchestrator() dependency; tests swap it out with
FastAPI dependency overrides or InfraBootstrap.reset().
"""

from typing import Any, Optional

from orchestration import FallbackOrchestrator

from .config import InfraConfig, get_config


class InfraBootstrap:
    """One configured FallbackOrchestrator per process."""

    _instance: Optional["InfraBootstrap"] = None

    def __init__(self, config: Optional[InfraConfig] = None, tracer: Optional[Any] = None):
        self.config = config or get_config()
        self.orchestrator = self.config.create_orchestrator(tracer=tracer)

    @classmethod
    def get_instance(
        cls, config: Optional[InfraConfig] = None, tracer: Optional[Any] = None
    ) -> "InfraBootstrap":
        """
        Return the shared instance, building it on first use.

        Args:
            config: Configuration for the first build; ignored afterwards
            tracer: Optional event sink with record_event(name, data)
        """
        if cls._instance is None:
            cls._instance = cls(config, tracer)
        return cls._instance

    @classmethod
    def reset(cls):
        """Drop the shared instance so the next call rebuilds from the environment."""
        cls._instance = None

    def get_orchestrator(self) -> FallbackOrchestrator:
        return self.orchestrator

    def is_configured(self) -> bool:
        """
        At least one usable inference path exists.

        The server still starts without one; every generation request then
        degrades to the canned/explanatory responses.
        """
        return self.orchestrator.local_host is not None or self.orchestrator.remote_available()

    def __repr__(self) -> str:
        local = self.config.ollama_host or "disabled"
        if self.config.llm_backend == "stub":
            local = "stub"
        remote = "configured" if self.orchestrator.remote_available() else "disabled"
        return f"InfraBootstrap(llm={self.config.llm_backend}, local={local}, remote={remote})"


def bootstrap_infrastructure(
    config: Optional[InfraConfig] = None, tracer: Optional[Any] = None
) -> InfraBootstrap:
    """Build (or fetch) the process-wide orchestrator wiring."""
    return InfraBootstrap.get_instance(config, tracer)


def get_orchestrator() -> FallbackOrchestrator:
    """FastAPI dependency: the process-wide orchestrator."""
    return bootstrap_infrastructure().get_orchestrator()
