"""
Infrastructure module exports.

Configuration and bootstrap for the inference backends and orchestrator.
"""

from .config import InfraConfig, get_config, LLMBackendType
from .bootstrap import InfraBootstrap, bootstrap_infrastructure, get_orchestrator

__all__ = [
    "InfraConfig",
    "get_config",
    "LLMBackendType",
    "InfraBootstrap",
    "bootstrap_infrastructure",
    "get_orchestrator",
]
