"""
Workflow Server Configuration Package.

This package contains the centralized configuration modules for the workflow server.
"""

from config.manager import EnvironmentManager, env_manager
from config.types import (
    BackendConfig,
    CallbackSettings,
    ServerSettings,
)

# Re-export the singleton instance for easy access
env = env_manager

__all__ = [
    "EnvironmentManager",
    "env_manager",
    "env",
    "BackendConfig",
    "CallbackSettings",
    "ServerSettings",
]
