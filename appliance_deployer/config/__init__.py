"""Deployment file models, loader and the persistent CLI store."""

from .settings import (
    ApplianceConfig,
    RetryPolicy,
    VmCommands,
    load_deployment_config,
)
from .store import ConfigStore

__all__ = [
    "ApplianceConfig",
    "ConfigStore",
    "RetryPolicy",
    "VmCommands",
    "load_deployment_config",
]
