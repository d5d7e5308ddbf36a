"""
Application enumerations for type safety and clear intent definitions.

Centralized enum definitions for deployment actions, installation states and
availability states used throughout the orchestration engine.
"""

from enum import Enum


class VersionAction(Enum):
    """Action selected by comparing the deployed and desired appliance versions."""

    DEPLOY = "deploy"
    SAME_VERSION = "same_version"
    UPGRADE = "upgrade"
    DOWNGRADE = "downgrade"


class DeploymentAction(Enum):
    """Outcome of a single reconciliation run."""

    DEPLOYED = "deployed"
    SKIPPED = "skipped"
    CHANGES_APPLIED = "changes_applied"
    UPGRADED = "upgraded"


class InstallationState(Enum):
    """States reported by the appliance for an installation run."""

    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self is not InstallationState.RUNNING


class AvailabilityState(Enum):
    """States of the authentication-service readiness poll."""

    WAITING = "waiting"
    READY = "ready"
