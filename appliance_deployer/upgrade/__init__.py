"""
Upgrade orchestration and management module.

Provides the appliance deployment orchestrator, installation runs and first
user bootstrap.
"""

from .appliance_deployment import ApplianceDeployment
from .installation_runner import InstallationHandle, InstallationRunner
from .user_bootstrap import UserBootstrapRetrier
from .vm_provisioner import ScriptedApplianceDeployment

__all__ = [
    "ApplianceDeployment",
    "InstallationHandle",
    "InstallationRunner",
    "ScriptedApplianceDeployment",
    "UserBootstrapRetrier",
]
