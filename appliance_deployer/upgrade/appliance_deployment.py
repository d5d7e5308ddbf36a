"""
Appliance deployment orchestrator.

Reconciles one appliance against its deployment file: works out what is
running from the live diagnostic report, then deploys a fresh appliance,
upgrades the existing one, applies pending changes, or does nothing.

The upgrade replaces the appliance VM. Installation assets and every
stemcell in use are saved before the old VM is stopped, and restored into
the new one before the installation is re-run.
"""

import threading
from typing import Any, Dict, List, Optional

from loguru import logger

from appliance_deployer.config.settings import ApplianceConfig
from appliance_deployer.connectivity.appliance_api import ApplianceClient
from appliance_deployer.connectivity.availability import AvailabilityPoller
from appliance_deployer.connectivity.license_portal import LicensePortalClient
from appliance_deployer.core.dataclasses import InstallationStatus, StagedStemcell
from appliance_deployer.core.enums import DeploymentAction, VersionAction
from appliance_deployer.core.exceptions import (
    ApiError,
    ConfigurationError,
    UnsupportedDowngradeError,
)
from appliance_deployer.progress.formatter import ProgressFormatter
from appliance_deployer.stemcells.sync import StemcellSyncPipeline
from appliance_deployer.upgrade.installation_runner import InstallationRunner
from appliance_deployer.upgrade.user_bootstrap import UserBootstrapRetrier
from appliance_deployer.utils.json_utils import require_json_body, safe_json_body
from appliance_deployer.validation.version_manager import Version, compare_versions


# =============================================================================
# SECTION 1: APPLIANCE DEPLOYMENT CLASS
# =============================================================================


class ApplianceDeployment:
    """
    Orchestrates deployment and upgrade of a single appliance.

    VM provisioning is infrastructure specific: ``deploy_vm`` and
    ``stop_current_vm`` must be provided by a subclass.
    """

    # =========================================================================
    # SUBSECTION 1.1: INITIALIZATION
    # =========================================================================

    def __init__(
        self,
        config: ApplianceConfig,
        appliance: ApplianceClient,
        portal: LicensePortalClient,
        formatter: Optional[ProgressFormatter] = None,
        cancel: Optional[threading.Event] = None,
    ):
        """
        Args:
            config: Validated deployment file; read only
            appliance: Appliance management API client
            portal: License portal API client
            formatter: Console output for the reconciliation messages
            cancel: Optional event that aborts any in-progress wait
        """
        self.config = config
        self.appliance = appliance
        self.portal = portal
        self.target = config.ip
        self.formatter = formatter or ProgressFormatter()
        self.cancel = cancel
        self.desired_version = Version.parse(config.desired_version)

        self.stemcells = StemcellSyncPipeline(
            appliance,
            portal,
            staging_dir=config.staging_dir,
            platform_pattern=config.stemcell_platform,
            target=self.target,
        )
        self.availability = AvailabilityPoller(
            appliance, config.availability, target=self.target
        )
        self.installer = InstallationRunner(
            appliance, config.installation, target=self.target
        )
        self.bootstrapper = UserBootstrapRetrier(
            appliance,
            config.username,
            config.password,
            config.passphrase,
            config.bootstrap,
            target=self.target,
        )

    # =========================================================================
    # SUBSECTION 1.2: STATE DISCOVERY
    # =========================================================================

    def current_version(self) -> Version:
        """
        Version running on the appliance, read from its diagnostic report.

        An unreachable appliance, a missing report or a malformed version all
        mean "nothing deployed" and yield the empty version.
        """
        try:
            report = self.appliance.get_diagnostic_report()
        except ApiError as e:
            logger.warning(f"[{self.target}] Diagnostic report unavailable: {e}")
            return Version.empty()

        if report is None or not report.is_success:
            return Version.empty()

        body = safe_json_body(report)
        try:
            raw = body["versions"]["release_version"]
        except (KeyError, TypeError):
            logger.warning(f"[{self.target}] Diagnostic report carries no release version")
            return Version.empty()

        version = Version.parse(raw)
        logger.info(
            f"[{self.target}] Current version: "
            f"{'none' if version.is_empty() else version}"
        )
        return version

    def pending_changes(self) -> List[Dict[str, Any]]:
        response = self.appliance.get_pending_changes()
        body = require_json_body(response, "Reading pending changes")
        return list(body.get("product_changes", []) or [])

    # =========================================================================
    # SUBSECTION 1.3: VM PROVISIONING
    # =========================================================================

    def deploy_vm(self) -> None:
        raise NotImplementedError

    def stop_current_vm(self) -> None:
        raise NotImplementedError

    # =========================================================================
    # SUBSECTION 1.4: UPGRADE STEPS
    # =========================================================================

    def get_installation_assets(self) -> None:
        self.appliance.get_installation_assets(
            write_to=self.config.installation_assets_path
        )

    def upload_installation_assets(self) -> None:
        self.appliance.upload_installation_assets(
            self.config.installation_assets_path, self.config.passphrase
        )

    def download_current_stemcells(self) -> List[StagedStemcell]:
        return self.stemcells.download_current_stemcells()

    def provision_stemcells(self) -> List[str]:
        return self.stemcells.provision_stemcells()

    def wait_for_uaa(self) -> int:
        return self.availability.wait_for_auth(cancel=self.cancel)

    def create_first_user(self) -> int:
        return self.bootstrapper.create_first_user(cancel=self.cancel)

    def apply_changes(self) -> InstallationStatus:
        handle = self.installer.trigger()
        return handle.wait_for_result(cancel=self.cancel)

    # =========================================================================
    # SUBSECTION 1.5: LIFECYCLE OPERATIONS
    # =========================================================================

    def deploy(self) -> None:
        logger.info(f"[{self.target}] Deploying appliance {self.config.name} {self.desired_version}")
        self.deploy_vm()

    def upgrade(self) -> InstallationStatus:
        """
        Replace the appliance with the desired version.

        Each step finishes before the next starts. Nothing is rolled back
        on failure.
        """
        self.get_installation_assets()
        self.download_current_stemcells()
        self.stop_current_vm()
        self.deploy()
        self.upload_installation_assets()
        self.wait_for_uaa()
        self.provision_stemcells()
        return self.apply_changes()

    def run(self) -> DeploymentAction:
        """
        Reconcile the appliance with the deployment file.

        Returns:
            DeploymentAction describing what was done

        Raises:
            ConfigurationError: If the desired version does not parse
            UnsupportedDowngradeError: If the appliance is newer than desired
        """
        if self.desired_version.is_empty():
            raise ConfigurationError(
                f"Desired version {self.config.desired_version!r} is not a valid version"
            )

        current = self.current_version()
        action = compare_versions(current, self.desired_version)
        logger.debug(f"[{self.target}] Version action: {action.value}")

        if action is VersionAction.DEPLOY:
            self.formatter.no_appliance(self.target)
            self.deploy()
            self.create_first_user()
            return DeploymentAction.DEPLOYED

        if action is VersionAction.SAME_VERSION:
            if self.pending_changes():
                self.formatter.pending_changes(self.target)
                self.apply_changes()
                return DeploymentAction.CHANGES_APPLIED
            self.formatter.already_at_version(self.target, str(current))
            return DeploymentAction.SKIPPED

        if action is VersionAction.UPGRADE:
            self.formatter.upgrading(self.target, str(current), str(self.desired_version))
            self.upgrade()
            return DeploymentAction.UPGRADED

        self.formatter.downgrade_refused(
            self.target, str(current), str(self.desired_version)
        )
        raise UnsupportedDowngradeError(
            f"Appliance at {self.target} runs {current}, newer than desired "
            f"{self.desired_version}",
            remediation="Set desired_version to the running version or newer",
        )
