"""
Installation run management.

An installation ("apply changes") runs asynchronously on the appliance.
``InstallationRunner.trigger`` submits one and hands back an
``InstallationHandle``; the caller blocks on ``wait_for_result`` exactly once.
"""

import threading
from typing import Any, Dict, Optional

from loguru import logger

from appliance_deployer.config.settings import RetryPolicy
from appliance_deployer.connectivity.appliance_api import ApplianceClient
from appliance_deployer.core.constants import INSTALLATION_PAYLOAD
from appliance_deployer.core.dataclasses import InstallationStatus
from appliance_deployer.core.enums import InstallationState
from appliance_deployer.core.exceptions import (
    ApiError,
    InstallationFailedError,
    InstallationTimeoutError,
)
from appliance_deployer.utils.json_utils import require_json_body, safe_json_body
from appliance_deployer.utils.polling import poll_until


class InstallationHandle:
    """Reference to one asynchronous installation run."""

    def __init__(
        self,
        appliance: ApplianceClient,
        installation_id: int,
        policy: RetryPolicy,
        target: str = "",
    ):
        self.appliance = appliance
        self.installation_id = installation_id
        self.policy = policy
        self.target = target
        self.status: Optional[InstallationStatus] = None
        self._consumed = False

    def poll_status(self) -> InstallationStatus:
        response = self.appliance.get_installation(self.installation_id)
        body = require_json_body(
            response, f"Reading installation {self.installation_id}"
        )
        self.status = InstallationStatus.from_dict(self.installation_id, body)
        logger.debug(
            f"[{self.target}] Installation {self.installation_id} is {self.status.state.value}"
        )
        return self.status

    def fetch_logs(self) -> Optional[str]:
        """Installation log text, or None if the appliance will not return it."""
        try:
            response = self.appliance.get_installation_logs(self.installation_id)
        except ApiError as e:
            logger.warning(
                f"[{self.target}] Could not fetch logs of installation {self.installation_id}: {e}"
            )
            return None
        body = safe_json_body(response)
        if isinstance(body, dict) and "logs" in body:
            return body["logs"]
        return response.text

    def wait_for_result(self, cancel: Optional[threading.Event] = None) -> InstallationStatus:
        """
        Block until the installation reaches a terminal state.

        Args:
            cancel: Optional event that aborts the wait when set

        Returns:
            Final status of a succeeded installation

        Raises:
            InstallationFailedError: If the run failed; carries the install log
            InstallationTimeoutError: If the run outlives the policy
            RuntimeError: If the handle was already waited on
        """
        if self._consumed:
            raise RuntimeError(
                f"Installation {self.installation_id} has already been waited on"
            )
        self._consumed = True

        logger.info(f"[{self.target}] ⏳ Waiting for installation {self.installation_id}")
        status, _ = poll_until(
            self.poll_status,
            lambda current: current.state.is_terminal,
            self.policy,
            description=f"[{self.target}] Installation {self.installation_id}",
            timeout_error=InstallationTimeoutError,
            cancel=cancel,
        )

        timing = f" ({status.timing})" if status.timing else ""
        if status.state is InstallationState.FAILED:
            logger.error(
                f"[{self.target}] ❌ Installation {self.installation_id} failed{timing}"
            )
            raise InstallationFailedError(
                f"Installation {self.installation_id} failed",
                payload=self.fetch_logs(),
            )

        logger.info(
            f"[{self.target}] ✅ Installation {self.installation_id} succeeded{timing}"
        )
        return status


class InstallationRunner:
    """Submits installation runs to the appliance."""

    def __init__(
        self,
        appliance: ApplianceClient,
        policy: RetryPolicy,
        payload: Optional[Dict[str, Any]] = None,
        target: str = "",
    ):
        self.appliance = appliance
        self.policy = policy
        self.payload = dict(payload if payload is not None else INSTALLATION_PAYLOAD)
        self.target = target

    def trigger(self) -> InstallationHandle:
        """
        Start an installation without waiting for it.

        Returns:
            Handle for the submitted run

        Raises:
            ApiError: If the appliance refuses the installation
        """
        logger.info(f"[{self.target}] 🚀 Triggering installation")
        response = self.appliance.trigger_installation(self.payload)
        body = require_json_body(response, "Triggering installation")

        try:
            installation_id = body["install"]["id"]
        except (KeyError, TypeError):
            raise ApiError(
                "Installation response carried no install id",
                status_code=response.status_code,
                body=response.text,
            )

        logger.info(f"[{self.target}] Installation {installation_id} started")
        return InstallationHandle(
            self.appliance, installation_id, self.policy, target=self.target
        )
