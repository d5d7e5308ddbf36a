"""
Authentication-service readiness polling.

After a new appliance VM boots, its web front end answers long before the
authentication service behind it is ready. The appliance signals readiness
by redirecting the availability endpoint to the UAA login flow; until then
it answers with gateway errors, a setup redirect, or a "waiting" page.
"""

import threading
from typing import Optional

import httpx
from loguru import logger

from appliance_deployer.config.settings import RetryPolicy
from appliance_deployer.connectivity.appliance_api import ApplianceClient
from appliance_deployer.core.constants import (
    AVAILABILITY_ENDPOINT,
    AVAILABILITY_MARKER,
)
from appliance_deployer.core.enums import AvailabilityState
from appliance_deployer.core.exceptions import ApiError, AvailabilityTimeoutError
from appliance_deployer.utils.polling import poll_until

REDIRECT_STATUSES = frozenset({301, 302, 303, 307, 308})


class AvailabilityPoller:
    """
    Blocks until the appliance's authentication service reports ready.

    Two states: WAITING until a probe answers with a redirect whose body
    carries the marker, then READY. Transport errors count as WAITING since
    the VM may still be booting.
    """

    def __init__(
        self,
        appliance: ApplianceClient,
        policy: RetryPolicy,
        endpoint: str = AVAILABILITY_ENDPOINT,
        marker: str = AVAILABILITY_MARKER,
        target: str = "",
    ):
        self.appliance = appliance
        self.policy = policy
        self.endpoint = endpoint
        self.marker = marker
        self.target = target
        self.state = AvailabilityState.WAITING

    def is_ready(self, response: Optional[httpx.Response]) -> bool:
        if response is None:
            return False
        return response.status_code in REDIRECT_STATUSES and self.marker in response.text

    def _probe(self) -> Optional[httpx.Response]:
        try:
            response = self.appliance.probe_availability(self.endpoint)
        except ApiError as e:
            logger.debug(f"[{self.target}] Availability probe failed: {e}")
            return None
        logger.debug(
            f"[{self.target}] Availability probe answered {response.status_code}"
        )
        return response

    def wait_for_auth(self, cancel: Optional[threading.Event] = None) -> int:
        """
        Poll the availability endpoint until the authentication flow is live.

        Args:
            cancel: Optional event that aborts the wait when set

        Returns:
            Number of probes issued

        Raises:
            AvailabilityTimeoutError: If the policy's attempts or deadline run out
            OperationCancelledError: If ``cancel`` is set
        """
        self.state = AvailabilityState.WAITING
        logger.info(f"[{self.target}] ⏳ Waiting for authentication service")

        _, attempts = poll_until(
            self._probe,
            self.is_ready,
            self.policy,
            description=f"[{self.target}] Authentication service availability",
            timeout_error=AvailabilityTimeoutError,
            cancel=cancel,
        )

        self.state = AvailabilityState.READY
        logger.info(
            f"[{self.target}] ✅ Authentication service ready after {attempts} probe(s)"
        )
        return attempts
