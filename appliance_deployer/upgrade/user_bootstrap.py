"""First admin user creation with bounded retries."""

import threading
from typing import Optional

import httpx
from loguru import logger

from appliance_deployer.config.settings import RetryPolicy
from appliance_deployer.connectivity.appliance_api import ApplianceClient
from appliance_deployer.core.exceptions import ApiError, BootstrapFailedError
from appliance_deployer.utils.polling import poll_until


class UserBootstrapRetrier:
    """
    Creates the first admin user on a freshly deployed appliance.

    The setup endpoint refuses requests until the appliance finishes booting,
    so every non-2xx answer (and every transport error) is retried with the
    policy's backoff until it succeeds or the attempts run out.
    """

    def __init__(
        self,
        appliance: ApplianceClient,
        username: str,
        password: str,
        decryption_passphrase: str,
        policy: RetryPolicy,
        target: str = "",
    ):
        self.appliance = appliance
        self.username = username
        self.password = password
        self.decryption_passphrase = decryption_passphrase
        self.policy = policy
        self.target = target

    def _attempt(self) -> Optional[httpx.Response]:
        try:
            response = self.appliance.create_user(
                self.username, self.password, self.decryption_passphrase
            )
        except ApiError as e:
            logger.debug(f"[{self.target}] User creation request failed: {e}")
            return None
        if not response.is_success:
            logger.debug(
                f"[{self.target}] User creation answered {response.status_code}, will retry"
            )
        return response

    def create_first_user(self, cancel: Optional[threading.Event] = None) -> int:
        """
        Returns:
            Number of attempts made

        Raises:
            BootstrapFailedError: If no attempt succeeded within the policy
        """
        logger.info(f"[{self.target}] 👤 Creating admin user {self.username}")
        _, attempts = poll_until(
            self._attempt,
            lambda response: response is not None and response.is_success,
            self.policy,
            description=f"[{self.target}] Admin user creation",
            timeout_error=BootstrapFailedError,
            cancel=cancel,
        )
        logger.info(f"[{self.target}] ✅ Admin user created after {attempts} attempt(s)")
        return attempts
