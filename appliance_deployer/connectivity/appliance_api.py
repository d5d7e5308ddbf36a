"""
Appliance management API client.

Reads the appliance's diagnostic report, installation settings and pending
changes, moves the installation asset archive in and out, imports stemcells,
creates the first admin user and drives installation runs.

Authenticated calls use a UAA bearer token obtained lazily with the password
grant. ``reset_access_token`` drops the cached token so the next call
re-authenticates; long downloads can outlive a token.
"""

from pathlib import Path
from typing import Any, Dict, Optional, Protocol, Union

import httpx
from loguru import logger

from appliance_deployer.core.constants import (
    APPLIANCE_TIMEOUT,
    AVAILABILITY_ENDPOINT,
    DOWNLOAD_CHUNK_SIZE,
    UAA_CLIENT_ID,
    UPLOAD_TIMEOUT,
)
from appliance_deployer.core.exceptions import ApiError
from appliance_deployer.utils.json_utils import require_json_body


class ApplianceClient(Protocol):
    """Operations consumed from the appliance management API."""

    def get_installation_assets(self, write_to: Union[str, Path]) -> httpx.Response:
        ...

    def upload_installation_assets(
        self, path: Union[str, Path], passphrase: str
    ) -> httpx.Response:
        ...

    def get_installation_settings(self) -> httpx.Response:
        ...

    def get_diagnostic_report(self) -> Optional[httpx.Response]:
        ...

    def get_pending_changes(self) -> httpx.Response:
        ...

    def reset_access_token(self) -> None:
        ...

    def import_stemcell(self, path: Union[str, Path]) -> httpx.Response:
        ...

    def probe_availability(self, endpoint: str = AVAILABILITY_ENDPOINT) -> httpx.Response:
        ...

    def create_user(
        self, username: str, password: str, decryption_passphrase: str
    ) -> httpx.Response:
        ...

    def trigger_installation(self, payload: Dict[str, Any]) -> httpx.Response:
        ...

    def get_installation(self, installation_id: int) -> httpx.Response:
        ...

    def get_installation_logs(self, installation_id: int) -> httpx.Response:
        ...


class ApplianceApi:
    """httpx client for the appliance management API."""

    def __init__(
        self,
        target: str,
        username: str,
        password: str,
        timeout: float = APPLIANCE_TIMEOUT,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.target = target
        self.username = username
        self.password = password
        self._access_token: Optional[str] = None
        # Appliances ship with self-signed certificates
        self._client = httpx.Client(
            base_url=f"https://{target}",
            verify=False,
            timeout=timeout,
            transport=transport,
        )

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    def close(self) -> None:
        self._client.close()

    # =========================================================================
    # AUTHENTICATION
    # =========================================================================

    def _fetch_access_token(self) -> str:
        response = self._send(
            "POST",
            "/uaa/oauth/token",
            authenticated=False,
            data={
                "grant_type": "password",
                "client_id": UAA_CLIENT_ID,
                "client_secret": "",
                "username": self.username,
                "password": self.password,
            },
            headers={"Accept": "application/json"},
        )
        body = require_json_body(response, "UAA token request")
        try:
            return body["access_token"]
        except (KeyError, TypeError):
            raise ApiError(
                "UAA token response carried no access_token",
                status_code=response.status_code,
                body=response.text,
            )

    def access_token(self) -> str:
        if self._access_token is None:
            logger.debug(f"[{self.target}] Requesting UAA access token")
            self._access_token = self._fetch_access_token()
        return self._access_token

    def reset_access_token(self) -> None:
        logger.debug(f"[{self.target}] Resetting UAA access token")
        self._access_token = None

    def _send(
        self, method: str, path: str, authenticated: bool = True, **kwargs
    ) -> httpx.Response:
        headers = dict(kwargs.pop("headers", None) or {})
        if authenticated:
            headers["Authorization"] = f"Bearer {self.access_token()}"
        try:
            return self._client.request(method, path, headers=headers, **kwargs)
        except httpx.HTTPError as e:
            raise ApiError(f"[{self.target}] {method} {path} failed: {e}")

    # =========================================================================
    # READ OPERATIONS
    # =========================================================================

    def get_diagnostic_report(self) -> httpx.Response:
        return self._send("GET", "/api/v0/diagnostic_report")

    def get_installation_settings(self) -> httpx.Response:
        return self._send("GET", "/api/v0/installation_settings")

    def get_pending_changes(self) -> httpx.Response:
        return self._send("GET", "/api/v0/staged/pending_changes")

    def probe_availability(self, endpoint: str = AVAILABILITY_ENDPOINT) -> httpx.Response:
        return self._send("GET", endpoint, authenticated=False, follow_redirects=False)

    # =========================================================================
    # INSTALLATION ASSETS
    # =========================================================================

    def get_installation_assets(self, write_to: Union[str, Path]) -> httpx.Response:
        """Stream the installation asset archive to ``write_to``."""
        path = "/api/v0/installation_asset_collection"
        headers = {"Authorization": f"Bearer {self.access_token()}"}
        logger.info(f"[{self.target}] 📥 Exporting installation assets to {write_to}")

        try:
            with self._client.stream(
                "GET", path, headers=headers, timeout=UPLOAD_TIMEOUT
            ) as response:
                if not response.is_success:
                    response.read()
                    raise ApiError(
                        f"[{self.target}] Installation asset export failed "
                        f"with status {response.status_code}",
                        status_code=response.status_code,
                        body=response.text,
                    )
                with open(write_to, "wb") as handle:
                    for chunk in response.iter_bytes(DOWNLOAD_CHUNK_SIZE):
                        handle.write(chunk)
        except httpx.HTTPError as e:
            raise ApiError(f"[{self.target}] Installation asset export failed: {e}")

        return response

    def upload_installation_assets(
        self, path: Union[str, Path], passphrase: str
    ) -> httpx.Response:
        """Import an installation asset archive into a freshly deployed appliance."""
        logger.info(f"[{self.target}] 📤 Importing installation assets from {path}")
        with open(path, "rb") as handle:
            response = self._send(
                "POST",
                "/api/v0/installation_asset_collection",
                authenticated=False,
                files={"installation[file]": (Path(path).name, handle)},
                data={"passphrase": passphrase},
                timeout=UPLOAD_TIMEOUT,
            )
        if not response.is_success:
            raise ApiError(
                f"[{self.target}] Installation asset import failed "
                f"with status {response.status_code}",
                status_code=response.status_code,
                body=response.text,
            )
        return response

    # =========================================================================
    # WRITE OPERATIONS
    # =========================================================================

    def import_stemcell(self, path: Union[str, Path]) -> httpx.Response:
        with open(path, "rb") as handle:
            return self._send(
                "POST",
                "/api/v0/stemcells",
                files={"stemcell[file]": (Path(path).name, handle)},
                timeout=UPLOAD_TIMEOUT,
            )

    def create_user(
        self, username: str, password: str, decryption_passphrase: str
    ) -> httpx.Response:
        return self._send(
            "POST",
            "/api/v0/setup",
            authenticated=False,
            json={
                "setup": {
                    "decryption_passphrase": decryption_passphrase,
                    "decryption_passphrase_confirmation": decryption_passphrase,
                    "eula_accepted": "true",
                    "identity_provider": "internal",
                    "admin_user_name": username,
                    "admin_password": password,
                    "admin_password_confirmation": password,
                }
            },
        )

    def trigger_installation(self, payload: Dict[str, Any]) -> httpx.Response:
        return self._send("POST", "/api/v0/installations", json=payload)

    def get_installation(self, installation_id: int) -> httpx.Response:
        return self._send("GET", f"/api/v0/installations/{installation_id}")

    def get_installation_logs(self, installation_id: int) -> httpx.Response:
        return self._send("GET", f"/api/v0/installations/{installation_id}/logs")
