"""
License portal API client.

Lists product releases and their files, accepts release EULAs, and streams
release files to local disk. ``LicensePortalClient`` is the capability set the
orchestration engine depends on; ``PivnetApi`` is the httpx implementation.
"""

from pathlib import Path
from typing import Optional, Protocol, Union

import httpx
from loguru import logger

from appliance_deployer.core.constants import (
    DOWNLOAD_CHUNK_SIZE,
    PIVNET_BASE_URL,
    PIVNET_TIMEOUT,
)
from appliance_deployer.core.exceptions import ApiError


class LicensePortalClient(Protocol):
    """Operations consumed from the license portal."""

    def get_product_releases(self, product_slug: str) -> httpx.Response:
        ...

    def get_product_release_files(
        self, product_slug: str, release_id: int
    ) -> httpx.Response:
        ...

    def accept_product_release_eula(
        self, product_slug: str, release_id: int
    ) -> httpx.Response:
        ...

    def download_product_release_file(
        self,
        product_slug: str,
        release_id: int,
        file_id: int,
        write_to: Union[str, Path],
    ) -> httpx.Response:
        ...


class PivnetApi:
    """httpx client for the license portal REST API."""

    def __init__(
        self,
        token: str,
        base_url: str = PIVNET_BASE_URL,
        timeout: float = PIVNET_TIMEOUT,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self._client = httpx.Client(
            base_url=base_url,
            headers={
                "Authorization": f"Token {token}",
                "Accept": "application/json",
            },
            timeout=timeout,
            follow_redirects=True,
            transport=transport,
        )

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    def close(self) -> None:
        self._client.close()

    def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            return self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise ApiError(f"License portal {method} {path} failed: {e}")

    def get_product_releases(self, product_slug: str) -> httpx.Response:
        return self._request("GET", f"/products/{product_slug}/releases")

    def get_product_release_files(
        self, product_slug: str, release_id: int
    ) -> httpx.Response:
        return self._request(
            "GET", f"/products/{product_slug}/releases/{release_id}/product_files"
        )

    def accept_product_release_eula(
        self, product_slug: str, release_id: int
    ) -> httpx.Response:
        logger.info(f"Accepting EULA for {product_slug} release {release_id}")
        response = self._request(
            "POST", f"/products/{product_slug}/releases/{release_id}/eula_acceptance"
        )
        if not response.is_success:
            raise ApiError(
                f"EULA acceptance for {product_slug} release {release_id} failed "
                f"with status {response.status_code}",
                status_code=response.status_code,
                body=response.text,
            )
        return response

    def download_product_release_file(
        self,
        product_slug: str,
        release_id: int,
        file_id: int,
        write_to: Union[str, Path],
    ) -> httpx.Response:
        """
        Stream a release file to ``write_to``, overwriting any existing file.

        Raises:
            ApiError: If the portal refuses the download or the transfer fails
        """
        path = (
            f"/products/{product_slug}/releases/{release_id}"
            f"/product_files/{file_id}/download"
        )
        logger.info(f"📥 Downloading {product_slug} file {file_id} to {write_to}")

        try:
            with self._client.stream("POST", path) as response:
                if not response.is_success:
                    response.read()
                    raise ApiError(
                        f"Download of {product_slug} file {file_id} failed "
                        f"with status {response.status_code}",
                        status_code=response.status_code,
                        body=response.text,
                    )
                with open(write_to, "wb") as handle:
                    for chunk in response.iter_bytes(DOWNLOAD_CHUNK_SIZE):
                        handle.write(chunk)
        except httpx.HTTPError as e:
            raise ApiError(f"Download of {product_slug} file {file_id} failed: {e}")

        return response
