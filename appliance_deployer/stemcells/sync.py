"""
Stemcell staging and provisioning.

Before an appliance is replaced, every stemcell its installed products use is
downloaded from the license portal into a staging directory. Once the new
appliance is up, everything staged is imported into it. The staging directory
belongs to this pipeline for the duration of one download/provision cycle
and is cleared at the start of each cycle.
"""

from pathlib import Path
from typing import List, Optional, Pattern, Set, Union

from loguru import logger

from appliance_deployer.connectivity.appliance_api import ApplianceClient
from appliance_deployer.connectivity.license_portal import LicensePortalClient
from appliance_deployer.core.constants import (
    DEFAULT_STAGING_DIR,
    DEFAULT_STEMCELL_PLATFORM,
    STEMCELL_PRODUCT_SLUG,
)
from appliance_deployer.core.dataclasses import StagedStemcell
from appliance_deployer.core.exceptions import StemcellImportError, UnstagedStemcellError
from appliance_deployer.stemcells.resolver import StemcellResolver
from appliance_deployer.utils.json_utils import require_json_body


class StemcellSyncPipeline:
    """
    Downloads the stemcells in use and imports them into a new appliance.

    Attributes:
        staging_dir: Local directory files are downloaded into
        platform_pattern: Regex selecting the platform build of each stemcell
        accepted_releases: Release ids whose EULA was accepted this run
        staged: Stemcells downloaded this run, in download order
    """

    def __init__(
        self,
        appliance: ApplianceClient,
        portal: LicensePortalClient,
        staging_dir: Union[str, Path] = DEFAULT_STAGING_DIR,
        platform_pattern: Union[str, Pattern] = DEFAULT_STEMCELL_PLATFORM,
        resolver: Optional[StemcellResolver] = None,
        product_slug: str = STEMCELL_PRODUCT_SLUG,
        target: str = "",
    ):
        self.appliance = appliance
        self.portal = portal
        self.staging_dir = Path(staging_dir)
        self.platform_pattern = platform_pattern
        self.product_slug = product_slug
        self.resolver = resolver or StemcellResolver(portal, product_slug)
        self.target = target
        self.accepted_releases: Set[int] = set()
        self.staged: List[StagedStemcell] = []

    def list_current_stemcells(self) -> List[str]:
        """
        Stemcell versions referenced by the installed products.

        Document order is kept and duplicates are preserved, one entry per
        product that pins a stemcell.
        """
        response = self.appliance.get_installation_settings()
        settings = require_json_body(response, "Reading installation settings")

        versions = []
        for product in settings.get("products", []) or []:
            stemcell = product.get("stemcell") or {}
            version = stemcell.get("version")
            if version:
                versions.append(str(version))

        logger.info(f"[{self.target}] Installed products use stemcells: {versions}")
        return versions

    def prepare_staging_dir(self) -> None:
        """Create the staging directory and remove files left by earlier runs."""
        self.staging_dir.mkdir(parents=True, exist_ok=True)
        for leftover in self.staging_dir.iterdir():
            if leftover.is_file():
                logger.debug(f"Removing stale staged file {leftover}")
                leftover.unlink()

    def accept_eula(self, release_id: int) -> None:
        if release_id in self.accepted_releases:
            return
        self.portal.accept_product_release_eula(self.product_slug, release_id)
        self.accepted_releases.add(release_id)

    def download_current_stemcells(self) -> List[StagedStemcell]:
        """
        Resolve, accept and download every stemcell in use.

        One download per referenced version; a release referenced twice is
        downloaded twice over the same path. The EULA is accepted once per
        release before its first download.

        Returns:
            Stemcells staged by this call
        """
        self.prepare_staging_dir()
        self.accepted_releases.clear()
        self.staged = []

        for version in self.list_current_stemcells():
            release_id = self.resolver.find_stemcell_release(version)
            file_id, filename = self.resolver.find_stemcell_file(
                release_id, self.platform_pattern
            )
            self.accept_eula(release_id)

            write_to = str(self.staging_dir / filename)
            self.portal.download_product_release_file(
                self.product_slug, release_id, file_id, write_to=write_to
            )
            self.staged.append(
                StagedStemcell(
                    version=version,
                    release_id=release_id,
                    file_id=file_id,
                    path=write_to,
                )
            )
            logger.info(f"[{self.target}] ✅ Staged stemcell {version} as {filename}")

        return self.staged

    def staged_files(self) -> List[str]:
        return sorted(str(path) for path in self.staging_dir.glob("*") if path.is_file())

    def check_staged_files(self, paths: List[str]) -> None:
        """
        Refuse any file not downloaded by this run under an accepted EULA.

        Raises:
            UnstagedStemcellError: For the first file without such a download
        """
        accepted = {
            stemcell.path
            for stemcell in self.staged
            if stemcell.release_id in self.accepted_releases
        }
        for path in paths:
            if path not in accepted:
                raise UnstagedStemcellError(
                    f"Refusing to import {path}: it was not downloaded under an "
                    f"accepted EULA in this run",
                    path=path,
                    remediation=f"Remove {path} from {self.staging_dir} and re-run",
                )

    def provision_stemcells(self) -> List[str]:
        """
        Import every staged file into the appliance.

        Every file is checked against this run's downloads before anything is
        imported. The access token is reset before the first import because
        the downloads may have outlived it. The first rejected import aborts
        the remaining ones.

        Returns:
            Paths imported, in import order

        Raises:
            UnstagedStemcellError: If a file was not downloaded by this run
            StemcellImportError: If the appliance rejects a stemcell
        """
        paths = self.staged_files()
        self.check_staged_files(paths)
        self.appliance.reset_access_token()

        imported = []
        for path in paths:
            logger.info(f"[{self.target}] 📤 Importing stemcell {path}")
            response = self.appliance.import_stemcell(path)
            if not response.is_success:
                raise StemcellImportError(
                    f"Import of {path} failed with status {response.status_code}: "
                    f"{response.text}",
                    path=path,
                )
            imported.append(path)

        logger.info(f"[{self.target}] ✅ Imported {len(imported)} stemcell(s)")
        return imported
