"""
Stemcell release and file resolution against the license portal.

Installed products pin a stemcell version; the portal may not publish that
exact release. Resolution falls back to the newest release of the same
stemcell generation (same major component), then picks the file built for
the target platform.
"""

import re
from typing import List, Pattern, Sequence, Tuple, Union

from loguru import logger

from appliance_deployer.connectivity.license_portal import LicensePortalClient
from appliance_deployer.core.constants import STEMCELL_PRODUCT_SLUG
from appliance_deployer.core.dataclasses import ReleaseCandidate, ReleaseFile
from appliance_deployer.core.exceptions import (
    NoMatchingFileError,
    NoMatchingReleaseError,
)
from appliance_deployer.utils.json_utils import require_json_body
from appliance_deployer.validation.version_manager import Version


def resolve_release(
    candidates: Sequence[ReleaseCandidate], required: Version
) -> int:
    """
    Pick the release id to use for a required stemcell version.

    An exact version match wins (first one, in the order given). Otherwise the
    newest release sharing the required major component is chosen, whether it
    is above or below the requested minor.

    Args:
        candidates: Releases listed by the portal, in portal order
        required: Stemcell version referenced by an installed product

    Returns:
        Release id

    Raises:
        NoMatchingReleaseError: If no release shares the required major
    """
    if required.is_empty():
        raise NoMatchingReleaseError("Cannot resolve a stemcell release for an empty version")

    parsed = [(candidate, Version.parse(candidate.version)) for candidate in candidates]

    for candidate, version in parsed:
        if not version.is_empty() and version == required:
            return candidate.id

    family = [(candidate, version) for candidate, version in parsed if version.major == required.major]
    if not family:
        raise NoMatchingReleaseError(
            f"No stemcell release available in the {required.major}.x family "
            f"(required {required})",
            remediation="Check that the stemcell line is still published on the license portal",
        )

    # max() keeps the first of equal versions
    newest, newest_version = max(family, key=lambda pair: pair[1])
    logger.info(
        f"Stemcell {required} not published, using newest {required.major}.x "
        f"release {newest_version} (id {newest.id})"
    )
    return newest.id


def resolve_file(
    files: Sequence[ReleaseFile], platform_pattern: Union[str, Pattern]
) -> Tuple[int, str]:
    """
    Pick the release file whose object key matches the platform pattern.

    The pattern is expected to select exactly one file. When it selects
    several, the first in listing order is used.

    Returns:
        Tuple of (file id, filename)

    Raises:
        NoMatchingFileError: If no file matches
    """
    pattern = re.compile(platform_pattern)
    matches = [release_file for release_file in files if pattern.search(release_file.object_key)]

    if not matches:
        raise NoMatchingFileError(
            f"No release file matches platform pattern {pattern.pattern!r}",
            remediation="Set stemcell_platform to a pattern matching one published file",
        )
    if len(matches) > 1:
        logger.warning(
            f"Platform pattern {pattern.pattern!r} matched {len(matches)} files, "
            f"using {matches[0].filename}"
        )

    chosen = matches[0]
    return chosen.id, chosen.filename


class StemcellResolver:
    """Fetches portal listings and resolves stemcell releases and files."""

    def __init__(
        self,
        portal: LicensePortalClient,
        product_slug: str = STEMCELL_PRODUCT_SLUG,
    ):
        self.portal = portal
        self.product_slug = product_slug

    def list_releases(self) -> List[ReleaseCandidate]:
        response = self.portal.get_product_releases(self.product_slug)
        body = require_json_body(response, f"Listing {self.product_slug} releases")
        return [ReleaseCandidate.from_dict(item) for item in body.get("releases", [])]

    def list_release_files(self, release_id: int) -> List[ReleaseFile]:
        response = self.portal.get_product_release_files(self.product_slug, release_id)
        body = require_json_body(
            response, f"Listing files of {self.product_slug} release {release_id}"
        )
        return [ReleaseFile.from_dict(item) for item in body.get("product_files", [])]

    def find_stemcell_release(self, stemcell_version: Union[str, Version]) -> int:
        required = (
            stemcell_version
            if isinstance(stemcell_version, Version)
            else Version.parse(stemcell_version)
        )
        return resolve_release(self.list_releases(), required)

    def find_stemcell_file(
        self, release_id: int, platform_pattern: Union[str, Pattern]
    ) -> Tuple[int, str]:
        return resolve_file(self.list_release_files(release_id), platform_pattern)
