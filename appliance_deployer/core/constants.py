"""
Application-wide constants and default operational parameters.

Centralized defaults for staging paths, license-portal product slugs, appliance
endpoints, and polling behaviour so the orchestration modules stay consistent.
"""

from typing import Final

# ==============================================================================
# STEMCELL STAGING
# ==============================================================================

DEFAULT_STAGING_DIR: Final[str] = "/tmp/current_stemcells"
DEFAULT_INSTALLATION_ASSETS_PATH: Final[str] = "installation_assets.zip"

# License portal product family holding the base images
STEMCELL_PRODUCT_SLUG: Final[str] = "stemcells"
DEFAULT_STEMCELL_PLATFORM: Final[str] = "vsphere"

# ==============================================================================
# LICENSE PORTAL
# ==============================================================================

PIVNET_BASE_URL: Final[str] = "https://network.pivotal.io/api/v2"
PIVNET_TIMEOUT: Final[float] = 60.0  # seconds
DOWNLOAD_CHUNK_SIZE: Final[int] = 1024 * 1024  # 1 MiB

# ==============================================================================
# APPLIANCE API
# ==============================================================================

APPLIANCE_TIMEOUT: Final[float] = 60.0  # seconds
UPLOAD_TIMEOUT: Final[float] = 3600.0  # stemcell and asset uploads are large
UAA_CLIENT_ID: Final[str] = "opsman"

AVAILABILITY_ENDPOINT: Final[str] = "/login/ensure_availability"
# Present in the redirect body once the appliance hands logins to UAA
AVAILABILITY_MARKER: Final[str] = "/auth/cloudfoundry"

INSTALLATION_PAYLOAD: Final[dict] = {
    "ignore_warnings": True,
    "deploy_products": "all",
}

# ==============================================================================
# RETRY AND POLLING DEFAULTS
# ==============================================================================

AVAILABILITY_MAX_ATTEMPTS: Final[int] = 120
AVAILABILITY_INTERVAL: Final[float] = 5.0  # seconds
AVAILABILITY_TIMEOUT: Final[float] = 1800.0  # 30 minutes

BOOTSTRAP_MAX_ATTEMPTS: Final[int] = 30
BOOTSTRAP_INTERVAL: Final[float] = 5.0  # seconds
BOOTSTRAP_BACKOFF_FACTOR: Final[float] = 1.5
BOOTSTRAP_MAX_INTERVAL: Final[float] = 60.0  # seconds

INSTALLATION_MAX_ATTEMPTS: Final[int] = 1440
INSTALLATION_INTERVAL: Final[float] = 10.0  # seconds
INSTALLATION_TIMEOUT: Final[float] = 4 * 3600.0  # 4 hours

# ==============================================================================
# LOCAL CONFIGURATION STORE
# ==============================================================================

CONFIG_STORE_DIRNAME: Final[str] = ".appliance_deployer"
CONFIG_STORE_FILENAME: Final[str] = "conf.yml"

LOG_FORMAT: Final[str] = (
    "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{line} - {message}"
)
