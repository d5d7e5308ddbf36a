"""
Deployment file models and loader.

The deployment file is a YAML document describing one appliance: its name,
address, desired version, credentials, and the knobs that bound the
polling loops. It is validated once into a frozen ``ApplianceConfig`` that
is handed to the orchestrator and never mutated.
"""

from pathlib import Path
from typing import Optional, Union

import yaml
from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from appliance_deployer.core.constants import (
    AVAILABILITY_INTERVAL,
    AVAILABILITY_MAX_ATTEMPTS,
    AVAILABILITY_TIMEOUT,
    BOOTSTRAP_BACKOFF_FACTOR,
    BOOTSTRAP_INTERVAL,
    BOOTSTRAP_MAX_ATTEMPTS,
    BOOTSTRAP_MAX_INTERVAL,
    DEFAULT_INSTALLATION_ASSETS_PATH,
    DEFAULT_STAGING_DIR,
    DEFAULT_STEMCELL_PLATFORM,
    INSTALLATION_INTERVAL,
    INSTALLATION_MAX_ATTEMPTS,
    INSTALLATION_TIMEOUT,
)
from appliance_deployer.core.exceptions import ConfigurationError


class RetryPolicy(BaseModel):
    """Bounds for a polling or retry loop."""

    model_config = ConfigDict(frozen=True)

    max_attempts: int = Field(..., ge=1)
    interval_seconds: float = Field(..., ge=0)
    backoff_factor: float = Field(1.0, ge=1.0)
    max_interval_seconds: Optional[float] = Field(None, ge=0)
    timeout_seconds: Optional[float] = Field(None, gt=0)

    def delay_for(self, attempt: int) -> float:
        """Delay to sleep after the given (1-based) failed attempt."""
        delay = self.interval_seconds * (self.backoff_factor ** (attempt - 1))
        if self.max_interval_seconds is not None:
            delay = min(delay, self.max_interval_seconds)
        return delay


def default_availability_policy() -> RetryPolicy:
    return RetryPolicy(
        max_attempts=AVAILABILITY_MAX_ATTEMPTS,
        interval_seconds=AVAILABILITY_INTERVAL,
        timeout_seconds=AVAILABILITY_TIMEOUT,
    )


def default_bootstrap_policy() -> RetryPolicy:
    return RetryPolicy(
        max_attempts=BOOTSTRAP_MAX_ATTEMPTS,
        interval_seconds=BOOTSTRAP_INTERVAL,
        backoff_factor=BOOTSTRAP_BACKOFF_FACTOR,
        max_interval_seconds=BOOTSTRAP_MAX_INTERVAL,
    )


def default_installation_policy() -> RetryPolicy:
    return RetryPolicy(
        max_attempts=INSTALLATION_MAX_ATTEMPTS,
        interval_seconds=INSTALLATION_INTERVAL,
        timeout_seconds=INSTALLATION_TIMEOUT,
    )


class VmCommands(BaseModel):
    """Shell commands used by scripted VM provisioning."""

    model_config = ConfigDict(frozen=True)

    deploy_command: Optional[str] = None
    stop_command: Optional[str] = None


class ApplianceConfig(BaseModel):
    """Validated contents of a deployment file."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    name: str
    desired_version: str
    ip: str
    username: str
    password: str
    pivnet_token: str
    decryption_passphrase: Optional[str] = None

    stemcell_platform: str = DEFAULT_STEMCELL_PLATFORM
    staging_dir: str = DEFAULT_STAGING_DIR
    installation_assets_path: str = DEFAULT_INSTALLATION_ASSETS_PATH

    availability: RetryPolicy = Field(default_factory=default_availability_policy)
    bootstrap: RetryPolicy = Field(default_factory=default_bootstrap_policy)
    installation: RetryPolicy = Field(default_factory=default_installation_policy)

    vm: VmCommands = Field(default_factory=VmCommands)

    @model_validator(mode="before")
    @classmethod
    def _stringify_version(cls, data):
        # YAML turns ``desired_version: 1.8`` into a float
        if isinstance(data, dict) and data.get("desired_version") is not None:
            data = dict(data)
            data["desired_version"] = str(data["desired_version"])
        return data

    @property
    def passphrase(self) -> str:
        return self.decryption_passphrase or self.password


def load_deployment_config(path: Union[str, Path]) -> ApplianceConfig:
    """
    Load and validate a deployment file.

    Args:
        path: Path to the YAML deployment file

    Returns:
        Frozen ApplianceConfig

    Raises:
        ConfigurationError: If the file is missing, not YAML, or invalid
    """
    path = Path(path)
    logger.debug(f"Loading deployment file {path}")

    try:
        with path.open("r") as handle:
            data = yaml.safe_load(handle) or {}
    except FileNotFoundError:
        raise ConfigurationError(
            f"Deployment file not found: {path}",
            remediation="Pass the path of an existing deployment YAML file",
        )
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Deployment file {path} is not valid YAML: {e}")

    if not isinstance(data, dict):
        raise ConfigurationError(f"Deployment file {path} must contain a mapping")

    try:
        return ApplianceConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid deployment file {path}: {e}")
