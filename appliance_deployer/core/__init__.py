"""
Core package for the appliance deployment engine.

Contains fundamental data structures, constants, enumerations, and exceptions
used throughout the deployment and upgrade orchestration.
"""

from .dataclasses import (
    InstallationStatus,
    ReleaseCandidate,
    ReleaseFile,
    StagedStemcell,
)
from .enums import (
    AvailabilityState,
    DeploymentAction,
    InstallationState,
    VersionAction,
)
from .exceptions import (
    ApiError,
    AvailabilityTimeoutError,
    BootstrapFailedError,
    ConfigurationError,
    DeploymentError,
    InstallationFailedError,
    InstallationTimeoutError,
    NoMatchingFileError,
    NoMatchingReleaseError,
    OperationCancelledError,
    ResolutionError,
    StemcellImportError,
    UnstagedStemcellError,
    UnsupportedDowngradeError,
)

__all__ = [
    # Data classes
    "InstallationStatus",
    "ReleaseCandidate",
    "ReleaseFile",
    "StagedStemcell",
    # Enums
    "AvailabilityState",
    "DeploymentAction",
    "InstallationState",
    "VersionAction",
    # Exceptions
    "ApiError",
    "AvailabilityTimeoutError",
    "BootstrapFailedError",
    "ConfigurationError",
    "DeploymentError",
    "InstallationFailedError",
    "InstallationTimeoutError",
    "NoMatchingFileError",
    "NoMatchingReleaseError",
    "OperationCancelledError",
    "ResolutionError",
    "StemcellImportError",
    "UnstagedStemcellError",
    "UnsupportedDowngradeError",
]
