"""
Custom exception classes for deployment and upgrade operations.

Provides hierarchical exception handling for granular error categorization
and specific failure scenarios while reconciling the appliance.
"""

from typing import Optional


class DeploymentError(Exception):
    """Base exception for all deployment-related errors"""

    def __init__(self, message: str, remediation: str = None):
        self.message = message
        self.remediation = remediation
        super().__init__(self.message)


class ConfigurationError(DeploymentError):
    """Raised when the deployment file cannot be read or validated"""

    pass


class ApiError(DeploymentError):
    """Raised when an API call fails or answers with an unexpected status"""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        body: Optional[str] = None,
        remediation: str = None,
    ):
        self.status_code = status_code
        self.body = body
        super().__init__(message, remediation)


class ResolutionError(DeploymentError):
    """Raised when a stemcell cannot be mapped to a downloadable release file"""

    pass


class NoMatchingReleaseError(ResolutionError):
    """Raised when no release exists in the requested stemcell family"""

    pass


class NoMatchingFileError(ResolutionError):
    """Raised when no release file matches the platform pattern"""

    pass


class StemcellImportError(DeploymentError):
    """Raised when the appliance rejects a staged stemcell"""

    def __init__(self, message: str, path: str = None, remediation: str = None):
        self.path = path
        super().__init__(message, remediation)


class UnstagedStemcellError(DeploymentError):
    """Raised when the staging directory holds a file this run did not download"""

    def __init__(self, message: str, path: str = None, remediation: str = None):
        self.path = path
        super().__init__(message, remediation)


class InstallationFailedError(DeploymentError):
    """Raised when an installation run finishes in the failed state"""

    def __init__(self, message: str, payload: Optional[str] = None):
        self.payload = payload
        super().__init__(
            message,
            remediation="Inspect the installation log on the appliance and re-run",
        )


class InstallationTimeoutError(DeploymentError):
    """Raised when an installation run does not finish within its policy"""

    pass


class AvailabilityTimeoutError(DeploymentError):
    """Raised when the authentication service never reports ready"""

    pass


class BootstrapFailedError(DeploymentError):
    """Raised when the first admin user cannot be created"""

    pass


class OperationCancelledError(DeploymentError):
    """Raised when a caller-supplied cancel event interrupts a wait"""

    pass


class UnsupportedDowngradeError(DeploymentError):
    """Raised when the deployed appliance is newer than the desired version"""

    pass
