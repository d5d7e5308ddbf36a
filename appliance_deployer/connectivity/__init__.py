"""
Connectivity package: API clients for the license portal and the appliance,
and the authentication-service availability poller.
"""

from .appliance_api import ApplianceApi, ApplianceClient
from .availability import AvailabilityPoller
from .license_portal import LicensePortalClient, PivnetApi

__all__ = [
    "ApplianceApi",
    "ApplianceClient",
    "AvailabilityPoller",
    "LicensePortalClient",
    "PivnetApi",
]
