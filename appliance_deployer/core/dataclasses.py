"""
Data classes for the deployment engine.

Structured containers for license-portal listings, staged files and
installation status reported by the appliance.
"""

import posixpath
from dataclasses import dataclass
from typing import Any, Dict, Optional

from .enums import InstallationState


@dataclass(frozen=True)
class ReleaseCandidate:
    """A release listed by the license portal for a product family."""

    id: int
    version: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ReleaseCandidate":
        return cls(id=data["id"], version=str(data.get("version", "")))


@dataclass(frozen=True)
class ReleaseFile:
    """A downloadable file belonging to a release."""

    id: int
    object_key: str

    @property
    def filename(self) -> str:
        """Basename of the object key, used for matching and staging."""
        return posixpath.basename(self.object_key)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ReleaseFile":
        return cls(id=data["id"], object_key=data.get("aws_object_key", ""))


@dataclass(frozen=True)
class StagedStemcell:
    """A stemcell downloaded into the staging directory during this run."""

    version: str
    release_id: int
    file_id: int
    path: str


@dataclass
class InstallationStatus:
    """Status of an installation run as reported by the appliance."""

    installation_id: int
    state: InstallationState
    started_at: Optional[str] = None
    finished_at: Optional[str] = None

    @property
    def timing(self) -> str:
        """Start and finish times as reported by the appliance, for log lines."""
        parts = []
        if self.started_at:
            parts.append(f"started {self.started_at}")
        if self.finished_at:
            parts.append(f"finished {self.finished_at}")
        return ", ".join(parts)

    @classmethod
    def from_dict(cls, installation_id: int, data: Dict[str, Any]) -> "InstallationStatus":
        raw_state = str(data.get("status", InstallationState.RUNNING.value)).lower()
        try:
            state = InstallationState(raw_state)
        except ValueError:
            # Unknown states are still in progress as far as we can tell
            state = InstallationState.RUNNING
        return cls(
            installation_id=installation_id,
            state=state,
            started_at=data.get("started_at"),
            finished_at=data.get("finished_at"),
        )
