"""Stemcell resolution against the license portal and staging/import."""

from .resolver import StemcellResolver, resolve_file, resolve_release
from .sync import StemcellSyncPipeline

__all__ = [
    "StemcellResolver",
    "StemcellSyncPipeline",
    "resolve_file",
    "resolve_release",
]
