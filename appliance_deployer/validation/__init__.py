"""
Validation package for the deployment engine.

Contains version parsing and comparison used to decide between deploying,
upgrading, applying changes, or skipping.
"""

from .version_manager import Version, compare_versions

__all__ = [
    "Version",
    "compare_versions",
]
