"""
Version parsing, comparison and version-change classification.

Appliance and stemcell versions are dotted sequences of non-negative integers
(``1.8.2.0``, ``3062``, ``3000.2``). Anything that does not parse yields the
empty version, which stands for "no appliance deployed" and sorts before
every concrete version.
"""

import re
from functools import total_ordering
from typing import Optional, Tuple

from loguru import logger

from appliance_deployer.core.enums import VersionAction

# Optional pre-release / build suffix after the numeric part is ignored
_VERSION_PATTERN = re.compile(r"^v?(\d+(?:\.\d+)*)(?:[-+].*)?$")


@total_ordering
class Version:
    """
    Immutable dotted-integer version.

    Comparison pads the shorter operand with zeros, so ``1.8.2`` and
    ``1.8.2.0`` are equal. The empty version equals only another empty
    version and is less than every concrete version.
    """

    __slots__ = ("_parts",)

    def __init__(self, parts: Tuple[int, ...] = ()):
        object.__setattr__(self, "_parts", tuple(parts))

    def __setattr__(self, name, value):
        raise AttributeError("Version is immutable")

    @classmethod
    def parse(cls, raw: Optional[str]) -> "Version":
        """
        Parse a dotted version string.

        Never raises: blank, ``None`` or malformed input yields the empty
        version.

        Args:
            raw: Version string such as ``"1.8.2.0"``

        Returns:
            Parsed Version
        """
        if raw is None:
            return cls.empty()

        match = _VERSION_PATTERN.match(str(raw).strip())
        if not match:
            if str(raw).strip():
                logger.warning(f"Could not parse version string: {raw!r}")
            return cls.empty()

        return cls(tuple(int(part) for part in match.group(1).split(".")))

    @classmethod
    def empty(cls) -> "Version":
        return cls(())

    @property
    def parts(self) -> Tuple[int, ...]:
        return self._parts

    @property
    def major(self) -> Optional[int]:
        return self._parts[0] if self._parts else None

    def is_empty(self) -> bool:
        return not self._parts

    def normalized(self) -> Tuple[int, ...]:
        """Components with the trailing run of zeros removed (at least one kept)."""
        parts = list(self._parts)
        while len(parts) > 1 and parts[-1] == 0:
            parts.pop()
        return tuple(parts)

    def compare(self, other: "Version") -> int:
        """
        Three-way comparison.

        Returns:
            -1 if self < other, 0 if equal, 1 if self > other
        """
        if self.is_empty() or other.is_empty():
            return (not self.is_empty()) - (not other.is_empty())

        length = max(len(self._parts), len(other._parts))
        left = self._parts + (0,) * (length - len(self._parts))
        right = other._parts + (0,) * (length - len(other._parts))
        return (left > right) - (left < right)

    def __eq__(self, other):
        if not isinstance(other, Version):
            return NotImplemented
        return self.compare(other) == 0

    def __lt__(self, other):
        if not isinstance(other, Version):
            return NotImplemented
        return self.compare(other) < 0

    def __hash__(self):
        return hash(self.normalized())

    def __str__(self):
        return ".".join(str(part) for part in self.normalized())

    def __repr__(self):
        return f"Version({str(self)!r})"


def compare_versions(current: Version, desired: Version) -> VersionAction:
    """
    Compare deployed and desired versions to determine the reconciliation action.

    Args:
        current: Version currently running on the appliance (may be empty)
        desired: Version requested by the deployment file

    Returns:
        VersionAction describing what the run should do
    """
    if current.is_empty():
        return VersionAction.DEPLOY

    result = current.compare(desired)
    if result == 0:
        return VersionAction.SAME_VERSION
    if result < 0:
        return VersionAction.UPGRADE
    return VersionAction.DOWNGRADE
