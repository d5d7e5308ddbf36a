"""
Human-readable progress output for console display.

The reconciliation messages are a stable contract: operators grep for them in
job logs. They are printed to stdout and mirrored to the log.
"""

import sys
from typing import Optional, TextIO

from loguru import logger


class ProgressFormatter:
    """
    Prints the reconciliation decision messages.

    Args:
        stream: Output stream; stdout when omitted
    """

    def __init__(self, stream: Optional[TextIO] = None):
        self._stream = stream

    def _emit(self, message: str) -> None:
        print(message, file=self._stream or sys.stdout, flush=True)
        logger.info(message)

    def print_banner(self, title: str, width: int = 80) -> None:
        stream = self._stream or sys.stdout
        print(f"\n{'=' * width}", file=stream)
        print(f"🎯 {title.upper()}", file=stream)
        print(f"{'=' * width}", file=stream)

    def no_appliance(self, target: str) -> None:
        self._emit(f"No appliance deployed at {target}. Deploying...")

    def already_at_version(self, target: str, version: str) -> None:
        self._emit(f"Appliance at {target} version is already {version}. Skipping...")

    def pending_changes(self, target: str) -> None:
        self._emit(f"Appliance at {target} version has pending changes. Applying changes...")

    def upgrading(self, target: str, current: str, desired: str) -> None:
        self._emit(f"Appliance at {target} version is {current}. Upgrading to {desired} ...")

    def downgrade_refused(self, target: str, current: str, desired: str) -> None:
        self._emit(
            f"Appliance at {target} version is {current}, newer than desired {desired}. "
            f"Downgrade is not supported."
        )
