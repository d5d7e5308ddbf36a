"""
Progress reporting package.

Prints the operator-facing reconciliation messages.
"""

from .formatter import ProgressFormatter

__all__ = ["ProgressFormatter"]
