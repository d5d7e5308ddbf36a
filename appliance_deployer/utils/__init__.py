"""
Utility functions and helper modules.

Provides the bounded polling loop and lenient JSON decoding shared by the
orchestration modules.
"""

from .json_utils import require_json_body, safe_json_body
from .polling import interruptible_sleep, poll_until

__all__ = [
    "interruptible_sleep",
    "poll_until",
    "require_json_body",
    "safe_json_body",
]
