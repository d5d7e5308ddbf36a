"""
Bounded polling shared by the availability poller, user bootstrap and
installation waits.

Every loop is capped by ``RetryPolicy.max_attempts`` and, when set,
``RetryPolicy.timeout_seconds``. Sleeps go through an optional
``threading.Event`` so a caller can cancel a wait from another thread.
"""

import threading
import time
from typing import Callable, Optional, Tuple, Type, TypeVar

from loguru import logger

from appliance_deployer.config.settings import RetryPolicy
from appliance_deployer.core.exceptions import (
    DeploymentError,
    OperationCancelledError,
)

T = TypeVar("T")


def interruptible_sleep(delay: float, cancel: Optional[threading.Event] = None) -> None:
    """
    Sleep for ``delay`` seconds, waking early if ``cancel`` is set.

    Raises:
        OperationCancelledError: If the cancel event is set
    """
    if cancel is None:
        time.sleep(delay)
        return
    if cancel.wait(delay):
        raise OperationCancelledError("Operation cancelled while waiting")


def poll_until(
    attempt: Callable[[], T],
    is_done: Callable[[T], bool],
    policy: RetryPolicy,
    description: str,
    timeout_error: Type[DeploymentError],
    cancel: Optional[threading.Event] = None,
    clock: Callable[[], float] = time.monotonic,
) -> Tuple[T, int]:
    """
    Call ``attempt`` until ``is_done`` accepts its result.

    Args:
        attempt: Zero-argument callable performing one probe
        is_done: Predicate deciding whether the probe result is terminal
        policy: Attempt, delay and deadline bounds
        description: Human-readable name used in logs and errors
        timeout_error: Exception type raised when the bounds are exhausted
        cancel: Optional event that aborts the loop when set
        clock: Monotonic clock, overridable for tests

    Returns:
        Tuple of (terminal result, number of attempts made)

    Raises:
        timeout_error: When attempts or time run out
        OperationCancelledError: When ``cancel`` is set
    """
    start = clock()
    attempts = 0

    while attempts < policy.max_attempts:
        if cancel is not None and cancel.is_set():
            raise OperationCancelledError(f"{description} cancelled")

        attempts += 1
        result = attempt()
        if is_done(result):
            logger.debug(f"{description} finished after {attempts} attempt(s)")
            return result, attempts

        if attempts >= policy.max_attempts:
            break

        delay = policy.delay_for(attempts)
        if policy.timeout_seconds is not None:
            remaining = policy.timeout_seconds - (clock() - start)
            if remaining <= 0:
                break
            delay = min(delay, remaining)

        logger.debug(
            f"🔄 {description} not ready (attempt {attempts}/{policy.max_attempts}), "
            f"retrying in {delay:.1f}s"
        )
        interruptible_sleep(delay, cancel)

    elapsed = clock() - start
    raise timeout_error(
        f"{description} did not complete after {attempts} attempt(s) in {elapsed:.1f}s"
    )
