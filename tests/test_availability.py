import threading

import pytest

from appliance_deployer.config.settings import RetryPolicy
from appliance_deployer.connectivity.availability import AvailabilityPoller
from appliance_deployer.core.enums import AvailabilityState
from appliance_deployer.core.exceptions import (
    ApiError,
    AvailabilityTimeoutError,
    OperationCancelledError,
)
from tests.fakes import text_response

READY = text_response(302, "You are being /auth/cloudfoundry redirected")


@pytest.fixture
def poller(appliance, fast_policy):
    return AvailabilityPoller(appliance, fast_policy, target="1.2.3.4")


def test_ready_on_first_probe(poller, calls):
    assert poller.wait_for_auth() == 1
    assert poller.state is AvailabilityState.READY
    assert calls.args_of("probe_availability") == [("/login/ensure_availability",)]


def test_waits_until_redirect_carries_marker(poller, appliance, calls):
    appliance.availability_responses = [
        text_response(503, "503 Bad Gateway"),
        text_response(302, "Ops Manager Setup"),
        text_response(200, "Waiting for authentication system to start..."),
        READY,
    ]

    assert poller.wait_for_auth() == 4
    assert calls.count_of("probe_availability") == 4


def test_marker_without_redirect_is_not_ready(poller):
    assert not poller.is_ready(text_response(200, "/auth/cloudfoundry"))
    assert poller.is_ready(READY)


def test_transport_errors_keep_waiting(poller, appliance):
    appliance.availability_responses = [ApiError("connection refused"), READY]

    assert poller.wait_for_auth() == 2


def test_gives_up_after_max_attempts(appliance, calls):
    appliance.availability_responses = [text_response(503, "Bad Gateway")]
    poller = AvailabilityPoller(appliance, RetryPolicy(max_attempts=3, interval_seconds=0))

    with pytest.raises(AvailabilityTimeoutError):
        poller.wait_for_auth()

    assert calls.count_of("probe_availability") == 3
    assert poller.state is AvailabilityState.WAITING


def test_cancel_event_stops_waiting(poller, appliance, calls):
    appliance.availability_responses = [text_response(503, "Bad Gateway")]
    cancel = threading.Event()
    cancel.set()

    with pytest.raises(OperationCancelledError):
        poller.wait_for_auth(cancel=cancel)

    assert calls.count_of("probe_availability") == 0
