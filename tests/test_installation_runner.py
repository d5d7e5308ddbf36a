import pytest
from loguru import logger

from appliance_deployer.config.settings import RetryPolicy
from appliance_deployer.core.constants import INSTALLATION_PAYLOAD
from appliance_deployer.core.enums import InstallationState
from appliance_deployer.core.exceptions import (
    ApiError,
    InstallationFailedError,
    InstallationTimeoutError,
)
from appliance_deployer.upgrade.installation_runner import InstallationRunner
from tests.fakes import json_response


@pytest.fixture
def runner(appliance, fast_policy):
    return InstallationRunner(appliance, fast_policy)


def test_trigger_does_not_wait(runner, calls):
    handle = runner.trigger()

    assert handle.installation_id == 42
    assert calls.args_of("trigger_installation") == [(INSTALLATION_PAYLOAD,)]
    assert calls.count_of("get_installation") == 0


def test_wait_polls_until_succeeded(runner, appliance, calls):
    appliance.installation_statuses = ["running", "running", "succeeded"]

    status = runner.trigger().wait_for_result()

    assert status.state is InstallationState.SUCCEEDED
    assert calls.count_of("get_installation") == 3


def test_failed_installation_carries_logs(runner, appliance):
    appliance.installation_statuses = ["running", "failed"]
    appliance.installation_logs = "Error: bosh deploy failed"

    with pytest.raises(InstallationFailedError) as excinfo:
        runner.trigger().wait_for_result()

    assert excinfo.value.payload == "Error: bosh deploy failed"


def test_handle_can_only_be_waited_on_once(runner):
    handle = runner.trigger()
    handle.wait_for_result()

    with pytest.raises(RuntimeError):
        handle.wait_for_result()


def test_wait_is_bounded(appliance):
    appliance.installation_statuses = ["running"]
    runner = InstallationRunner(appliance, RetryPolicy(max_attempts=2, interval_seconds=0))

    with pytest.raises(InstallationTimeoutError):
        runner.trigger().wait_for_result()


def test_refused_trigger_raises(runner, appliance):
    appliance.installation_responses = [json_response(422, {"errors": ["pending"]})]

    with pytest.raises(ApiError):
        runner.trigger()


def test_trigger_without_install_id_raises(runner, appliance):
    appliance.installation_responses = [json_response(200, {"unexpected": True})]

    with pytest.raises(ApiError):
        runner.trigger()


def test_finished_installation_logs_its_timing(runner, appliance):
    appliance.installation_times = {
        "started_at": "2026-10-19T10:00:00Z",
        "finished_at": "2026-10-19T10:42:00Z",
    }
    messages = []
    handler_id = logger.add(messages.append, format="{message}")
    try:
        status = runner.trigger().wait_for_result()
    finally:
        logger.remove(handler_id)

    assert status.timing == "started 2026-10-19T10:00:00Z, finished 2026-10-19T10:42:00Z"
    assert any(
        "succeeded (started 2026-10-19T10:00:00Z, finished 2026-10-19T10:42:00Z)" in m
        for m in messages
    )


def test_status_without_times_has_empty_timing(runner):
    assert runner.trigger().wait_for_result().timing == ""


def test_status_body_that_is_not_a_mapping_raises(runner, appliance, monkeypatch):
    handle = runner.trigger()
    monkeypatch.setattr(appliance, "get_installation", lambda installation_id: json_response(200, ["running"]))

    with pytest.raises(ApiError):
        handle.wait_for_result()
