"""
Pytest fixtures shared by the deployment engine tests.
"""

import pytest

from appliance_deployer.config.settings import ApplianceConfig, RetryPolicy
from tests.fakes import CallLog, FakeApplianceClient, FakeLicensePortalClient

TARGET = "1.2.3.4"


def stemcell_key(version: str, platform: str) -> str:
    return (
        f"product_files/Pivotal-CF/bosh-stemcell-{version}-{platform}"
        f"-esxi-ubuntu-trusty-go_agent.tgz"
    )


@pytest.fixture
def calls():
    return CallLog()


@pytest.fixture
def appliance(calls):
    return FakeApplianceClient(calls)


@pytest.fixture
def portal(calls):
    return FakeLicensePortalClient(calls)


@pytest.fixture
def fast_policy():
    """Retry policy with no sleeping between attempts."""
    return RetryPolicy(max_attempts=10, interval_seconds=0)


@pytest.fixture
def staging_dir(tmp_path):
    return tmp_path / "current_stemcells"


@pytest.fixture
def make_config(tmp_path, staging_dir):
    def factory(**overrides):
        values = {
            "name": "ops-manager",
            "desired_version": "1.5.5",
            "ip": TARGET,
            "username": "foo",
            "password": "bar",
            "pivnet_token": "asd123",
            "staging_dir": str(staging_dir),
            "installation_assets_path": str(tmp_path / "installation_assets.zip"),
            "availability": {"max_attempts": 5, "interval_seconds": 0},
            "bootstrap": {"max_attempts": 5, "interval_seconds": 0},
            "installation": {"max_attempts": 5, "interval_seconds": 0},
        }
        values.update(overrides)
        return ApplianceConfig.model_validate(values)

    return factory


@pytest.fixture
def config(make_config):
    return make_config()


@pytest.fixture
def stemcell_portal(portal):
    """Portal publishing the 3062/3063 stemcell lines for vsphere and vcloud."""
    portal.releases = [
        {"id": 11, "version": "3062.0"},
        {"id": 12, "version": "3063.0"},
    ]
    for release_id, version in ((11, "3062.0"), (12, "3063.0")):
        portal.release_files[release_id] = [
            {"id": release_id * 10 + 1, "aws_object_key": stemcell_key(version, "vsphere")},
            {"id": release_id * 10 + 2, "aws_object_key": stemcell_key(version, "vcloud")},
        ]
    return portal
