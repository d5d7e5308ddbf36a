import itertools

import pytest

from appliance_deployer.core.enums import VersionAction
from appliance_deployer.validation.version_manager import Version, compare_versions


class TestParse:
    def test_trailing_zero_is_dropped_from_display(self):
        assert str(Version.parse("1.8.2.0")) == "1.8.2"

    def test_all_zero_version_keeps_one_component(self):
        assert str(Version.parse("0.0.0")) == "0"

    @pytest.mark.parametrize("raw", ["", "   ", None, "not-a-version", "1..2", "latest"])
    def test_unparsable_input_is_empty(self, raw):
        assert Version.parse(raw).is_empty()

    def test_build_suffix_is_ignored(self):
        assert Version.parse("1.9.0-build.123") == Version.parse("1.9")

    def test_numeric_input_from_yaml(self):
        assert Version.parse(3062).parts == (3062,)

    def test_is_immutable(self):
        version = Version.parse("1.2.3")
        with pytest.raises(AttributeError):
            version._parts = (9,)


class TestComparison:
    def test_missing_components_compare_as_zero(self):
        assert Version.parse("1.8.2") == Version.parse("1.8.2.0")
        assert hash(Version.parse("1.8.2")) == hash(Version.parse("1.8.2.0"))

    def test_components_compare_numerically(self):
        assert Version.parse("1.4.2") < Version.parse("1.4.11")

    def test_empty_is_less_than_any_concrete_version(self):
        assert Version.empty() < Version.parse("0")
        assert Version.empty().compare(Version.parse("1.0")) == -1
        assert Version.parse("1.0").compare(Version.empty()) == 1

    def test_empty_never_equals_a_concrete_version(self):
        assert Version.empty() != Version.parse("0")
        assert Version.empty() != Version.parse("0.0")

    def test_empty_equals_empty(self):
        assert Version.parse("") == Version.empty()

    @pytest.mark.parametrize(
        "left,right",
        list(itertools.combinations(["", "1", "1.0.1", "1.4.2", "1.4.11", "2", "3000.3"], 2)),
    )
    def test_compare_is_antisymmetric(self, left, right):
        a, b = Version.parse(left), Version.parse(right)
        assert a.compare(b) == -b.compare(a)
        assert (a < b) == (b > a)


class TestCompareVersions:
    @pytest.mark.parametrize(
        "current,desired,action",
        [
            ("", "1.5.5", VersionAction.DEPLOY),
            ("1.5.5", "1.5.5", VersionAction.SAME_VERSION),
            ("1.5.5.0", "1.5.5", VersionAction.SAME_VERSION),
            ("1.4.2", "1.4.11", VersionAction.UPGRADE),
            ("1.6", "1.5.5", VersionAction.DOWNGRADE),
        ],
    )
    def test_actions(self, current, desired, action):
        assert compare_versions(Version.parse(current), Version.parse(desired)) is action
