"""
Tests for product version matching and compatibility selection.
"""

import pytest

from swupdate.utils.errors import AmbiguousCompatibilityError, IncompatibleVersionError, FormatError
from swupdate.modules.validate import (
    CompatibilityEntry,
    Estimate,
    compare,
    select_compatibility,
    parse_v1_version_info,
    get_compatible_version_info,
)


def entries(*versions):
    return [CompatibilityEntry(version=v) for v in versions]


class TestCompare:

    @pytest.mark.parametrize("product_version, pattern, expected", [
        ("2", "2", True),
        ("2", "*", True),
        ("2", "3", False),
        ("2.0", "2.0", True),
        ("2.0", "2.*", True),
        ("2.0", "2.2", False),
        ("1.2.3", "1.2.3", True),
        ("2.0", "2.0.0.*", True),
        ("2.0.0.9", "2.0.0.*", True),
    ])
    def test_compare(self, product_version, pattern, expected):
        assert compare(product_version, pattern) is expected

    def test_version_matches_itself(self):
        for version in ("1", "1.0.1.1a", "10.2.0.0"):
            assert compare(version, version)


class TestSelectCompatibility:

    MATRIX = ("1.0.0", "1.0.1.1", "1.0.1.*")

    @pytest.mark.parametrize("product_version, matched", [
        ("1.0.0", "1.0.0"),
        ("1.0.1.1", "1.0.1.1"),
        ("1.0.1", "1.0.1.*"),
        ("1.0.1.", "1.0.1.*"),
        ("1.0.1.2", "1.0.1.*"),
        ("1.0.1.1a", "1.0.1.*"),
    ])
    def test_match(self, product_version, matched):
        assert select_compatibility(product_version, entries(*self.MATRIX)).version == matched

    def test_mismatch(self):
        with pytest.raises(IncompatibleVersionError):
            select_compatibility("1.0.10", entries(*self.MATRIX))

    def test_duplicate_versions(self):
        with pytest.raises(AmbiguousCompatibilityError):
            select_compatibility("1.0.0", entries("1.0.0", "1.0.0", "1.0.1.*"))

    def test_last_wildcard_match_wins(self):
        assert select_compatibility("3.1", entries("3.*", "*")).version == "*"
        assert select_compatibility("3.1", entries("*", "3.*")).version == "3.*"

    def test_exact_match_beats_later_wildcard(self):
        assert select_compatibility("3.1", entries("3.1", "*")).version == "3.1"

    def test_empty_matrix(self):
        with pytest.raises(IncompatibleVersionError):
            select_compatibility("1.0", [])


class TestV1VersionInfo:

    def test_parse(self):
        info = parse_v1_version_info(
            '[{"Version":"0.0.9","Reboot":"Yes","Estimate":{"hours":"0","minutes":"20","seconds":"15"}}]')
        assert info == [CompatibilityEntry(version="0.0.9", reboot="Yes",
                                           estimate=Estimate(hours="0", minutes="20", seconds="15"))]

    def test_invalid_json(self):
        with pytest.raises(FormatError):
            parse_v1_version_info("[{not json")

    def test_not_an_array(self):
        with pytest.raises(FormatError):
            parse_v1_version_info('{"Version": "1.0"}')

    def test_get_compatible_version_info(self):
        entry = get_compatible_version_info("3.3", '[{"Version":"2.*","Reboot":"No"},{"Version":"3.*","Reboot":"Yes"}]')
        assert entry.version == "3.*"
        assert entry.reboot == "Yes"
