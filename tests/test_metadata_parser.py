"""
Tests for the package metadata parser.
"""

from swupdate.modules.rpm import parse_metadata, is_key_line

from conftest import V1_METADATA, V2_METADATA


class TestKeyLines:

    def test_single_word_key(self):
        assert is_key_line("Name        : foo")

    def test_multi_word_key(self):
        assert is_key_line("Build Date  : Wed 22 Jul 2020 05:17:50 PM PDT")

    def test_key_without_padding(self):
        assert is_key_line("Type:Upgrade")

    def test_prose_is_not_a_key(self):
        assert not is_key_line("Platform Upgrade Package. Will reboot system.")
        assert not is_key_line("")


class TestParseMetadata:

    def test_continuation_lines_are_trimmed_and_joined(self):
        fields = parse_metadata("Name : foo\nDescription :\nline one\nline two\n")
        assert fields == {"Name": "foo", "Description": "line oneline two"}

    def test_leading_text_is_dropped(self):
        fields = parse_metadata("header V4 RSA/SHA256 signature, key ID d9712e70 NOKEY\nName : foo\n")
        assert fields == {"Name": "foo"}

    def test_repeated_key_resets_value(self):
        fields = parse_metadata("Name : foo\nmore\nName : bar\n")
        assert fields["Name"] == "bar"

    def test_value_keeps_later_colons(self):
        fields = parse_metadata("URL : https://www.example.com/support\n")
        assert fields["URL"] == "https://www.example.com/support"

    def test_v1_package(self):
        fields = parse_metadata(V1_METADATA)
        assert fields["Name"] == "platformx-upgrade"
        assert fields["Version"] == "3.3.13"
        assert fields["Install Date"] == "(not installed)"
        assert fields["Relocations"] == "/system/upgrade/repository/platformx_core"
        assert fields["Build Date"] == "Wed 25 Mar 2020 02:42:20 PM PDT"
        assert fields["Description"] == "Platform Upgrade Package. Will reboot system."
        assert fields["Type"] == "Upgrade"
        assert fields["VersionInfo"].startswith('[{"Version":"0.0.9"')
        assert "ASUM RPM Format Version" not in fields

    def test_v2_package(self):
        fields = parse_metadata(V2_METADATA)
        assert fields["ASUM RPM Format Version"] == "2"
        assert fields["Description"] == ""
        assert fields["RPM Info"].startswith("{")
        assert fields["Release"] == "20200723001743"

    def test_empty_input(self):
        assert parse_metadata("") == {}
