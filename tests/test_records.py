"""
Tests for package records built from parsed metadata.
"""

from datetime import datetime

import pytest

from swupdate.modules.rpm import parse_metadata
from swupdate.modules.repo import (
    PackageRecordV1,
    PackageRecordV2,
    build_record,
    parse_build_date,
)
from swupdate.modules.repo.records import decode_package_info
from swupdate.modules.validate import Estimate
from swupdate.utils.errors import FormatError

from conftest import V1_METADATA, V2_METADATA


class TestBuildDate:

    def test_rpm_layout(self):
        assert parse_build_date("Wed 25 Mar 2020 02:42:20 PM PDT") == datetime(2020, 3, 25, 14, 42, 20)

    def test_ansi_c_layout(self):
        assert parse_build_date("Wed Jul 22 17:17:50 2020") == datetime(2020, 7, 22, 17, 17, 50)

    def test_unparseable(self):
        assert parse_build_date("yesterday") is None


class TestV1Record:

    def test_shape_without_product_version(self):
        record = build_record(parse_metadata(V1_METADATA), "platformx-upgrade-3.3.13.rpm")
        assert isinstance(record, PackageRecordV1)
        assert record.schema == "v1"
        assert record.to_dict() == {
            "description": "Platform Upgrade Package. Will reboot system.",
            "estimate": {"hours": "0", "minutes": "0", "seconds": "0"},
            "filename": "platformx-upgrade-3.3.13.rpm",
            "name": "platformx-upgrade",
            "reboot": "n/a",
            "summary": "Provides platformx-upgrade.",
            "type": "Upgrade",
            "url": "https://www.example.com/support",
            "version": "3.3.13",
        }

    def test_matched_product_version(self):
        record = build_record(parse_metadata(V1_METADATA), "platformx-upgrade-3.3.13.rpm", "3.2")
        assert record.reboot == "No"
        assert record.estimate == Estimate(hours="1", minutes="5", seconds="0")
        assert record.matched_version == "3.*"
        assert record.to_dict()["matched-version"] == "3.*"

    def test_incompatible_product_version_keeps_defaults(self):
        record = build_record(parse_metadata(V1_METADATA), "platformx-upgrade-3.3.13.rpm", "4.0")
        assert record.reboot == "n/a"
        assert record.estimate == Estimate()
        assert record.matched_version == ""

    def test_invalid_version_info_is_tolerated(self):
        fields = {"Name": "broken", "Type": "Update", "VersionInfo": "not json"}
        record = build_record(fields, "broken.rpm", "1.0")
        assert record.name == "broken"
        assert record.reboot == "n/a"

    def test_name_falls_back_to_file_name(self):
        record = build_record({"Type": "Update"}, "anonymous.rpm")
        assert record.name == "anonymous.rpm"
        assert record.release == ""


class TestV2Record:

    def test_shape_without_product_version(self):
        record = build_record(parse_metadata(V2_METADATA), "VRTSasum-update-2.0.1.rpm")
        assert isinstance(record, PackageRecordV2)
        assert record.schema == "v2"
        assert record.type == "Update"
        assert record.release == "20200723001743"
        assert record.build_date == datetime(2020, 7, 22, 17, 17, 50)
        assert len(record.info.compatibility) == 2

        data = record.to_dict()
        assert data["name"] == "VRTSasum-update"
        assert data["filename"] == "VRTSasum-update-2.0.1.rpm"
        assert data["version"] == "2.0.1"
        assert data["build-date"] == "2020-07-22T17:17:50"
        assert "matched-version" not in data
        assert "install" not in data

    def test_last_matching_entry_supplies_stage_details(self):
        record = build_record(parse_metadata(V2_METADATA), "VRTSasum-update-2.0.1.rpm", "3.3")
        assert record.matched_version == "3.*"
        assert record.install.estimated_minutes == 25
        assert record.install.requires_restart is False
        assert record.install.supports_rollback is True
        assert record.rollback.estimated_minutes == 40
        assert record.commit.confirmation_message == ("Cannot roll back after commit.",)

        data = record.to_dict()
        assert data["matched-version"] == "3.*"
        assert data["install"]["estimated-minutes"] == 25
        assert data["commit"] == {"confirmation-message": ["Cannot roll back after commit."],
                                  "estimated-minutes": 5}

    def test_catch_all_entry(self):
        record = build_record(parse_metadata(V2_METADATA), "VRTSasum-update-2.0.1.rpm", "2.1")
        assert record.matched_version == "*"
        assert record.install.estimated_minutes == 35

    def test_vendor_marker_selects_v2(self):
        fields = parse_metadata(V2_METADATA)
        assert fields["ASUM RPM Format Version"] == "2"

        record = build_record(fields, "VRTSasum-update-2.0.1.rpm", "3.3")
        assert isinstance(record, PackageRecordV2)
        assert record.name == "VRTSasum-update"
        assert record.version == "2.0.1"
        assert record.type == "Update"
        assert record.matched_version == "3.*"

    def test_short_marker_selects_v2(self):
        fields = parse_metadata(V2_METADATA.replace("ASUM RPM Format Version", "RPM Format Version"))
        assert isinstance(build_record(fields, "VRTSasum-update-2.0.1.rpm"), PackageRecordV2)

    def test_yaml_package_info(self):
        fields = {
            "Name": "yaml-update",
            "RPM Format Version": "2",
            "RPM Info": "type: Hotfix\ncompatibility-info:\n- product-version: '1.*'\n",
        }
        record = build_record(fields, "yaml-update.rpm", "1.4")
        assert record.type == "Hotfix"
        assert record.matched_version == "1.*"

    def test_undecodable_package_info_is_tolerated(self):
        fields = {"Name": "broken", "RPM Format Version": "2", "RPM Info": "{unterminated", "Build Date": "never"}
        record = build_record(fields, "broken.rpm", "1.0")
        assert record.type == ""
        assert record.build_date is None
        assert record.matched_version == ""

    def test_decode_rejects_non_mapping(self):
        with pytest.raises(FormatError):
            decode_package_info("- just\n- a list\n")
