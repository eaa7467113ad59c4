"""Tests for configuration and leave sources."""

import json
import logging
from datetime import date

import pytest

from shiftroster.domain.models import LeaveRecord, LeaveStatus, ShiftCategory
from shiftroster.exceptions import ConfigurationError
from shiftroster.sources.configuration import JsonConfigurationSource, MappingConfigurationSource
from shiftroster.sources.leave import JsonLeaveSource, StaticLeaveSource


class TestMappingConfigurationSource:
    """Tests for configuration held in a mapping."""

    def test_load(self, make_config_data):
        config = MappingConfigurationSource(make_config_data(3, weekday_min_staff=2)).load()

        assert [member.name for member in config.staff] == ["Ana", "Ben", "Cleo"]
        assert config.catalog.category("W8") == ShiftCategory.WEEKEND
        assert config.catalog.hours("OC") == 10
        assert config.rules.weekday_min_staff == 2

    def test_bare_staff_names(self, make_config_data):
        data = make_config_data()
        data["staff"] = ["Ana", " Ben ", {"name": "Cleo", "email": "cleo@example.com"}]

        config = MappingConfigurationSource(data).load()

        assert [member.name for member in config.staff] == ["Ana", "Ben", "Cleo"]
        assert config.staff[2].email == "cleo@example.com"

    def test_empty_roster(self, make_config_data):
        data = make_config_data()
        data["staff"] = []

        with pytest.raises(ConfigurationError, match="roster is empty"):
            MappingConfigurationSource(data).load()

    def test_duplicate_staff(self, make_config_data):
        data = make_config_data()
        data["staff"] = ["Ana", "Ana"]

        with pytest.raises(ConfigurationError) as exc_info:
            MappingConfigurationSource(data).load()

        assert exc_info.value.resource == "Ana"

    def test_no_shifts(self, make_config_data):
        data = make_config_data()
        data["shifts"] = []

        with pytest.raises(ConfigurationError):
            MappingConfigurationSource(data).load()

    def test_unknown_category(self, make_config_data):
        data = make_config_data()
        data["shifts"].append({"code": "N12", "category": "night", "hours": 12})

        with pytest.raises(ConfigurationError, match="unknown category"):
            MappingConfigurationSource(data).load()

    def test_invalid_hours(self, make_config_data):
        data = make_config_data()
        data["shifts"].append({"code": "N12", "category": "regular", "hours": "twelve"})

        with pytest.raises(ConfigurationError, match="invalid hours"):
            MappingConfigurationSource(data).load()

    def test_shift_start(self, make_config_data):
        data = make_config_data()
        data["shifts"].append({"code": "N8", "category": "regular", "hours": 8, "start": 22})

        catalog = MappingConfigurationSource(data).load().catalog

        assert catalog.get("N8").start_hour == 22
        assert catalog.get("D8").start_hour == 9

    @pytest.mark.parametrize("start", [24, -1, "late"])
    def test_invalid_start(self, make_config_data, start):
        data = make_config_data()
        data["shifts"].append({"code": "N8", "category": "regular", "hours": 8, "start": start})

        with pytest.raises(ConfigurationError, match="start"):
            MappingConfigurationSource(data).load()


class TestJsonConfigurationSource:
    """Tests for configuration read from JSON files."""

    def test_load(self, tmp_path, make_config_data):
        path = tmp_path / "roster.json"
        path.write_text(json.dumps(make_config_data(4)))

        config = JsonConfigurationSource(path).load()

        assert len(config.staff) == 4

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="not found"):
            JsonConfigurationSource(tmp_path / "missing.json").load()

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "roster.json"
        path.write_text("{not json")

        with pytest.raises(ConfigurationError, match="not valid JSON"):
            JsonConfigurationSource(path).load()


class TestStaticLeaveSource:
    """Tests for in-memory leave."""

    def test_filters_status_and_month(self, caplog):
        records = [
            LeaveRecord("Ana", date(2024, 4, 10), date(2024, 4, 12)),
            LeaveRecord("Ben", date(2024, 4, 15), date(2024, 4, 15), status=LeaveStatus.PENDING),
            LeaveRecord("Cleo", date(2024, 5, 2), date(2024, 5, 3)),
            LeaveRecord("Dev", date(2024, 3, 28), date(2024, 4, 2)),
        ]

        with caplog.at_level(logging.INFO, logger="shiftroster"):
            approved = StaticLeaveSource(records).get_approved(2024, 4)

        assert [record.staff_name for record in approved] == ["Ana", "Dev"]
        assert "not approved" in caplog.text


class TestJsonLeaveSource:
    """Tests for leave read from JSON files."""

    def test_load(self, tmp_path):
        path = tmp_path / "leave.json"
        path.write_text(json.dumps([
            {"staff": "Ana", "start": "2024-04-10", "end": "2024-04-12"},
            {"staff": "Ben", "start": "2024-04-15", "code": "SL"},
            {"staff": "Cleo", "start": "2024-04-16", "status": "rejected"},
        ]))

        approved = JsonLeaveSource(path).get_approved(2024, 4)

        assert len(approved) == 2
        assert approved[0].end_date == date(2024, 4, 12)
        assert approved[1].start_date == approved[1].end_date == date(2024, 4, 15)
        assert approved[1].code == "SL"
        assert approved[0].code is None

    def test_invalid_entry(self, tmp_path):
        path = tmp_path / "leave.json"
        path.write_text(json.dumps([{"staff": "Ana"}]))

        with pytest.raises(ConfigurationError, match="Invalid leave entry"):
            JsonLeaveSource(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError):
            JsonLeaveSource(tmp_path / "leave.json")

    def test_top_level_must_be_a_list(self, tmp_path):
        path = tmp_path / "leave.json"
        path.write_text(json.dumps({"staff": "Ana", "start": "2024-04-10"}))

        with pytest.raises(ConfigurationError, match="must hold a list"):
            JsonLeaveSource(path)

    @pytest.mark.parametrize(
        "entry",
        [
            {"staff": "Ana", "start": 20240410},
            {"staff": "Ana", "start": "2024-04-10", "end": 12},
            "Ana 2024-04-10",
        ],
    )
    def test_malformed_entries(self, tmp_path, entry):
        path = tmp_path / "leave.json"
        path.write_text(json.dumps([entry]))

        with pytest.raises(ConfigurationError, match="Invalid leave entry"):
            JsonLeaveSource(path)
