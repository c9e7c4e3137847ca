"""
Tests for payroll_config.get_active_config().

Covers defaults, YAML overlays, environment overrides, validation and the
configuration checksum.
"""

import pytest

from payroll_config import get_active_config
from payroll_config.loader import build_config


def _write(tmp_path, text: str):
    path = tmp_path / "payroll.yaml"
    path.write_text(text)
    return path


class TestDefaults:

    def test_packaged_defaults(self):
        config = get_active_config(environ={})

        assert config.min_year == 2020
        assert config.max_year == 2030
        assert config.salary_deduction_method == "SALARY_DEDUCTION"
        assert config.manual_repayment_method == "MANUAL_PAYMENT"
        assert config.money_decimal_places == 2
        assert config.log_level == "INFO"
        assert config.echo_sql is False
        assert config.repayment_note(3, 2024) == "Payroll deduction for 3/2024"

    def test_config_is_frozen(self):
        config = get_active_config(environ={})

        with pytest.raises(AttributeError):
            config.min_year = 1999


class TestOverlays:

    def test_yaml_overlay(self, tmp_path):
        path = _write(tmp_path, "payroll:\n  max_year: 2040\ndatabase:\n  echo_sql: true\n")

        config = get_active_config(path, environ={})

        assert config.max_year == 2040
        assert config.min_year == 2020
        assert config.echo_sql is True

    def test_config_file_from_environment(self, tmp_path):
        path = _write(tmp_path, "min_year: 2022\n")

        config = get_active_config(environ={"PAYROLL_CONFIG_FILE": str(path)})

        assert config.min_year == 2022

    def test_environment_overrides_file(self, tmp_path):
        path = _write(tmp_path, "database_url: sqlite:///from_file.db\nlog_level: debug\n")

        config = get_active_config(
            path,
            environ={
                "PAYROLL_DATABASE_URL": "postgresql://payroll@db/payroll",
                "PAYROLL_LOG_LEVEL": "warning",
            },
        )

        assert config.database_url == "postgresql://payroll@db/payroll"
        assert config.log_level == "WARNING"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            get_active_config(tmp_path / "absent.yaml", environ={})


class TestValidation:

    def test_unknown_key_rejected(self, tmp_path):
        path = _write(tmp_path, "payroll:\n  max_yaer: 2040\n")

        with pytest.raises(ValueError, match="max_yaer"):
            get_active_config(path, environ={})

    def test_year_range_order(self):
        with pytest.raises(ValueError, match="min_year"):
            build_config([{"min_year": 2030, "max_year": 2020}], environ={})

    @pytest.mark.parametrize(
        "overlay",
        [
            {"pool_size": 0},
            {"money_decimal_places": 12},
            {"log_level": "CHATTY"},
            {"min_year": "soon"},
            {"echo_sql": "maybe"},
            {"repayment_note_template": "Deduction {staff}"},
            {"database_url": ""},
        ],
    )
    def test_invalid_values(self, overlay):
        with pytest.raises(ValueError):
            build_config([overlay], environ={})

    def test_non_mapping_document(self, tmp_path):
        path = _write(tmp_path, "- just\n- a list\n")

        with pytest.raises(ValueError):
            get_active_config(path, environ={})


class TestChecksum:

    def test_stable_for_same_values(self):
        assert (
            get_active_config(environ={}).checksum
            == get_active_config(environ={}).checksum
        )

    def test_changes_with_values(self):
        base = build_config([], environ={})
        changed = build_config([{"max_year": 2031}], environ={})

        assert len(base.checksum) == 64
        assert base.checksum != changed.checksum

    def test_trace_logged(self, captured_logs):
        config = get_active_config(environ={})

        traces = [r for r in captured_logs() if r["message"] == "PAYROLL_CONFIG_TRACE"]
        assert traces[-1]["checksum"] == config.checksum
