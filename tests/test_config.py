"""
tests/test_config.py — YAML Configuration Loader
=================================================
"""

from __future__ import annotations

import os
from datetime import timedelta
from unittest.mock import patch

import pytest

from roster.config import load_config, validate_environment
from roster.errors import ConfigError

MINIMAL = """
community_name: Chess Club
guild_id: 1234567890
"""


def _write(tmp_path, text: str):
    path = tmp_path / "config.yaml"
    path.write_text(text, encoding="utf-8")
    return path


class TestLoadConfig:
    def test_defaults(self, tmp_path):
        cfg = load_config(_write(tmp_path, MINIMAL))
        assert cfg.community_name == "Chess Club"
        assert cfg.guild_id == 1234567890
        assert cfg.allowed_roles == ("membership",)
        assert cfg.timezone == "America/Chicago"
        assert cfg.log_retention_days == 14
        assert cfg.reconcile_interval_minutes == 15
        assert cfg.sheets.records == "Records"
        assert cfg.reconciliation.tolerance == timedelta(minutes=30)
        assert cfg.reconciliation.default_points == 1

    def test_overrides(self, tmp_path):
        cfg = load_config(_write(tmp_path, MINIMAL + """
allowed_roles: [officer, membership]
sheets:
  submissions: Attendance Form
  submission_columns: [timestamp, event_code, email, first_name, last_name, anonymous]
reconciliation:
  tolerance_minutes: 15
  default_points: 2
  affirmative_tokens: [Oui]
"""))
        assert cfg.allowed_roles == ("officer", "membership")
        assert cfg.sheets.submissions == "Attendance Form"
        assert cfg.sheets.submission_columns[1] == "event_code"
        assert cfg.reconciliation.tolerance_minutes == 15
        assert cfg.reconciliation.default_points == 2
        assert cfg.reconciliation.affirmative_tokens == frozenset({"oui"})
        assert cfg.reconciliation.is_anonymous("oui")

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError, match="config.yaml.example"):
            load_config(tmp_path / "nope.yaml")

    def test_missing_required_key(self, tmp_path):
        with pytest.raises(KeyError):
            load_config(_write(tmp_path, "community_name: Chess Club\n"))

    @pytest.mark.parametrize(
        "extra",
        [
            "timezone: Mars/Olympus_Mons\n",
            "reconcile_interval_minutes: 0\n",
            "reconciliation:\n  tolerance_minutes: -5\n",
            "reconciliation:\n  default_points: lots\n",
            "sheets:\n  submission_columns: [timestamp, email]\n",
        ],
    )
    def test_bad_values(self, tmp_path, extra):
        with pytest.raises(ConfigError):
            load_config(_write(tmp_path, MINIMAL + extra))


class TestValidateEnvironment:
    def test_reports_missing(self):
        with patch.dict(os.environ, {"DISCORD_TOKEN": "x"}, clear=True):
            assert validate_environment() == ["SPREADSHEET_ID", "GOOGLE_CREDENTIALS_PATH"]

    def test_all_present(self):
        env = {"DISCORD_TOKEN": "x", "SPREADSHEET_ID": "y", "GOOGLE_CREDENTIALS_PATH": "z"}
        with patch.dict(os.environ, env, clear=True):
            assert validate_environment() == []
