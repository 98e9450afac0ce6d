"""Tests for sparkperms.config module."""
from __future__ import annotations

import os
from pathlib import Path
from unittest import mock

from sparkperms.config import SparkPermsSettings, get_settings


class TestSparkPermsSettings:
    """Tests for SparkPermsSettings class."""

    def test_default_values(self):
        settings = SparkPermsSettings()
        assert settings.perms_file_name == "sparkperms.txt"
        assert settings.command_permission == "command.sparkperms"
        assert settings.command_permission_level == 2
        assert settings.log_grants is True
        assert settings.mcp_transport == "stdio"

    def test_perms_path(self, temp_dir: Path):
        settings = SparkPermsSettings(config_dir=temp_dir)
        assert settings.perms_path == temp_dir / "sparkperms.txt"

    def test_env_override(self, temp_dir: Path):
        with mock.patch.dict(os.environ, {
            "SPARKPERMS_CONFIG_DIR": str(temp_dir),
            "SPARKPERMS_PERMS_FILE_NAME": "custom.txt",
            "SPARKPERMS_COMMAND_PERMISSION_LEVEL": "3",
            "SPARKPERMS_LOG_GRANTS": "false",
        }):
            settings = SparkPermsSettings()
            assert settings.perms_path == temp_dir / "custom.txt"
            assert settings.command_permission_level == 3
            assert settings.log_grants is False

    def test_config_dir_is_path(self):
        settings = SparkPermsSettings()
        assert isinstance(settings.config_dir, Path)


class TestGetSettings:
    """Tests for get_settings function."""

    def test_returns_settings_instance(self):
        assert isinstance(get_settings(), SparkPermsSettings)

    def test_creates_new_instance_each_call(self):
        assert get_settings() is not get_settings()
