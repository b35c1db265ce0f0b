"""Unit tests for config.py: AppConfig and load_config()."""

import os
from unittest.mock import patch

import pytest

from jotta_rest.config import AppConfig, load_config

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

# Minimal set of required environment variables for load_config()
_REQUIRED_ENV = {
    "JR_USERNAME": "jdoe",
    "JR_PASSWORD": "secret",
}


# ---------------------------------------------------------------------------
# AppConfig tests
# ---------------------------------------------------------------------------


class TestAppConfig:
    def test_endpoints_have_defaults(self) -> None:
        config = AppConfig(username="u", password="p")
        assert config.base_url == "https://www.jottacloud.com/jfs"
        assert config.upload_url == "https://up.jottacloud.com/jfs"
        assert config.mount_point == "Jotta/Sync"

    def test_upload_timeout_is_minutes(self) -> None:
        config = AppConfig(username="u", password="p")
        assert config.upload_timeout_seconds == 600.0

    def test_is_frozen(self) -> None:
        config = AppConfig(username="u", password="p")
        with pytest.raises(AttributeError):
            config.username = "other"  # type: ignore[misc]


# ---------------------------------------------------------------------------
# load_config tests
# ---------------------------------------------------------------------------


class TestLoadConfig:
    def test_reads_credentials_from_env(self) -> None:
        with patch.dict(os.environ, _REQUIRED_ENV, clear=True):
            config = load_config()
        assert config.username == "jdoe"
        assert config.password == "secret"
        assert config.device_name == "Jotta"

    def test_reads_overrides_from_env(self) -> None:
        env = {
            **_REQUIRED_ENV,
            "JR_BASE_URL": "https://jfs.example/jfs",
            "JR_UPLOAD_URL": "https://up.example/jfs",
            "JR_MOUNT_POINT": "Jotta/Archive",
            "JR_DEVICE_NAME": "Backup",
            "JR_UPLOAD_TIMEOUT_SECONDS": "1200",
        }
        with patch.dict(os.environ, env, clear=True):
            config = load_config()
        assert config.base_url == "https://jfs.example/jfs"
        assert config.upload_url == "https://up.example/jfs"
        assert config.mount_point == "Jotta/Archive"
        assert config.device_name == "Backup"
        assert config.upload_timeout_seconds == 1200.0

    @pytest.mark.parametrize("missing", ["JR_USERNAME", "JR_PASSWORD"])
    def test_raises_key_error_when_credentials_missing(self, missing: str) -> None:
        env = {k: v for k, v in _REQUIRED_ENV.items() if k != missing}
        with patch.dict(os.environ, env, clear=True), pytest.raises(KeyError):
            load_config()
