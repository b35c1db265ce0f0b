"""Application configuration loaded from environment variables."""

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class AppConfig:
    """Centralized application configuration.

    Credentials have no defaults and will cause a KeyError at startup if the
    corresponding environment variable is missing. Endpoint and upload
    settings have defaults but can be overridden via environment variables.
    """

    # Required: no defaults, fail at startup if missing
    username: str
    password: str

    # Backend endpoints: defaults provided, overridable via env
    base_url: str = "https://www.jottacloud.com/jfs"
    upload_url: str = "https://up.jottacloud.com/jfs"
    mount_point: str = "Jotta/Sync"
    device_name: str = "Jotta"
    upload_timeout_seconds: float = 600.0


def load_config() -> AppConfig:
    """Construct an AppConfig from environment variables.

    Required environment variables:
        JR_USERNAME: Jottacloud account name.
        JR_PASSWORD: Jottacloud account password.

    Optional environment variables (with defaults):
        JR_BASE_URL: Read/write endpoint of the file API.
        JR_UPLOAD_URL: Upload endpoint of the file API.
        JR_MOUNT_POINT: Device and mount point the repository lives under (default: Jotta/Sync).
        JR_DEVICE_NAME: Device name sent with uploads (default: Jotta).
        JR_UPLOAD_TIMEOUT_SECONDS: Timeout applied to uploads only (default: 600).

    Returns:
        Configured AppConfig instance.
    """
    return AppConfig(
        username=os.environ["JR_USERNAME"],
        password=os.environ["JR_PASSWORD"],
        base_url=os.environ.get("JR_BASE_URL", "https://www.jottacloud.com/jfs"),
        upload_url=os.environ.get("JR_UPLOAD_URL", "https://up.jottacloud.com/jfs"),
        mount_point=os.environ.get("JR_MOUNT_POINT", "Jotta/Sync"),
        device_name=os.environ.get("JR_DEVICE_NAME", "Jotta"),
        upload_timeout_seconds=float(os.environ.get("JR_UPLOAD_TIMEOUT_SECONDS", "600")),
    )
