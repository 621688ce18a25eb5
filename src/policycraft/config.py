"""Runtime settings for the policycraft CLI and preview server."""

from dataclasses import dataclass
from pathlib import Path

import yaml

from policycraft.renderer import SHORT_SUMMARY_LENGTH
from policycraft.wizard import TOPOLOGIES

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class Settings:
    """Settings read from the ``policycraft`` section of a YAML file.

    Attributes:
        host: Preview server bind address.
        port: Preview server port.
        log_level: Root logging level name.
        summary_length: Maximum length of list-view summaries.
        topology: Wizard topology name (five-step, three-step, six-step).
    """

    host: str = "127.0.0.1"
    port: int = 8080
    log_level: str = "WARNING"
    summary_length: int = SHORT_SUMMARY_LENGTH
    topology: str = "five-step"


def settings_from_dict(data: dict | None) -> Settings:
    """Build Settings from a mapping, validating each field.

    Raises:
        ValueError: If a field has the wrong type or an unknown value.
    """
    if data is None:
        return Settings()
    if not isinstance(data, dict):
        raise ValueError("'policycraft' section must be a mapping")

    settings = Settings()
    if "host" in data:
        settings.host = str(data["host"])
    if "port" in data:
        if not isinstance(data["port"], int) or isinstance(data["port"], bool):
            raise ValueError("policycraft.port must be an integer")
        settings.port = data["port"]
    if "log_level" in data:
        level = str(data["log_level"]).upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"policycraft.log_level must be one of {LOG_LEVELS}")
        settings.log_level = level
    if "summary_length" in data:
        length = data["summary_length"]
        if not isinstance(length, int) or isinstance(length, bool) or length < 4:
            raise ValueError("policycraft.summary_length must be an integer >= 4")
        settings.summary_length = length
    if "topology" in data:
        if data["topology"] not in TOPOLOGIES:
            raise ValueError(
                f"policycraft.topology must be one of {sorted(TOPOLOGIES)}"
            )
        settings.topology = data["topology"]
    return settings


def load_settings(path: str | None) -> Settings:
    """Load settings from a YAML file, or return defaults when path is None."""
    if path is None:
        return Settings()
    with open(Path(path)) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError("Settings file must contain a mapping")
    return settings_from_dict(data.get("policycraft"))
