"""Configuration loading and saving.

Config file location: ~/.config/twitter-feed/config.toml

Schema:
    [http]
    timeout = 30.0
    user_agent = "..."  # optional, overrides the built-in browser UA

    [output]
    media_dir = "media"
"""

import os
import tomllib
from dataclasses import dataclass
from pathlib import Path

import tomli_w

from .client import DEFAULT_TIMEOUT

CONFIG_DIR = Path.home() / ".config" / "twitter-feed"
CONFIG_FILE = CONFIG_DIR / "config.toml"


@dataclass
class AppConfig:
    timeout: float = DEFAULT_TIMEOUT
    user_agent: str | None = None
    media_dir: Path = Path("media")


def load_config(config_path: Path = CONFIG_FILE) -> AppConfig:
    """Load and validate config from TOML file."""
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, "rb") as f:
        data = tomllib.load(f)

    http_data = data.get("http", {})
    output_data = data.get("output", {})

    timeout = float(http_data.get("timeout", DEFAULT_TIMEOUT))
    if timeout <= 0:
        raise ValueError("Config http.timeout must be positive")

    return AppConfig(
        timeout=timeout,
        user_agent=http_data.get("user_agent") or None,
        media_dir=Path(output_data.get("media_dir", "media")),
    )


def save_config(config: AppConfig, config_path: Path = CONFIG_FILE) -> None:
    """Write config to TOML file with restricted permissions."""
    config_path.parent.mkdir(parents=True, exist_ok=True)

    data: dict = {
        "http": {"timeout": config.timeout},
        "output": {"media_dir": str(config.media_dir)},
    }
    if config.user_agent:
        data["http"]["user_agent"] = config.user_agent

    with open(config_path, "wb") as f:
        tomli_w.dump(data, f)

    os.chmod(config_path, 0o600)


def config_exists(config_path: Path = CONFIG_FILE) -> bool:
    """Check if config file exists."""
    return config_path.exists()
