"""Configuration file locations for gcrootctl.

Configuration is layered: a system-wide file under /etc, then a
per-user file following the XDG Base Directory Specification.

- Global: /etc/gcrootctl/config.toml
- User:   ~/.config/gcrootctl/config.toml
"""

import os
from pathlib import Path

# Application identifier for directory naming
APP_NAME = "gcrootctl"

GLOBAL_CONFIG_PATH = Path("/etc") / APP_NAME / "config.toml"

# Well-known link to the system generation the machine was booted into.
BOOTED_SYSTEM_PATH = Path("/run/booted-system")


def _get_xdg_dir(env_var: str, default_subdir: str) -> Path:
    """Get XDG directory respecting environment variable override.

    Args:
        env_var: XDG environment variable name (e.g., "XDG_CONFIG_HOME").
        default_subdir: Default subdirectory under home (e.g., ".config").

    Returns:
        Path to the application-specific directory.
    """
    base = os.environ.get(env_var)
    if base:
        return Path(base) / APP_NAME
    return Path.home() / default_subdir / APP_NAME


def get_config_dir() -> Path:
    """Get the user configuration directory path.

    Returns:
        Path to ~/.config/gcrootctl/ (or XDG_CONFIG_HOME/gcrootctl/).
    """
    return _get_xdg_dir("XDG_CONFIG_HOME", ".config")


def get_user_config_path() -> Path:
    """Get the per-user configuration file path.

    Returns:
        Path to ~/.config/gcrootctl/config.toml.
    """
    return get_config_dir() / "config.toml"


def get_global_config_path() -> Path:
    """Get the system-wide configuration file path."""
    return GLOBAL_CONFIG_PATH
