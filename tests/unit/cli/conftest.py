"""Fixtures for CLI tests."""

from pathlib import Path

import pytest


@pytest.fixture(autouse=True)
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the global and user config files of the host out of CLI runs."""
    monkeypatch.setattr(
        "gcrootctl.core.config.get_global_config_path", lambda: tmp_path / "global.toml"
    )
    monkeypatch.setattr(
        "gcrootctl.core.config.get_user_config_path", lambda: tmp_path / "user.toml"
    )
    monkeypatch.delenv("GCROOTCTL_CONFIG", raising=False)
