"""Shared test fixtures for CLI tests."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
import structlog

if TYPE_CHECKING:
    from collections.abc import Generator
    from pathlib import Path


@pytest.fixture(autouse=True)
def isolated_data_dir(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> Generator[Path, None, None]:
    """Isolate tests from the real user data and config directories.

    Sets XDG_DATA_HOME and XDG_CONFIG_HOME to temporary directories so that
    tests don't read the real configuration or write reports under
    ~/.local/share/converge-all/.
    """
    data_home = tmp_path / "xdg_data"
    config_home = tmp_path / "xdg_config"
    data_home.mkdir(parents=True, exist_ok=True)
    config_home.mkdir(parents=True, exist_ok=True)

    monkeypatch.setenv("XDG_DATA_HOME", str(data_home))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(config_home))

    yield data_home


@pytest.fixture(autouse=True)
def reset_structlog() -> Generator[None, None, None]:
    """Undo the global structlog configuration applied by CLI commands."""
    yield
    structlog.reset_defaults()
