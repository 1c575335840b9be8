# tests/conftest.py

"""Shared pytest fixtures for the extraction pipeline tests."""

from collections.abc import Generator
from pathlib import Path
from unittest.mock import patch

import pytest

from lootlook.config.settings import Settings


@pytest.fixture(autouse=True)
def mock_sleep() -> Generator[None, None, None]:
    """Patch time.sleep globally so nothing in the suite blocks."""
    with patch("time.sleep"):
        yield


@pytest.fixture(autouse=True)
def isolated_output_dirs(
    tmp_path: Path,
) -> Generator[None, None, None]:
    """Point screenshot and result directories at a per-test tmp dir."""
    with patch.object(
        Settings, "PUBLIC_DIR", tmp_path / "public"
    ), patch.object(
        Settings, "SCREENSHOTS_DIR", tmp_path / "public" / "screenshots"
    ), patch.object(
        Settings, "RESULTS_DIR", tmp_path / "results"
    ):
        yield
