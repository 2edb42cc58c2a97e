"""Pytest configuration and shared fixtures."""

from pathlib import Path

import pytest


@pytest.fixture
def blueprints_root(tmp_path: Path) -> Path:
    """Temporary blueprints root directory."""
    root = tmp_path / "blueprints"
    root.mkdir()
    return root


@pytest.fixture
def output_root(tmp_path: Path) -> Path:
    """Temporary generated-output root directory."""
    root = tmp_path / "out"
    root.mkdir()
    return root
