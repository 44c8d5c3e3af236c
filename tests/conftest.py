"""
Pytest configuration and fixtures for disc-wizards tests.
"""

import os
import sys
from pathlib import Path

import pytest

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import wizard_common  # noqa: E402


@pytest.fixture(autouse=True)
def _isolate_user_state(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep tests away from the real ~/.config file and ~/.local log dir."""
    monkeypatch.setattr(wizard_common, "DEFAULT_CONFIG_PATH", tmp_path / "no-config.yaml")
    monkeypatch.setattr(wizard_common, "DEFAULT_LOG_DIR", tmp_path / "logs")
    monkeypatch.setattr(wizard_common, "VERBOSE", False)


@pytest.fixture
def roms(tmp_path: Path) -> Path:
    """Empty working directory that the wizards operate on."""
    root = tmp_path / "roms"
    root.mkdir()
    return root


def make_dir(parent: Path, name: str, *files: str) -> Path:
    """Create ``parent/name`` holding empty files with the given names."""
    d = parent / name
    d.mkdir()
    for f in files:
        (d / f).write_text("")
    return d
