"""Pytest configuration and shared fixtures."""
from __future__ import annotations

import tempfile
from pathlib import Path
from typing import Generator

import pytest

from sparkperms.commands.gate import CommandSource


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Provide a temporary directory that's cleaned up after the test."""
    with tempfile.TemporaryDirectory() as td:
        yield Path(td)


@pytest.fixture
def perms_file(temp_dir: Path) -> Path:
    """Create a temporary sparkperms.txt with a few entries, deliberately unsorted."""
    path = temp_dir / "sparkperms.txt"
    path.write_text("z.y\na.b\n\nminecraft.command.gamemode\n", encoding="utf-8")
    return path


@pytest.fixture
def feedback() -> list[str]:
    """Collects feedback sent to the operator source."""
    return []


@pytest.fixture
def operator(feedback: list[str]) -> CommandSource:
    """A source at the usual operator level."""
    return CommandSource(name="op", permission_level=4, feedback=feedback.append)


@pytest.fixture
def player() -> CommandSource:
    """A source with no privileges."""
    return CommandSource(name="player", permission_level=0)
