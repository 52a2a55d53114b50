"""Pytest fixtures for warelay tests."""

import tempfile
from pathlib import Path

import pytest

from warelay.config.schema import Config
from warelay.process.exec import CommandResult


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def store_path(temp_dir):
    """Path for a throwaway session store."""
    return temp_dir / "sessions.json"


@pytest.fixture
def make_config():
    """Build a Config from camelCase dicts, the way it is written on disk."""

    def _make(reply: dict | None = None, **inbound) -> Config:
        data: dict = dict(inbound)
        if reply is not None:
            data["reply"] = reply
        return Config.model_validate({"inbound": data})

    return _make


@pytest.fixture
def command_result():
    """Factory for canned command results."""

    def _make(stdout: str = "ok", stderr: str = "", code: int | None = 0, killed: bool = False):
        return CommandResult(
            stdout=stdout,
            stderr=stderr,
            code=-9 if killed else code,
            signal="SIGKILL" if killed else None,
            killed=killed,
        )

    return _make
