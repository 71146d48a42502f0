"""Shared test fixtures for nodesup tests."""

import sys
from collections.abc import Callable
from pathlib import Path

import pytest

from nodesup.supervisor import SupervisorConfig

ConfigFactory = Callable[..., SupervisorConfig]


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def log_file(tmp_path: Path) -> Path:
    """Path the log sink writes to. Not created."""
    return tmp_path / "node.log"


@pytest.fixture
def make_config(tmp_path: Path, log_file: Path) -> ConfigFactory:
    """Build a SupervisorConfig that launches a Python script as the node.

    Run arguments are appended after the script, so they show up in
    ``sys.argv[1:]`` of the node.
    """

    def _make(script: str = "", **overrides: object) -> SupervisorConfig:
        values: dict[str, object] = {
            "working_dir": tmp_path,
            "log_file": log_file,
            "command": (sys.executable, "-u", "-c", script),
            "shutdown_timeout": 5.0,
        }
        values.update(overrides)
        return SupervisorConfig(**values)  # type: ignore[arg-type]

    return _make
