# tests/conftest.py

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

import pytest
from fakes import make_console

from ivylee.cli.main import main
from ivylee.config import Settings
from ivylee.tasks.tag_styles import TagStyleRegistry
from ivylee.tasks.task_store import TaskStore


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    """
    Settings pointing at a per-test directory.

    Built directly rather than from the environment, to keep tests
    isolated from the developer's real ~/.ivylee.
    """
    return Settings(
        data_dir=tmp_path / "ivy",
        log_level="WARNING",
        log_to_file=False,
    )


@pytest.fixture()
def store() -> TaskStore:
    return TaskStore()


@pytest.fixture()
def styles() -> TagStyleRegistry:
    return TagStyleRegistry()


@dataclass(slots=True)
class CliResult:
    code: int
    out: str
    err: str


@pytest.fixture()
def run_cli(settings: Settings) -> Callable[..., CliResult]:
    """Run the `ivy` entrypoint in-process against the per-test directory."""

    def _run(*argv: str) -> CliResult:
        out, err = make_console(), make_console()
        code = main(list(argv), settings=settings, console=out, err_console=err)
        return CliResult(code=code, out=out.export_text(), err=err.export_text())

    return _run
