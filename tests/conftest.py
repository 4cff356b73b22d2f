"""Shared fixtures for work log tests."""

import sys
from pathlib import Path

import pytest
from loguru import logger

from worklog.history import WorkLog


class StepClock:
    """Deterministic clock returning increasing epoch milliseconds."""

    def __init__(self, start: int = 1_700_000_000_000, step: int = 1000):
        self.now = start
        self.step = step

    def __call__(self) -> int:
        self.now += self.step
        return self.now


@pytest.fixture(autouse=True)
def reset_loguru():
    """Restore a plain stderr handler after tests that reconfigure logging."""
    yield
    logger.remove()
    logger.add(sys.stderr, level="DEBUG")


@pytest.fixture
def clock() -> StepClock:
    return StepClock()


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    project = tmp_path / "game"
    project.mkdir()
    (project / "project.godot").write_text("config_version=5\n")
    return project


@pytest.fixture
def work_log(project_dir: Path, clock: StepClock) -> WorkLog:
    wl = WorkLog(project_dir, clock=clock)
    wl.init("game-1")
    return wl
