"""Shared pytest fixtures."""
from __future__ import annotations

from pathlib import Path

import pytest

from fixtures import FakeTrash, RecordingReporter
from photo_sort.core.config import SortOptions


@pytest.fixture
def input_dir(tmp_path: Path) -> Path:
    path = tmp_path / "input"
    path.mkdir()
    return path


@pytest.fixture
def output_dir(tmp_path: Path) -> Path:
    path = tmp_path / "output"
    path.mkdir()
    return path


@pytest.fixture
def options() -> SortOptions:
    """Year and full month name folders, copying, no rename."""
    return SortOptions(include_day=False)


@pytest.fixture
def reporter() -> RecordingReporter:
    return RecordingReporter()


@pytest.fixture
def fake_trash() -> FakeTrash:
    return FakeTrash()
