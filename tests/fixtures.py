"""Test fixtures for sorter tests.

This module provides fixture classes that generate media files with
known capture dates, write them to disk, and know where a sort with
the default folder layout should put them.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Optional

from PIL import Image

from photo_sort.core.config import TypeScope
from photo_sort.core.models import MediaFile, SortProgress

TAG_DATETIME = 306
TAG_DATETIME_ORIGINAL = 36867


def exif_text(value: datetime) -> str:
    return value.strftime("%Y:%m:%d %H:%M:%S")


@dataclass
class MediaFixture(ABC):
    """Base class for test media fixtures.

    Each fixture knows:
    - How to create its source file
    - Which folders a default sort puts it in (None if it is skipped)
    """
    name: str
    parent_folder: Optional[str] = None

    def _folder(self, base_path: Path) -> Path:
        folder = base_path / (self.parent_folder or "")
        folder.mkdir(parents=True, exist_ok=True)
        return folder

    @abstractmethod
    def create(self, base_path: Path) -> Path:
        """Create the fixture file and return its path."""

    @abstractmethod
    def expected_folders(self) -> Optional[tuple[str, ...]]:
        """Year/month/day folders under the default options."""


@dataclass
class JpegWithExifDate(MediaFixture):
    """JPEG with DateTimeOriginal in its EXIF block."""
    date_taken: datetime = field(default_factory=lambda: datetime(2023, 6, 15, 10, 30, 0))
    color: str = "red"

    def create(self, base_path: Path) -> Path:
        file_path = self._folder(base_path) / f"{self.name}.jpg"
        exif = Image.Exif()
        exif[TAG_DATETIME_ORIGINAL] = exif_text(self.date_taken)
        img = Image.new("RGB", (32, 32), color=self.color)
        img.save(file_path, "JPEG", exif=exif)
        return file_path

    def expected_folders(self) -> Optional[tuple[str, ...]]:
        return (
            str(self.date_taken.year),
            self.date_taken.strftime("%B"),
            str(self.date_taken.day),
        )


@dataclass
class TiffWithDateTime(MediaFixture):
    """TIFF carrying only the TIFF DateTime tag."""
    date_taken: datetime = field(default_factory=lambda: datetime(2022, 3, 4, 5, 6, 7))

    def create(self, base_path: Path) -> Path:
        file_path = self._folder(base_path) / f"{self.name}.tif"
        img = Image.new("RGB", (16, 16), color="blue")
        img.save(file_path, "TIFF", tiffinfo={TAG_DATETIME: exif_text(self.date_taken)})
        return file_path

    def expected_folders(self) -> Optional[tuple[str, ...]]:
        return (
            str(self.date_taken.year),
            self.date_taken.strftime("%B"),
            str(self.date_taken.day),
        )


@dataclass
class HeicWithExifDate(JpegWithExifDate):
    """HEIC still with DateTimeOriginal, as an iPhone writes it."""

    def create(self, base_path: Path) -> Path:
        file_path = self._folder(base_path) / f"{self.name}.heic"
        exif = Image.Exif()
        exif[TAG_DATETIME_ORIGINAL] = exif_text(self.date_taken)
        img = Image.new("RGB", (32, 32), color=self.color)
        img.save(file_path, "HEIF", exif=exif.tobytes())
        return file_path


@dataclass
class JpegNoDate(MediaFixture):
    """JPEG with no EXIF at all; a sort leaves it where it is."""

    def create(self, base_path: Path) -> Path:
        file_path = self._folder(base_path) / f"{self.name}.jpg"
        img = Image.new("RGB", (32, 32), color="yellow")
        img.save(file_path, "JPEG")
        return file_path

    def expected_folders(self) -> Optional[tuple[str, ...]]:
        return None


@dataclass
class NonMediaFile(MediaFixture):
    """Non-media file that no scope picks up."""
    extension: str = ".txt"
    content: str = "not a photo"

    def create(self, base_path: Path) -> Path:
        file_path = self._folder(base_path) / f"{self.name}{self.extension}"
        file_path.write_text(self.content)
        return file_path

    def expected_folders(self) -> Optional[tuple[str, ...]]:
        return None


def create_camera_roll(base_path: Path) -> list[MediaFixture]:
    """Create a small mixed tree and return the fixtures it holds."""
    fixtures = [
        JpegWithExifDate(name="IMG_0001", date_taken=datetime(2023, 6, 15, 10, 30, 0)),
        JpegWithExifDate(
            name="IMG_0002",
            parent_folder="trip",
            date_taken=datetime(2021, 12, 24, 18, 0, 0),
            color="green",
        ),
        TiffWithDateTime(name="scan", parent_folder="scans"),
        JpegNoDate(name="screenshot"),
        NonMediaFile(name="notes"),
    ]
    for fixture in fixtures:
        fixture.create(base_path)
    return fixtures


class RecordingReporter:
    """Progress reporter that keeps every snapshot it receives."""

    def __init__(self):
        self.snapshots: list[SortProgress] = []

    def report(self, progress: SortProgress) -> None:
        self.snapshots.append(progress)


class CancellingReporter(RecordingReporter):
    """Cancels the sorter once a given number of files completed."""

    def __init__(self, after: int):
        super().__init__()
        self.after = after
        self.sorter = None

    def report(self, progress: SortProgress) -> None:
        super().report(progress)
        if self.sorter is not None and progress.completed >= self.after:
            self.sorter.cancel()


class FakeTrash:
    """Trash that deletes the file and remembers what it removed."""

    def __init__(self, fail: bool = False):
        self.trashed: list[Path] = []
        self._fail = fail

    def trash(self, path: Path) -> None:
        if self._fail:
            raise OSError("trash unavailable")
        self.trashed.append(path)
        path.unlink()


class FixedDateSource:
    """DateSource returning the same answer for every file."""

    def __init__(self, value: Optional[datetime], name: str = "fixed"):
        self._value = value
        self._name = name
        self.calls: list[Path] = []

    @property
    def name(self) -> str:
        return self._name

    def extract(self, path: Path) -> Optional[datetime]:
        self.calls.append(path)
        return self._value


class ListScanner:
    """Scanner returning a fixed file list, for order-sensitive tests."""

    def __init__(self, files: list[MediaFile]):
        self._files = files

    def scan(self, root: Path, scope: TypeScope) -> list[MediaFile]:
        return list(self._files)
