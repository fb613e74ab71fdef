"""Protocol definitions (interfaces) for dependency injection."""
from __future__ import annotations

from abc import abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Optional, Protocol

from .models import SortProgress


class DateSource(Protocol):
    """One place a capture date can come from.

    Implementations:
    - ExifOriginalDateSource: EXIF DateTimeOriginal
    - TiffDateTimeSource: TIFF DateTime
    - VideoCreationDateSource: container creation date
    - FileCreationDateSource: filesystem timestamp
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Source name for logging."""
        ...

    @abstractmethod
    def extract(self, path: Path) -> Optional[datetime]:
        """Return the date, or None if this source has none."""
        ...


class ProgressReporter(Protocol):
    """Receives progress notifications from the sorter."""

    @abstractmethod
    def report(self, progress: SortProgress) -> None:
        """Called with a fresh snapshot after every counted file."""
        ...


class Trash(Protocol):
    """Moves files somewhere they can be recovered from."""

    @abstractmethod
    def trash(self, path: Path) -> None:
        """Trash a file. Raises on failure."""
        ...
