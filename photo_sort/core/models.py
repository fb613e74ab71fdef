"""Domain models - immutable data classes."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path


class MediaKind(Enum):
    """What kind of file a path holds."""
    IMAGE = "image"
    VIDEO = "video"
    OTHER = "other"


@dataclass(frozen=True, slots=True)
class MediaFile:
    """A file found under the input root."""
    path: Path
    kind: MediaKind

    @property
    def name(self) -> str:
        return self.path.name

    @property
    def extension(self) -> str:
        return self.path.suffix


@dataclass(frozen=True, slots=True)
class DuplicateRecord:
    """A source file whose destination was already taken.

    Identified by the (source, destination) pair.
    """
    source: Path
    destination: Path


@dataclass(frozen=True, slots=True)
class SortProgress:
    """Snapshot of run progress."""
    completed: int = 0
    total: int = 0
    cancelled: bool = False

    @property
    def fraction_completed(self) -> float:
        if self.total == 0:
            return 0.0
        return self.completed / self.total

    @property
    def is_finished(self) -> bool:
        return self.total > 0 and self.completed == self.total


@dataclass(frozen=True, slots=True)
class SortSummary:
    """Outcome of the main pass of a run."""
    duplicates: tuple[DuplicateRecord, ...] = field(default_factory=tuple)
    undated: tuple[Path, ...] = field(default_factory=tuple)
    progress: SortProgress = field(default_factory=SortProgress)

    @property
    def placed(self) -> int:
        return self.progress.completed
