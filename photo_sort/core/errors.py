"""Errors surfaced to callers of the sorter.

Every error carries one human readable message. Anything raised from
here ends the run; per-file problems that are not fatal never become
exceptions.
"""
from __future__ import annotations

from pathlib import Path
from typing import Optional

from .models import SortProgress


class SortError(Exception):
    """Base class for run-fatal sort errors."""


class DirectoryDoesNotExist(SortError):
    def __init__(self, path: Path):
        super().__init__(f"Directory doesn't exist: {path}")
        self.path = path


class EnumerationFailed(SortError):
    def __init__(self, path: Path, cause: OSError):
        super().__init__(f"Could not list {path}: {cause}")
        self.path = path
        self.cause = cause


class NoFilesFound(SortError):
    def __init__(self, path: Path):
        super().__init__(f"No files to sort in {path}")
        self.path = path


class OperationCancelled(SortError):
    """The caller cancelled the run.

    ``progress`` holds the counts frozen at the moment of cancellation.
    """

    def __init__(self, progress: Optional[SortProgress] = None):
        super().__init__("Operation cancelled")
        self.progress = progress or SortProgress(cancelled=True)


class SortInProgress(SortError):
    def __init__(self):
        super().__init__("A sort is already running")


class PlacementFailed(SortError):
    def __init__(self, source: Path, destination: Path, cause: OSError):
        super().__init__(f"Could not place {source} at {destination}: {cause}")
        self.source = source
        self.destination = destination
        self.cause = cause


class TrashFailed(SortError):
    def __init__(self, path: Path, cause: Exception):
        super().__init__(f"Could not move {path} to the trash: {cause}")
        self.path = path
        self.cause = cause


class SuffixProbeExhausted(SortError):
    def __init__(self, destination: Path, attempts: int):
        super().__init__(
            f"No free name found for {destination} after {attempts} attempts"
        )
        self.destination = destination
        self.attempts = attempts


class UnknownDuplicate(SortError):
    def __init__(self, source: Path, destination: Path):
        super().__init__(f"No pending duplicate for {source} -> {destination}")
        self.source = source
        self.destination = destination
