"""Destination path planning.

Turns a capture date and the run options into folder components and a
file name. Renaming uses a counter keyed by the formatted date; the
counter belongs to the run and is handed in by the caller.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from ..core.config import SortOptions
from ..core.date_format import format_date


class RenameCounter:
    """Per formatted-date sequence numbers for one run."""

    def __init__(self):
        self._next: dict[str, int] = {}

    def next(self, key: str) -> int:
        """Return the next sequence number for key, starting at 1."""
        value = self._next.get(key, 1)
        self._next[key] = value + 1
        return value

    def peek(self, key: str) -> int:
        return self._next.get(key, 1)

    def reset(self) -> None:
        self._next.clear()

    def __len__(self) -> int:
        return len(self._next)


@dataclass(frozen=True, slots=True)
class PlannedPath:
    """Where a file goes, relative to the output root."""
    folders: tuple[str, ...]
    filename: str

    def under(self, output_root: Path) -> Path:
        return output_root.joinpath(*self.folders, self.filename)


def folder_components(capture_date: datetime, options: SortOptions) -> tuple[str, ...]:
    """Folder names for a date, with disabled parts left out entirely."""
    parts = (
        str(capture_date.year) if options.include_year else "",
        format_date(capture_date, options.month_format.pattern) if options.include_month else "",
        str(capture_date.day) if options.include_day else "",
    )
    return tuple(part for part in parts if part)


def renamed_filename(capture_date: datetime, source: Path, options: SortOptions, counter: RenameCounter) -> str:
    """Build ``{date}_{seq}{ext}`` and advance the counter for that date."""
    date_text = format_date(capture_date, options.rename_date_format)
    sequence = counter.next(date_text)
    return f"{date_text}_{sequence:03d}{source.suffix}"


def plan(
    capture_date: datetime,
    source: Path,
    options: SortOptions,
    counter: RenameCounter,
) -> PlannedPath:
    """Plan the real destination of a file.

    Only advances the counter when renaming is enabled.
    """
    folders = folder_components(capture_date, options)
    if options.rename_enabled:
        filename = renamed_filename(capture_date, source, options, counter)
    else:
        filename = source.name
    return PlannedPath(folders=folders, filename=filename)


def planned_destination(output_root: Path, capture_date: datetime, source: Path, options: SortOptions) -> Path:
    """Collision key: the destination folder with the original file name.

    Ignores renaming so that two sources landing in the same folder with
    the same name are caught whatever the rename settings are.
    """
    return output_root.joinpath(*folder_components(capture_date, options), source.name)
