"""Duplicate resolution service."""
from __future__ import annotations

import errno
import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Optional

from send2trash import send2trash

from ..core.config import DupeFileOption, SortOptions
from ..core.errors import PlacementFailed, SuffixProbeExhausted, TrashFailed
from ..core.models import DuplicateRecord
from ..core.protocols import Trash
from ..engines.metadata import DateResolver
from .file_ops import PlacementExecutor, suffixed_path

logger = logging.getLogger(__name__)

MAX_SUFFIX_ATTEMPTS = 1000


def _same_path(source: Path, destination: Path) -> bool:
    if source == destination:
        return True
    try:
        return os.path.samefile(source, destination)
    except OSError:
        return False


class Send2TrashBin:
    """Trash backed by the platform recycle bin."""

    def trash(self, path: Path) -> None:
        send2trash(str(path))


class DuplicateResolver:
    """Applies a DupeFileOption to one duplicate record.

    Skip leaves the source alone. Replace trashes the file at the
    destination and places the source there. Keep both places the source
    next to the existing file as ``name (n).ext`` using the first free n.
    """

    def __init__(
        self,
        executor: PlacementExecutor,
        date_resolver: DateResolver,
        trash: Optional[Trash] = None,
        max_suffix_attempts: int = MAX_SUFFIX_ATTEMPTS,
    ):
        """Initialize with collaborators.

        Args:
            executor: Performs copies, moves and timestamp stamping.
            date_resolver: Re-reads the source capture date for stamping.
            trash: Where Replace sends the old file.
            max_suffix_attempts: Upper bound on keep-both suffix probing.
        """
        if max_suffix_attempts < 1:
            raise ValueError("max_suffix_attempts must be at least 1")
        self._executor = executor
        self._dates = date_resolver
        self._trash = trash or Send2TrashBin()
        self._max_attempts = max_suffix_attempts

    def resolve(
        self,
        record: DuplicateRecord,
        policy: DupeFileOption,
        options: SortOptions,
    ) -> Optional[Path]:
        """Resolve a duplicate.

        Returns:
            Where the source ended up, or None when skipped.

        Raises:
            TrashFailed: Replace could not trash the existing file.
            SuffixProbeExhausted: Keep both ran out of suffixes.
            PlacementFailed: Any other filesystem failure.
        """
        if policy is DupeFileOption.SKIP:
            logger.info(f"Skipped duplicate {record.source}")
            return None
        if policy is DupeFileOption.REPLACE:
            return self._replace(record, options)
        if policy is DupeFileOption.KEEP_BOTH:
            return self._keep_both(record, options)
        raise ValueError(f"Unknown duplicate option: {policy}")

    def _capture_date(self, source: Path) -> Optional[datetime]:
        # Read before placing: a move takes the source away
        return self._dates.resolve(source)

    def _replace(self, record: DuplicateRecord, options: SortOptions) -> Path:
        if _same_path(record.source, record.destination):
            # Trashing the destination would delete the source
            raise PlacementFailed(
                record.source,
                record.destination,
                OSError(errno.EINVAL, "source and destination are the same file"),
            )
        capture_date = self._capture_date(record.source)

        if record.destination.exists():
            try:
                self._trash.trash(record.destination)
            except Exception as e:
                raise TrashFailed(record.destination, e) from e
            logger.info(f"Trashed {record.destination}")

        try:
            self._executor.place(record.source, record.destination, options.copy_not_move)
            self._executor.stamp(record.destination, capture_date, options)
        except OSError as e:
            raise PlacementFailed(record.source, record.destination, e) from e
        logger.info(f"Replaced {record.destination} with {record.source}")
        return record.destination

    def _keep_both(self, record: DuplicateRecord, options: SortOptions) -> Path:
        capture_date = self._capture_date(record.source)

        for number in range(1, self._max_attempts + 1):
            candidate = suffixed_path(record.destination, number)
            if candidate.exists():
                continue
            try:
                self._executor.place(record.source, candidate, options.copy_not_move)
            except FileExistsError:
                # Taken between the check and the write
                logger.debug(f"{candidate} appeared during placement, trying next suffix")
                continue
            except OSError as e:
                raise PlacementFailed(record.source, candidate, e) from e

            try:
                self._executor.stamp(candidate, capture_date, options)
            except OSError as e:
                raise PlacementFailed(record.source, candidate, e) from e
            logger.info(f"Kept both: {record.source} -> {candidate}")
            return candidate

        raise SuffixProbeExhausted(record.destination, self._max_attempts)
