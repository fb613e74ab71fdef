"""Sort orchestrator - owns all mutable run state.

One ImageSorter drives a run: scan the input tree, then for each file
resolve its date, plan its destination, check it against destinations
claimed earlier in the run, and place it. Collisions become duplicate
records that the caller resolves afterwards, one at a time or all with
the same option.

All run state lives in a RunState that is replaced wholesale at the
start of every run and whenever a run aborts. State is only touched
while holding the sorter's lock; filesystem work happens outside it.
"""
from __future__ import annotations

import logging
import os
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Callable, Iterator, Optional

from ..core.config import DupeFileOption, SortOptions
from ..core.errors import (
    NoFilesFound,
    OperationCancelled,
    PlacementFailed,
    SortError,
    SortInProgress,
    UnknownDuplicate,
)
from ..core.models import DuplicateRecord, MediaFile, SortProgress, SortSummary
from ..core.protocols import ProgressReporter, Trash
from ..engines.metadata import DateResolver
from .collisions import CollisionTracker
from .deduplicator import DuplicateResolver
from .file_ops import PlacementExecutor
from .planner import RenameCounter, plan, planned_destination
from .scanner import DirectoryScanner

logger = logging.getLogger(__name__)

Dispatch = Callable[[Callable[[], None]], None]


def _call_now(callback: Callable[[], None]) -> None:
    callback()


def _same_file(source: Path, target: Path) -> bool:
    """True when placing source at target would be a no-op."""
    if source == target:
        return True
    try:
        return target.exists() and os.path.samefile(source, target)
    except OSError:
        return False


@dataclass
class RunState:
    """Everything that changes during a run."""
    counter: RenameCounter = field(default_factory=RenameCounter)
    destinations: CollisionTracker = field(default_factory=CollisionTracker)
    # Insertion ordered set: detection order is resolution order
    duplicates: dict[DuplicateRecord, None] = field(default_factory=dict)
    undated: list[Path] = field(default_factory=list)
    completed: int = 0
    total: int = 0

    def snapshot(self, cancelled: bool = False) -> SortProgress:
        return SortProgress(completed=self.completed, total=self.total, cancelled=cancelled)


class ImageSorter:
    """Sorts one input tree into a date-partitioned output tree.

    Usage:
        sorter = ImageSorter(input_root, output_root, options, progress=reporter)
        duplicates = sorter.run()
        while (record := sorter.current_duplicate()) is not None:
            sorter.resolve_duplicate(record, ask_user(record))
    """

    def __init__(
        self,
        input_root: Path,
        output_root: Path,
        options: SortOptions,
        progress: Optional[ProgressReporter] = None,
        dispatch: Optional[Dispatch] = None,
        scanner: Optional[DirectoryScanner] = None,
        date_resolver: Optional[DateResolver] = None,
        executor: Optional[PlacementExecutor] = None,
        trash: Optional[Trash] = None,
    ):
        """Initialize the sorter.

        Args:
            input_root: Directory to sort.
            output_root: Directory that receives the sorted tree.
            options: Options for every run of this sorter.
            progress: Receives a snapshot after every counted file.
            dispatch: Runs progress callbacks on the caller's context
                (e.g. a UI thread). Defaults to calling them directly.
            scanner: Enumerates the input tree.
            date_resolver: Finds capture dates.
            executor: Places files.
            trash: Used by the Replace option.
        """
        self._input_root = input_root
        self._output_root = output_root
        self._options = options
        self._progress = progress
        self._dispatch = dispatch or _call_now
        self._scanner = scanner or DirectoryScanner()
        self._dates = date_resolver or DateResolver()
        self._executor = executor or PlacementExecutor()
        self._resolver = DuplicateResolver(self._executor, self._dates, trash=trash)

        self._lock = threading.RLock()
        self._busy = threading.Lock()
        self._cancel = threading.Event()
        self._state = RunState()
        self._last_summary: Optional[SortSummary] = None

    # --- Read-only accessors ---

    @property
    def options(self) -> SortOptions:
        return self._options

    @property
    def progress(self) -> SortProgress:
        with self._lock:
            return self._state.snapshot(cancelled=self._cancel.is_set())

    @property
    def is_cancelled(self) -> bool:
        return self._cancel.is_set()

    @property
    def last_summary(self) -> Optional[SortSummary]:
        """Outcome of the most recent completed main pass."""
        return self._last_summary

    def current_duplicate(self) -> Optional[DuplicateRecord]:
        """The next duplicate to resolve, in detection order."""
        with self._lock:
            return next(iter(self._state.duplicates), None)

    def duplicate_count(self) -> int:
        with self._lock:
            return len(self._state.duplicates)

    def pending_duplicates(self) -> tuple[DuplicateRecord, ...]:
        with self._lock:
            return tuple(self._state.duplicates)

    # --- Control ---

    def cancel(self) -> None:
        """Request cancellation; honored before the next file."""
        logger.info("Cancellation requested")
        self._cancel.set()

    @contextmanager
    def _exclusive(self) -> Iterator[None]:
        if not self._busy.acquire(blocking=False):
            raise SortInProgress()
        try:
            yield
        except SortError as e:
            logger.debug(f"Run aborted: {e}")
            self._abort()
            raise
        except BaseException as e:
            logger.error(f"Run aborted by unexpected {type(e).__name__}: {e}")
            self._abort()
            raise
        finally:
            self._busy.release()

    def _abort(self) -> None:
        with self._lock:
            self._state = RunState()

    def _notify(self, snapshot: SortProgress) -> None:
        if self._progress is None:
            return
        reporter = self._progress

        def deliver() -> None:
            try:
                reporter.report(snapshot)
            except Exception:
                logger.exception(f"Progress reporter failed on {snapshot}")

        self._dispatch(deliver)

    def _raise_cancelled(self) -> None:
        with self._lock:
            snapshot = self._state.snapshot(cancelled=True)
        logger.warning(f"Cancelled after {snapshot.completed} of {snapshot.total} files")
        self._notify(snapshot)
        raise OperationCancelled(snapshot)

    # --- Main pass ---

    def run(self) -> tuple[DuplicateRecord, ...]:
        """Sort every matching file under the input root.

        Returns:
            Duplicates found during the pass, in detection order.

        Raises:
            SortInProgress: If this sorter is already busy.
            DirectoryDoesNotExist: If the input root is missing.
            EnumerationFailed: If the tree cannot be listed.
            NoFilesFound: If nothing matches the type scope.
            OperationCancelled: If cancel() was called mid-run.
            PlacementFailed: On any filesystem error other than a taken destination.
        """
        with self._exclusive():
            with self._lock:
                self._state = RunState()
                self._last_summary = None
            self._cancel.clear()

            logger.info(f"Sorting {self._input_root} into {self._output_root}")
            files = self._scanner.scan(self._input_root, self._options.type_scope)
            if not files:
                raise NoFilesFound(self._input_root)

            with self._lock:
                self._state.total = len(files)
                snapshot = self._state.snapshot()
            self._notify(snapshot)

            for media in files:
                if self._cancel.is_set():
                    self._raise_cancelled()
                self._process(media)

            with self._lock:
                summary = SortSummary(
                    duplicates=tuple(self._state.duplicates),
                    undated=tuple(self._state.undated),
                    progress=self._state.snapshot(),
                )
            self._last_summary = summary
            logger.info(
                f"Placed {summary.placed} of {summary.progress.total} files, "
                f"{len(summary.duplicates)} duplicates, {len(summary.undated)} without a date"
            )
            return summary.duplicates

    def _process(self, media: MediaFile) -> None:
        capture_date = self._dates.resolve(media.path, media.kind)
        if capture_date is None:
            logger.warning(f"No capture date for {media.path}, leaving it in place")
            with self._lock:
                self._state.undated.append(media.path)
            return

        planned = planned_destination(self._output_root, capture_date, media.path, self._options)
        with self._lock:
            existing = self._state.destinations.lookup(planned)
            if existing is not None:
                self._add_duplicate(DuplicateRecord(source=media.path, destination=existing))
                return
            target = plan(capture_date, media.path, self._options, self._state.counter).under(self._output_root)
            self._state.destinations.claim(planned, target)
        logger.debug(f"{media.path} -> {target} (key {planned})")

        if _same_file(media.path, target):
            logger.debug(f"{media.path} is already in place")
            self._count_completed()
            return

        try:
            self._executor.place(media.path, target, self._options.copy_not_move)
        except FileExistsError:
            with self._lock:
                self._add_duplicate(DuplicateRecord(source=media.path, destination=target))
            return
        except OSError as e:
            raise PlacementFailed(media.path, target, e) from e

        self._finish_placement(media.path, target, capture_date)

    def _finish_placement(self, source: Path, target: Path, capture_date: Optional[datetime]) -> None:
        try:
            self._executor.stamp(target, capture_date, self._options)
        except OSError as e:
            raise PlacementFailed(source, target, e) from e
        self._count_completed()

    def _count_completed(self) -> None:
        with self._lock:
            self._state.completed += 1
            snapshot = self._state.snapshot()
        self._notify(snapshot)

    def _add_duplicate(self, record: DuplicateRecord) -> None:
        logger.warning(f"Duplicate: {record.source} -> {record.destination}")
        self._state.duplicates[record] = None

    # --- Duplicate resolution ---

    def resolve_duplicate(self, record: DuplicateRecord, policy: DupeFileOption) -> Optional[Path]:
        """Resolve one pending duplicate.

        Returns:
            Where the source ended up, or None when skipped.

        Raises:
            OperationCancelled: If the run was cancelled.
            UnknownDuplicate: If the record is not pending.
            TrashFailed, SuffixProbeExhausted, PlacementFailed: On failure.
                Run state is cleared.
        """
        with self._lock:
            if record not in self._state.duplicates:
                raise UnknownDuplicate(record.source, record.destination)
        with self._exclusive():
            return self._resolve_one(record, policy)

    def resolve_all_duplicates(self, policy: DupeFileOption) -> list[Optional[Path]]:
        """Resolve every pending duplicate with the same option.

        Records are handled one at a time in detection order; the first
        failure stops the batch.
        """
        results = []
        with self._exclusive():
            while True:
                record = self.current_duplicate()
                if record is None:
                    break
                results.append(self._resolve_one(record, policy))
        return results

    def _resolve_one(self, record: DuplicateRecord, policy: DupeFileOption) -> Optional[Path]:
        if self._cancel.is_set():
            self._raise_cancelled()

        placed = self._resolver.resolve(record, policy, self._options)

        with self._lock:
            self._state.duplicates.pop(record, None)
            self._state.completed += 1
            snapshot = self._state.snapshot()
        self._notify(snapshot)
        return placed
