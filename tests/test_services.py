"""Tests for service layer components."""
import errno
import os
import sys
import pytest
from datetime import datetime
from pathlib import Path
from unittest.mock import MagicMock, patch

from fixtures import FakeTrash, FixedDateSource
from photo_sort.core.config import DupeFileOption, SortOptions
from photo_sort.core.errors import PlacementFailed, SuffixProbeExhausted, TrashFailed
from photo_sort.core.models import DuplicateRecord
from photo_sort.engines.metadata import DateResolver
from photo_sort.services.collisions import CollisionTracker
from photo_sort.services.deduplicator import DuplicateResolver, Send2TrashBin
from photo_sort.services.file_ops import PlacementExecutor, suffixed_path

CAPTURED = datetime(2023, 6, 15, 10, 30, 0)
NOW = datetime(2026, 1, 1, 12, 0, 0)


def write(path: Path, content: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    return path


class TestCollisionTracker:
    """Tests for CollisionTracker."""

    def test_lookup_and_claim(self):
        tracker = CollisionTracker()
        key = Path("/out/2023/June/a.jpg")

        assert tracker.lookup(key) is None
        tracker.claim(key, Path("/out/2023/June/2023-06-15_001.jpg"))

        assert tracker.lookup(key) == Path("/out/2023/June/2023-06-15_001.jpg")
        assert key in tracker
        assert len(tracker) == 1

    def test_claim_twice(self):
        tracker = CollisionTracker()
        tracker.claim(Path("k"), Path("a"))
        with pytest.raises(ValueError):
            tracker.claim(Path("k"), Path("b"))

    def test_reset(self):
        tracker = CollisionTracker()
        tracker.claim(Path("k"), Path("a"))
        tracker.reset()
        assert len(tracker) == 0


class TestSuffixedPath:
    """Tests for suffixed_path."""

    def test_before_extension(self):
        assert suffixed_path(Path("/o/photo.jpg"), 2) == Path("/o/photo (2).jpg")

    def test_no_extension(self):
        assert suffixed_path(Path("/o/photo"), 1) == Path("/o/photo (1)")


class TestPlacementExecutor:
    """Tests for PlacementExecutor."""

    @pytest.fixture
    def executor(self):
        return PlacementExecutor(exiftool_path=None, now=lambda: NOW)

    @pytest.fixture
    def source(self, tmp_path: Path) -> Path:
        return write(tmp_path / "in" / "a.jpg", "source")

    def test_copy(self, executor, source, tmp_path: Path):
        """Copy creates parents and leaves the source."""
        dest = tmp_path / "out" / "2023" / "June" / "a.jpg"
        executor.place(source, dest, copy=True)

        assert dest.read_text() == "source"
        assert source.exists()

    def test_copy_never_overwrites(self, executor, source, tmp_path: Path):
        dest = write(tmp_path / "out" / "a.jpg", "existing")

        with pytest.raises(FileExistsError):
            executor.place(source, dest, copy=True)

        assert dest.read_text() == "existing"

    def test_move(self, executor, source, tmp_path: Path):
        dest = tmp_path / "out" / "a.jpg"
        executor.place(source, dest, copy=False)

        assert dest.read_text() == "source"
        assert not source.exists()

    def test_move_never_overwrites(self, executor, source, tmp_path: Path):
        dest = write(tmp_path / "out" / "a.jpg", "existing")

        with pytest.raises(FileExistsError):
            executor.place(source, dest, copy=False)

        assert dest.read_text() == "existing"
        assert source.exists()

    def test_move_across_devices(self, executor, source, tmp_path: Path):
        """Falls back to an exclusive copy when hard links fail."""
        dest = tmp_path / "out" / "a.jpg"
        with patch("photo_sort.services.file_ops.os.link", side_effect=OSError(errno.EXDEV, "cross-device")):
            executor.place(source, dest, copy=False)

        assert dest.read_text() == "source"
        assert not source.exists()

    def test_move_other_link_error_propagates(self, executor, source, tmp_path: Path):
        dest = tmp_path / "out" / "a.jpg"
        with patch("photo_sort.services.file_ops.os.link", side_effect=OSError(errno.EIO, "io")):
            with pytest.raises(OSError) as excinfo:
                executor.place(source, dest, copy=False)

        assert not isinstance(excinfo.value, FileExistsError)
        assert source.exists()

    def test_file_where_folder_should_be(self, executor, source, tmp_path: Path):
        """A blocking file is a filesystem error, not a duplicate."""
        write(tmp_path / "out" / "2023", "not a folder")

        with pytest.raises(NotADirectoryError):
            executor.place(source, tmp_path / "out" / "2023" / "a.jpg", copy=True)

    def test_stamp_capture_date(self, executor, source):
        executor.stamp(source, CAPTURED, SortOptions())
        assert source.stat().st_mtime == pytest.approx(CAPTURED.timestamp())

    def test_stamp_now_when_sync_off(self, executor, source):
        options = SortOptions(sync_modification_date=False)
        executor.stamp(source, CAPTURED, options)
        assert source.stat().st_mtime == pytest.approx(NOW.timestamp())

    def test_stamp_now_without_date(self, executor, source):
        executor.stamp(source, None, SortOptions())
        assert source.stat().st_mtime == pytest.approx(NOW.timestamp())

    def test_creation_time_skipped_without_exiftool(self, source):
        with patch("photo_sort.services.file_ops.shutil.which", return_value=None):
            executor = PlacementExecutor()
        with patch("photo_sort.services.file_ops.subprocess.run") as run:
            assert executor._set_creation_time(source, CAPTURED) is False
        run.assert_not_called()

    def test_creation_time_with_exiftool(self, source):
        executor = PlacementExecutor(exiftool_path="/opt/bin/exiftool")
        with patch("photo_sort.services.file_ops.CREATION_DATE_PLATFORMS", (sys.platform,)), \
                patch("photo_sort.services.file_ops.subprocess.run") as run:
            run.return_value = MagicMock(returncode=0, stderr="")
            assert executor._set_creation_time(source, CAPTURED) is True

        args = run.call_args[0][0]
        assert args[0] == "/opt/bin/exiftool"
        assert "-FileCreateDate=2023:06:15 10:30:00" in args


class TestSend2TrashBin:
    """Tests for the default trash."""

    def test_calls_send2trash(self, tmp_path: Path):
        path = write(tmp_path / "a.jpg", "x")
        with patch("photo_sort.services.deduplicator.send2trash") as send:
            Send2TrashBin().trash(path)
        send.assert_called_once_with(str(path))


class TestDuplicateResolver:
    """Tests for DuplicateResolver."""

    @pytest.fixture
    def dates(self):
        source = FixedDateSource(CAPTURED)
        return DateResolver(exif=source, tiff=source, video=source, filesystem=source)

    @pytest.fixture
    def resolver(self, dates, fake_trash):
        executor = PlacementExecutor(exiftool_path=None, now=lambda: NOW)
        return DuplicateResolver(executor, dates, trash=fake_trash)

    @pytest.fixture
    def record(self, tmp_path: Path) -> DuplicateRecord:
        source = write(tmp_path / "in" / "b" / "photo.jpg", "new")
        destination = write(tmp_path / "out" / "2023" / "photo.jpg", "old")
        return DuplicateRecord(source=source, destination=destination)

    def test_skip(self, resolver, record):
        assert resolver.resolve(record, DupeFileOption.SKIP, SortOptions()) is None
        assert record.source.exists()
        assert record.destination.read_text() == "old"

    def test_replace(self, resolver, record, fake_trash):
        placed = resolver.resolve(record, DupeFileOption.REPLACE, SortOptions())

        assert placed == record.destination
        assert record.destination.read_text() == "new"
        assert fake_trash.trashed == [record.destination]
        assert record.destination.stat().st_mtime == pytest.approx(CAPTURED.timestamp())

    def test_replace_move(self, resolver, record):
        resolver.resolve(record, DupeFileOption.REPLACE, SortOptions(copy_not_move=False))
        assert not record.source.exists()

    def test_replace_missing_destination(self, resolver, record, fake_trash):
        """Nothing to trash; the source still lands."""
        record.destination.unlink()
        resolver.resolve(record, DupeFileOption.REPLACE, SortOptions())

        assert fake_trash.trashed == []
        assert record.destination.read_text() == "new"

    def test_replace_trash_failure(self, dates, record):
        executor = PlacementExecutor(exiftool_path=None)
        resolver = DuplicateResolver(executor, dates, trash=FakeTrash(fail=True))

        with pytest.raises(TrashFailed):
            resolver.resolve(record, DupeFileOption.REPLACE, SortOptions())

        assert record.destination.read_text() == "old"

    def test_replace_refuses_same_file(self, resolver, fake_trash, tmp_path: Path):
        """A file recorded against itself is never trashed."""
        photo = write(tmp_path / "out" / "2023" / "photo.jpg", "only copy")

        with pytest.raises(PlacementFailed):
            resolver.resolve(DuplicateRecord(photo, photo), DupeFileOption.REPLACE, SortOptions())

        assert fake_trash.trashed == []
        assert photo.read_text() == "only copy"

    def test_keep_both(self, resolver, record):
        placed = resolver.resolve(record, DupeFileOption.KEEP_BOTH, SortOptions())

        assert placed == record.destination.with_name("photo (1).jpg")
        assert placed.read_text() == "new"
        assert record.destination.read_text() == "old"

    def test_keep_both_three_times(self, resolver, record, tmp_path: Path):
        """Suffixes are consecutive, none skipped."""
        others = [write(tmp_path / "in" / f"c{i}" / "photo.jpg", f"n{i}") for i in range(2)]
        records = [record] + [DuplicateRecord(p, record.destination) for p in others]

        placed = [resolver.resolve(r, DupeFileOption.KEEP_BOTH, SortOptions()) for r in records]

        assert [p.name for p in placed] == ["photo (1).jpg", "photo (2).jpg", "photo (3).jpg"]
        assert sorted(f.name for f in record.destination.parent.iterdir()) == [
            "photo (1).jpg", "photo (2).jpg", "photo (3).jpg", "photo.jpg",
        ]

    def test_keep_both_race(self, dates, record):
        """A suffix taken during placement moves on to the next one."""
        executor = PlacementExecutor(exiftool_path=None)
        real_place = executor.place
        calls = []

        def racing_place(source, destination, copy):
            calls.append(destination)
            if len(calls) == 1:
                raise FileExistsError(destination)
            real_place(source, destination, copy)

        executor.place = racing_place
        resolver = DuplicateResolver(executor, dates, trash=FakeTrash())

        placed = resolver.resolve(record, DupeFileOption.KEEP_BOTH, SortOptions())

        assert placed.name == "photo (2).jpg"

    def test_keep_both_exhausted(self, dates, record):
        resolver = DuplicateResolver(PlacementExecutor(exiftool_path=None), dates, max_suffix_attempts=2)
        for n in (1, 2):
            write(suffixed_path(record.destination, n), "taken")

        with pytest.raises(SuffixProbeExhausted):
            resolver.resolve(record, DupeFileOption.KEEP_BOTH, SortOptions())

    def test_keep_both_placement_error(self, dates, record):
        executor = MagicMock(spec=PlacementExecutor)
        executor.place.side_effect = PermissionError(errno.EACCES, "denied")
        resolver = DuplicateResolver(executor, dates, trash=FakeTrash())

        with pytest.raises(PlacementFailed):
            resolver.resolve(record, DupeFileOption.KEEP_BOTH, SortOptions())

    def test_invalid_attempts(self, dates):
        with pytest.raises(ValueError):
            DuplicateResolver(PlacementExecutor(), dates, max_suffix_attempts=0)
