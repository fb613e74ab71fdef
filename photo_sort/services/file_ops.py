"""File placement service.

Copies or moves a file into the output tree without ever overwriting an
existing file, then stamps its timestamps. An occupied destination is
reported as ``FileExistsError`` so the caller can turn it into a
duplicate; every other ``OSError`` propagates unchanged.
"""
from __future__ import annotations

import errno
import logging
import os
import shutil
import subprocess
import sys
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

from ..core.config import SortOptions

logger = logging.getLogger(__name__)

# Errors from os.link that mean "hard links are not possible here"
LINK_UNSUPPORTED = frozenset({
    errno.EXDEV,
    errno.EPERM,
    errno.EMLINK,
    errno.ENOTSUP,
    errno.EOPNOTSUPP,
})

COPY_CHUNK_SIZE = 1024 * 1024

# Platforms where exiftool can write the file system creation date
CREATION_DATE_PLATFORMS = ("darwin", "win32")


def suffixed_path(path: Path, number: int) -> Path:
    """``photo.jpg`` -> ``photo (number).jpg``."""
    return path.with_name(f"{path.stem} ({number}){path.suffix}")


class PlacementExecutor:
    """Performs the copy or move of a single file."""

    def __init__(
        self,
        exiftool_path: Optional[str] = None,
        now: Callable[[], datetime] = datetime.now,
    ):
        """Initialize the executor.

        Args:
            exiftool_path: exiftool binary used to set creation dates.
                Looked up on PATH when not given.
            now: Clock used when timestamps are not synced to the capture date.
        """
        self._exiftool = exiftool_path or shutil.which("exiftool")
        self._now = now

    def ensure_directory(self, path: Path) -> None:
        try:
            path.mkdir(parents=True, exist_ok=True)
        except FileExistsError as e:
            # A file sits where the folder should be; not a duplicate
            raise NotADirectoryError(errno.ENOTDIR, "Not a directory", str(path)) from e

    def place(self, source: Path, destination: Path, copy: bool) -> None:
        """Copy or move source to destination.

        Args:
            source: File to place.
            destination: Target path. Its parent is created if needed.
            copy: Copy when True, move when False.

        Raises:
            FileExistsError: If destination is already taken.
            OSError: For any other filesystem failure.
        """
        self.ensure_directory(destination.parent)
        if copy:
            self._copy_exclusive(source, destination)
        else:
            self._move_exclusive(source, destination)
        logger.debug(f"{'Copied' if copy else 'Moved'} {source} -> {destination}")

    def _copy_exclusive(self, source: Path, destination: Path) -> None:
        with source.open("rb") as src:
            # "x" fails if the destination exists, with no check-then-write gap
            with destination.open("xb") as dst:
                try:
                    shutil.copyfileobj(src, dst, COPY_CHUNK_SIZE)
                except OSError:
                    dst.close()
                    destination.unlink(missing_ok=True)
                    raise
        shutil.copystat(source, destination)

    def _move_exclusive(self, source: Path, destination: Path) -> None:
        try:
            os.link(source, destination)
        except FileExistsError:
            raise
        except OSError as e:
            if e.errno not in LINK_UNSUPPORTED:
                raise
            logger.debug(f"Hard link unavailable ({e}), copying {source} instead")
            self._copy_exclusive(source, destination)
        source.unlink()

    def stamp(self, destination: Path, capture_date: Optional[datetime], options: SortOptions) -> None:
        """Set creation and modification times after placement.

        Each time is the capture date when its sync option is on and the
        date is known, otherwise the current time.
        """
        now = self._now()
        created = capture_date if options.sync_creation_date and capture_date else now
        modified = capture_date if options.sync_modification_date and capture_date else now

        self._set_creation_time(destination, created)
        timestamp = modified.timestamp()
        os.utime(destination, (timestamp, timestamp))

    def _set_creation_time(self, path: Path, value: datetime) -> bool:
        """Write the file system creation date with exiftool.

        Only macOS and Windows keep a settable creation date; elsewhere
        this is a no-op.

        Returns:
            True if the creation date was written.
        """
        if sys.platform not in CREATION_DATE_PLATFORMS or not self._exiftool:
            return False
        args = [
            self._exiftool,
            "-overwrite_original",
            f"-FileCreateDate={value.strftime('%Y:%m:%d %H:%M:%S')}",
            str(path),
        ]
        try:
            result = subprocess.run(args, capture_output=True, text=True, timeout=30)
        except (OSError, subprocess.SubprocessError) as e:
            logger.debug(f"exiftool failed for {path}: {e}")
            return False
        if result.returncode != 0:
            logger.debug(f"exiftool could not set creation date on {path}: {result.stderr.strip()}")
            return False
        return True
