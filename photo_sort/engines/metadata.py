"""Capture date extraction.

Each source knows how to pull one kind of date out of a file. The
resolver picks an ordered chain of sources for a file and returns the
first date any of them finds:

- Still images: EXIF DateTimeOriginal only
- TIFF family: TIFF DateTime, then EXIF DateTimeOriginal, then the filesystem
- Videos: container creation date, then the filesystem

Sources never raise for unreadable files; they log and return None.
"""
from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional, Sequence

from PIL import Image
from pillow_heif import register_heif_opener
import ffmpeg

from ..core.models import MediaKind
from ..core.protocols import DateSource
from .classifier import classify, is_tiff_family

logger = logging.getLogger(__name__)

# HEIC/HEIF stills (the iPhone default) open through Pillow like any other image
register_heif_opener()

EXIF_IFD_POINTER = 0x8769
TAG_DATETIME = 306
TAG_DATETIME_ORIGINAL = 36867

EXIF_DATETIME_FORMATS = (
    "%Y:%m:%d %H:%M:%S",
    "%Y-%m-%d %H:%M:%S",
    "%Y/%m/%d %H:%M:%S",
    "%Y:%m:%d",
)

VIDEO_DATE_TAGS = ("creation_time", "creation_date", "date")
# QuickTime stores "unset" as zero seconds since 1904-01-01
QUICKTIME_EPOCH_YEAR = 1904


def parse_exif_datetime(value) -> Optional[datetime]:
    """Parse an EXIF date string, returning None if it is not a date."""
    if isinstance(value, bytes):
        value = value.decode("ascii", errors="ignore")
    if not isinstance(value, str):
        return None
    value = value.strip("\x00 ")
    for fmt in EXIF_DATETIME_FORMATS:
        try:
            return datetime.strptime(value, fmt)
        except ValueError:
            continue
    return None


def _read_exif_tag(path: Path, tag_id: int, exif_ifd_first: bool) -> Optional[datetime]:
    """Read a date tag from IFD0 or the EXIF sub-IFD."""
    with Image.open(path) as img:
        exif = img.getexif()
        if not exif:
            return None
        sub_ifd = exif.get_ifd(EXIF_IFD_POINTER)
        lookups = (sub_ifd, exif) if exif_ifd_first else (exif, sub_ifd)
        for ifd in lookups:
            if tag_id in ifd:
                parsed = parse_exif_datetime(ifd[tag_id])
                if parsed:
                    return parsed
    return None


class ExifOriginalDateSource:
    """EXIF DateTimeOriginal, the moment the shutter fired."""

    @property
    def name(self) -> str:
        return "exif"

    def extract(self, path: Path) -> Optional[datetime]:
        try:
            return _read_exif_tag(path, TAG_DATETIME_ORIGINAL, exif_ifd_first=True)
        except Exception as e:
            logger.debug(f"EXIF read failed for {path}: {e}")
            return None


class TiffDateTimeSource:
    """TIFF DateTime tag in the first image directory."""

    @property
    def name(self) -> str:
        return "tiff"

    def extract(self, path: Path) -> Optional[datetime]:
        try:
            return _read_exif_tag(path, TAG_DATETIME, exif_ifd_first=False)
        except Exception as e:
            logger.debug(f"TIFF read failed for {path}: {e}")
            return None


class VideoCreationDateSource:
    """Creation date stored in the video container."""

    @property
    def name(self) -> str:
        return "video"

    def extract(self, path: Path) -> Optional[datetime]:
        try:
            probe = ffmpeg.probe(str(path))
        except ffmpeg.Error as e:
            stderr = e.stderr.decode("utf-8", errors="ignore").strip() if e.stderr else e
            logger.debug(f"ffprobe failed for {path}: {stderr}")
            return None
        except OSError as e:
            # ffprobe binary missing or not executable
            logger.debug(f"ffprobe unavailable for {path}: {e}")
            return None

        created = parse_video_datetime(_video_date_tag(probe))
        if created is None or created.year <= QUICKTIME_EPOCH_YEAR:
            return None
        return created


def _video_date_tag(probe: dict) -> Optional[str]:
    """First creation tag in the container, then in any stream."""
    tag_sets = [probe.get("format", {}).get("tags", {})]
    tag_sets.extend(stream.get("tags", {}) for stream in probe.get("streams", []))
    for tags in tag_sets:
        for key in VIDEO_DATE_TAGS:
            value = tags.get(key)
            if value:
                return value
    return None


def parse_video_datetime(value: Optional[str]) -> Optional[datetime]:
    """Parse an ffprobe timestamp into naive local time; None for the zero epoch."""
    if not value:
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return parse_exif_datetime(value)
    if parsed.year <= QUICKTIME_EPOCH_YEAR:
        return None
    if parsed.tzinfo is not None:
        try:
            parsed = parsed.astimezone().replace(tzinfo=None)
        except (OverflowError, OSError):
            # Pre-1970 instants have no local time on some platforms
            parsed = parsed.replace(tzinfo=None)
    return parsed


class FileCreationDateSource:
    """Filesystem creation time, or modification time where the OS has none."""

    @property
    def name(self) -> str:
        return "filesystem"

    def extract(self, path: Path) -> Optional[datetime]:
        try:
            stat = path.stat()
        except OSError as e:
            logger.debug(f"stat failed for {path}: {e}")
            return None
        timestamp = getattr(stat, "st_birthtime", None)
        if timestamp is None:
            timestamp = stat.st_mtime
        return datetime.fromtimestamp(timestamp)


class DateResolver:
    """Finds the capture date of a media file."""

    def __init__(
        self,
        exif: Optional[DateSource] = None,
        tiff: Optional[DateSource] = None,
        video: Optional[DateSource] = None,
        filesystem: Optional[DateSource] = None,
    ):
        """Initialize the resolver.

        Args:
            exif: Source for EXIF original dates.
            tiff: Source for TIFF DateTime.
            video: Source for video container dates.
            filesystem: Last-resort filesystem source.
        """
        self._exif = exif or ExifOriginalDateSource()
        self._tiff = tiff or TiffDateTimeSource()
        self._video = video or VideoCreationDateSource()
        self._filesystem = filesystem or FileCreationDateSource()

    def chain_for(self, path: Path, kind: MediaKind) -> Sequence[DateSource]:
        """Ordered sources to try for this file."""
        if kind is MediaKind.IMAGE:
            if is_tiff_family(path):
                return (self._tiff, self._exif, self._filesystem)
            return (self._exif,)
        if kind is MediaKind.VIDEO:
            return (self._video, self._filesystem)
        return ()

    def resolve_with_source(
        self,
        path: Path,
        kind: Optional[MediaKind] = None,
    ) -> tuple[Optional[datetime], Optional[str]]:
        """Resolve the date and report which source produced it."""
        if kind is None:
            kind = classify(path)
        for source in self.chain_for(path, kind):
            found = source.extract(path)
            if found is not None:
                logger.debug(f"{path.name}: date {found} from {source.name}")
                return found, source.name
        logger.debug(f"{path.name}: no capture date")
        return None, None

    def resolve(self, path: Path, kind: Optional[MediaKind] = None) -> Optional[datetime]:
        """Return the capture date, or None if no source has one."""
        return self.resolve_with_source(path, kind)[0]
