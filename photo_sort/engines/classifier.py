"""File classification by extension, with a content-type fallback."""
from __future__ import annotations

import mimetypes
from pathlib import Path

from ..core.config import TypeScope
from ..core.models import MediaKind

TIFF_EXTENSIONS = frozenset({
    ".tif", ".tiff",
    # Raw formats built on a TIFF container
    ".dng", ".nef", ".cr2", ".arw", ".orf", ".rw2", ".pef", ".srw",
})

IMAGE_EXTENSIONS = frozenset({
    ".jpg", ".jpeg", ".png", ".webp", ".heic", ".heif",
    ".bmp", ".gif",
}) | TIFF_EXTENSIONS

VIDEO_EXTENSIONS = frozenset({
    ".mp4", ".mov", ".avi", ".mkv", ".webm", ".m4v",
    ".3gp", ".wmv", ".flv", ".mts", ".m2ts",
})


def classify(path: Path) -> MediaKind:
    """Classify a path as image, video or other.

    Never touches the file itself.
    """
    suffix = path.suffix.lower()
    if suffix in IMAGE_EXTENSIONS:
        return MediaKind.IMAGE
    if suffix in VIDEO_EXTENSIONS:
        return MediaKind.VIDEO

    content_type, _ = mimetypes.guess_type(path.name, strict=False)
    if content_type:
        if content_type.startswith("image/"):
            return MediaKind.IMAGE
        if content_type.startswith("video/"):
            return MediaKind.VIDEO
    return MediaKind.OTHER


def is_image(path: Path) -> bool:
    return classify(path) is MediaKind.IMAGE


def is_video(path: Path) -> bool:
    return classify(path) is MediaKind.VIDEO


def is_tiff_family(path: Path) -> bool:
    return path.suffix.lower() in TIFF_EXTENSIONS


def matches_scope(kind: MediaKind, scope: TypeScope) -> bool:
    """Whether a file of this kind is part of a run with this scope."""
    if scope is TypeScope.PHOTOS:
        return kind is MediaKind.IMAGE
    if scope is TypeScope.VIDEOS:
        return kind is MediaKind.VIDEO
    return kind in (MediaKind.IMAGE, MediaKind.VIDEO)
