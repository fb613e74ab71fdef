"""Photo and video sorting by capture date.

Copies or moves media from an input tree into year/month/day folders,
optionally renaming files from their capture date, and hands name
collisions back to the caller as duplicates to resolve.
"""

__version__ = "1.0.0"

# Core exports
from .core.config import SortOptions, MonthFormat, TypeScope, DupeFileOption
from .core.models import MediaKind, MediaFile, DuplicateRecord, SortProgress, SortSummary
from .core.protocols import DateSource, ProgressReporter, Trash
from .core.errors import (
    SortError,
    DirectoryDoesNotExist,
    NoFilesFound,
    OperationCancelled,
)

# Engine exports
from .engines.classifier import classify
from .engines.metadata import DateResolver

# Service exports
from .services.sorter import ImageSorter
from .services.deduplicator import DuplicateResolver

# Logging exports
from .logging.rich_logger import RichProgressReporter

__all__ = [
    # Core
    "SortOptions",
    "MonthFormat",
    "TypeScope",
    "DupeFileOption",
    "MediaKind",
    "MediaFile",
    "DuplicateRecord",
    "SortProgress",
    "SortSummary",
    "DateSource",
    "ProgressReporter",
    "Trash",
    "SortError",
    "DirectoryDoesNotExist",
    "NoFilesFound",
    "OperationCancelled",
    # Engines
    "classify",
    "DateResolver",
    # Services
    "ImageSorter",
    "DuplicateResolver",
    # Logging
    "RichProgressReporter",
]
