"""Core domain models and protocols."""
from .protocols import (
    DateSource,
    ProgressReporter,
    Trash,
)
from .models import (
    MediaKind,
    MediaFile,
    DuplicateRecord,
    SortProgress,
    SortSummary,
)
from .config import SortOptions, MonthFormat, TypeScope, DupeFileOption
from .errors import (
    SortError,
    DirectoryDoesNotExist,
    EnumerationFailed,
    NoFilesFound,
    OperationCancelled,
    SortInProgress,
    PlacementFailed,
    TrashFailed,
    SuffixProbeExhausted,
    UnknownDuplicate,
)

__all__ = [
    # Protocols
    "DateSource",
    "ProgressReporter",
    "Trash",
    # Models
    "MediaKind",
    "MediaFile",
    "DuplicateRecord",
    "SortProgress",
    "SortSummary",
    # Config
    "SortOptions",
    "MonthFormat",
    "TypeScope",
    "DupeFileOption",
    # Errors
    "SortError",
    "DirectoryDoesNotExist",
    "EnumerationFailed",
    "NoFilesFound",
    "OperationCancelled",
    "SortInProgress",
    "PlacementFailed",
    "TrashFailed",
    "SuffixProbeExhausted",
    "UnknownDuplicate",
]
