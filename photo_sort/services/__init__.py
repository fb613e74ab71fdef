"""Service layer - business logic."""
from .scanner import DirectoryScanner
from .planner import RenameCounter, PlannedPath, folder_components, plan, planned_destination
from .collisions import CollisionTracker
from .file_ops import PlacementExecutor, suffixed_path
from .deduplicator import DuplicateResolver, Send2TrashBin, MAX_SUFFIX_ATTEMPTS
from .sorter import ImageSorter, RunState

__all__ = [
    "DirectoryScanner",
    "RenameCounter",
    "PlannedPath",
    "folder_components",
    "plan",
    "planned_destination",
    "CollisionTracker",
    "PlacementExecutor",
    "suffixed_path",
    "DuplicateResolver",
    "Send2TrashBin",
    "MAX_SUFFIX_ATTEMPTS",
    "ImageSorter",
    "RunState",
]
