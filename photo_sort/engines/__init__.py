"""Classification and metadata engines."""
from .classifier import classify, matches_scope, IMAGE_EXTENSIONS, VIDEO_EXTENSIONS
from .metadata import DateResolver

__all__ = [
    "classify",
    "matches_scope",
    "IMAGE_EXTENSIONS",
    "VIDEO_EXTENSIONS",
    "DateResolver",
]
