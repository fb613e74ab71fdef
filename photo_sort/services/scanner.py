"""Directory scanning service."""
from __future__ import annotations

import logging
import os
from pathlib import Path

from ..core.config import TypeScope
from ..core.errors import DirectoryDoesNotExist, EnumerationFailed
from ..core.models import MediaFile
from ..engines.classifier import classify, matches_scope

logger = logging.getLogger(__name__)


class DirectoryScanner:
    """Lists every media file below an input root.

    Directory symlinks are not followed; file symlinks are listed.
    """

    def scan(self, root: Path, scope: TypeScope) -> list[MediaFile]:
        """Enumerate the tree once and filter it by type scope.

        Args:
            root: Input directory.
            scope: Media kinds to keep.

        Returns:
            Matching files in enumeration order.

        Raises:
            DirectoryDoesNotExist: If root is missing or not a directory.
            EnumerationFailed: If any directory cannot be listed.
        """
        if not root.is_dir():
            raise DirectoryDoesNotExist(root)

        def on_error(error: OSError) -> None:
            raise EnumerationFailed(Path(error.filename or root), error)

        files = []
        seen = 0
        for dirpath, _dirnames, filenames in os.walk(root, onerror=on_error):
            for filename in filenames:
                seen += 1
                path = Path(dirpath) / filename
                kind = classify(path)
                if matches_scope(kind, scope):
                    files.append(MediaFile(path=path, kind=kind))

        logger.debug(f"Scanned {root}: {seen} entries, {len(files)} match {scope.value}")
        return files
