"""Tracks which planned destinations were already claimed this run."""
from __future__ import annotations

from pathlib import Path
from typing import Optional


class CollisionTracker:
    """Maps each planned destination to the actual destination it got.

    A second file with the same planned destination is a duplicate of
    the first; its record points at the first file's actual destination.
    """

    def __init__(self):
        self._claimed: dict[Path, Path] = {}

    def lookup(self, planned: Path) -> Optional[Path]:
        """Actual destination already assigned to this key, if any."""
        return self._claimed.get(planned)

    def claim(self, planned: Path, actual: Path) -> None:
        if planned in self._claimed:
            raise ValueError(f"Destination already claimed: {planned}")
        self._claimed[planned] = actual

    def reset(self) -> None:
        self._claimed.clear()

    def __contains__(self, planned: Path) -> bool:
        return planned in self._claimed

    def __len__(self) -> int:
        return len(self._claimed)
