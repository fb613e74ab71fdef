"""Configuration model with validation."""
from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .date_format import validate_pattern


class MonthFormat(str, Enum):
    """How the month folder is named.

    The value is the date pattern used to render it.
    """
    NUMERIC = "M"           # 9
    ZERO_PADDED = "MM"      # 09
    ABBREVIATED = "MMM"     # Sep
    FULL_NAME = "MMMM"      # September
    NARROW = "MMMMM"        # S

    @property
    def pattern(self) -> str:
        return self.value


class TypeScope(str, Enum):
    """Which media kinds a run processes."""
    PHOTOS = "photos"
    VIDEOS = "videos"
    BOTH = "both"


class DupeFileOption(str, Enum):
    """How to resolve a duplicate destination."""
    KEEP_BOTH = "keep-both"
    SKIP = "skip"
    REPLACE = "replace"


class SortOptions(BaseModel):
    """Options for one sort run.

    Immutable once built. The CLI is responsible for filling every field;
    the defaults mirror a fresh install of the desktop application.
    """
    model_config = ConfigDict(frozen=True)

    include_year: bool = Field(default=True, description="Create a year folder")
    include_month: bool = Field(default=True, description="Create a month folder")
    include_day: bool = Field(default=True, description="Create a day folder")
    month_format: MonthFormat = Field(
        default=MonthFormat.FULL_NAME,
        description="How the month folder is rendered",
    )
    copy_not_move: bool = Field(
        default=True,
        description="Copy files into the output instead of moving them",
    )
    sync_creation_date: bool = Field(
        default=True,
        description="Stamp the capture date as the destination's creation time",
    )
    sync_modification_date: bool = Field(
        default=True,
        description="Stamp the capture date as the destination's modification time",
    )
    rename_enabled: bool = Field(default=False, description="Rename files from their capture date")
    rename_date_format: str = Field(
        default="yyyy-MM-dd",
        description="Date pattern used for renamed file stems",
    )
    type_scope: TypeScope = Field(default=TypeScope.BOTH, description="Media kinds to sort")

    @field_validator("rename_date_format")
    @classmethod
    def check_rename_pattern(cls, value: str) -> str:
        validate_pattern(value)
        return value

    def with_overrides(self, **kwargs) -> "SortOptions":
        """Create a new, validated options object with some values overridden."""
        current = self.model_dump()
        current.update(kwargs)
        return SortOptions(**current)
