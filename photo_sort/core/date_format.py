"""Render dates with Unicode (ICU) style patterns such as ``yyyy-MM-dd``.

Only the fields that make sense in file and folder names are supported.
Names are always English so that output paths do not depend on the
process locale.
"""
from __future__ import annotations

from datetime import datetime
from typing import Iterator

MONTH_NAMES = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)

WEEKDAY_NAMES = (
    "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday",
)

# Rendered names must stay a single path component
PATH_SEPARATORS = ("/", "\\")

# Letter -> longest run accepted
SUPPORTED_FIELDS = {
    "y": 4,
    "M": 5,
    "L": 5,
    "d": 2,
    "H": 2,
    "h": 2,
    "m": 2,
    "s": 2,
    "S": 9,
    "a": 1,
    "E": 5,
}


def _tokenize(pattern: str) -> Iterator[tuple[bool, str]]:
    """Yield ``(is_field, text)`` pairs.

    Fields are runs of one repeated ASCII letter; everything else,
    including quoted text, is literal.
    """
    i = 0
    length = len(pattern)
    while i < length:
        ch = pattern[i]
        if ch == "'":
            if i + 1 < length and pattern[i + 1] == "'":
                yield False, "'"
                i += 2
                continue
            end = i + 1
            literal = []
            while True:
                if end >= length:
                    raise ValueError(f"Unterminated quote in date pattern: {pattern!r}")
                if pattern[end] == "'":
                    if end + 1 < length and pattern[end + 1] == "'":
                        literal.append("'")
                        end += 2
                        continue
                    break
                literal.append(pattern[end])
                end += 1
            yield False, "".join(literal)
            i = end + 1
        elif ch.isascii() and ch.isalpha():
            end = i
            while end < length and pattern[end] == ch:
                end += 1
            yield True, pattern[i:end]
            i = end
        else:
            yield False, ch
            i += 1


def validate_pattern(pattern: str) -> None:
    """Raise ValueError if the pattern is empty, uses unsupported fields
    or renders a path separator."""
    if not pattern:
        raise ValueError("Date pattern must not be empty")
    for is_field, text in _tokenize(pattern):
        if not is_field:
            if any(sep in text for sep in PATH_SEPARATORS):
                raise ValueError(f"Date pattern {pattern!r} must not contain a path separator")
            continue
        letter = text[0]
        if letter not in SUPPORTED_FIELDS:
            raise ValueError(f"Unsupported date field {text!r} in pattern {pattern!r}")
        if len(text) > SUPPORTED_FIELDS[letter]:
            raise ValueError(f"Date field {text!r} is too long in pattern {pattern!r}")


def _render_field(value: datetime, text: str) -> str:
    letter = text[0]
    count = len(text)

    if letter == "y":
        if count == 2:
            return f"{value.year % 100:02d}"
        return str(value.year).zfill(count)

    if letter in ("M", "L"):
        if count == 1:
            return str(value.month)
        if count == 2:
            return f"{value.month:02d}"
        name = MONTH_NAMES[value.month - 1]
        if count == 3:
            return name[:3]
        if count == 4:
            return name
        return name[0]

    if letter == "d":
        return str(value.day) if count == 1 else f"{value.day:02d}"

    if letter == "H":
        return str(value.hour) if count == 1 else f"{value.hour:02d}"

    if letter == "h":
        hour = value.hour % 12 or 12
        return str(hour) if count == 1 else f"{hour:02d}"

    if letter == "m":
        return str(value.minute) if count == 1 else f"{value.minute:02d}"

    if letter == "s":
        return str(value.second) if count == 1 else f"{value.second:02d}"

    if letter == "S":
        return f"{value.microsecond:06d}".ljust(count, "0")[:count]

    if letter == "a":
        return "AM" if value.hour < 12 else "PM"

    if letter == "E":
        name = WEEKDAY_NAMES[value.weekday()]
        if count <= 3:
            return name[:3]
        if count == 4:
            return name
        return name[0]

    raise ValueError(f"Unsupported date field {text!r}")


def format_date(value: datetime, pattern: str) -> str:
    """Format a datetime with an ICU style pattern.

    Args:
        value: Date to render.
        pattern: Pattern such as ``yyyy-MM-dd`` or ``MMMM``.

    Returns:
        The rendered string.

    Raises:
        ValueError: If the pattern is empty or contains an unsupported field.
    """
    validate_pattern(pattern)
    parts = []
    for is_field, text in _tokenize(pattern):
        parts.append(_render_field(value, text) if is_field else text)
    return "".join(parts)
