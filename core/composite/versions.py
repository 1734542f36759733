"""
Composite Scope — Versions and Version Ranges
================================================
Module versions are (major, minor, micro, qualifier).
Ranges use interval notation: [1.0,2.0) or a bare minimum version.

Pure value objects. No side effects.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

QUALIFIER_PATTERN = re.compile(r"^[A-Za-z0-9_\-]*$")


class InvalidVersionError(ValueError):
    """Version or version range text could not be parsed."""

    def __init__(self, text: str, reason: str):
        self.text = text
        self.reason = reason
        super().__init__(f"Invalid version '{text}': {reason}")


# ══════════════════════════════════════════════════════════════
# VERSION
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True, order=True)
class Version:
    major: int = 0
    minor: int = 0
    micro: int = 0
    qualifier: str = ""

    def __post_init__(self):
        for field_name in ("major", "minor", "micro"):
            value = getattr(self, field_name)
            if not isinstance(value, int) or isinstance(value, bool):
                raise ValueError(f"{field_name} must be an int.")
            if value < 0:
                raise ValueError(f"{field_name} must not be negative.")

        if not isinstance(self.qualifier, str):
            raise ValueError("qualifier must be a string.")
        if not QUALIFIER_PATTERN.match(self.qualifier):
            raise ValueError(
                f"qualifier '{self.qualifier}' contains invalid characters."
            )

    @classmethod
    def parse(cls, text: Optional[str]) -> "Version":
        """
        Parse "1", "1.2", "1.2.3" or "1.2.3.qualifier".

        None or blank text yields EMPTY_VERSION.
        """
        if text is None:
            return EMPTY_VERSION
        if isinstance(text, Version):
            return text

        raw = str(text).strip()
        if not raw:
            return EMPTY_VERSION

        parts = raw.split(".", 3)
        numbers = []
        for part in parts[:3]:
            if not part.isdigit():
                raise InvalidVersionError(
                    raw, f"component '{part}' is not a non-negative integer"
                )
            numbers.append(int(part))
        while len(numbers) < 3:
            numbers.append(0)

        qualifier = parts[3] if len(parts) == 4 else ""
        try:
            return cls(numbers[0], numbers[1], numbers[2], qualifier)
        except ValueError as exc:
            raise InvalidVersionError(raw, str(exc)) from exc

    def __str__(self) -> str:
        base = f"{self.major}.{self.minor}.{self.micro}"
        return f"{base}.{self.qualifier}" if self.qualifier else base


EMPTY_VERSION = Version()


# ══════════════════════════════════════════════════════════════
# VERSION RANGE
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class VersionRange:
    """
    Interval of versions.

    maximum=None means unbounded above ("1.0" → at least 1.0).
    """

    minimum: Version = EMPTY_VERSION
    maximum: Optional[Version] = None
    include_minimum: bool = True
    include_maximum: bool = False

    def __post_init__(self):
        if not isinstance(self.minimum, Version):
            raise ValueError("minimum must be a Version.")
        if self.maximum is not None and not isinstance(self.maximum, Version):
            raise ValueError("maximum must be a Version or None.")

    @classmethod
    def parse(cls, text: Optional[str]) -> "VersionRange":
        if text is None:
            return ANY_VERSION
        if isinstance(text, VersionRange):
            return text

        raw = str(text).strip().strip('"')
        if not raw:
            return ANY_VERSION

        if raw[0] not in "[(":
            return cls(minimum=Version.parse(raw))

        if raw[-1] not in "])":
            raise InvalidVersionError(raw, "range must end with ']' or ')'")

        body = raw[1:-1]
        if body.count(",") != 1:
            raise InvalidVersionError(
                raw, "range must contain exactly one ','"
            )
        low, high = (part.strip() for part in body.split(","))
        return cls(
            minimum=Version.parse(low),
            maximum=Version.parse(high),
            include_minimum=raw[0] == "[",
            include_maximum=raw[-1] == "]",
        )

    def is_empty(self) -> bool:
        if self.maximum is None:
            return False
        if self.minimum > self.maximum:
            return True
        if self.minimum == self.maximum:
            return not (self.include_minimum and self.include_maximum)
        return False

    def includes(self, version: Version) -> bool:
        if self.is_empty():
            return False

        if self.include_minimum:
            if version < self.minimum:
                return False
        elif version <= self.minimum:
            return False

        if self.maximum is None:
            return True
        if self.include_maximum:
            return version <= self.maximum
        return version < self.maximum

    def __str__(self) -> str:
        if self.maximum is None:
            return str(self.minimum)
        left = "[" if self.include_minimum else "("
        right = "]" if self.include_maximum else ")"
        return f"{left}{self.minimum},{self.maximum}{right}"


ANY_VERSION = VersionRange()
