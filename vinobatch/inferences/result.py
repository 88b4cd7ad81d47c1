from __future__ import annotations

from dataclasses import dataclass
from typing import NamedTuple, Sequence, Union


class Rect(NamedTuple):
    """Axis-aligned rectangle in the coordinate space of the source frame."""

    x: int
    y: int
    width: int
    height: int

    @classmethod
    def from_any(cls, value: Union["Rect", Sequence[int]]) -> "Rect":
        if isinstance(value, cls):
            return value
        if len(value) != 4:
            raise ValueError(f"Location needs 4 values (x, y, width, height), got {value}")
        return cls(*(int(v) for v in value))


@dataclass
class Result:
    """Base class for inference results, tagged with the source location."""

    location: Rect

    def get_location(self) -> Rect:
        return self.location
