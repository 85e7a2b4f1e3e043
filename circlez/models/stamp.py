from __future__ import annotations
from dataclasses import dataclass, field
from typing import List, Tuple

Point = Tuple[int, int]
Color = Tuple[int, int, int]
# (position, new color) pairs proposed for an in-place mutation
ChangeSet = List[Tuple[Point, Color]]


@dataclass
class CandidateStamp:
    """
    One proposed circle. Lives only inside a single search step.
    `boundary_points` are signed and may fall outside the image.
    """
    center: Point
    radius: int
    color: Color = (0, 0, 0)
    boundary_points: List[Point] = field(default_factory=list)
