# services/rasterizer_service.py
from typing import Iterable, List
from ..models.stamp import Point


class RasterizerService:
    """
    Midpoint-circle rasterization.

    • Emits signed coordinates; clipping is the caller's job.
    • Output is NOT deduplicated: the octant seams (x == 0, x == y)
      produce the same position more than once.
    """

    @staticmethod
    def circle_points(cx: int, cy: int, radius: int) -> List[Point]:
        if radius < 1:
            raise ValueError(f"radius must be >= 1, got {radius}")

        points: List[Point] = []
        x, y = 0, radius
        d = 3 - 2 * radius

        while x <= y:
            points.extend((
                (cx + x, cy + y),
                (cx - x, cy + y),
                (cx + x, cy - y),
                (cx - x, cy - y),
                (cx + y, cy + x),
                (cx - y, cy + x),
                (cx + y, cy - x),
                (cx - y, cy - x),
            ))
            if d < 0:
                d += 4 * x + 6
            else:
                d += 4 * (x - y) + 10
                y -= 1
            x += 1

        return points

    @staticmethod
    def in_bounds(points: Iterable[Point], width: int, height: int) -> List[Point]:
        """Keep the points inside [0, width) x [0, height), order preserved."""
        return [(x, y) for x, y in points if 0 <= x < width and 0 <= y < height]
