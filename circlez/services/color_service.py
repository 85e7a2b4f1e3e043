from __future__ import annotations
from typing import Sequence
import numpy as np
from ..models.image import Image
from ..models.stamp import Color, Point
from ..repositories.image_repository import ImageRepository


def max_radius_for(width: int, height: int) -> int:
    """Largest stamp radius for an image: a quarter of the short side, at least 1."""
    return max(1, min(width, height) // 4)


class UniformColorEstimator:
    """Random fill color; ignores the target entirely."""

    def __init__(self, rng: np.random.Generator):
        self.rng = rng

    def estimate(self, target: Image, cx: int, cy: int, radius: int,
                 boundary_points: Sequence[Point]) -> Color:
        r, g, b = self.rng.integers(0, 256, size=3)
        return int(r), int(g), int(b)


class WeightedColorEstimator:
    """
    Blend of the target's color under the center and the mean color along
    the circle's edge. Small circles lean on the center, circles at or
    above the maximum radius use the edge mean only.
    """

    def __init__(self):
        self.image_repository = ImageRepository()

    def estimate(self, target: Image, cx: int, cy: int, radius: int,
                 boundary_points: Sequence[Point]) -> Color:
        if 0 <= cx < target.width and 0 <= cy < target.height:
            center = self.image_repository.color_at(target, cx, cy)
        else:
            center = (0, 0, 0)

        inside = [(x, y) for x, y in boundary_points
                  if 0 <= x < target.width and 0 <= y < target.height]
        if not inside:
            return center

        # mean over every occurrence, truncated to 8 bits
        edge = self.image_repository.gather(target, inside).sum(axis=0) / len(inside)
        edge = [int(c) for c in edge]

        weight = min(radius / max_radius_for(target.width, target.height), 1.0)
        return tuple(
            int((1.0 - weight) * c + weight * e) for c, e in zip(center, edge)
        )


class ColorService:
    POLICIES = ("weighted", "uniform")

    @staticmethod
    def create(policy: str, rng: np.random.Generator):
        """Build the estimator for a policy name."""
        if policy == "weighted":
            return WeightedColorEstimator()
        if policy == "uniform":
            return UniformColorEstimator(rng)
        raise ValueError(f"Unknown color policy {policy!r}, expected one of {ColorService.POLICIES}")
