from __future__ import annotations
import numpy as np
from ..models.image import Image
from ..models.stamp import CandidateStamp, ChangeSet
from ..repositories.image_repository import ImageRepository
from .color_service import max_radius_for
from .loss_service import LossService
from .rasterizer_service import RasterizerService


class SearchService:
    """
    Greedy stochastic hill-climb over circle stamps.

    One tick proposes a random circle and keeps it only if it strictly
    lowers the loss. Rejected proposals leave the approximation untouched.
    """

    def __init__(self, estimator, rng: np.random.Generator,
                 count_seam_duplicates: bool = False):
        """
        Args:
            estimator: color policy with an ``estimate(target, cx, cy, radius, points)`` method
            rng: the generator every random draw of this searcher goes through
            count_seam_duplicates: score rasterizer seam duplicates once per
                occurrence instead of once per position
        """
        self.estimator = estimator
        self.rng = rng
        self.count_seam_duplicates = count_seam_duplicates
        self.rasterizer = RasterizerService()
        self.loss_service = LossService()
        self.image_repository = ImageRepository()

    def propose(self, target: Image) -> CandidateStamp:
        cx = int(self.rng.integers(0, target.width))
        cy = int(self.rng.integers(0, target.height))
        radius = int(self.rng.integers(1, max_radius_for(target.width, target.height) + 1))
        return self.make_stamp(target, cx, cy, radius)

    def make_stamp(self, target: Image, cx: int, cy: int, radius: int) -> CandidateStamp:
        """Rasterize and color a circle at a fixed position."""
        points = self.rasterizer.circle_points(cx, cy, radius)
        color = self.estimator.estimate(target, cx, cy, radius, points)
        return CandidateStamp(center=(cx, cy), radius=radius, color=color,
                              boundary_points=points)

    def build_change_set(self, target: Image, stamp: CandidateStamp) -> ChangeSet:
        points = self.rasterizer.in_bounds(stamp.boundary_points, target.width, target.height)
        if not self.count_seam_duplicates:
            points = list(dict.fromkeys(points))
        return [(pos, stamp.color) for pos in points]

    def try_stamp(self, target: Image, approx: Image, stamp: CandidateStamp) -> bool:
        """Commit *stamp* to *approx* iff it strictly reduces the loss."""
        changes = self.build_change_set(target, stamp)
        if not changes:
            return False

        delta = self.loss_service.loss_delta(target, approx, changes)
        if delta >= 0:
            return False

        self.image_repository.apply(approx, changes)
        return True

    def tick(self, target: Image, approx: Image) -> bool:
        return self.try_stamp(target, approx, self.propose(target))

    def run(self, target: Image, approx: Image, iterations: int) -> int:
        """Tick *iterations* times; returns how many stamps were accepted."""
        accepted = 0
        for _ in range(iterations):
            if self.tick(target, approx):
                accepted += 1
        return accepted
