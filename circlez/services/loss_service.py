from __future__ import annotations
import numpy as np
from ..models.image import Image
from ..models.stamp import ChangeSet, Color
from ..repositories.image_repository import ImageRepository


class LossService:
    """
    Squared-error loss between target and approximation.

    Loss is strictly per pixel, so the effect of a change set is the sum of
    its per-position differences; nothing outside the set is rescored.
    """

    def __init__(self):
        self.image_repository = ImageRepository()

    @staticmethod
    def pixel_loss(a: Color, b: Color) -> float:
        """Σ (a_c - b_c)² over R, G, B, in real arithmetic (no uint8 wraparound)."""
        return float(sum((int(ca) - int(cb)) ** 2 for ca, cb in zip(a, b)))

    def loss_delta(self, target: Image, approx: Image, changes: ChangeSet) -> float:
        """
        Net change in total loss if *changes* were applied to *approx*.
        Negative means the change set strictly improves the approximation.
        Every occurrence in *changes* is counted.
        """
        if not changes:
            return 0.0
        points = [pos for pos, _ in changes]
        new_colors = np.asarray([col for _, col in changes], dtype=np.int64)

        tgt = self.image_repository.gather(target, points)
        cur = self.image_repository.gather(approx, points)

        loss_with = ((tgt - new_colors) ** 2).sum()
        loss_without = ((tgt - cur) ** 2).sum()
        return float(loss_with - loss_without)

    @staticmethod
    def loss_map(target: Image, approx: Image) -> np.ndarray:
        """Per-pixel loss, shape (H, W), int64."""
        diff = target.pixels.astype(np.int64) - approx.pixels.astype(np.int64)
        return (diff * diff).sum(axis=2)

    def total_loss(self, target: Image, approx: Image) -> float:
        return float(self.loss_map(target, approx).sum())
