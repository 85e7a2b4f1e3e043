import itertools

import numpy as np
import pytest

from circlez.repositories.image_repository import ImageRepository
from circlez.services.loss_service import LossService


COLORS = [(0, 0, 0), (255, 255, 255), (12, 200, 7), (255, 0, 128), (1, 1, 1)]


@pytest.mark.parametrize("a, b", list(itertools.product(COLORS, COLORS)))
def test_pixel_loss_non_negative_and_zero_only_when_equal(a, b):
    loss = LossService.pixel_loss(a, b)
    assert loss >= 0
    assert (loss == 0) == (a == b)
    assert loss == LossService.pixel_loss(b, a)


def test_pixel_loss_uses_real_arithmetic():
    assert LossService.pixel_loss((0, 0, 0), (255, 255, 255)) == 3 * 255 ** 2
    # uint8 inputs must not wrap around
    a = np.array([0, 0, 0], dtype=np.uint8)
    b = np.array([255, 0, 0], dtype=np.uint8)
    assert LossService.pixel_loss(a, b) == 255 ** 2


def _loss_over(loss_service, target, approx, points):
    repo = ImageRepository()
    return sum(
        loss_service.pixel_loss(repo.color_at(target, x, y), repo.color_at(approx, x, y))
        for x, y in points
    )


def test_loss_delta_matches_recomputation(random_target, rng):
    loss_service = LossService()
    repo = ImageRepository()
    approx = repo.create_blank(random_target.width, random_target.height)
    approx.pixels[:] = rng.integers(0, 256, size=approx.pixels.shape, dtype=np.uint8)

    points = [(3, 4), (0, 0), (31, 23), (10, 10), (15, 2)]
    changes = [(p, tuple(int(c) for c in rng.integers(0, 256, size=3))) for p in points]

    before = _loss_over(loss_service, random_target, approx, points)
    delta = loss_service.loss_delta(random_target, approx, changes)
    repo.apply(approx, changes)
    after = _loss_over(loss_service, random_target, approx, points)

    assert delta == pytest.approx(after - before)


def test_loss_delta_leaves_approx_untouched(random_target):
    loss_service = LossService()
    approx = ImageRepository.create_blank(random_target.width, random_target.height)
    snapshot = approx.pixels.copy()
    loss_service.loss_delta(random_target, approx, [((1, 1), (255, 255, 255))])
    assert np.array_equal(approx.pixels, snapshot)


def test_loss_delta_counts_every_occurrence(red_dot_target):
    loss_service = LossService()
    approx = ImageRepository.create_blank(8, 8)
    once = loss_service.loss_delta(red_dot_target, approx, [((4, 4), (200, 0, 0))])
    twice = loss_service.loss_delta(
        red_dot_target, approx, [((4, 4), (200, 0, 0)), ((4, 4), (200, 0, 0))]
    )
    assert once < 0
    assert twice == 2 * once


def test_loss_delta_of_empty_change_set_is_zero(red_dot_target):
    approx = ImageRepository.create_blank(8, 8)
    assert LossService().loss_delta(red_dot_target, approx, []) == 0.0


def test_loss_delta_rejects_out_of_bounds(red_dot_target):
    approx = ImageRepository.create_blank(8, 8)
    with pytest.raises(IndexError):
        LossService().loss_delta(red_dot_target, approx, [((8, 0), (0, 0, 0))])


def test_total_loss_and_loss_map(red_dot_target):
    loss_service = LossService()
    approx = ImageRepository.create_blank(8, 8)
    loss_map = loss_service.loss_map(red_dot_target, approx)
    assert loss_map.shape == (8, 8)
    assert loss_map[4, 4] == 255 ** 2
    assert loss_map.sum() == 255 ** 2
    assert loss_service.total_loss(red_dot_target, approx) == 255 ** 2
    assert loss_service.total_loss(red_dot_target, red_dot_target) == 0
