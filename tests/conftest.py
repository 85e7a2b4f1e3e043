import numpy as np
import pytest

from circlez.models.image import Image
from circlez.repositories.image_repository import ImageRepository


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.fixture
def repo():
    return ImageRepository()


@pytest.fixture
def random_target(rng) -> Image:
    return ImageRepository.create_image(rng.integers(0, 256, size=(24, 32, 3), dtype=np.uint8))


@pytest.fixture
def red_dot_target() -> Image:
    pixels = np.zeros((8, 8, 3), dtype=np.uint8)
    pixels[4, 4] = (255, 0, 0)
    return ImageRepository.create_image(pixels)
