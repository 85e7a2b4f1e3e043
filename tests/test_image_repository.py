import numpy as np
import pytest

from circlez.models.errors import DecodeError, WriteError
from circlez.repositories.image_repository import ImageRepository


def test_blank_image_is_black_with_requested_size(repo):
    img = repo.create_blank(5, 3)
    assert (img.width, img.height) == (5, 3)
    assert img.pixels.shape == (3, 5, 3)
    assert img.pixels.dtype == np.uint8
    assert not img.pixels.any()
    assert img.pixels.size == img.width * img.height * 3


def test_create_image_copies_pixels(repo):
    src = np.zeros((2, 2, 3), dtype=np.uint8)
    img = repo.create_image(src)
    src[0, 0] = (9, 9, 9)
    assert repo.color_at(img, 0, 0) == (0, 0, 0)


@pytest.mark.parametrize("shape", [(0, 4, 3), (4, 0, 3), (4, 4), (4, 4, 4)])
def test_create_image_rejects_bad_shapes(repo, shape):
    with pytest.raises(ValueError):
        repo.create_image(np.zeros(shape, dtype=np.uint8))


def test_set_and_get_color(repo):
    img = repo.create_blank(4, 3)
    repo.set_color_at(img, 3, 2, (10, 20, 30))
    assert repo.color_at(img, 3, 2) == (10, 20, 30)
    # row-major: y selects the row
    assert tuple(img.pixels[2, 3]) == (10, 20, 30)


@pytest.mark.parametrize("x, y", [(-1, 0), (0, -1), (4, 0), (0, 3), (100, 100)])
def test_out_of_bounds_access_raises(repo, x, y):
    img = repo.create_blank(4, 3)
    with pytest.raises(IndexError):
        repo.color_at(img, x, y)
    with pytest.raises(IndexError):
        repo.set_color_at(img, x, y, (1, 1, 1))


def test_gather_checks_bounds(repo):
    img = repo.create_blank(4, 4)
    repo.set_color_at(img, 1, 2, (5, 6, 7))
    colors = repo.gather(img, [(1, 2), (0, 0)])
    assert colors.tolist() == [[5, 6, 7], [0, 0, 0]]
    with pytest.raises(IndexError):
        repo.gather(img, [(1, 2), (-1, 0)])


def test_apply_writes_every_change(repo):
    img = repo.create_blank(3, 3)
    repo.apply(img, [((0, 0), (1, 2, 3)), ((2, 1), (4, 5, 6))])
    assert repo.color_at(img, 0, 0) == (1, 2, 3)
    assert repo.color_at(img, 2, 1) == (4, 5, 6)
    assert repo.color_at(img, 1, 1) == (0, 0, 0)


def test_load_roundtrips_rgb_order(repo, tmp_path):
    img = repo.create_blank(3, 2)
    repo.set_color_at(img, 1, 0, (255, 0, 0))
    img.path = tmp_path / "red.png"
    repo.save(img)

    loaded = repo.load(tmp_path / "red.png")
    assert (loaded.width, loaded.height) == (3, 2)
    assert repo.color_at(loaded, 1, 0) == (255, 0, 0)


def test_load_missing_file_raises_decode_error(repo, tmp_path):
    with pytest.raises(DecodeError):
        repo.load(tmp_path / "nope.png")


def test_load_corrupt_file_raises_decode_error(repo, tmp_path):
    bad = tmp_path / "bad.png"
    bad.write_bytes(b"definitely not a png")
    with pytest.raises(DecodeError):
        repo.load(bad)


def test_save_into_missing_directory_raises_write_error(repo, tmp_path):
    img = repo.create_blank(2, 2)
    img.path = tmp_path / "missing" / "out.png"
    with pytest.raises(WriteError):
        repo.save(img)
