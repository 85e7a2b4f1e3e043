from pathlib import Path
from typing import Iterable, Tuple, Union
import multiprocessing as mp
import numpy as np
import cv2
from PIL import Image as PILImage
from ..models.image import Image
from ..models.errors import DecodeError, WriteError
from ..models.stamp import ChangeSet, Color, Point


class ImageRepository:
    """
    Handles file I/O and pixel updates for Image entities.
    """

    @staticmethod
    def create_image(pixels: np.ndarray, path: Union[str, Path] = None) -> Image:
        if pixels.ndim != 3 or pixels.shape[2] != 3:
            raise ValueError(f"Expected (H, W, 3) pixels, got shape {pixels.shape}")
        if pixels.shape[0] < 1 or pixels.shape[1] < 1:
            raise ValueError(f"Image must be at least 1x1, got shape {pixels.shape}")
        pixels = np.array(pixels, dtype=np.uint8, copy=True, order="C")
        if path is None:
            return Image(pixels)
        return Image(pixels=pixels, path=Path(path))

    @classmethod
    def create_blank(cls, width: int, height: int) -> Image:
        return cls.create_image(np.zeros((height, width, 3), dtype=np.uint8))

    @classmethod
    def copy(cls, img: Image) -> Image:
        return cls.create_image(img.pixels, img.path)

    # ─── shared memory ─────────────────────────────────────────────────
    @staticmethod
    def create_shared(pixels: np.ndarray):
        """
        Copy *pixels* into a process-shared buffer.
        Returns the Image viewing that buffer and the raw buffer itself,
        which is what gets handed to worker processes.
        """
        raw = mp.RawArray("B", pixels.size)
        arr = np.frombuffer(raw, dtype=np.uint8).reshape(pixels.shape)
        arr[:] = pixels
        return Image(arr), raw

    @staticmethod
    def attach_shared(raw, shape: Tuple[int, int, int], writeable: bool = True) -> Image:
        """Image over a buffer made by create_shared, without copying."""
        arr = np.frombuffer(raw, dtype=np.uint8).reshape(shape)
        arr.flags.writeable = writeable
        return Image(arr)

    @staticmethod
    def load(path: Union[str, Path]) -> Image:
        path = Path(path)
        arr_bgr = cv2.imread(str(path), cv2.IMREAD_COLOR)
        if arr_bgr is None:
            raise DecodeError(f"Image not found or unreadable: {path}")

        return Image(pixels=np.ascontiguousarray(arr_bgr[:, :, ::-1]), path=path)

    @staticmethod
    def save(image: Image) -> None:
        if image.path is None:
            raise WriteError("Image has no output path")
        try:
            PILImage.fromarray(image.pixels).save(image.path)
        except (OSError, ValueError) as err:
            raise WriteError(f"Could not write {image.path}: {err}") from err

    # ─── pixel access ──────────────────────────────────────────────────
    @staticmethod
    def _check_bounds(image: Image, x: int, y: int) -> None:
        if not (0 <= x < image.width and 0 <= y < image.height):
            raise IndexError(
                f"({x}, {y}) outside {image.width}x{image.height} image"
            )

    @classmethod
    def color_at(cls, image: Image, x: int, y: int) -> Color:
        cls._check_bounds(image, x, y)
        r, g, b = image.pixels[y, x]
        return int(r), int(g), int(b)

    @classmethod
    def set_color_at(cls, image: Image, x: int, y: int, color: Color) -> None:
        cls._check_bounds(image, x, y)
        image.pixels[y, x] = color

    @staticmethod
    def gather(image: Image, points: Iterable[Point]) -> np.ndarray:
        """
        Colors at many points at once, as an (N, 3) int64 array.
        Same bounds rule as color_at: negative coordinates never wrap.
        """
        pts = np.asarray(list(points), dtype=np.int64).reshape(-1, 2)
        xs, ys = pts[:, 0], pts[:, 1]
        if np.any((xs < 0) | (xs >= image.width) | (ys < 0) | (ys >= image.height)):
            raise IndexError(f"points outside {image.width}x{image.height} image")
        return image.pixels[ys, xs].astype(np.int64)

    @classmethod
    def apply(cls, image: Image, changes: ChangeSet) -> None:
        for (x, y), color in changes:
            cls.set_color_at(image, x, y, color)
