from pathlib import Path
from typing import Union
import logging
import numpy as np
from ..models.image import Image
from ..models.errors import WriteError
from ..models.stamp import ChangeSet, Color
from ..repositories.image_repository import ImageRepository

logger = logging.getLogger(__name__)


def pack_display_buffer(img: Image) -> np.ndarray:
    """
    Pack RGB pixels into one uint32 per pixel, bytes (0, R, G, B) big-endian,
    row-major. Pure function: no window needed.
    """
    px = img.pixels.astype(np.uint32)
    packed = (px[:, :, 0] << 16) | (px[:, :, 1] << 8) | px[:, :, 2]
    return packed.reshape(-1)


class ImageService:
    """I/O and pixel helpers. No search logic here."""
    def __init__(self):
        self.image_repository = ImageRepository()

    def create_image(self, pixels: np.ndarray, path: Union[str, Path] = None) -> Image:
        return self.image_repository.create_image(pixels, path)

    def create_blank(self, width: int, height: int) -> Image:
        """Zero-filled (black) canvas of the given size."""
        return self.image_repository.create_blank(width, height)

    def blank_like(self, img: Image) -> Image:
        return self.create_blank(img.width, img.height)

    def copy(self, img: Image) -> Image:
        return self.image_repository.copy(img)

    def load(self, path: str | Path) -> Image:
        """Load a single image from disk into an Image object."""
        img = self.image_repository.load(path)
        logger.info(f"Loaded {path} ({img.width}x{img.height})")
        return img

    def save(self, image: Image) -> None:
        """
        Business-level method to save the image to its path.
        The parent directory must already exist.
        """
        self.image_repository.save(image)

    def color_at(self, img: Image, x: int, y: int) -> Color:
        return self.image_repository.color_at(img, x, y)

    def set_color_at(self, img: Image, x: int, y: int, color: Color) -> None:
        self.image_repository.set_color_at(img, x, y, color)

    def apply_changes(self, img: Image, changes: ChangeSet) -> None:
        """Write every (position, color) pair of a change set in place."""
        self.image_repository.apply(img, changes)

    @staticmethod
    def export_path(target_path: Union[str, Path], output_dir: Union[str, Path], ext: str) -> Path:
        """`<output-dir>/<input-stem>_circlez<ext>`"""
        if not ext.startswith("."):
            ext = f".{ext}"
        return Path(output_dir) / f"{Path(target_path).stem}_circlez{ext}"

    def export(self, img: Image, path: Union[str, Path]) -> Path:
        """
        Write a copy of *img* to *path*, creating the parent directory.
        The source image is left untouched.
        """
        path = Path(path)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as err:
            raise WriteError(f"Could not create output directory {path.parent}: {err}") from err
        out = self.create_image(img.pixels, path)
        self.save(out)
        logger.info(f"Saved final image to: {path}")
        return path
