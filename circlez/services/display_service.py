from __future__ import annotations
import logging
import os
from typing import Optional
from dotenv import load_dotenv
from ..models.image import Image
from ..repositories.display_repository import DisplayRepository
from .image_service import pack_display_buffer

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)


class DisplayService:
    """
    Live preview of the composed approximation, refreshed once per round.
    should_stop() turns true once the window is closed or Escape is hit.
    """

    def __init__(self, title: str = None):
        title = title or os.getenv("CIRCLEZ_WINDOW_TITLE", "circlez")
        self.repository = DisplayRepository(title)
        self.stop_reason: Optional[str] = None

    def open(self, width: int, height: int) -> None:
        self.repository.open(width, height)

    def show(self, img: Image) -> None:
        self.repository.update(pack_display_buffer(img), img.width, img.height)

    def should_stop(self) -> bool:
        if self.repository.escape_pressed():
            self.stop_reason = "escape pressed"
        elif not self.repository.is_open():
            self.stop_reason = "window closed"
        return self.stop_reason is not None

    def close(self) -> None:
        self.repository.close()


class HeadlessDisplayService:
    """Same interface as DisplayService without a window; stops after `max_rounds` frames if given."""

    def __init__(self, max_rounds: Optional[int] = None):
        self.max_rounds = max_rounds
        self.frames = 0
        self.last_frame: Optional[Image] = None
        self.stop_reason: Optional[str] = None

    def open(self, width: int, height: int) -> None:
        logger.debug(f"Headless run, {width}x{height}, max_rounds={self.max_rounds}")

    def show(self, img: Image) -> None:
        self.frames += 1
        self.last_frame = img

    def should_stop(self) -> bool:
        if self.max_rounds is not None and self.frames >= self.max_rounds:
            self.stop_reason = f"reached {self.max_rounds} rounds"
        return self.stop_reason is not None

    def close(self) -> None:
        pass
