# repositories/display_repository.py
import cv2
import numpy as np

ESCAPE_KEY = 27


class DisplayRepository:
    """
    Thin OpenCV window wrapper.

    • Takes the packed (0, R, G, B) uint32 frame buffer.
    • Reports window-closed / Escape state after each frame.
    """

    def __init__(self, title: str) -> None:
        self.title = title
        self._opened = False
        self._escape = False

    def open(self, width: int, height: int) -> None:
        cv2.namedWindow(self.title, cv2.WINDOW_NORMAL)
        cv2.resizeWindow(self.title, width, height)
        self._opened = True

    @staticmethod
    def _to_bgr(packed: np.ndarray, width: int, height: int) -> np.ndarray:
        # little-endian bytes of 0x00RRGGBB are B, G, R, 0
        raw = packed.astype("<u4").view(np.uint8).reshape(height, width, 4)
        return np.ascontiguousarray(raw[:, :, :3])

    def update(self, packed: np.ndarray, width: int, height: int) -> None:
        cv2.imshow(self.title, self._to_bgr(packed, width, height))
        if cv2.waitKey(1) & 0xFF == ESCAPE_KEY:
            self._escape = True

    def is_open(self) -> bool:
        if not self._opened:
            return False
        return cv2.getWindowProperty(self.title, cv2.WND_PROP_VISIBLE) >= 1

    def escape_pressed(self) -> bool:
        return self._escape

    def close(self) -> None:
        if self._opened:
            cv2.destroyWindow(self.title)
            cv2.waitKey(1)
            self._opened = False
