"""
Test doubles shared across the suite.
"""


class FixedColorEstimator:
    """Always returns the same color."""

    def __init__(self, color):
        self.color = tuple(color)

    def estimate(self, target, cx, cy, radius, boundary_points):
        return self.color


class CountingSearch:
    """
    Stands in for SearchService. Reports the running total of iterations it
    was asked for, so state kept between rounds shows up in the result.
    """

    def __init__(self, fail: bool = False):
        self.calls = []
        self.fail = fail

    def run(self, target, approx, iterations):
        if self.fail:
            raise RuntimeError("worker blew up")
        self.calls.append(iterations)
        return sum(self.calls)


class RecordingDisplay:
    """Display double: keeps every frame and stops after `max_rounds`."""

    def __init__(self, max_rounds):
        self.max_rounds = max_rounds
        self.frames = []
        self.opened = None
        self.closed = False
        self.stop_reason = None

    def open(self, width, height):
        self.opened = (width, height)

    def show(self, img):
        self.frames.append(img.pixels.copy())

    def should_stop(self):
        if len(self.frames) >= self.max_rounds:
            self.stop_reason = "test"
        return self.stop_reason is not None

    def close(self):
        self.closed = True
