"""
Circle Approximator Pipeline
Loads a target image, refines an ensemble of circle-stamped approximations
round after round, previews the composition, and exports the final result
once a stop signal arrives.
"""

from __future__ import annotations

import logging
import os
import signal
import threading
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from tqdm import tqdm

from ..services.color_service import ColorService
from ..services.display_service import DisplayService
from ..services.ensemble_service import Ensemble
from ..services.image_service import ImageService
from ..services.search_service import SearchService

# Load environment variables
load_dotenv()

OUTPUT_DIR = os.getenv("CIRCLEZ_OUTPUT_DIR", "generated_images")
OUTPUT_EXT = os.getenv("CIRCLEZ_OUTPUT_EXT", ".jpg")
COLOR_POLICY = os.getenv("CIRCLEZ_COLOR_POLICY", "weighted")
COUNT_SEAM_DUPLICATES = os.getenv("CIRCLEZ_COUNT_SEAM_DUPLICATES", "false").lower() in ("1", "true", "yes")
LOG_EVERY = int(os.getenv("CIRCLEZ_LOG_EVERY", "10"))

logger = logging.getLogger(__name__)


class StopSignal:
    """
    Stop flag fed by SIGINT. Checked only at round boundaries so the
    round in flight always completes.
    """

    def __init__(self):
        self._event = threading.Event()
        self._previous = None

    def __enter__(self):
        if threading.current_thread() is threading.main_thread():
            self._previous = signal.signal(signal.SIGINT, self._handler)
        return self

    def __exit__(self, *exc):
        if self._previous is not None:
            signal.signal(signal.SIGINT, self._previous)
            self._previous = None
        return False

    def _handler(self, signum, frame):
        logger.info("Interrupt received, finishing current round")
        self._event.set()

    def set(self) -> None:
        self._event.set()

    def is_set(self) -> bool:
        return self._event.is_set()


def build_ensemble(
    target,
    *,
    threads: int,
    iterations: int,
    color_policy: str = COLOR_POLICY,
    count_seam_duplicates: bool = COUNT_SEAM_DUPLICATES,
    seed: Optional[int] = None,
    image_service: ImageService = None,
) -> Ensemble:
    """Ensemble whose members each get their own generator and color estimator."""
    if color_policy not in ColorService.POLICIES:
        raise ValueError(f"Unknown color policy {color_policy!r}")

    def search_factory(rng):
        return SearchService(
            ColorService.create(color_policy, rng),
            rng,
            count_seam_duplicates=count_seam_duplicates,
        )

    return Ensemble(target, threads, iterations, search_factory, seed=seed,
                    image_service=image_service)


def approximate(
    target_path: str | Path,
    *,
    threads: int = 1,
    iterations: int = 4096,
    display=None,
    image_service: ImageService = None,
    output_dir: str | Path = OUTPUT_DIR,
    ext: str = OUTPUT_EXT,
    color_policy: str = COLOR_POLICY,
    count_seam_duplicates: bool = COUNT_SEAM_DUPLICATES,
    seed: Optional[int] = None,
    stop_signal: StopSignal = None,
    progress: bool = False,
) -> Path:
    """
    Run the search until the display (or an interrupt) asks to stop, then
    export the best-of-ensemble composition.

    Args:
        target_path: image to approximate
        threads: ensemble size, one worker process per member
        iterations: search steps per member per round
        display: DisplayService-like object (open/show/should_stop/close)
        image_service: Service for image operations
        output_dir: directory for the exported image, created if missing
        ext: extension of the exported image
        color_policy: "weighted" or "uniform"
        count_seam_duplicates: score rasterizer seam duplicates per occurrence
        seed: seed for every member's generator
        stop_signal: external stop flag, checked once per round
        progress: show a tqdm bar (needs a display with max_rounds)

    Returns:
        Path: where the final image was written
    """
    image_service = image_service or ImageService()
    display = display or DisplayService()

    # DecodeError propagates before any search starts
    target = image_service.load(target_path)
    out_path = image_service.export_path(target_path, output_dir, ext)

    ensemble = build_ensemble(
        target,
        threads=threads,
        iterations=iterations,
        color_policy=color_policy,
        count_seam_duplicates=count_seam_duplicates,
        seed=seed,
        image_service=image_service,
    )

    total = getattr(display, "max_rounds", None)
    bar = tqdm(total=total, desc="rounds", ncols=70, disable=not progress)

    display.open(target.width, target.height)
    with (stop_signal or StopSignal()) as stop:
        try:
            while True:
                report = ensemble.run_round()
                display.show(ensemble.last_composed)
                bar.update(1)

                if LOG_EVERY > 0 and report.round_index % LOG_EVERY == 0:
                    logger.info(
                        f"Round {report.round_index}: loss={report.total_loss:.0f} "
                        f"accepted={sum(report.accepted)}"
                    )

                if display.should_stop():
                    logger.info(f"Stopping: {display.stop_reason}")
                    break
                if stop.is_set():
                    logger.info("Stopping: interrupted")
                    break
        except BaseException:
            ensemble.close()
            raise
        finally:
            bar.close()
            display.close()

    final = ensemble.finalize()
    logger.info(
        f"Finished after {ensemble.rounds_run} round(s), "
        f"accepted={sum(m.accepted_total for m in ensemble.members)}, "
        f"loss={ensemble.loss_service.total_loss(ensemble.target, final):.0f}"
    )
    return image_service.export(final, out_path)
