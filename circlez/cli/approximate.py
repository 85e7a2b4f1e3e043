#!/usr/bin/env python3
"""
circlez: approximate an image with randomly stamped circles.

Typical usage:
    $ circlez photo.jpg --threads 4 --iterations 4096

Close the window (or press Escape, or Ctrl-C) to stop; the best-of-ensemble
result is written to <output-dir>/<input-stem>_circlez<ext>.
"""

import argparse
import logging
import os
import sys

from dotenv import load_dotenv

# Load environment variables first
load_dotenv()

from ..models.errors import CirclezError
from ..pipeline.circle_approximator import (
    OUTPUT_DIR, OUTPUT_EXT, COLOR_POLICY, COUNT_SEAM_DUPLICATES, approximate,
)
from ..services.color_service import ColorService
from ..services.display_service import DisplayService, HeadlessDisplayService

logger = logging.getLogger(__name__)


def _positive_int(value: str) -> int:
    n = int(value)
    if n < 1:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got {value}")
    return n


def _non_negative_int(value: str) -> int:
    n = int(value)
    if n < 0:
        raise argparse.ArgumentTypeError(f"expected a non-negative integer, got {value}")
    return n


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="circlez", description=__doc__.splitlines()[1])
    ap.add_argument("target", help="image to approximate")
    ap.add_argument("-t", "--threads", type=_positive_int,
                    default=int(os.getenv("CIRCLEZ_THREADS", "1")),
                    help="ensemble size, one worker process each")
    ap.add_argument("-i", "--iterations", type=_non_negative_int,
                    default=int(os.getenv("CIRCLEZ_ITERATIONS", "4096")),
                    help="search steps per member per round")
    ap.add_argument("-o", "--output-dir", default=OUTPUT_DIR)
    ap.add_argument("--ext", default=OUTPUT_EXT, help="output extension, e.g. .jpg or .png")
    ap.add_argument("--color-policy", choices=ColorService.POLICIES, default=COLOR_POLICY)
    ap.add_argument("--count-seam-duplicates", action="store_true",
                    help="score rasterizer seam duplicates once per occurrence")
    ap.add_argument("--seed", type=int,
                    default=int(os.environ["CIRCLEZ_RANDOM_SEED"]) if os.getenv("CIRCLEZ_RANDOM_SEED") else None)
    ap.add_argument("--headless", action="store_true", help="no preview window")
    ap.add_argument("--rounds", type=_positive_int, default=None,
                    help="stop after this many rounds (headless runs)")
    ap.add_argument("-v", "--verbose", action="store_true")
    return ap


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    # --- Centralized Logging Configuration ---
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(name)-25s - %(levelname)-8s - %(message)s',
        datefmt='%H:%M:%S'
    )

    if args.headless or args.rounds is not None:
        display = HeadlessDisplayService(max_rounds=args.rounds)
    else:
        display = DisplayService()

    try:
        out_path = approximate(
            args.target,
            threads=args.threads,
            iterations=args.iterations,
            display=display,
            output_dir=args.output_dir,
            ext=args.ext,
            color_policy=args.color_policy,
            count_seam_duplicates=args.count_seam_duplicates or COUNT_SEAM_DUPLICATES,
            seed=args.seed,
            progress=args.rounds is not None,
        )
    except CirclezError as err:
        logger.error(str(err))
        return 1

    print(f"Saved final image to: {out_path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
