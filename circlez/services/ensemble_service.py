from __future__ import annotations
from concurrent.futures import ProcessPoolExecutor, wait
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional
import logging
import multiprocessing as mp
import os
import signal
import time
import numpy as np
from ..models.image import Image
from ..models.member_state import MemberState
from ..repositories.image_repository import ImageRepository
from .image_service import ImageService
from .loss_service import LossService
from .search_service import SearchService

logger = logging.getLogger(__name__)

# (rng) -> SearchService, one call per member
SearchFactory = Callable[[np.random.Generator], SearchService]

# per-process state of a member worker, set once by _init_member
_worker: Dict[str, Any] = {}


def _init_member(search, target_raw, approx_raw, shape) -> None:
    # Ctrl-C goes to the whole process group; only the driver reacts to it
    signal.signal(signal.SIGINT, signal.SIG_IGN)
    _worker["search"] = search
    _worker["target"] = ImageRepository.attach_shared(target_raw, shape, writeable=False)
    _worker["approx"] = ImageRepository.attach_shared(approx_raw, shape)


def _run_member(iterations: int):
    """One round of one member, inside its own process."""
    accepted = _worker["search"].run(_worker["target"], _worker["approx"], iterations)
    return accepted, os.getpid()


@dataclass
class RoundReport:
    """Outcome of one barrier-synchronised round."""
    round_index: int
    accepted: List[int] = field(default_factory=list)  # per member
    worker_pids: List[int] = field(default_factory=list)  # per member
    total_loss: float = 0.0  # of the composed image
    elapsed: float = 0.0  # seconds


@dataclass
class EnsembleMember:
    approx: Image
    search: SearchService
    raw: Any = None  # shared buffer behind approx.pixels
    executor: Optional[ProcessPoolExecutor] = None
    state: MemberState = MemberState.INITIALIZED
    accepted_total: int = 0


class Ensemble:
    """
    N independent approximations of one target, searched in parallel and
    composited by per-pixel best loss.

    Every member owns one worker process that keeps its search state (and
    generator) across rounds and writes straight into the member's shared
    canvas. Nobody else touches that canvas until all workers of the round
    are done; composition only runs after that barrier.
    A single member runs inline in the calling process.
    """

    def __init__(
        self,
        target: Image,
        size: int,
        iterations: int,
        search_factory: SearchFactory,
        seed: Optional[int] = None,
        image_service: ImageService = None,
    ):
        if size < 1:
            raise ValueError(f"Ensemble size must be >= 1, got {size}")
        if iterations < 0:
            raise ValueError(f"Iterations must be >= 0, got {iterations}")

        self.image_service = image_service or ImageService()
        self.image_repository = ImageRepository()
        self.loss_service = LossService()
        # read-only for the lifetime of the ensemble
        self.target, self._target_raw = self.image_repository.create_shared(target.pixels)
        self.target.path = target.path
        self.target.pixels.flags.writeable = False
        self.iterations = iterations
        self.rounds_run = 0
        self.last_composed: Optional[Image] = None

        seeds = np.random.SeedSequence(seed).spawn(size)
        self.members: List[EnsembleMember] = []
        for s in seeds:
            approx, raw = self.image_repository.create_shared(
                np.zeros_like(self.target.pixels)
            )
            self.members.append(EnsembleMember(
                approx=approx,
                search=search_factory(np.random.default_rng(s)),
                raw=raw,
            ))
        logger.info(
            f"Ensemble of {size} member(s) on {self.target.width}x{self.target.height}, "
            f"{iterations} iterations per round"
        )

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
        return False

    @property
    def size(self) -> int:
        return len(self.members)

    @property
    def approximations(self) -> List[Image]:
        return [m.approx for m in self.members]

    # ─── Workers ───────────────────────────────────────────────────
    def _start_workers(self) -> None:
        shape = self.target.pixels.shape
        for member in self.members:
            if member.executor is None:
                member.executor = ProcessPoolExecutor(
                    max_workers=1,
                    mp_context=mp.get_context("spawn"),
                    initializer=_init_member,
                    initargs=(member.search, self._target_raw, member.raw, shape),
                )

    def close(self) -> None:
        """Shut the worker processes down. Canvases stay readable."""
        for member in self.members:
            if member.executor is not None:
                member.executor.shutdown(wait=True)
                member.executor = None

    # ─── Round ─────────────────────────────────────────────────────
    def run_round(self) -> RoundReport:
        """
        Run every member for `iterations` ticks in its own process, wait
        for all of them, then compose.
        """
        if any(m.state is MemberState.FINAL for m in self.members):
            raise RuntimeError("Ensemble already finalized")

        start = time.perf_counter()
        if self.size == 1:
            member = self.members[0]
            results = [(member.search.run(self.target, member.approx, self.iterations), os.getpid())]
        else:
            self._start_workers()
            futures = [m.executor.submit(_run_member, self.iterations) for m in self.members]
            wait(futures)
            # re-raises the first worker failure
            results = [f.result() for f in futures]

        accepted = [n for n, _ in results]
        for member, n in zip(self.members, accepted):
            member.accepted_total += n
            if n and member.state is MemberState.INITIALIZED:
                member.state = MemberState.IMPROVING

        self.rounds_run += 1
        composed = self.compose()
        report = RoundReport(
            round_index=self.rounds_run,
            accepted=accepted,
            worker_pids=[pid for _, pid in results],
            total_loss=self.loss_service.total_loss(self.target, composed),
            elapsed=time.perf_counter() - start,
        )
        logger.debug(
            f"Round {report.round_index}: accepted={report.accepted} "
            f"loss={report.total_loss:.0f} ({report.elapsed:.2f}s)"
        )
        self.last_composed = composed
        return report

    # ─── Composition ───────────────────────────────────────────────
    def compose(self) -> Image:
        """
        Per pixel, the color of the member whose loss there is lowest.
        Ties go to the member that comes first.
        """
        if self.size == 1:
            return self.image_service.copy(self.members[0].approx)

        stack = np.stack([m.approx.pixels for m in self.members])  # (N, H, W, 3)
        losses = np.stack([self.loss_service.loss_map(self.target, m.approx)
                           for m in self.members])  # (N, H, W)
        winner = np.argmin(losses, axis=0)  # first minimum wins
        best = np.take_along_axis(stack, winner[None, :, :, None], axis=0)[0]
        return self.image_service.create_image(best)

    def finalize(self) -> Image:
        """Stop the workers, freeze every member and return the final composition."""
        self.close()
        for member in self.members:
            member.state = MemberState.FINAL
            member.approx.pixels.flags.writeable = False
        logger.info(
            f"Accepted stamps per member: {[m.accepted_total for m in self.members]}"
        )
        return self.compose()
