from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional

import numpy as np

from .postprocess import YoloPostprocessor
from .types import Prediction


logger = logging.getLogger(__name__)


class AdmissionGate:
    """
    Counting gate bounding how many frames are in flight at once.

    `try_acquire` never blocks: when every slot is taken the frame is dropped
    rather than queued, which keeps latency bounded at the cost of skipped frames.
    """

    def __init__(self, max_in_flight: int = 2):
        if max_in_flight < 1:
            raise ValueError("max_in_flight must be >= 1")
        self.max_in_flight = max_in_flight
        self._sem = threading.BoundedSemaphore(max_in_flight)
        self._lock = threading.Lock()
        self.admitted = 0
        self.dropped = 0

    def try_acquire(self) -> bool:
        ok = self._sem.acquire(blocking=False)
        with self._lock:
            if ok:
                self.admitted += 1
            else:
                self.dropped += 1
        return ok

    def release(self) -> None:
        self._sem.release()


@dataclass(frozen=True)
class FrameResult:
    """
    Outcome of one detection cycle.

    A frame whose tensor was rejected carries `error` and no predictions, so the
    display shows nothing for it and the next frame starts clean.
    """

    predictions: List[Prediction]
    elapsed_s: float
    fps: float = 0.0
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class FpsMeter:
    """
    Frames delivered per second, restarted every `window_s` seconds.
    """

    window_s: float = 1.0
    clock: Callable[[], float] = time.perf_counter
    _start: Optional[float] = field(default=None, init=False)
    _frames: int = field(default=0, init=False)

    def tick(self) -> float:
        now = self.clock()
        if self._start is None:
            self._start = now
        self._frames += 1
        elapsed = now - self._start
        fps = self._frames / elapsed if elapsed > 0 else 0.0
        if elapsed > self.window_s:
            self._frames = 0
            self._start = now
        return fps


class YoloPipeline:
    """
    Caller-side loop: frame -> infer_fn -> raw tensor -> postprocess.

    `infer_fn` is whatever produces the raw grid tensor for a frame (a model
    runtime, a recorded tensor, ...). Resizing the frame for the model and
    mapping boxes back to the display are left to the caller.
    """

    def __init__(
        self,
        infer_fn: Callable[[Any], np.ndarray],
        post: YoloPostprocessor,
        *,
        gate: Optional[AdmissionGate] = None,
        clock: Callable[[], float] = time.perf_counter,
    ):
        self._infer_fn = infer_fn
        self.post = post
        self.gate = gate if gate is not None else AdmissionGate()
        self._clock = clock
        self.fps = FpsMeter(clock=clock)

    def run_frame(self, frame: Any) -> FrameResult:
        """
        Process one frame without admission control.

        Bad tensors and bad configuration are reported in the result instead of
        raised so a long-running capture loop keeps going.
        """

        t0 = self._clock()
        try:
            tensor = self._infer_fn(frame)
            predictions = self.post.process(tensor)
        except ValueError as exc:
            logger.warning("frame rejected: %s", exc)
            elapsed = self._clock() - t0
            return FrameResult(predictions=[], elapsed_s=elapsed, fps=self.fps.tick(), error=str(exc))
        elapsed = self._clock() - t0
        return FrameResult(predictions=predictions, elapsed_s=elapsed, fps=self.fps.tick())

    def submit(self, frame: Any) -> Optional[FrameResult]:
        """
        Process a frame if a slot is free; returns None when the frame is dropped.
        """

        if not self.gate.try_acquire():
            logger.debug("frame dropped, %d cycles in flight", self.gate.max_in_flight)
            return None
        try:
            return self.run_frame(frame)
        finally:
            self.gate.release()

    def __call__(self, frame: Any) -> List[Prediction]:
        return self.run_frame(frame).predictions
