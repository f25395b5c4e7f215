# faceattend/processing/sampling.py
"""
Sampling loop: frame source -> extractor -> matcher -> deduplicator.

The host calls `tick()` on every redraw (or `run()` drives the ticks).
A cycle starts only when
- the loop is running,
- no previous cycle is still in flight (the tick is dropped, not queued),
- `interval_ms` has elapsed on the monotonic clock since the last sample.

`stop()` is synchronous: once it returns nothing more is published, and
a cycle still in flight has its result thrown away.

Usage:
    loop = SamplingLoop(camera, extractor, registry, dedup,
                        on_result=show, on_attendance=notify)
    loop.start()
    while drawing:
        loop.tick()
    loop.stop()
"""
import logging
import threading
import time
from typing import Callable, Optional

from ..data.models import MatchResult
from ..recognition.extractor import FaceDetection
from ..recognition.matcher import DEFAULT_THRESHOLD, match

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_MS = 1000


class SamplingLoop:
    """Interval-gated recognition loop with a single in-flight extraction."""

    def __init__(
        self,
        source,
        extractor,
        registry,
        deduplicator=None,
        interval_ms: int = DEFAULT_INTERVAL_MS,
        threshold: float = DEFAULT_THRESHOLD,
        on_result: Optional[Callable] = None,
        on_attendance: Optional[Callable] = None,
        on_source_error: Optional[Callable] = None,
        on_source_retry: Optional[Callable] = None,
        retry_delay: float = 2.0,
        clock: Callable[[], float] = time.monotonic,
        executor=None
    ):
        """
        Args:
            source: object with read() -> frame | None
            extractor: DescriptorExtractor
            registry: Registry, snapshotted on every cycle
            deduplicator: AttendanceDeduplicator, None to only recognize
            interval_ms: minimum time between two samples
            threshold: matcher distance threshold
            on_result: callback(MatchResult) once per completed cycle
            on_attendance: callback(AttendanceRecord) per new record
            on_source_error: callback(message) when the source stops delivering
            on_source_retry: callback() to reopen the source, called at most
                every `retry_delay` seconds while it delivers nothing
            retry_delay: seconds between two reopen attempts
            clock: monotonic clock in seconds
            executor: runs cycles off the calling thread (e.g. a
                ThreadPoolExecutor); None runs them inline
        """
        self.source = source
        self.extractor = extractor
        self.registry = registry
        self.deduplicator = deduplicator
        self.interval_ms = interval_ms
        self.threshold = threshold
        self.on_result = on_result
        self.on_attendance = on_attendance
        self.on_source_error = on_source_error
        self.on_source_retry = on_source_retry
        self.retry_delay = retry_delay
        self.clock = clock
        self.executor = executor

        self._busy = threading.Lock()
        self._state_lock = threading.RLock()
        self._stop_event = threading.Event()
        self._generation = 0
        self._running = False
        self._last_sample: Optional[float] = None
        self._last_result: Optional[MatchResult] = None
        self._source_available = True
        self._last_retry: Optional[float] = None

    # === STATE ===
    @property
    def running(self) -> bool:
        return self._running

    @property
    def busy(self) -> bool:
        return self._busy.locked()

    @property
    def source_available(self) -> bool:
        return self._source_available

    @property
    def last_result(self) -> Optional[MatchResult]:
        return self._last_result

    def start(self):
        with self._state_lock:
            self._generation += 1
            self._running = True
            self._last_sample = None
            self._last_result = None
            self._source_available = True
            self._stop_event.clear()
            self._last_retry = None
        logger.info(f"Sampling started (interval={self.interval_ms}ms, threshold={self.threshold})")

    def stop(self):
        """Stop sampling. Blocks while a result is being published."""
        with self._state_lock:
            if not self._running:
                return
            self._running = False
            self._generation += 1
            self._stop_event.set()
        logger.info("Sampling stopped")

    # === TICK ===
    def tick(self) -> bool:
        """
        One scheduling opportunity.

        Returns:
            True if a cycle was started
        """
        with self._state_lock:
            if not self._running:
                return False
            now = self.clock()
            if self._last_sample is not None and (now - self._last_sample) * 1000 < self.interval_ms:
                return False
            generation = self._generation

        if not self._busy.acquire(blocking=False):
            logger.debug("Previous cycle still running, tick dropped")
            return False

        try:
            frame = self.source.read()
        except Exception:
            logger.exception("Frame source failed")
            frame = None

        if frame is None:
            self._busy.release()
            self._mark_source(False)
            self._retry_source(now)
            return False

        self._mark_source(True)
        with self._state_lock:
            self._last_sample = now

        if self.executor is None:
            self._run_cycle(frame, generation)
            return True

        try:
            self.executor.submit(self._run_cycle, frame, generation)
        except RuntimeError:
            # Executor already shut down
            self._busy.release()
            return False
        return True

    def _mark_source(self, available: bool):
        if available == self._source_available:
            return
        self._source_available = available
        if available:
            logger.info("Frame source available again")
            return
        message = getattr(self.source, 'last_error', None) or "Frame source unavailable"
        logger.warning(message)
        if self.on_source_error is not None:
            self.on_source_error(message)

    def _retry_source(self, now: float):
        if self.on_source_retry is None:
            return
        if self._last_retry is not None and now - self._last_retry < self.retry_delay:
            return
        self._last_retry = now
        try:
            self.on_source_retry()
        except Exception:
            logger.exception("Reopening frame source failed")

    def _locate(self, frame):
        if hasattr(self.extractor, 'locate'):
            return self.extractor.locate(frame)
        descriptor = self.extractor.extract(frame)
        if descriptor is None:
            return None
        return FaceDetection(descriptor=descriptor)

    def _run_cycle(self, frame, generation):
        try:
            detection = self._locate(frame)
            if detection is None:
                result = MatchResult.no_face()
            else:
                result = match(detection.descriptor, self.registry.list(),
                               threshold=self.threshold, box=detection.box)

            with self._state_lock:
                if generation != self._generation:
                    logger.debug("Loop stopped during extraction, result discarded")
                    return
                self._publish(result, generation)
        except Exception:
            logger.exception("Sampling cycle failed")
        finally:
            self._busy.release()

    def _publish(self, result: MatchResult, generation: int):
        """Caller holds _state_lock."""
        self._last_result = result
        if self.on_result is not None:
            try:
                self.on_result(result)
            except Exception:
                logger.exception("Result observer failed")

        if not result.detected or self.deduplicator is None:
            return
        # on_result may have stopped the loop
        if generation != self._generation:
            return
        record = self.deduplicator.on_match(result)
        if record is not None and self.on_attendance is not None:
            self.on_attendance(record)

    # === DRIVER ===
    def run(self, poll_interval: float = 0.03, retry_delay: Optional[float] = None):
        """
        Tick until stop() is called.
        Backs off to `retry_delay` (default: the loop's) while the source delivers nothing.
        """
        if retry_delay is None:
            retry_delay = self.retry_delay
        if not self._running:
            self.start()
        while self._running:
            self.tick()
            delay = poll_interval if self._source_available else retry_delay
            if self._stop_event.wait(delay):
                break
