"""
Per-stage latency tracking for the recognition pipeline.

Both the caller's thread and the inference worker record into the same
monitor, so every counter and window sits behind one lock.
"""

import time
import threading
import logging
from collections import deque
from contextlib import contextmanager

logger = logging.getLogger(__name__)

PIPELINE_STAGES = ("normalize", "classify", "smooth", "aggregate", "total")


def _mean(values) -> float:
    return sum(values) / len(values) if values else 0.0


class PerformanceMonitor:
    """Processed/dropped frame counters and rolling stage latencies."""

    def __init__(self, window_size=100):
        self._window_size = window_size
        self._lock = threading.Lock()
        self._stages = {stage: deque(maxlen=window_size) for stage in PIPELINE_STAGES}
        self._clear()

    def _clear(self):
        # perf_counter() of each recent processed frame
        self._tick_times = deque(maxlen=self._window_size)
        for samples in self._stages.values():
            samples.clear()
        self._processed = 0
        self._dropped = 0
        self._started_at = time.time()

    # ------------------------------------------------------------------
    # Recording
    # ------------------------------------------------------------------

    @contextmanager
    def measure(self, stage: str):
        """Time the enclosed block as one sample of ``stage``."""
        began = time.perf_counter()
        try:
            yield
        finally:
            self.record_stage(stage, (time.perf_counter() - began) * 1000)

    def record_stage(self, stage: str, elapsed_ms: float):
        with self._lock:
            samples = self._stages.setdefault(stage, deque(maxlen=self._window_size))
            samples.append(elapsed_ms)

    def tick(self):
        """Count one processed frame."""
        with self._lock:
            self._tick_times.append(time.perf_counter())
            self._processed += 1

    def record_drop(self):
        """Count one frame dropped while a classification was pending."""
        with self._lock:
            self._dropped += 1

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def frame_count(self) -> int:
        return self._processed

    @property
    def dropped_frames(self) -> int:
        return self._dropped

    @property
    def fps(self) -> float:
        """Processed frames per second over the recent window."""
        with self._lock:
            if len(self._tick_times) < 3:
                return 0.0
            span = self._tick_times[-1] - self._tick_times[0]
            return (len(self._tick_times) - 1) / span if span > 0 else 0.0

    @property
    def total_latency_ms(self) -> float:
        return self.get_stage_latency("total")

    def get_stage_latency(self, stage: str) -> float:
        """Mean latency of ``stage`` in ms (0.0 before any sample)."""
        with self._lock:
            return _mean(self._stages.get(stage, ()))

    def get_metrics(self) -> dict:
        """Snapshot of counters and mean stage latencies."""
        with self._lock:
            latencies = {stage: round(_mean(samples), 2) for stage, samples in self._stages.items()}
            processed, dropped = self._processed, self._dropped
            uptime = time.time() - self._started_at
        offered = processed + dropped
        return {
            "fps": round(self.fps, 1),
            "total_frames": processed,
            "dropped_frames": dropped,
            "drop_rate": round(100.0 * dropped / offered, 2) if offered else 0.0,
            "uptime_seconds": round(uptime, 1),
            "latencies_ms": latencies,
        }

    def print_report(self):
        """Log the current metrics as a short report."""
        metrics = self.get_metrics()
        logger.info("-" * 50)
        logger.info("Frames: %d processed, %d dropped (%.2f%%), %.1f fps",
                    metrics["total_frames"], metrics["dropped_frames"],
                    metrics["drop_rate"], metrics["fps"])
        for stage, latency in metrics["latencies_ms"].items():
            logger.info("  %-10s %7.2f ms", stage, latency)
        logger.info("-" * 50)

    def reset(self):
        with self._lock:
            self._clear()
