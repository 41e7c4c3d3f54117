"""
Logging setup plus a recorder for recognition and practice events.
"""

import os
import time
import logging
import logging.handlers
from functools import wraps

CONSOLE_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"
FILE_FORMAT = "%(asctime)s [%(levelname)-7s] %(name)-40s | %(message)s"
DATE_FORMAT = "%H:%M:%S"

EVENTS_LOGGER = "sign_events"


def setup_logging(level="INFO", log_file=None, max_size_mb=10, backup_count=3):
    """Route all logging to the console and, optionally, a rotating file.

    Args:
        level: Root level name; unknown names fall back to INFO
        log_file: Path of the rotating log file (None for console only)
        max_size_mb: Size at which the file rotates
        backup_count: Rotated files kept

    Returns:
        The configured root logger
    """
    root = logging.getLogger()
    root.setLevel(getattr(logging, str(level).upper(), logging.INFO))
    for handler in list(root.handlers):
        root.removeHandler(handler)

    handlers = [(logging.StreamHandler(), logging.INFO, CONSOLE_FORMAT)]
    if log_file:
        os.makedirs(os.path.dirname(log_file) or ".", exist_ok=True)
        rotating = logging.handlers.RotatingFileHandler(
            log_file, maxBytes=int(max_size_mb * 1024 * 1024), backupCount=backup_count)
        handlers.append((rotating, logging.DEBUG, FILE_FORMAT))

    for handler, handler_level, fmt in handlers:
        handler.setLevel(handler_level)
        handler.setFormatter(logging.Formatter(fmt, datefmt=DATE_FORMAT))
        root.addHandler(handler)
    return root


class SignLogger:
    """Keeps a history of displayed predictions and logs practice events."""

    def __init__(self):
        self.logger = logging.getLogger(EVENTS_LOGGER)
        self._history = []

    def log_prediction(self, prediction, hand_index=0, latency_ms=None):
        """Record one (smoothed) prediction for a hand."""
        mode = prediction.mode.value if prediction.mode else None
        self._history.append({
            "timestamp": time.time(),
            "hand": hand_index,
            "sign": prediction.label,
            "confidence": prediction.confidence,
            "mode": mode,
            "latency_ms": latency_ms,
        })
        self.logger.info("Hand %d | Sign: %-10s | Confidence: %.2f | Mode: %-7s | %s",
                         hand_index, prediction.label, prediction.confidence, mode or "-",
                         "%.1fms" % latency_ms if latency_ms else "N/A")
        for hint in prediction.corrections:
            self.logger.debug("  hint: %s", hint)

    def log_attempt(self, attempt):
        self.logger.info("Attempt: target %-10s | got %-10s | %.2f | %s",
                         attempt.target_class, attempt.predicted_class, attempt.confidence,
                         "correct" if attempt.is_correct else "incorrect")

    def get_history(self, last_n=None):
        """Copy of the recorded predictions, optionally only the newest ``last_n``."""
        return list(self._history[-last_n:] if last_n else self._history)

    @property
    def total_predictions(self):
        return len(self._history)


def log_timing(func):
    """Log each call's duration at DEBUG on the function's module logger."""
    timing_logger = logging.getLogger(func.__module__)

    @wraps(func)
    def timed(*args, **kwargs):
        began = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            timing_logger.debug("%s took %.2fms", func.__name__,
                                (time.perf_counter() - began) * 1000)

    return timed
