"""
Temporal confidence smoothing across consecutive predictions.
Weights recent raw confidences newest-first so landmark jitter does not
make the displayed confidence spike, while the class follows the newest
prediction without lag.
"""

import logging
from collections import deque

from sign_tutor.core.types import Prediction, SmoothedPrediction

logger = logging.getLogger(__name__)

DEFAULT_WEIGHTS = (0.4, 0.3, 0.2, 0.1)
DEFAULT_HISTORY_SIZE = 5


class PredictionSmoother:
    """Weighted sum over the most recent raw confidences.

    Weights are applied newest-first and are not renormalized while the
    history is shorter than the weight list, so confidence ramps up over
    the first few predictions of a session.
    """

    def __init__(self, config: dict = None):
        config = config or {}
        self._history_size = config.get("history_size", DEFAULT_HISTORY_SIZE)
        self._weights = tuple(float(w) for w in config.get("weights", DEFAULT_WEIGHTS))
        if not self._weights:
            raise ValueError("Smoothing weights must not be empty")
        if self._history_size <= 0:
            raise ValueError("history_size must be positive, got %r" % self._history_size)

        # Recent raw predictions, oldest first
        self._history = deque(maxlen=self._history_size)

    def smooth(self, prediction: Prediction) -> SmoothedPrediction:
        """Add a raw prediction and return its smoothed version."""
        self._history.append(prediction)
        raw = [p.confidence for p in reversed(self._history)]  # newest first
        weighted = sum(w * c for w, c in zip(self._weights, raw))

        return SmoothedPrediction(
            label=prediction.label,
            confidence=weighted,
            probabilities=prediction.probabilities,
            corrections=prediction.corrections,
            mode=prediction.mode,
            class_index=prediction.class_index,
            timestamp=prediction.timestamp,
            raw_confidence=prediction.confidence,
        )

    def reset(self):
        """Clear history (session stop)."""
        self._history.clear()

    @property
    def history(self) -> list:
        """Recent raw predictions, oldest first."""
        return list(self._history)

    @property
    def weights(self) -> tuple:
        return self._weights

    @property
    def history_fill(self) -> float:
        """How full the history is (0.0 - 1.0)."""
        return len(self._history) / self._history_size
