"""
Learner progress aggregation.
Accumulates practice attempts and test answers into rolling accuracy
statistics, tracks which signs have been learned, and exports the state
in the shape an external store persists.

Correctness thresholds differ per context and are kept separate:
    practice attempt correct   confidence > 0.6
    sign marked as learned     confidence > 0.8 (and attempt correct)
    timed test answer correct  confidence > 0.7
"""

import math
import time
import logging
from collections import defaultdict
from datetime import datetime, timezone

from sign_tutor.core.types import AttemptRecord, TestResult

logger = logging.getLogger(__name__)

_WEEK_SECONDS = 7 * 24 * 60 * 60


class ProgressAggregator:
    """Tracks practice/test attempts and rolling accuracy."""

    def __init__(self, config: dict = None):
        config = config or {}
        self._practice_threshold = config.get("practice_threshold", 0.6)
        self._learned_threshold = config.get("learned_threshold", 0.8)
        self._test_threshold = config.get("test_threshold", 0.7)
        self._window = config.get("accuracy_window", 50)
        self._clear()

    def _clear(self):
        self._attempts = []
        self._test_results = []
        self._signs_learned = set()
        self._overall_accuracy = 0.0
        self._accuracy_by_sign = {}
        self._practice_minutes = 0
        self._session_start = None

    # ------------------------------------------------------------------
    # Recording
    # ------------------------------------------------------------------

    def record_attempt(self, prediction, target_class: str, timestamp: float = None) -> AttemptRecord:
        """Record a practice attempt against the target sign.

        Args:
            prediction: Smoothed prediction for the attempt
            target_class: Sign the learner was asked to make
            timestamp: Attempt time (defaults to now)

        Returns:
            The appended AttemptRecord
        """
        is_correct = (prediction.label == target_class
                      and prediction.confidence > self._practice_threshold)
        attempt = AttemptRecord(
            timestamp=time.time() if timestamp is None else timestamp,
            predicted_class=prediction.label,
            confidence=prediction.confidence,
            target_class=target_class,
            is_correct=is_correct,
        )
        self._attempts.append(attempt)

        if is_correct and prediction.confidence > self._learned_threshold:
            if target_class not in self._signs_learned:
                logger.info("Sign learned: %s (confidence %.2f)", target_class, prediction.confidence)
            self._signs_learned.add(target_class)

        self._update_accuracy()
        return attempt

    def record_test_result(self, question_class: str, prediction, time_spent: float,
                           timestamp: float = None) -> TestResult:
        """Record a timed test answer."""
        result = TestResult(
            timestamp=time.time() if timestamp is None else timestamp,
            question_class=question_class,
            answer_class=prediction.label,
            confidence=prediction.confidence,
            is_correct=(question_class == prediction.label
                        and prediction.confidence > self._test_threshold),
            time_spent=time_spent,
        )
        self._test_results.append(result)
        logger.debug("Test answer for %s: %s (%.2f)", question_class,
                     "correct" if result.is_correct else "incorrect", prediction.confidence)
        return result

    def start_practice_session(self, now: float = None):
        self._session_start = time.time() if now is None else now

    def end_practice_session(self, now: float = None) -> int:
        """Close the practice session and add its length in whole minutes.

        Returns:
            Minutes added (0 when no session was open)
        """
        if self._session_start is None:
            return 0
        now = time.time() if now is None else now
        minutes = int(math.floor((now - self._session_start) / 60.0 + 0.5))
        self._practice_minutes += minutes
        self._session_start = None
        return minutes

    # ------------------------------------------------------------------
    # Statistics
    # ------------------------------------------------------------------

    def _update_accuracy(self):
        """Recompute overall and per-sign accuracy over the recent window."""
        recent = self._attempts[-self._window:]
        if not recent:
            self._overall_accuracy = 0.0
            self._accuracy_by_sign = {}
            return

        self._overall_accuracy = sum(1 for a in recent if a.is_correct) / len(recent)

        groups = defaultdict(lambda: [0, 0])  # sign -> [correct, total]
        for attempt in recent:
            group = groups[attempt.target_class]
            group[1] += 1
            if attempt.is_correct:
                group[0] += 1
        self._accuracy_by_sign = {sign: correct / total for sign, (correct, total) in groups.items()}

    @property
    def overall_accuracy(self) -> float:
        return self._overall_accuracy

    @property
    def accuracy_by_sign(self) -> dict:
        return dict(self._accuracy_by_sign)

    @property
    def signs_learned(self) -> frozenset:
        return frozenset(self._signs_learned)

    @property
    def attempts(self) -> list:
        return list(self._attempts)

    @property
    def test_results(self) -> list:
        return list(self._test_results)

    @property
    def practice_minutes(self) -> int:
        return self._practice_minutes

    def weekly_progress(self, now: float = None) -> dict:
        """Summary of practice attempts made in the last seven days."""
        now = time.time() if now is None else now
        weekly = [a for a in self._attempts if a.timestamp > now - _WEEK_SECONDS]
        return {
            "totalAttempts": len(weekly),
            "correctAttempts": sum(1 for a in weekly if a.is_correct),
            "uniqueSigns": len({a.target_class for a in weekly}),
            "averageConfidence": (sum(a.confidence for a in weekly) / len(weekly)) if weekly else 0.0,
        }

    # ------------------------------------------------------------------
    # Persistence shape
    # ------------------------------------------------------------------

    def export_state(self) -> dict:
        """State snapshot for an external store (JSON-serializable)."""
        return {
            "signsLearned": sorted(self._signs_learned),
            "practiceAttempts": [a.to_dict() for a in self._attempts],
            "testResults": [r.to_dict() for r in self._test_results],
            "practiceTime": self._practice_minutes,
            "accuracy": {
                "overall": self._overall_accuracy,
                "bySign": dict(self._accuracy_by_sign),
            },
            "exportDate": datetime.now(timezone.utc).isoformat(),
        }

    def restore_state(self, data: dict):
        """Replace current state with a previously exported snapshot."""
        self._clear()
        data = data or {}
        self._attempts = [AttemptRecord.from_dict(a) for a in data.get("practiceAttempts") or []]
        self._test_results = [TestResult.from_dict(r) for r in data.get("testResults") or []]
        self._signs_learned = set(data.get("signsLearned") or [])
        self._practice_minutes = int(data.get("practiceTime") or 0)
        self._update_accuracy()
        logger.info("Restored progress: %d attempts, %d signs learned",
                    len(self._attempts), len(self._signs_learned))

    def reset(self):
        """Discard all progress."""
        self._clear()
        logger.info("Progress reset")
