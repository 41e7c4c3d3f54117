"""
Corrective hints for the learner, derived from prediction confidence
and the predicted sign.

Confidence thresholds are cumulative: a very low-confidence prediction
collects the steadiness hint as well as the visibility hints.
"""

import logging
from typing import List, Optional

from sign_tutor.core.types import SIGN_CLASSES

logger = logging.getLogger(__name__)

STEADY_HINT = "Hold your hand steady and ensure good lighting"
VISIBLE_HINT = "Make sure your hand is fully visible to the camera"
SHAPE_HINT = "Check that your hand shape matches the target sign"

# Known per-sign corrections; signs without guidance contribute nothing
SIGN_CORRECTIONS = {
    "A": ["Make a fist with thumb beside your fingers"],
    "B": ["Keep fingers straight up, thumb tucked in"],
    "C": ["Curve your hand like holding a cup"],
    "E": ["Curl your fingertips down to rest on your thumb"],
    "O": ["Touch all fingertips to your thumb to form a circle"],
    "S": ["Make a fist with your thumb across the front of your fingers"],
    "HELLO": ["Start at your forehead and move your hand outward"],
    "THANK_YOU": ["Start at your chin and move your hand forward and down"],
}

# Lower bounds (exclusive) for the confidence levels shown to the learner
_LEVELS = (
    (0.8, "excellent", "Great job!"),
    (0.6, "good", "Good! Try to hold the sign steadier"),
    (0.3, "fair", "Keep trying! Check your hand position"),
)
_POOR = ("poor", "Make sure your hand is visible and in position")


class FeedbackGenerator:
    """Maps (confidence, predicted class) to an ordered list of hints."""

    def __init__(self, config: dict = None, class_labels=SIGN_CLASSES):
        config = config or {}
        self._steadiness_threshold = config.get("steadiness_threshold", 0.6)
        self._visibility_threshold = config.get("visibility_threshold", 0.4)
        self._test_threshold = config.get("test_threshold", 0.7)
        self._class_labels = tuple(class_labels)

        self._corrections = {k: list(v) for k, v in SIGN_CORRECTIONS.items()}
        for sign, hints in (config.get("sign_corrections") or {}).items():
            if isinstance(hints, str):
                hints = [hints]
            self._corrections[str(sign)] = list(hints)

    def generate(self, prediction, predicted_class_index: int) -> List[str]:
        """Build hints for a raw prediction.

        Args:
            prediction: Raw Prediction, or its confidence (0-1) directly
            predicted_class_index: Index into the class label set

        Returns:
            Hints in order: steadiness, visibility, shape, then sign-specific
        """
        confidence = getattr(prediction, "confidence", prediction)
        hints = []
        if confidence < self._steadiness_threshold:
            hints.append(STEADY_HINT)
        if confidence < self._visibility_threshold:
            hints.append(VISIBLE_HINT)
            hints.append(SHAPE_HINT)

        sign = self.label_for(predicted_class_index)
        if sign is not None:
            hints.extend(self._corrections.get(sign, []))
        return hints

    def label_for(self, class_index: int) -> Optional[str]:
        if 0 <= class_index < len(self._class_labels):
            return self._class_labels[class_index]
        return None

    def sign_corrections(self, sign: str) -> List[str]:
        """Specific guidance known for a sign (may be empty)."""
        return list(self._corrections.get(sign, []))

    @staticmethod
    def confidence_level(confidence: float) -> str:
        """Classify confidence for display.

        Returns:
            'excellent' (>0.8), 'good' (>0.6), 'fair' (>0.3) or 'poor'
        """
        for bound, level, _ in _LEVELS:
            if confidence > bound:
                return level
        return _POOR[0]

    @staticmethod
    def summary_message(confidence: float) -> str:
        """Encouragement line matching the confidence level."""
        for bound, _, message in _LEVELS:
            if confidence > bound:
                return message
        return _POOR[1]

    def test_message(self, prediction) -> str:
        """Result line for a timed test answer."""
        if prediction.confidence > self._test_threshold:
            return "Correct! You signed: %s" % prediction.label
        return "Try again. Detected: %s (%d%% confidence)" % (
            prediction.label, round(prediction.confidence * 100))
