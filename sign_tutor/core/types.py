"""
Shared domain types for the sign-language tutor.

Centralizes the class label set, enums and immutable data containers
used across the recognition, feedback and progress modules so that no
module has to import another just for its types.
"""

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import NamedTuple, Optional, Tuple

import numpy as np


# =============================================================================
# Label Set
# =============================================================================

SIGN_CLASSES: Tuple[str, ...] = (
    "A", "B", "C", "D", "E", "F", "G", "H", "I", "J", "K", "L", "M",
    "N", "O", "P", "Q", "R", "S", "T", "U", "V", "W", "X", "Y", "Z",
    "HELLO", "PLEASE", "THANK_YOU", "SORRY", "YES", "NO",
)

NO_HAND = "NO_HAND"
ERROR = "ERROR"

NUM_LANDMARKS = 21
FEATURE_DIM = NUM_LANDMARKS * 3


def zero_features() -> np.ndarray:
    """All-zero feature vector used for missing or degenerate frames."""
    return np.zeros(FEATURE_DIM, dtype=np.float32)


# =============================================================================
# Enums
# =============================================================================

class ClassificationMode(Enum):
    """Which classifier path handled an observation."""
    STATIC = "static"
    DYNAMIC = "dynamic"

    @classmethod
    def for_frame_count(cls, frame_count: int, sequence_length: int) -> 'ClassificationMode':
        """Decide the path from buffer readiness alone."""
        if frame_count >= sequence_length:
            return cls.DYNAMIC
        return cls.STATIC


# =============================================================================
# Data Containers
# =============================================================================

class Landmark(NamedTuple):
    """A single hand keypoint in detector-normalized image coordinates."""
    x: float  # 0.0 to 1.0, relative to image width
    y: float  # 0.0 to 1.0, relative to image height
    z: float = 0.0  # relative depth


@dataclass(frozen=True, eq=False)
class BufferedFrame:
    """A normalized frame as stored in the FrameBuffer."""
    features: np.ndarray
    timestamp: float

    def __post_init__(self):
        features = np.array(self.features, dtype=np.float32).reshape(-1)
        if features.shape != (FEATURE_DIM,):
            raise ValueError("Expected %d features, got %s" % (FEATURE_DIM, features.shape))
        features.flags.writeable = False
        object.__setattr__(self, "features", features)


@dataclass(frozen=True)
class Prediction:
    """Output of one classification call."""
    label: str
    confidence: float
    probabilities: Tuple[float, ...] = ()
    corrections: Tuple[str, ...] = ()
    mode: Optional[ClassificationMode] = None
    class_index: int = -1
    timestamp: float = field(default_factory=time.time)

    @classmethod
    def no_hand(cls) -> 'Prediction':
        return cls(label=NO_HAND, confidence=0.0)

    @classmethod
    def error(cls) -> 'Prediction':
        return cls(label=ERROR, confidence=0.0)

    @property
    def is_sentinel(self) -> bool:
        return self.label in (NO_HAND, ERROR)

    def __repr__(self):
        return "Prediction(%s, conf=%.2f)" % (self.label, self.confidence)


@dataclass(frozen=True)
class SmoothedPrediction(Prediction):
    """Prediction whose confidence is the weighted recent history."""
    raw_confidence: float = 0.0

    def __repr__(self):
        return "SmoothedPrediction(%s, conf=%.2f, raw=%.2f)" % (
            self.label, self.confidence, self.raw_confidence)


@dataclass(frozen=True)
class AttemptRecord:
    """One practice attempt against a target sign."""
    timestamp: float
    predicted_class: str
    confidence: float
    target_class: str
    is_correct: bool

    def to_dict(self) -> dict:
        return {
            "timestamp": self.timestamp,
            "predictedSign": self.predicted_class,
            "confidence": self.confidence,
            "targetSign": self.target_class,
            "isCorrect": self.is_correct,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'AttemptRecord':
        return cls(
            timestamp=float(data.get("timestamp", 0.0)),
            predicted_class=str(data.get("predictedSign", "")),
            confidence=float(data.get("confidence", 0.0)),
            target_class=str(data.get("targetSign", "")),
            is_correct=bool(data.get("isCorrect", False)),
        )


@dataclass(frozen=True)
class TestResult:
    """One timed test answer."""
    __test__ = False  # not a pytest collection target

    timestamp: float
    question_class: str
    answer_class: str
    confidence: float
    is_correct: bool
    time_spent: float

    def to_dict(self) -> dict:
        return {
            "timestamp": self.timestamp,
            "questionSign": self.question_class,
            "userAnswer": self.answer_class,
            "confidence": self.confidence,
            "isCorrect": self.is_correct,
            "timeSpent": self.time_spent,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'TestResult':
        return cls(
            timestamp=float(data.get("timestamp", 0.0)),
            question_class=str(data.get("questionSign", "")),
            answer_class=str(data.get("userAnswer", "")),
            confidence=float(data.get("confidence", 0.0)),
            is_correct=bool(data.get("isCorrect", False)),
            time_spent=float(data.get("timeSpent", 0.0)),
        )
