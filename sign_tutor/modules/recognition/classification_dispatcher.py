"""
Static/dynamic classification dispatch.

Chooses the classifier path from buffer readiness, invokes the matching
external classifier and decodes its probability distribution into a
Prediction. Every failure is absorbed into a sentinel prediction:

    - no (or malformed) observation  ->  NO_HAND
    - classifier raised / bad output ->  ERROR
"""

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np

from sign_tutor.core.types import (
    SIGN_CLASSES, ClassificationMode, Prediction,
)
from sign_tutor.modules.recognition.landmark_normalizer import LandmarkNormalizer
from sign_tutor.modules.recognition.sequence_sampler import SequenceSampler

logger = logging.getLogger(__name__)

DEFAULT_SEQUENCE_LENGTH = 15


class ClassifierError(Exception):
    """Raised internally when a classifier output cannot be decoded."""


@dataclass(frozen=True, eq=False)
class ClassificationRequest:
    """Everything needed to run one classifier call.

    Built on the pipeline thread, so it can be executed elsewhere
    without touching the FrameBuffer again.
    """
    mode: ClassificationMode
    features: np.ndarray   # (63,) current frame
    payload: np.ndarray    # (63,) for STATIC, (sequence_length, 63) for DYNAMIC


class ClassificationDispatcher:
    """Routes observations to the static or sequence classifier.

    Classifiers are any objects with ``predict(x)`` (or plain callables)
    returning a probability per class label, as a 1-D sequence or a
    (1, num_classes) batch.
    """

    def __init__(self, static_classifier, sequence_classifier,
                 normalizer: LandmarkNormalizer = None,
                 sampler: SequenceSampler = None,
                 feedback=None,
                 class_labels=SIGN_CLASSES,
                 sequence_length: int = DEFAULT_SEQUENCE_LENGTH):
        self._static_classifier = static_classifier
        self._sequence_classifier = sequence_classifier
        self._normalizer = normalizer or LandmarkNormalizer()
        self._sampler = sampler or SequenceSampler(target_length=sequence_length)
        self._feedback = feedback
        self._class_labels = tuple(class_labels)
        self._sequence_length = sequence_length

        self._calls = {ClassificationMode.STATIC: 0, ClassificationMode.DYNAMIC: 0}
        self._failures = 0

    @property
    def normalizer(self) -> LandmarkNormalizer:
        return self._normalizer

    @property
    def sequence_length(self) -> int:
        return self._sequence_length

    @property
    def stats(self) -> dict:
        return {
            "static_calls": self._calls[ClassificationMode.STATIC],
            "dynamic_calls": self._calls[ClassificationMode.DYNAMIC],
            "failures": self._failures,
        }

    # ------------------------------------------------------------------
    # Main classification API
    # ------------------------------------------------------------------

    def classify(self, observation, buffer) -> Prediction:
        """Classify one observation given the hand's frame buffer."""
        return self.execute(self.prepare(observation, buffer))

    def prepare(self, observation, buffer, features=None) -> Optional[ClassificationRequest]:
        """Decide the path and build the classifier input.

        Args:
            observation: Raw HandObservation (None when no hand)
            buffer: FrameBuffer for this hand
            features: Already-normalized features of ``observation``

        Returns:
            ClassificationRequest, or None when there is no usable hand
        """
        if features is None:
            if not self._normalizer.is_valid(observation):
                return None
            features = self._normalizer.normalize(observation)

        mode = ClassificationMode.for_frame_count(len(buffer), self._sequence_length)
        if mode is ClassificationMode.DYNAMIC:
            payload = self._sampler.sample(buffer, self._sequence_length)
        else:
            payload = features
        return ClassificationRequest(mode=mode, features=features, payload=payload)

    def execute(self, request: Optional[ClassificationRequest]) -> Prediction:
        """Invoke the classifier for a prepared request."""
        if request is None:
            return Prediction.no_hand()

        classifier = (self._sequence_classifier if request.mode is ClassificationMode.DYNAMIC
                      else self._static_classifier)
        self._calls[request.mode] += 1

        try:
            output = self._invoke(classifier, request.payload)
            probabilities = self._decode(output)
        except Exception as e:
            self._failures += 1
            logger.error("%s classifier failed: %s", request.mode.value, e, exc_info=True)
            return Prediction.error()

        index = int(np.argmax(probabilities))  # first maximum wins ties
        confidence = float(np.clip(probabilities[index], 0.0, 1.0))
        corrections = self._feedback.generate(confidence, index) if self._feedback else []

        return Prediction(
            label=self._class_labels[index],
            confidence=confidence,
            probabilities=tuple(float(p) for p in probabilities),
            corrections=tuple(corrections),
            mode=request.mode,
            class_index=index,
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _invoke(classifier, payload):
        if hasattr(classifier, "predict"):
            return classifier.predict(payload)
        return classifier(payload)

    def _decode(self, output) -> np.ndarray:
        probabilities = np.squeeze(np.asarray(output, dtype=np.float64))
        if probabilities.ndim != 1 or probabilities.shape[0] != len(self._class_labels):
            raise ClassifierError(
                "expected %d class scores, got shape %s"
                % (len(self._class_labels), np.shape(output)))
        if not np.all(np.isfinite(probabilities)):
            raise ClassifierError("non-finite class scores")
        return probabilities
