"""
Shared fixtures and helpers for the sign tutor tests.
"""

import numpy as np
import pytest

from sign_tutor.core.types import SIGN_CLASSES, BufferedFrame, Landmark


# Canonical open-hand layout: wrist plus four joints per finger
_BASE_HAND = [(0.50, 0.80)]
for _finger, _dx in enumerate((-0.12, -0.05, 0.0, 0.05, 0.10)):
    for _joint in range(1, 5):
        _BASE_HAND.append((0.50 + _dx * (0.5 + _joint * 0.2), 0.80 - 0.07 * _joint - 0.01 * _finger))


def make_hand(scale=1.0, offset=(0.0, 0.0), z=0.0):
    """21 Landmarks of a synthetic hand, scaled about its centroid and shifted."""
    points = np.array(_BASE_HAND)
    centroid = points.mean(axis=0)
    points = (points - centroid) * scale + centroid + np.array(offset)
    return [Landmark(x=float(x), y=float(y), z=z) for x, y in points]


def make_frame(value=0.0, timestamp=0.0):
    """A BufferedFrame whose 63 features all equal ``value``."""
    return BufferedFrame(np.full(63, value, dtype=np.float32), timestamp)


def one_hot(label, confidence=0.9):
    """Distribution putting ``confidence`` on ``label`` and spreading the rest."""
    probs = np.full(len(SIGN_CLASSES), (1.0 - confidence) / (len(SIGN_CLASSES) - 1))
    probs[SIGN_CLASSES.index(label)] = confidence
    return probs


class FakeClassifier:
    """Classifier collaborator returning a fixed distribution."""

    def __init__(self, label="A", confidence=0.9):
        self.output = one_hot(label, confidence)
        self.inputs = []

    def predict(self, features):
        self.inputs.append(np.array(features))
        return self.output


class RaisingClassifier:
    """Classifier collaborator whose inference always fails."""

    def __init__(self):
        self.calls = 0

    def predict(self, features):
        self.calls += 1
        raise RuntimeError("inference backend unavailable")


@pytest.fixture
def hand():
    return make_hand()


@pytest.fixture
def static_classifier():
    return FakeClassifier("A", 0.9)


@pytest.fixture
def sequence_classifier():
    return FakeClassifier("HELLO", 0.8)
