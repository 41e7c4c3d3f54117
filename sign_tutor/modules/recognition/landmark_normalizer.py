"""
21-point hand landmark normalization.

Converts one hand's raw detector landmarks into a translation- and
scale-invariant feature vector suitable for the sign classifiers.

Feature layout (63 dimensions):
    [0:63]   21 x (x', y', z') where x', y' are re-centred on the
             bounding-box centre and divided by the longer box side,
             and z' is the detector depth (0 when absent)
"""

import logging
from collections.abc import Mapping

import numpy as np

from sign_tutor.core.types import FEATURE_DIM, NUM_LANDMARKS, zero_features

logger = logging.getLogger(__name__)

# Boxes smaller than this are treated as a single point
_MIN_BOX_SIZE = 1e-9


class LandmarkNormalizer:
    """Normalizes hand observations into fixed-size feature vectors.

    Accepts the observation shapes produced by the common detectors:
    sequences of Landmark-like objects or ``{x, y, z}`` mappings,
    sequences of 2/3-tuples, (21, 2) or (21, 3) arrays, and objects
    exposing a ``.landmark`` list (MediaPipe ``NormalizedLandmarkList``).
    """

    @property
    def feature_dim(self) -> int:
        return FEATURE_DIM

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def to_array(self, observation):
        """Convert an observation to a (21, 3) float array.

        Returns:
            np.ndarray of shape (21, 3), or None if the observation is
            absent or malformed (wrong count, bad values)
        """
        if observation is None:
            return None

        if hasattr(observation, "landmark"):
            observation = observation.landmark

        if isinstance(observation, np.ndarray):
            points = observation.astype(np.float64)
            if points.ndim != 2 or points.shape[0] != NUM_LANDMARKS or points.shape[1] not in (2, 3):
                return None
            if points.shape[1] == 2:
                points = np.hstack([points, np.zeros((NUM_LANDMARKS, 1))])
        else:
            try:
                if len(observation) != NUM_LANDMARKS:
                    return None
                points = np.array([self._point(p) for p in observation], dtype=np.float64)
            except (TypeError, ValueError, KeyError, IndexError):
                return None

        if not np.all(np.isfinite(points)):
            return None
        return points

    def is_valid(self, observation) -> bool:
        """True if the observation has exactly 21 well-formed landmarks."""
        return self.to_array(observation) is not None

    def normalize(self, observation) -> np.ndarray:
        """Convert an observation to a (63,) normalized feature vector.

        Absent or malformed observations and degenerate (zero-size)
        bounding boxes all produce the all-zero vector.
        """
        points = self.to_array(observation)
        if points is None:
            logger.debug("Malformed or missing observation, using zero features")
            return zero_features()

        min_x, min_y = points[:, 0].min(), points[:, 1].min()
        max_x, max_y = points[:, 0].max(), points[:, 1].max()
        width = max_x - min_x
        height = max_y - min_y
        size = max(width, height)

        if size <= _MIN_BOX_SIZE:
            logger.debug("Degenerate landmark geometry (box size %.3g)", size)
            return zero_features()

        normalized = np.empty_like(points)
        normalized[:, 0] = (points[:, 0] - min_x - width / 2.0) / size
        normalized[:, 1] = (points[:, 1] - min_y - height / 2.0) / size
        normalized[:, 2] = points[:, 2]
        return normalized.reshape(-1).astype(np.float32)

    def normalize_many(self, observations) -> list:
        """Normalize every observation of a multi-hand detector result."""
        return [self.normalize(obs) for obs in observations or []]

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _point(p):
        """Read one landmark as (x, y, z); missing z reads as 0."""
        if isinstance(p, Mapping):
            x, y, z = p["x"], p["y"], p.get("z")
        elif hasattr(p, "x") and hasattr(p, "y"):
            x, y, z = p.x, p.y, getattr(p, "z", None)
        else:
            values = tuple(p)
            if len(values) not in (2, 3):
                raise ValueError("Expected 2 or 3 coordinates, got %d" % len(values))
            x, y = values[0], values[1]
            z = values[2] if len(values) == 3 else None
        return (float(x), float(y), float(z) if z is not None else 0.0)
