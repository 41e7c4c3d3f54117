"""Sign recognition module."""
from .landmark_normalizer import LandmarkNormalizer
from .frame_buffer import FrameBuffer
from .sequence_sampler import SequenceSampler
from .classification_dispatcher import ClassificationDispatcher, ClassificationRequest
from .prediction_smoother import PredictionSmoother

__all__ = [
    "LandmarkNormalizer",
    "FrameBuffer",
    "SequenceSampler",
    "ClassificationDispatcher",
    "ClassificationRequest",
    "PredictionSmoother",
]
