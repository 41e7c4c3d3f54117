"""
Torch classifier collaborators.

Provides:
    - StaticSignNet: MLP over one normalized frame
    - SequenceSignNet: LSTM over a resampled frame sequence
    - TorchSignClassifier: network -> classifier interface adapter
    - ModelLoader: cached checkpoint loading with untrained fallback

Import the submodules directly; this package does not import torch
on its own so the recognition core stays usable without it.
"""

__all__ = [
    "StaticSignNet",
    "SequenceSignNet",
    "TorchSignClassifier",
    "ModelLoader",
]
