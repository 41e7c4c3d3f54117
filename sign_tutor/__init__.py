"""
Sign Tutor
==========

Sign-language hand shape and gesture recognition from streams of
hand-landmark observations.

Modules:
    - core: shared types and the per-session tracking pipeline
    - modules.recognition: normalization, frame buffering, sequence
      sampling, classifier dispatch and confidence smoothing
    - modules.feedback: corrective hints for the learner
    - modules.intelligence: practice/test progress aggregation
    - modules.utils: configuration, logging, performance monitoring
    - models: torch classifier networks and model loading
"""

__version__ = "1.0.0"
__author__ = "Sign Tutor Team"
