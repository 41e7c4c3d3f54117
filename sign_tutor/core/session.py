"""
Tracking session: the per-session recognition pipeline.

Owns all mutable recognition state for one tracking session and runs the
normalize -> buffer -> classify -> smooth -> aggregate cycle when the
caller's frame-acquisition loop hands it a frame.

Architecture:
    observations -> LandmarkNormalizer -> FrameBuffer (per hand)
    -> ClassificationDispatcher -> PredictionSmoother (per hand)
    -> ProgressAggregator (primary hand, when a target sign is given)

Two ways to drive it:
    process_frame()        one synchronous pass per frame
    submit_frame() / poll()  classifier call runs on a single worker
                             thread; frames arriving while a call is
                             pending are dropped
"""

import time
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import List, Optional

from sign_tutor.core.types import BufferedFrame, Prediction
from sign_tutor.modules.feedback.feedback_generator import FeedbackGenerator
from sign_tutor.modules.intelligence.progress_aggregator import ProgressAggregator
from sign_tutor.modules.recognition.classification_dispatcher import ClassificationDispatcher
from sign_tutor.modules.recognition.frame_buffer import FrameBuffer
from sign_tutor.modules.recognition.landmark_normalizer import LandmarkNormalizer
from sign_tutor.modules.recognition.prediction_smoother import PredictionSmoother
from sign_tutor.modules.recognition.sequence_sampler import SequenceSampler
from sign_tutor.modules.utils.performance_monitor import PerformanceMonitor

logger = logging.getLogger(__name__)


@dataclass
class SessionConfig:
    """Tracking session configuration."""
    max_hands: int = 2
    buffer_capacity: int = 30
    sequence_length: int = 15
    async_inference: bool = False

    @classmethod
    def from_dict(cls, config: dict) -> "SessionConfig":
        """Create config from the ``session`` section."""
        config = config or {}
        return cls(
            max_hands=config.get("max_hands", 2),
            buffer_capacity=config.get("buffer_capacity", 30),
            sequence_length=config.get("sequence_length", 15),
            async_inference=config.get("async_inference", False),
        )


class HandContext:
    """Recognition state owned by one tracked hand."""

    __slots__ = ("buffer", "smoother")

    def __init__(self, buffer: FrameBuffer, smoother: PredictionSmoother):
        self.buffer = buffer
        self.smoother = smoother

    def clear(self):
        self.buffer.clear()
        self.smoother.reset()


class HandResult:
    """Pipeline output for one hand in one frame."""

    __slots__ = ("hand_index", "prediction", "buffer_size", "buffer_ready")

    def __init__(self, hand_index: int, prediction: Prediction,
                 buffer_size: int = 0, buffer_ready: bool = False):
        self.hand_index = hand_index
        self.prediction = prediction
        self.buffer_size = buffer_size
        self.buffer_ready = buffer_ready

    def __repr__(self):
        return "HandResult(%d, %r, buffer=%d)" % (self.hand_index, self.prediction, self.buffer_size)


class FrameResult:
    """Result of a single pipeline iteration."""

    __slots__ = ("frame_id", "timestamp", "hands", "attempt", "latency_ms")

    def __init__(self, frame_id: int, timestamp: float):
        self.frame_id = frame_id
        self.timestamp = timestamp
        self.hands: List[HandResult] = []
        self.attempt = None
        self.latency_ms = 0.0

    @property
    def prediction(self) -> Prediction:
        """Prediction for the primary (first) hand."""
        return self.hands[0].prediction if self.hands else Prediction.no_hand()


class _PendingFrame:
    __slots__ = ("generation", "frame_id", "timestamp", "target_class", "started", "future")

    def __init__(self, generation, frame_id, timestamp, target_class, started, future):
        self.generation = generation
        self.frame_id = frame_id
        self.timestamp = timestamp
        self.target_class = target_class
        self.started = started
        self.future = future


class TrackingSession:
    """Per-session recognition context.

    Each tracked hand gets its own FrameBuffer and PredictionSmoother;
    the dispatcher, progress aggregator and performance monitor are
    shared. Only the primary hand's predictions are recorded as
    practice attempts.
    """

    def __init__(self, dispatcher: ClassificationDispatcher,
                 progress: ProgressAggregator = None,
                 sampler: SequenceSampler = None,
                 smoothing_config: dict = None,
                 config: SessionConfig = None,
                 performance_monitor: PerformanceMonitor = None):
        self._dispatcher = dispatcher
        self._normalizer = dispatcher.normalizer
        self._progress = progress or ProgressAggregator()
        self._sampler = sampler or SequenceSampler(target_length=dispatcher.sequence_length)
        self._smoothing_config = smoothing_config or {}
        self._config = config or SessionConfig()
        self._perf = performance_monitor or PerformanceMonitor()

        self._hands: List[HandContext] = []
        self._running = False
        self._busy = False
        self._generation = 0
        self._frame_id = 0

        self._executor: Optional[ThreadPoolExecutor] = None
        self._pending: Optional[_PendingFrame] = None

    @classmethod
    def from_config(cls, config, static_classifier, sequence_classifier) -> "TrackingSession":
        """Build a session and its components from a loaded Config."""
        session_config = SessionConfig.from_dict(config.session)
        sampler_config = dict(config.sampler)
        sequence_length = session_config.sequence_length
        if sampler_config.get("target_length", sequence_length) != sequence_length:
            logger.warning("sampler.target_length %s overridden by session.sequence_length %d",
                           sampler_config["target_length"], sequence_length)
        sampler_config["target_length"] = sequence_length
        # The window must cover a full sequence or the tail slots repeat the last frame
        window = sampler_config.get("window_size") or sequence_length
        if window < sequence_length:
            logger.warning("sampler.window_size %d widened to session.sequence_length %d",
                           window, sequence_length)
        sampler_config["window_size"] = max(window, sequence_length)
        sampler = SequenceSampler.from_config(sampler_config)

        feedback_config = dict(config.feedback)
        feedback_config.setdefault("test_threshold", config.get("progress.test_threshold", 0.7))

        dispatcher = ClassificationDispatcher(
            static_classifier,
            sequence_classifier,
            normalizer=LandmarkNormalizer(),
            sampler=sampler,
            feedback=FeedbackGenerator(feedback_config),
            sequence_length=session_config.sequence_length,
        )
        return cls(
            dispatcher,
            progress=ProgressAggregator(config.progress),
            sampler=sampler,
            smoothing_config=config.smoothing,
            config=session_config,
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self):
        """Start tracking with empty buffers and smoothing history."""
        if self._running:
            return
        self._hands = [
            HandContext(FrameBuffer(self._config.buffer_capacity),
                        PredictionSmoother(self._smoothing_config))
            for _ in range(self._config.max_hands)
        ]
        self._running = True
        self._perf.reset()
        logger.info("Tracking session started (max_hands=%d, buffer=%d, sequence=%d)",
                    self._config.max_hands, self._config.buffer_capacity,
                    self._config.sequence_length)

    def stop(self):
        """Stop tracking: clear all state and discard any in-flight result."""
        self._generation += 1
        if self._pending is not None:
            self._pending.future.cancel()
            self._pending = None
            logger.debug("Discarded in-flight classification on stop")
        for hand in self._hands:
            hand.clear()
        if self._running:
            logger.info("Tracking session stopped after %d frames", self._perf.frame_count)
        self._running = False

    def close(self):
        """Stop and release the inference worker."""
        self.stop()
        if self._executor is not None:
            self._executor.shutdown(wait=False)
            self._executor = None

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    # ------------------------------------------------------------------
    # Synchronous pipeline
    # ------------------------------------------------------------------

    def process_frame(self, observations, target_class: str = None,
                      timestamp: float = None) -> Optional[FrameResult]:
        """Run one full pass for a camera frame.

        Args:
            observations: HandObservations detected in this frame, one per
                          hand (empty or None when no hand was found)
            target_class: Sign the learner is attempting, if practicing
            timestamp: Frame time (defaults to now)

        Returns:
            FrameResult, or None if the session is not running or a
            classification is already in flight (frame dropped)
        """
        if not self._accepting():
            return None

        started = time.perf_counter()
        timestamp = time.time() if timestamp is None else timestamp
        self._busy = True
        try:
            frame_id = self._next_frame_id()
            jobs = self._prepare(observations, timestamp)
            predictions = self._execute(jobs)
            return self._finish(frame_id, timestamp, predictions, target_class, started)
        finally:
            self._busy = False

    # ------------------------------------------------------------------
    # Offloaded pipeline
    # ------------------------------------------------------------------

    def submit_frame(self, observations, target_class: str = None,
                     timestamp: float = None) -> bool:
        """Queue a frame for classification on the inference worker.

        Normalization, buffering and sampling happen here on the
        caller's thread. Returns False when the frame was dropped
        because a previous frame has not been polled yet.
        """
        if not self._accepting():
            return False

        started = time.perf_counter()
        timestamp = time.time() if timestamp is None else timestamp
        frame_id = self._next_frame_id()
        jobs = self._prepare(observations, timestamp)

        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="sign-inference")
        future = self._executor.submit(self._execute, jobs)
        self._pending = _PendingFrame(self._generation, frame_id, timestamp,
                                      target_class, started, future)
        return True

    def poll(self) -> Optional[FrameResult]:
        """Collect the pending frame's result if its classification finished."""
        pending = self._pending
        if pending is None or not pending.future.done():
            return None
        self._pending = None

        if pending.generation != self._generation or pending.future.cancelled():
            return None

        try:
            predictions = pending.future.result()
        except Exception as e:
            logger.error("Inference worker failed: %s", e, exc_info=True)
            predictions = [(0, Prediction.error())]

        return self._finish(pending.frame_id, pending.timestamp, predictions,
                            pending.target_class, pending.started)

    @property
    def has_pending(self) -> bool:
        return self._pending is not None

    # ------------------------------------------------------------------
    # Pipeline stages
    # ------------------------------------------------------------------

    def _accepting(self) -> bool:
        if not self._running:
            logger.debug("Frame ignored: session not running")
            return False
        if self._busy or self._pending is not None:
            self._perf.record_drop()
            logger.debug("Frame dropped: classification already in flight")
            return False
        return True

    def _next_frame_id(self) -> int:
        self._frame_id += 1
        return self._frame_id

    def _prepare(self, observations, timestamp: float) -> list:
        """Normalize and buffer each hand, then build its classifier request."""
        observations = list(observations or [])[:self._config.max_hands]
        if not observations:
            return [(0, None)]

        jobs = []
        with self._perf.measure("normalize"):
            for index, observation in enumerate(observations):
                hand = self._hands[index]
                if not self._normalizer.is_valid(observation):
                    logger.debug("Hand %d: malformed observation treated as no hand", index)
                    jobs.append((index, None))
                    continue
                features = self._normalizer.normalize(observation)
                hand.buffer.push(BufferedFrame(features, timestamp))
                jobs.append((index, self._dispatcher.prepare(observation, hand.buffer,
                                                             features=features)))
        return jobs

    def _execute(self, jobs: list) -> list:
        """Run the classifier for every prepared hand, one call at a time."""
        with self._perf.measure("classify"):
            return [(index, self._dispatcher.execute(request)) for index, request in jobs]

    def _finish(self, frame_id: int, timestamp: float, predictions: list,
                target_class: Optional[str], started: float) -> FrameResult:
        """Smooth each hand's prediction and record the primary attempt."""
        result = FrameResult(frame_id, timestamp)

        with self._perf.measure("smooth"):
            for index, raw in predictions:
                hand = self._hands[index]
                prediction = raw if raw.is_sentinel else hand.smoother.smooth(raw)
                result.hands.append(HandResult(
                    index, prediction,
                    buffer_size=len(hand.buffer),
                    buffer_ready=self._sampler.is_ready(hand.buffer),
                ))

        primary = result.prediction
        if target_class is not None and not primary.is_sentinel:
            with self._perf.measure("aggregate"):
                result.attempt = self._progress.record_attempt(primary, target_class, timestamp)

        result.latency_ms = (time.perf_counter() - started) * 1000
        self._perf.record_stage("total", result.latency_ms)
        self._perf.tick()
        return result

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def progress(self) -> ProgressAggregator:
        return self._progress

    @property
    def dispatcher(self) -> ClassificationDispatcher:
        return self._dispatcher

    @property
    def performance(self) -> PerformanceMonitor:
        return self._perf

    def buffer(self, hand_index: int = 0) -> FrameBuffer:
        return self._hands[hand_index].buffer

    def smoother(self, hand_index: int = 0) -> PredictionSmoother:
        return self._hands[hand_index].smoother
