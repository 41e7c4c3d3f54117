#!/usr/bin/env python3
"""
Sign tutor: replay a recorded landmark stream through the recognition
pipeline.

The recording is JSON produced by any hand-landmark detector:

    {"frames": [{"timestamp": 0.033,
                 "hands": [[{"x": .., "y": .., "z": ..}, ...21 points], ...]},
                ...]}

Usage:
    sign-tutor recording.json                       # print predictions
    sign-tutor recording.json --target A            # practice vs "A", progress JSON to stdout
    sign-tutor recording.json --mode test --target HELLO
    sign-tutor recording.json --target A --export progress.json
"""

import sys
import json
import time
import argparse
import logging

from sign_tutor import __version__
from sign_tutor.core.session import TrackingSession
from sign_tutor.models.model_loader import ModelLoader
from sign_tutor.modules.feedback.feedback_generator import FeedbackGenerator
from sign_tutor.modules.utils.config import Config
from sign_tutor.modules.utils.logger import SignLogger, setup_logging

logger = logging.getLogger(__name__)


class SignTutorReplay:
    """Feeds a landmark recording into a TrackingSession frame by frame."""

    def __init__(self, config: Config, mode: str = "practice"):
        self._config = config
        self._mode = mode
        self._loader = ModelLoader(config.models)
        static, sequence = self._loader.load_classifiers()
        self._session = TrackingSession.from_config(config, static, sequence)
        self._feedback = FeedbackGenerator(config.feedback)
        self._sign_logger = SignLogger()
        self._async = bool(config.get("session.async_inference", False))

    @property
    def session(self) -> TrackingSession:
        return self._session

    def run(self, frames, target_class=None):
        """Process every frame; returns the last primary-hand prediction seen."""
        practice_target = target_class if self._mode == "practice" else None
        last = None
        first_ts = last_ts = None

        with self._session as session:
            session.progress.start_practice_session(frames[0].get("timestamp") if frames else None)
            for frame in frames:
                timestamp = frame.get("timestamp")
                first_ts = timestamp if first_ts is None else first_ts
                last_ts = timestamp
                for result in self._step(frame.get("hands") or [], practice_target, timestamp):
                    for hand in result.hands:
                        self._sign_logger.log_prediction(hand.prediction, hand.hand_index,
                                                         result.latency_ms)
                    if result.attempt is not None:
                        self._sign_logger.log_attempt(result.attempt)
                    if not result.prediction.is_sentinel:
                        last = result.prediction
            if self._async:
                last = self._drain() or last
            session.progress.end_practice_session(last_ts)
            session.performance.print_report()

        if self._mode == "test" and target_class is not None and last is not None:
            elapsed = (last_ts - first_ts) if first_ts is not None and last_ts is not None else 0.0
            result = self._session.progress.record_test_result(target_class, last, elapsed)
            logger.info(self._feedback.test_message(last))
            logger.info("Test %s: %s", target_class, "correct" if result.is_correct else "incorrect")
        elif last is not None:
            logger.info("%s (%s)", self._feedback.summary_message(last.confidence),
                        self._feedback.confidence_level(last.confidence))
        return last

    def _step(self, hands, target_class, timestamp):
        if not self._async:
            result = self._session.process_frame(hands, target_class, timestamp)
            return [result] if result is not None else []
        results = []
        polled = self._session.poll()
        if polled is not None:
            results.append(polled)
        self._session.submit_frame(hands, target_class, timestamp)
        return results

    def _drain(self):
        """Wait for the last offloaded frame to finish."""
        while self._session.has_pending:
            result = self._session.poll()
            if result is None:
                time.sleep(0.005)
            elif not result.prediction.is_sentinel:
                return result.prediction
        return None


def load_recording(path):
    """Read the frame list from a JSON recording."""
    with open(path, "r") as f:
        data = json.load(f)
    frames = data.get("frames", []) if isinstance(data, dict) else data
    logger.info("Loaded %d frames from %s", len(frames), path)
    return frames


def load_progress(path):
    """Read a progress snapshot written by ``--export``."""
    with open(path, "r") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError("top level is %s, not an object" % type(data).__name__)
    return data


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Sign tutor - replay hand landmarks through sign recognition"
    )
    parser.add_argument("recording", help="JSON landmark recording")
    parser.add_argument(
        "--mode", choices=["practice", "test"], default="practice",
        help="Record practice attempts or a single test answer"
    )
    parser.add_argument("--target", type=str, default=None, help="Target sign label")
    parser.add_argument("--config", type=str, default=None, help="Path to config.yaml")
    parser.add_argument("--restore", type=str, default=None,
                        help="Progress JSON to restore before replaying")
    parser.add_argument("--export", type=str, default=None,
                        help="Write progress JSON here ('-' for stdout, the default with --target)")
    parser.add_argument("--version", action="version", version="%(prog)s " + __version__)
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)

    config = Config()
    config.load(config_path=args.config)

    log_cfg = config.logging
    setup_logging(
        level=log_cfg.get("level", "INFO"),
        log_file=log_cfg.get("file"),
        max_size_mb=log_cfg.get("max_size_mb", 10),
        backup_count=log_cfg.get("backup_count", 3),
    )

    logger.info("=" * 60)
    logger.info("  SIGN TUTOR %s  (mode: %s, target: %s)", __version__, args.mode, args.target or "-")
    logger.info("=" * 60)

    try:
        frames = load_recording(args.recording)
    except (OSError, ValueError) as e:
        logger.error("Cannot read recording %s: %s", args.recording, e)
        return 1

    saved = None
    if args.restore:
        try:
            saved = load_progress(args.restore)
        except (OSError, ValueError) as e:
            logger.error("Cannot restore progress from %s: %s", args.restore, e)
            return 1

    app = SignTutorReplay(config, mode=args.mode)
    if saved is not None:
        app.session.progress.restore_state(saved)

    app.run(frames, target_class=args.target)

    # Progress goes to stdout for a targeted run unless a file was named
    export = args.export or ("-" if args.target else None)
    if export:
        state = json.dumps(app.session.progress.export_state(), indent=2)
        if export == "-":
            sys.stdout.write(state + "\n")
        else:
            with open(export, "w") as f:
                f.write(state)
            logger.info("Progress written to %s", export)
    return 0


if __name__ == "__main__":
    sys.exit(main())
