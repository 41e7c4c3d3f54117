"""
Tests for Logging and Performance Utilities
============================================
"""

import logging
import time

import pytest

from sign_tutor.core.types import AttemptRecord, ClassificationMode, Prediction
from sign_tutor.modules.utils.logger import SignLogger, log_timing, setup_logging
from sign_tutor.modules.utils.performance_monitor import PIPELINE_STAGES, PerformanceMonitor


class TestPerformanceMonitor:
    """Test suite for PerformanceMonitor."""

    def test_initial_state(self):
        monitor = PerformanceMonitor()

        assert monitor.frame_count == 0
        assert monitor.fps == 0.0
        assert set(monitor.get_metrics()["latencies_ms"]) == set(PIPELINE_STAGES)

    def test_measure_records_stage(self):
        monitor = PerformanceMonitor()

        with monitor.measure("classify"):
            time.sleep(0.01)

        assert monitor.get_stage_latency("classify") >= 5.0

    def test_measure_records_on_exception(self):
        monitor = PerformanceMonitor()

        with pytest.raises(RuntimeError):
            with monitor.measure("classify"):
                raise RuntimeError("fail")

        assert monitor.get_stage_latency("classify") > 0.0

    def test_drop_rate(self):
        monitor = PerformanceMonitor()
        for _ in range(3):
            monitor.tick()
        monitor.record_drop()

        metrics = monitor.get_metrics()

        assert metrics["total_frames"] == 3
        assert metrics["dropped_frames"] == 1
        assert metrics["drop_rate"] == 25.0

    def test_rolling_window(self):
        monitor = PerformanceMonitor(window_size=3)
        for ms in (100.0, 1.0, 2.0, 3.0):
            monitor.record_stage("total", ms)

        assert monitor.total_latency_ms == pytest.approx(2.0)

    def test_reset(self):
        monitor = PerformanceMonitor()
        monitor.tick()
        monitor.record_drop()
        monitor.record_stage("smooth", 1.0)

        monitor.reset()

        assert monitor.frame_count == 0
        assert monitor.dropped_frames == 0
        assert monitor.get_stage_latency("smooth") == 0.0


class TestLogging:
    """Test suite for logging helpers."""

    def test_setup_logging_with_file(self, tmp_path):
        log_file = tmp_path / "logs" / "tutor.log"

        root = setup_logging(level="DEBUG", log_file=str(log_file))
        logging.getLogger("sign_tutor.test").debug("written to file")
        for handler in root.handlers:
            handler.flush()

        assert root.level == logging.DEBUG
        assert "written to file" in log_file.read_text()
        for handler in list(root.handlers):
            handler.close()
            root.removeHandler(handler)

    def test_sign_logger_history(self, caplog):
        sign_logger = SignLogger()
        prediction = Prediction(label="B", confidence=0.75, corrections=("hint",),
                                mode=ClassificationMode.STATIC)

        with caplog.at_level(logging.INFO, logger="sign_events"):
            sign_logger.log_prediction(prediction, hand_index=1, latency_ms=3.2)
            sign_logger.log_prediction(Prediction.no_hand())

        assert sign_logger.total_predictions == 2
        assert sign_logger.get_history(1)[0]["sign"] == "NO_HAND"
        assert sign_logger.get_history()[0]["mode"] == "static"
        assert "Sign: B" in caplog.text

    def test_log_attempt(self, caplog):
        attempt = AttemptRecord(timestamp=0.0, predicted_class="A", confidence=0.9,
                                target_class="A", is_correct=True)

        with caplog.at_level(logging.INFO, logger="sign_events"):
            SignLogger().log_attempt(attempt)

        assert "correct" in caplog.text

    def test_log_timing_preserves_result(self, caplog):
        @log_timing
        def double(x):
            return x * 2

        with caplog.at_level(logging.DEBUG):
            assert double(4) == 8

        assert double.__name__ == "double"
        assert "double took" in caplog.text


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
