"""
Tests for Frame Buffer and Sequence Sampler
============================================
"""

import numpy as np
import pytest

from sign_tutor.core.types import BufferedFrame
from sign_tutor.modules.recognition.frame_buffer import FrameBuffer
from sign_tutor.modules.recognition.sequence_sampler import SequenceSampler

from conftest import make_frame


def filled_buffer(count, capacity=30):
    """Buffer holding frames whose features equal their push index."""
    buffer = FrameBuffer(capacity=capacity)
    for i in range(count):
        buffer.push(make_frame(float(i), timestamp=i * 0.1))
    return buffer


class TestFrameBuffer:
    """Test suite for FrameBuffer."""

    def test_starts_empty(self):
        buffer = FrameBuffer()

        assert len(buffer) == 0
        assert buffer.is_empty
        assert buffer.latest is None
        assert buffer.capacity == 30

    def test_never_exceeds_capacity(self):
        """After 35 pushes only the newest 30 remain, oldest first."""
        buffer = filled_buffer(35)

        assert len(buffer) == 30
        assert buffer.is_full
        values = [frame.features[0] for frame in buffer.snapshot(30)]
        assert values == [float(i) for i in range(5, 35)]

    def test_snapshot_returns_most_recent(self):
        buffer = filled_buffer(12)

        values = [frame.features[0] for frame in buffer.snapshot(4)]

        assert values == [8.0, 9.0, 10.0, 11.0]

    def test_snapshot_fewer_available(self):
        buffer = filled_buffer(3)

        assert len(buffer.snapshot(15)) == 3
        assert buffer.snapshot(0) == []

    def test_snapshot_does_not_mutate(self):
        buffer = filled_buffer(10)

        snapshot = buffer.snapshot(5)
        snapshot.clear()

        assert len(buffer) == 10

    def test_clear(self):
        buffer = filled_buffer(10)

        buffer.clear()

        assert buffer.is_empty
        assert buffer.span_seconds == 0.0

    def test_span_seconds(self):
        buffer = filled_buffer(11)

        assert buffer.span_seconds == pytest.approx(1.0)

    def test_frames_are_immutable(self):
        """Buffered features cannot be modified after insertion."""
        buffer = filled_buffer(1)

        with pytest.raises(ValueError):
            buffer.latest.features[0] = 99.0

    def test_invalid_capacity(self):
        with pytest.raises(ValueError):
            FrameBuffer(capacity=0)

    def test_frame_feature_length_checked(self):
        with pytest.raises(ValueError):
            BufferedFrame(np.zeros(10), 0.0)


class TestSequenceSampler:
    """Test suite for SequenceSampler."""

    @pytest.fixture
    def sampler(self):
        return SequenceSampler(target_length=15)

    def test_exact_length_unchanged(self, sampler):
        """15 frames come back as those 15 frames, in order."""
        buffer = filled_buffer(15)

        sequence = sampler.sample(buffer)

        assert sequence.shape == (15, 63)
        assert list(sequence[:, 0]) == [float(i) for i in range(15)]

    def test_uses_most_recent_window(self, sampler):
        """With a full buffer the newest 15 frames are sampled."""
        buffer = filled_buffer(30)

        sequence = sampler.sample(buffer)

        assert list(sequence[:, 0]) == [float(i) for i in range(15, 30)]

    def test_short_buffer_repeats_last_frame(self, sampler):
        """5 frames for 15 slots: valid indices only, last frame repeated."""
        buffer = filled_buffer(5)

        sequence = sampler.sample(buffer)

        assert sequence.shape == (15, 63)
        assert list(sequence[:, 0]) == [0.0, 1.0, 2.0, 3.0, 4.0] + [4.0] * 10

    def test_empty_buffer_gives_zeros(self, sampler):
        sequence = sampler.sample(FrameBuffer())

        assert sequence.shape == (15, 63)
        assert np.all(sequence == 0.0)

    def test_stride_over_wider_window(self):
        """A 30-frame window sampled to 15 takes every second frame."""
        sampler = SequenceSampler(target_length=15, window_size=30)
        buffer = filled_buffer(30)

        sequence = sampler.sample(buffer)

        assert list(sequence[:, 0]) == [float(i) for i in range(0, 30, 2)]

    @pytest.mark.parametrize("n", [1, 5, 14, 15, 16, 29, 30, 45])
    def test_source_indices_in_range(self, n):
        indices = SequenceSampler.source_indices(n, 15)

        assert len(indices) == 15
        assert all(0 <= i < n for i in indices)
        assert indices == sorted(indices)

    def test_readiness(self, sampler):
        assert not sampler.is_ready(filled_buffer(9))
        assert sampler.is_ready(filled_buffer(10))

    def test_from_config(self):
        sampler = SequenceSampler.from_config({"target_length": 10, "min_ready_frames": 4})

        assert sampler.target_length == 10
        assert sampler.window_size == 10
        assert sampler.is_ready(filled_buffer(4))

    def test_invalid_target_length(self):
        with pytest.raises(ValueError):
            SequenceSampler(target_length=0)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
