"""
Tests for the stock spectrum transforms and beat sinks.
"""

from unittest.mock import MagicMock

import numpy as np
import pytest

from src.beats.capabilities import (
    BeatEvent,
    BeatEventRecorder,
    BeatSink,
    DecibelScaleTransform,
    MagnitudeSpectrumTransform,
    SimpleBeatSink,
    SpectrumTransform,
)
from src.beats.state import BeatType


class TestInterfaces:
    """Test the abstract capability types."""

    def test_cannot_instantiate_abstract_transform(self):
        with pytest.raises(TypeError):
            SpectrumTransform()

    def test_cannot_instantiate_abstract_sink(self):
        with pytest.raises(TypeError):
            BeatSink()


class TestMagnitudeSpectrumTransform:
    """Test the numpy FFT transform."""

    def test_output_length_matches_request(self):
        transform = MagnitudeSpectrumTransform()
        spectrum = transform(np.random.default_rng(0).normal(size=256), 256)

        assert spectrum.shape == (256,)
        assert np.all(spectrum >= 0)

    def test_short_input_is_padded(self):
        spectrum = MagnitudeSpectrumTransform()(np.ones(10), 64)
        assert spectrum.shape == (64,)

    def test_long_input_is_truncated(self):
        spectrum = MagnitudeSpectrumTransform()(np.ones(100), 64)
        assert spectrum.shape == (64,)

    def test_sine_peak_rectangular_window(self):
        length = 64
        t = np.arange(length)
        samples = np.sin(2 * np.pi * 8 * t / length)

        spectrum = MagnitudeSpectrumTransform(window=None)(samples, length)

        # Full-length spectrum of a real signal: peak and its mirror, each N/2 before normalization
        assert spectrum[8] == pytest.approx(0.5)
        assert spectrum[length - 8] == pytest.approx(0.5)
        spectrum[[8, length - 8]] = 0.0
        assert np.max(spectrum) < 1e-9

    def test_unnormalized_scale(self):
        length = 32
        spectrum = MagnitudeSpectrumTransform(window=None, normalize=False)(np.ones(length), length)
        assert spectrum[0] == pytest.approx(length)

    def test_window_cached(self):
        transform = MagnitudeSpectrumTransform(window="hann")
        transform(np.ones(32), 32)
        transform(np.ones(32), 32)

        assert list(transform._window_cache) == [32]


class TestDecibelScaleTransform:
    """Test the clipped decibel mapping."""

    def test_mapping(self):
        inner = MagicMock(return_value=np.array([1.0, 0.1, 1e-10, 0.0]))
        transform = DecibelScaleTransform(inner, decibel_cutoff=100.0)

        result = transform(np.zeros(4), 4)

        np.testing.assert_allclose(result, [1.0, 0.8, 0.0, 0.0], atol=1e-12)
        inner.assert_called_once()

    def test_silence_maps_to_zero(self):
        transform = DecibelScaleTransform(lambda samples, length: np.full(length, 0.0005))

        result = transform(None, 8)

        assert result.shape == (8,)
        assert not result.any()

    def test_output_bounded(self):
        rng = np.random.default_rng(3)
        transform = DecibelScaleTransform(MagnitudeSpectrumTransform(), decibel_cutoff=60.0)

        result = transform(rng.normal(0.0, 0.5, 128), 128)

        assert result.shape == (128,)
        assert np.all(result >= 0.0)
        assert np.all(result <= 1.0)

    @pytest.mark.parametrize("cutoff", [0.0, -10.0])
    def test_rejects_non_positive_cutoff(self, cutoff):
        with pytest.raises(ValueError):
            DecibelScaleTransform(MagnitudeSpectrumTransform(), decibel_cutoff=cutoff)


class TestSimpleBeatSink:
    """Test the flag-style sink."""

    def test_initially_clear(self):
        sink = SimpleBeatSink()

        assert sink.beat == {beat_type: False for beat_type in BeatType}
        assert sink.energy == {beat_type: 0.0 for beat_type in BeatType}
        assert sink.any() is False

    def test_records_and_resets(self):
        sink = SimpleBeatSink()
        sink(BeatType.MID, 12.5)

        assert sink.beat[BeatType.MID] is True
        assert sink.beat[BeatType.LOW] is False
        assert sink.energy[BeatType.MID] == 12.5
        assert sink.any() is True

        sink.reset()
        assert sink.any() is False
        assert sink.energy[BeatType.MID] == 0.0


class TestBeatEventRecorder:
    """Test the event-recording sink."""

    def test_records_events_with_frame_index(self):
        frame = {"index": 7}
        recorder = BeatEventRecorder(frame_source=lambda: frame["index"])

        recorder(BeatType.LOW, 3.0)
        frame["index"] = 9
        recorder(BeatType.HIGH, np.float32(4.5))

        assert recorder.events == [
            BeatEvent(frame_index=7, beat_type=BeatType.LOW, energy=3.0),
            BeatEvent(frame_index=9, beat_type=BeatType.HIGH, energy=4.5),
        ]
        assert isinstance(recorder.events[1].energy, float)

    def test_default_frame_index_is_sequence_number(self):
        recorder = BeatEventRecorder()
        recorder(BeatType.LOW, 1.0)
        recorder(BeatType.LOW, 1.0)

        assert [event.frame_index for event in recorder.events] == [0, 1]

    def test_forwards_to_sink(self):
        forward = MagicMock()
        recorder = BeatEventRecorder(forward=forward)

        recorder(BeatType.MID, 2.0)

        forward.assert_called_once_with(BeatType.MID, 2.0)

    def test_counts_and_clear(self):
        recorder = BeatEventRecorder()
        for beat_type in (BeatType.LOW, BeatType.LOW, BeatType.HIGH):
            recorder(beat_type, 1.0)

        assert recorder.counts() == {BeatType.LOW: 2, BeatType.MID: 0, BeatType.HIGH: 1}

        recorder.clear()
        assert recorder.events == []
