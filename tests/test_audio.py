"""Property-based tests for the waveform visualizer.

**Feature: edgelab-journal**
"""

import sys
import types

import numpy as np
import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from edgelab.audio.analyser import Analyser
from edgelab.audio.inputs import DeviceUnavailable, MicrophoneInput
from edgelab.audio.waveform import (
    BAR_COUNT,
    MIN_BAR_HEIGHT,
    VisualizerState,
    WaveformVisualizer,
    compute_bars,
)


class FakeInput:
    """Audio input producing a fixed sine tone."""

    def __init__(self, amplitude: float = 0.5, size: int = 1024):
        t = np.arange(size) / 44100
        self.samples = (amplitude * np.sin(2 * np.pi * 220 * t)).astype(np.float32)
        self.opened = 0
        self.closed = 0

    def open(self) -> None:
        self.opened += 1

    def read(self) -> np.ndarray:
        return self.samples

    def close(self) -> None:
        self.closed += 1


class DeniedInput:
    """Audio input whose device can never be acquired."""

    def __init__(self):
        self.closed = 0

    def open(self) -> None:
        raise DeviceUnavailable("permission denied")

    def read(self) -> np.ndarray:
        raise DeviceUnavailable("not open")

    def close(self) -> None:
        self.closed += 1


class FlakyInput(FakeInput):
    """Audio input that disconnects after a number of reads."""

    def __init__(self, reads_before_failure: int):
        super().__init__()
        self.remaining = reads_before_failure

    def read(self) -> np.ndarray:
        if self.remaining == 0:
            raise DeviceUnavailable("device unplugged")
        self.remaining -= 1
        return super().read()


class BrokenCloseInput(FakeInput):
    def close(self) -> None:
        raise RuntimeError("already closed")


byte_arrays = st.lists(st.integers(min_value=0, max_value=255), min_size=50, max_size=1024)


class TestBarHeightBounds:
    """
    **Feature: edgelab-journal, Property 7: Bar Height Bounds**

    *For any* analyser output, every bar height is in [0.15, 1.0].
    """

    @given(frequency=byte_arrays, waveform=byte_arrays)
    @settings(max_examples=200)
    def test_bars_in_range(self, frequency, waveform):
        bars = compute_bars(frequency, waveform)

        assert len(bars) == BAR_COUNT
        for height in bars:
            assert MIN_BAR_HEIGHT <= height <= 1.0

    def test_silence_is_flat(self):
        bars = compute_bars([0] * 512, [128] * 512)

        assert len(set(bars)) == 1
        assert bars[0] == pytest.approx(max(0.05 ** 0.6, MIN_BAR_HEIGHT))

    def test_full_scale_saturates(self):
        bars = compute_bars([255] * 512, [255] * 512)

        assert all(height == pytest.approx(1.0) for height in bars)

    def test_voice_band_weighted_up(self):
        """Central bars get more weight than edge bars for the same input."""
        frequency = [40] * 512
        waveform = [128] * 512

        bars = compute_bars(frequency, waveform)

        assert bars[25] > bars[0]
        assert bars[25] > bars[49]
        assert bars[10] == bars[0]
        assert bars[11] == bars[25]

    def test_short_input_does_not_fail(self):
        bars = compute_bars([200] * 10, [200] * 10)

        assert len(bars) == BAR_COUNT
        assert all(MIN_BAR_HEIGHT <= h <= 1.0 for h in bars)


class TestStreamingBars:
    """
    **Feature: edgelab-journal, Property 8: Streaming Bar Bounds**

    *For any* signal amplitude, every tick while streaming emits bars in
    [0.15, 1.0].
    """

    @given(amplitude=st.floats(min_value=0.0, max_value=1.0))
    @settings(max_examples=50)
    def test_ticks_in_range(self, amplitude):
        visualizer = WaveformVisualizer(audio_input=FakeInput(amplitude))

        assert visualizer.start() == VisualizerState.STREAMING
        for _ in range(5):
            bars = visualizer.tick()
            assert len(bars) == BAR_COUNT
            assert all(MIN_BAR_HEIGHT <= h <= 1.0 for h in bars)
        visualizer.stop()


class TestStopIdempotence:
    """
    **Feature: edgelab-journal, Property 9: Safe Stop**

    Stopping before start, or twice in a row, never raises.
    """

    def test_stop_before_start(self):
        visualizer = WaveformVisualizer(audio_input=FakeInput())

        visualizer.stop()

        assert visualizer.state == VisualizerState.IDLE

    def test_stop_twice(self):
        audio = FakeInput()
        visualizer = WaveformVisualizer(audio_input=audio)
        visualizer.start()
        visualizer.tick()

        visualizer.stop()
        visualizer.stop()

        assert audio.closed == 1
        assert visualizer.bars == [0.0] * BAR_COUNT
        assert visualizer.state == VisualizerState.IDLE

    def test_close_errors_swallowed(self):
        visualizer = WaveformVisualizer(audio_input=BrokenCloseInput())
        visualizer.start()

        visualizer.stop()

        assert visualizer.state == VisualizerState.IDLE

    def test_idle_tick_is_zero(self):
        visualizer = WaveformVisualizer(audio_input=FakeInput())

        assert visualizer.tick() == [0.0] * BAR_COUNT


class TestFallbackAnimation:
    """
    **Feature: edgelab-journal, Property 10: Fallback Distribution**

    When the microphone cannot be acquired, bars are uniform in [0.3, 1.0]
    instead of zero.
    """

    def test_denied_device_falls_back(self):
        visualizer = WaveformVisualizer(
            audio_input=DeniedInput(), rng=np.random.default_rng(7)
        )

        assert visualizer.start() == VisualizerState.FALLBACK

        samples = []
        for _ in range(200):
            bars = visualizer.tick()
            assert all(0.3 <= h <= 1.0 for h in bars)
            samples.extend(bars)

        assert np.mean(samples) == pytest.approx(0.65, abs=0.02)
        assert min(samples) < 0.35
        assert max(samples) > 0.95

    def test_fallback_stop_does_not_close_device(self):
        audio = DeniedInput()
        visualizer = WaveformVisualizer(audio_input=audio)
        visualizer.start()

        visualizer.stop()

        assert audio.closed == 0

    def test_disconnect_mid_stream(self):
        audio = FlakyInput(reads_before_failure=2)
        visualizer = WaveformVisualizer(audio_input=audio)
        visualizer.start()

        visualizer.tick()
        visualizer.tick()
        bars = visualizer.tick()

        assert visualizer.state == VisualizerState.FALLBACK
        assert audio.closed == 1
        assert all(0.3 <= h <= 1.0 for h in bars)


class TestRunLoop:
    """Frame loop honors duration and always stops."""

    def test_runs_for_duration(self):
        clock = {"now": 0.0}

        def fake_clock():
            return clock["now"]

        def fake_sleep(seconds):
            clock["now"] += seconds

        frames = []
        visualizer = WaveformVisualizer(
            audio_input=FakeInput(), clock=fake_clock, sleep=fake_sleep
        )

        visualizer.run(frames.append, fps=4, duration=1.0)

        assert len(frames) == 5
        assert visualizer.state == VisualizerState.IDLE

    def test_stop_from_callback_finishes_frame(self):
        frames = []
        visualizer = WaveformVisualizer(audio_input=FakeInput(), sleep=lambda s: None)

        def on_frame(bars):
            frames.append(bars)
            visualizer.stop()

        visualizer.run(on_frame, fps=60)

        assert len(frames) == 1
        assert visualizer.bars == [0.0] * BAR_COUNT

    def test_rejects_non_positive_fps(self):
        visualizer = WaveformVisualizer(audio_input=FakeInput())

        with pytest.raises(ValueError):
            visualizer.run(lambda bars: None, fps=0)


class TestAnalyser:
    """Byte-scaled views match the analyser node conventions."""

    def test_silence(self):
        analyser = Analyser()
        silence = np.zeros(1024)

        assert analyser.frequency_bytes(silence).max() == 0
        assert set(analyser.time_domain_bytes(silence).tolist()) == {128}

    def test_output_lengths(self):
        analyser = Analyser(fft_size=256)
        samples = np.random.default_rng(1).uniform(-1, 1, 300)

        assert len(analyser.frequency_bytes(samples)) == 128
        assert len(analyser.time_domain_bytes(samples)) == 128

    def test_tone_peaks_at_its_bin(self):
        analyser = Analyser(smoothing=0.0)
        n = np.arange(1024)
        tone = 0.5 * np.sin(2 * np.pi * 64 * n / 1024)

        spectrum = analyser.frequency_bytes(tone)

        assert int(np.argmax(spectrum)) == 64
        assert spectrum[64] > 200

    def test_short_input_is_padded(self):
        analyser = Analyser()

        assert len(analyser.time_domain_bytes(np.ones(10) * 0.1)) == 512

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"fft_size": 1000},
            {"fft_size": 16},
            {"smoothing": 1.0},
            {"min_decibels": -10, "max_decibels": -90},
        ],
    )
    def test_rejects_bad_settings(self, kwargs):
        with pytest.raises(ValueError):
            Analyser(**kwargs)


class FakePortAudioError(Exception):
    pass


class FakeStream:
    """Stand-in for sounddevice.InputStream."""

    fail_start = False

    def __init__(self, **kwargs):
        self.kwargs = kwargs
        self.started = False
        self.stopped = False
        self.closed = False
        self.pending = np.zeros((0, 1), dtype=np.float32)

    def start(self) -> None:
        if self.fail_start:
            raise FakePortAudioError("Device unavailable")
        self.started = True

    @property
    def read_available(self) -> int:
        return len(self.pending)

    def read(self, frames: int):
        data, self.pending = self.pending[:frames], self.pending[frames:]
        return data, False

    def stop(self) -> None:
        self.stopped = True

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def fake_sounddevice(monkeypatch):
    """Install a fake sounddevice module that records created streams."""
    streams = []

    def input_stream(**kwargs):
        stream = FakeStream(**kwargs)
        streams.append(stream)
        return stream

    module = types.SimpleNamespace(PortAudioError=FakePortAudioError, InputStream=input_stream)
    monkeypatch.setitem(sys.modules, "sounddevice", module)
    monkeypatch.setattr(FakeStream, "fail_start", False)
    return streams


class TestMicrophoneInput:
    """The microphone releases its stream on every path out of open()."""

    def test_failed_start_closes_stream(self, fake_sounddevice):
        FakeStream.fail_start = True
        microphone = MicrophoneInput()

        with pytest.raises(DeviceUnavailable, match="Device unavailable"):
            microphone.open()

        assert fake_sounddevice[0].closed
        assert not microphone.is_open

    def test_open_read_close(self, fake_sounddevice):
        microphone = MicrophoneInput(buffer_size=4)
        microphone.open()
        stream = fake_sounddevice[0]
        assert stream.started
        assert stream.kwargs["channels"] == 1

        stream.pending = np.array([[0.1], [0.2], [0.3]], dtype=np.float32)
        samples = microphone.read()

        np.testing.assert_allclose(samples, [0.0, 0.1, 0.2, 0.3])
        assert stream.read_available == 0

        microphone.close()
        assert stream.stopped and stream.closed
        assert not microphone.is_open

    def test_read_before_open(self, fake_sounddevice):
        with pytest.raises(DeviceUnavailable):
            MicrophoneInput().read()
