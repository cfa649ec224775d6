"""Live voice-amplitude waveform.

Turns microphone input into a fixed row of bar heights, one row per frame.
When no microphone can be acquired the visualizer keeps animating with
random bars instead of failing.
"""

import logging
import time
from collections.abc import Callable, Sequence
from enum import Enum
from typing import Optional

import numpy as np

from edgelab.audio.analyser import Analyser
from edgelab.audio.inputs import AudioInput, DeviceUnavailable, MicrophoneInput


logger = logging.getLogger(__name__)

BAR_COUNT = 50
MIN_BAR_HEIGHT = 0.15
FALLBACK_RANGE = (0.3, 1.0)

MIDPOINT = 128
FREQUENCY_WEIGHT = 0.6
TIME_WEIGHT = 0.4
VOICE_WEIGHT = 1.5
EDGE_WEIGHT = 0.8
GAIN = 4.0
AVERAGE_WEIGHT = 1.5
PEAK_WEIGHT = 0.5
CURVE_EXPONENT = 0.6
CURVE_FLOOR = 0.05


class VisualizerState(str, Enum):
    """Lifecycle states of the visualizer."""

    IDLE = "idle"
    ACQUIRING = "acquiring"
    STREAMING = "streaming"
    FALLBACK = "fallback"


def compute_bars(
    frequency_data: Sequence[float],
    time_data: Sequence[float],
    bar_count: int = BAR_COUNT,
) -> list[float]:
    """Blend one frame of analyser output into bar heights.

    Each bar mixes a sampled frequency bin with a sampled waveform point,
    weights the middle 60% of bars up as the voice band, adds the frame's
    average and peak volume and applies a power curve so quiet input still
    moves the bars.

    Args:
        frequency_data: Byte-scaled magnitudes (0-255), length F.
        time_data: Byte-scaled waveform (0-255, silence at 128), length F.
        bar_count: Number of bars to produce.

    Returns:
        ``bar_count`` heights, each in [0.15, 1.0].
    """
    freq = np.clip(np.asarray(frequency_data, dtype=np.float64), 0, 255)
    deviation = np.abs(np.clip(np.asarray(time_data, dtype=np.float64), 0, 255) - MIDPOINT) / MIDPOINT

    avg_volume = float(deviation.mean()) if deviation.size else 0.0
    peak_volume = float(deviation.max()) if deviation.size else 0.0

    step = len(freq) // bar_count
    bars = []

    for i in range(bar_count):
        index = i * step
        freq_value = float(freq[index]) if index < len(freq) else 0.0

        time_index = int(i / bar_count * len(deviation))
        time_value = float(deviation[time_index]) if time_index < len(deviation) else 0.0

        voice_weight = VOICE_WEIGHT if bar_count * 0.2 < i < bar_count * 0.8 else EDGE_WEIGHT
        mixed = (freq_value / 255 * FREQUENCY_WEIGHT + time_value * TIME_WEIGHT) * voice_weight

        amplified = min(mixed * GAIN + avg_volume * AVERAGE_WEIGHT + peak_volume * PEAK_WEIGHT, 1.0)
        scaled = max(amplified, CURVE_FLOOR) ** CURVE_EXPONENT

        bars.append(max(scaled, MIN_BAR_HEIGHT))

    return bars


class WaveformVisualizer:
    """Frame-driven microphone visualizer.

    Call :meth:`tick` once per display frame, or let :meth:`run` drive the
    frames. :meth:`stop` is safe to call at any time, any number of times.
    """

    def __init__(
        self,
        audio_input: Optional[AudioInput] = None,
        analyser: Optional[Analyser] = None,
        bar_count: int = BAR_COUNT,
        rng: Optional[np.random.Generator] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.analyser = analyser or Analyser()
        self.audio_input: AudioInput = audio_input or MicrophoneInput(
            buffer_size=self.analyser.fft_size
        )
        self.bar_count = bar_count
        self._rng = rng or np.random.default_rng()
        self._clock = clock
        self._sleep = sleep

        self._state = VisualizerState.IDLE
        self._bars = [0.0] * bar_count
        self._running = False

    @property
    def state(self) -> VisualizerState:
        return self._state

    @property
    def bars(self) -> list[float]:
        """Current bar heights (a copy)."""
        return list(self._bars)

    @property
    def is_active(self) -> bool:
        return self._state in (VisualizerState.STREAMING, VisualizerState.FALLBACK)

    def start(self) -> VisualizerState:
        """Acquire the microphone, falling back to animation on failure.

        Returns:
            The state entered: STREAMING or FALLBACK.
        """
        if self.is_active:
            return self._state

        self._state = VisualizerState.ACQUIRING
        try:
            self.audio_input.open()
        except DeviceUnavailable as e:
            logger.warning("Microphone unavailable, using fallback animation: %s", e)
            self._state = VisualizerState.FALLBACK
        else:
            self.analyser.reset()
            self._state = VisualizerState.STREAMING
        return self._state

    def _fallback_bars(self) -> list[float]:
        low, high = FALLBACK_RANGE
        return self._rng.uniform(low, high, self.bar_count).tolist()

    def tick(self) -> list[float]:
        """Compute one frame of bar heights.

        Returns:
            The new bars; all zeros while idle.
        """
        if self._state == VisualizerState.STREAMING:
            try:
                samples = self.audio_input.read()
            except DeviceUnavailable as e:
                logger.warning("Microphone lost, using fallback animation: %s", e)
                self._release_input()
                self._state = VisualizerState.FALLBACK
                self._bars = self._fallback_bars()
            else:
                frequency = self.analyser.frequency_bytes(samples)
                waveform = self.analyser.time_domain_bytes(samples)
                self._bars = compute_bars(frequency, waveform, self.bar_count)
        elif self._state == VisualizerState.FALLBACK:
            self._bars = self._fallback_bars()

        return self.bars

    def run(
        self,
        on_frame: Callable[[list[float]], None],
        fps: float = 60.0,
        duration: Optional[float] = None,
    ) -> None:
        """Drive frames until stopped.

        Starts the visualizer if needed, then calls ``on_frame`` with each
        frame's bars. A frame that is in progress when :meth:`stop` is
        called completes, but no further frame is scheduled. The visualizer
        is always stopped on return.

        Args:
            on_frame: Receives the bars for each frame.
            fps: Target frame rate.
            duration: Optional run time in seconds.
        """
        if fps <= 0:
            raise ValueError(f"fps must be positive, got {fps}")

        self.start()
        self._running = True
        interval = 1.0 / fps
        started = self._clock()

        try:
            while self._running and self.is_active:
                frame_started = self._clock()
                on_frame(self.tick())

                if duration is not None and self._clock() - started >= duration:
                    break

                remaining = interval - (self._clock() - frame_started)
                if remaining > 0 and self._running:
                    self._sleep(remaining)
        finally:
            self.stop()

    def _release_input(self) -> None:
        try:
            self.audio_input.close()
        except Exception as e:
            logger.debug("Ignoring error while releasing audio input: %s", e)

    def stop(self) -> None:
        """Release the microphone and reset the bars to zero."""
        self._running = False
        if self._state == VisualizerState.STREAMING:
            self._release_input()
        self._state = VisualizerState.IDLE
        self._bars = [0.0] * self.bar_count
