"""Frequency and time-domain analysis of microphone samples.

Produces the same byte-scaled views a browser analyser node exposes: an FFT
magnitude spectrum mapped onto 0-255 between two decibel limits, and the raw
waveform mapped onto 0-255 around a midpoint of 128.
"""

import numpy as np


DEFAULT_FFT_SIZE = 1024
DEFAULT_SMOOTHING = 0.1
DEFAULT_MIN_DECIBELS = -90.0
DEFAULT_MAX_DECIBELS = -10.0
DEFAULT_GAIN = 3.0


def blackman_window(size: int) -> np.ndarray:
    """Periodic Blackman window (alpha = 0.16)."""
    n = np.arange(size)
    return (
        0.42
        - 0.5 * np.cos(2 * np.pi * n / size)
        + 0.08 * np.cos(4 * np.pi * n / size)
    )


class Analyser:
    """Stateful spectrum analyser.

    Frequency data is smoothed against the previous frame, so one analyser
    should be used per input stream and reset when the stream restarts.
    """

    def __init__(
        self,
        fft_size: int = DEFAULT_FFT_SIZE,
        smoothing: float = DEFAULT_SMOOTHING,
        min_decibels: float = DEFAULT_MIN_DECIBELS,
        max_decibels: float = DEFAULT_MAX_DECIBELS,
        gain: float = DEFAULT_GAIN,
    ):
        """Initialize the analyser.

        Args:
            fft_size: Samples per analysis frame; must be a power of two.
            smoothing: Weight of the previous frame in [0, 1).
            min_decibels: Level mapped to byte 0.
            max_decibels: Level mapped to byte 255.
            gain: Linear amplification applied to input samples.
        """
        if fft_size < 32 or fft_size & (fft_size - 1):
            raise ValueError(f"fft_size must be a power of two >= 32, got {fft_size}")
        if not 0 <= smoothing < 1:
            raise ValueError(f"smoothing must be in [0, 1), got {smoothing}")
        if min_decibels >= max_decibels:
            raise ValueError("min_decibels must be below max_decibels")

        self.fft_size = fft_size
        self.smoothing = smoothing
        self.min_decibels = min_decibels
        self.max_decibels = max_decibels
        self.gain = gain

        self._window = blackman_window(fft_size)
        self._previous = np.zeros(self.bin_count)

    @property
    def bin_count(self) -> int:
        """Number of frequency bins (half the FFT size)."""
        return self.fft_size // 2

    def reset(self) -> None:
        """Forget smoothing history."""
        self._previous = np.zeros(self.bin_count)

    def _frame(self, samples: np.ndarray) -> np.ndarray:
        """Take the latest ``fft_size`` samples, zero-padding at the front."""
        samples = np.asarray(samples, dtype=np.float64).ravel() * self.gain
        if len(samples) >= self.fft_size:
            return samples[-self.fft_size:]
        frame = np.zeros(self.fft_size)
        if len(samples):
            frame[-len(samples):] = samples
        return frame

    def frequency_bytes(self, samples: np.ndarray) -> np.ndarray:
        """Byte-scaled magnitude spectrum of the latest frame.

        Args:
            samples: Mono float samples in [-1, 1].

        Returns:
            uint8 array of length ``bin_count``.
        """
        frame = self._frame(samples) * self._window
        magnitude = np.abs(np.fft.rfft(frame))[: self.bin_count] / self.fft_size

        smoothed = self.smoothing * self._previous + (1 - self.smoothing) * magnitude
        self._previous = smoothed

        with np.errstate(divide="ignore"):
            decibels = 20 * np.log10(smoothed)

        scale = 255.0 / (self.max_decibels - self.min_decibels)
        scaled = np.floor(scale * (decibels - self.min_decibels))
        return np.clip(np.nan_to_num(scaled, nan=0.0, neginf=0.0), 0, 255).astype(np.uint8)

    def time_domain_bytes(self, samples: np.ndarray) -> np.ndarray:
        """Byte-scaled waveform of the latest frame.

        Returns:
            uint8 array of length ``bin_count``, silence at 128.
        """
        frame = self._frame(samples)[: self.bin_count]
        return np.clip(np.floor(128 * (1 + frame)), 0, 255).astype(np.uint8)
