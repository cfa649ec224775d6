"""Audio capture sources for the waveform visualizer."""

import logging
from typing import Optional, Protocol

import numpy as np


logger = logging.getLogger(__name__)

DEFAULT_SAMPLE_RATE = 44100


class DeviceUnavailable(Exception):
    """Raised when no capture device can be opened or read."""


class AudioInput(Protocol):
    """A live mono sample source with an acquire/release lifecycle."""

    def open(self) -> None:
        """Acquire the capture device. Raises DeviceUnavailable on failure."""
        ...

    def read(self) -> np.ndarray:
        """Return the most recent samples as float32 in [-1, 1]."""
        ...

    def close(self) -> None:
        """Release the capture device."""
        ...


class MicrophoneInput:
    """Default microphone via PortAudio.

    Reads are non-blocking: each call drains whatever frames the driver has
    buffered since the previous call into a rolling window of
    ``buffer_size`` samples.
    """

    def __init__(
        self,
        sample_rate: int = DEFAULT_SAMPLE_RATE,
        buffer_size: int = 1024,
        device: Optional[int] = None,
    ):
        self.sample_rate = sample_rate
        self.buffer_size = buffer_size
        self.device = device
        self._stream = None
        self._buffer = np.zeros(buffer_size, dtype=np.float32)

    @property
    def is_open(self) -> bool:
        return self._stream is not None

    def open(self) -> None:
        if self._stream is not None:
            return

        try:
            import sounddevice as sd
        except OSError as e:
            # Raised at import time when the PortAudio library is missing.
            raise DeviceUnavailable(f"PortAudio not available: {e}") from e

        try:
            stream = sd.InputStream(
                samplerate=self.sample_rate,
                channels=1,
                dtype="float32",
                device=self.device,
            )
        except (sd.PortAudioError, ValueError) as e:
            raise DeviceUnavailable(str(e)) from e

        try:
            stream.start()
        except sd.PortAudioError as e:
            stream.close()
            raise DeviceUnavailable(str(e)) from e

        logger.debug("Microphone opened at %d Hz", self.sample_rate)
        self._stream = stream
        self._buffer = np.zeros(self.buffer_size, dtype=np.float32)

    def read(self) -> np.ndarray:
        if self._stream is None:
            raise DeviceUnavailable("Microphone is not open")

        import sounddevice as sd

        try:
            available = self._stream.read_available
            if available:
                data, overflowed = self._stream.read(available)
                if overflowed:
                    logger.debug("Input overflow, %d frames read", available)
                chunk = np.asarray(data, dtype=np.float32)[:, 0]
                self._buffer = np.concatenate([self._buffer, chunk])[-self.buffer_size:]
        except sd.PortAudioError as e:
            raise DeviceUnavailable(str(e)) from e

        return self._buffer.copy()

    def close(self) -> None:
        stream, self._stream = self._stream, None
        if stream is None:
            return
        try:
            stream.stop()
        finally:
            stream.close()
        logger.debug("Microphone closed")
