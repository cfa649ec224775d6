"""Microphone waveform visualization."""

from edgelab.audio.analyser import Analyser
from edgelab.audio.inputs import AudioInput, DeviceUnavailable, MicrophoneInput
from edgelab.audio.waveform import (
    BAR_COUNT,
    VisualizerState,
    WaveformVisualizer,
    compute_bars,
)

__all__ = [
    "Analyser",
    "AudioInput",
    "BAR_COUNT",
    "DeviceUnavailable",
    "MicrophoneInput",
    "VisualizerState",
    "WaveformVisualizer",
    "compute_bars",
]
