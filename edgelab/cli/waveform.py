"""Waveform command for EdgeLab CLI.

Shows a live microphone level meter while dictating trade notes.
"""

from typing import Optional

import click
from rich.console import Console
from rich.live import Live
from rich.panel import Panel
from rich.text import Text

console = Console()

ROWS = 8
BLOCKS = " ▁▂▃▄▅▆▇█"


def render_bars(bars: list[float], rows: int = ROWS) -> Text:
    """Render bar heights in [0, 1] as a block-character column chart."""
    steps = len(BLOCKS) - 1
    text = Text()

    for row in range(rows, 0, -1):
        line = []
        for height in bars:
            filled = max(0.0, min(height, 1.0)) * rows - (row - 1)
            if filled >= 1:
                line.append(BLOCKS[-1])
            elif filled <= 0:
                line.append(" ")
            else:
                line.append(BLOCKS[int(filled * steps)])
        text.append("".join(line), style="cyan")
        if row > 1:
            text.append("\n")

    return text


class _FallbackInput:
    """Audio input that is never available, forcing the fallback animation."""

    def open(self) -> None:
        from edgelab.audio.inputs import DeviceUnavailable

        raise DeviceUnavailable("microphone disabled with --fallback")

    def read(self):
        from edgelab.audio.inputs import DeviceUnavailable

        raise DeviceUnavailable("microphone disabled with --fallback")

    def close(self) -> None:
        pass


@click.command()
@click.option("--seconds", type=click.FloatRange(min=0, min_open=True), default=None, help="Stop after N seconds.")
@click.option("--fps", type=click.IntRange(min=1, max=120), default=None, help="Frames per second.")
@click.option("--fallback", is_flag=True, help="Skip the microphone and show the idle animation.")
@click.option("--device", type=int, default=None, help="Input device index.")
def waveform(seconds: Optional[float], fps: Optional[int], fallback: bool, device: Optional[int]) -> None:
    """Show a live waveform of your microphone.

    Press Ctrl+C to stop. Without a usable microphone the bars
    keep moving with a random animation.

    \b
    Examples:
      edgelab waveform
      edgelab waveform --seconds 10 --fps 30
    """
    from edgelab.audio.inputs import MicrophoneInput
    from edgelab.audio.waveform import VisualizerState, WaveformVisualizer
    from edgelab.config import get_waveform_fps, load_config

    frame_rate = fps or get_waveform_fps(load_config())
    audio_input = _FallbackInput() if fallback else MicrophoneInput(device=device)
    visualizer = WaveformVisualizer(audio_input=audio_input)

    state = visualizer.start()
    subtitle = (
        "[green]● listening[/green]"
        if state == VisualizerState.STREAMING
        else "[yellow]○ no microphone, showing animation[/yellow]"
    )

    def panel(bars: list[float]) -> Panel:
        return Panel(
            render_bars(bars),
            title="[bold]Voice[/bold]",
            subtitle=subtitle,
            border_style="cyan",
        )

    try:
        with Live(panel(visualizer.bars), console=console, refresh_per_second=frame_rate, transient=True) as live:
            visualizer.run(lambda bars: live.update(panel(bars)), fps=frame_rate, duration=seconds)
    except KeyboardInterrupt:
        pass
    finally:
        visualizer.stop()

    console.print("[dim]Stopped.[/dim]")
