"""circle-gesture CLI — the main entry point for all operations.

Usage:
    circle-gesture serve       — Start the WebSocket server
    circle-gesture replay      — Feed a recorded trace through the recognizer
    circle-gesture generate    — Write a synthetic trace (circle, spiral, ...)
    circle-gesture benchmark   — Measure recognizer throughput
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Optional

import typer

from circle_gesture.config import CircleConfig, ScreenSize, load_settings

app = typer.Typer(
    name="circle-gesture",
    help="⭕ Real-time circle gesture recognition for pointer and touch input.",
    add_completion=False,
)


def _setup_logging(level: str):
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _load(config_path: Optional[str]) -> tuple[CircleConfig, Optional[ScreenSize]]:
    if not config_path:
        return CircleConfig(), None
    if not Path(config_path).exists():
        typer.echo(f"❌ Config file not found: {config_path}", err=True)
        raise typer.Exit(1)
    try:
        return load_settings(config_path)
    except ValueError as e:
        typer.echo(f"❌ Invalid config: {e}", err=True)
        raise typer.Exit(1)


@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", help="Bind address"),
    port: int = typer.Option(8765, help="Port"),
    config: Optional[str] = typer.Option(None, "--config", help="Path to settings YAML"),
    log_level: str = typer.Option("info", help="Log level"),
):
    """Start the WebSocket circle recognition server."""
    import uvicorn
    from circle_gesture.server import state

    _setup_logging(log_level)
    circle_config, screen = _load(config)
    state.apply_config(circle_config, screen or state.screen)
    if config:
        typer.echo(f"⚙️  Loaded settings: {config}")

    typer.echo(f"🚀 Starting circle-gesture server on {host}:{port}")
    uvicorn.run("circle_gesture.server:app", host=host, port=port, log_level=log_level)


@app.command()
def replay(
    trace: str = typer.Argument(..., help="Path to a .json or .npz trace"),
    config: Optional[str] = typer.Option(None, "--config", help="Path to settings YAML"),
    realtime: bool = typer.Option(False, help="Play at original timing"),
    speed: float = typer.Option(1.0, help="Playback speed multiplier"),
    log_level: str = typer.Option("warning", help="Log level"),
):
    """Feed a recorded trace through the recognizer and print transitions."""
    from circle_gesture.recognizer import GestureRecognizer, Transition
    from circle_gesture.recorder import TracePlayer

    _setup_logging(log_level)
    path = Path(trace)
    if not path.exists():
        typer.echo(f"❌ Trace not found: {trace}", err=True)
        raise typer.Exit(1)

    circle_config, screen = _load(config)
    player = TracePlayer.load(path)
    recognizer = GestureRecognizer(circle_config, screen or player.screen)
    typer.echo(f"▶️  Replaying {path.name} ({player.sample_count} samples, {player.duration:.2f}s)")

    counts = {"started": 0, "canceled": 0, "performed": 0}

    def on_event(event):
        counts[event.transition.value] += 1
        line = f"   t={event.timestamp:8.3f}  {event.transition.value}"
        if event.reason is not None:
            line += f" ({event.reason.value})"
        if event.transition is Transition.PERFORMED:
            line += f"  ⭕ {event.angle_sum:.0f}° in {event.duration:.2f}s"
        typer.echo(line)

    recognizer.on_transition(on_event)
    samples = player.play_realtime(speed=speed) if realtime else player.play()
    for sample in samples:
        recognizer.on_sample(sample.position, sample.timestamp)

    typer.echo(
        f"\n✅ Replay complete. {counts['performed']} circle(s), "
        f"{counts['canceled']} cancel(s)."
    )


@app.command()
def generate(
    shape: str = typer.Argument(..., help="circle, spiral, square or line"),
    output: str = typer.Option("trace.json", "-o", help="Output file path"),
    samples: Optional[int] = typer.Option(None, help="Number of samples"),
    radius: Optional[float] = typer.Option(None, min=0.0, help="Shape radius (normalized units)"),
    duration: Optional[float] = typer.Option(None, help="Trace duration in seconds"),
    jitter: float = typer.Option(0.0, help="Uniform noise amplitude (normalized units)"),
    seed: int = typer.Option(0, help="Jitter random seed"),
    pixels: bool = typer.Option(False, help="Write raw screen pixels instead of [-1, 1]"),
    width: int = typer.Option(1920, help="Screen width for --pixels"),
    height: int = typer.Option(1080, help="Screen height for --pixels"),
    compact: bool = typer.Option(False, help="Save in compact .npz format"),
):
    """Write a synthetic trace to disk."""
    from circle_gesture.recorder import SampleRecorder
    from circle_gesture.traces import TRACE_SHAPES, add_jitter, to_pixels

    if shape not in TRACE_SHAPES:
        typer.echo(f"❌ Unknown shape '{shape}'. Choose from: {', '.join(TRACE_SHAPES)}", err=True)
        raise typer.Exit(1)

    kwargs = {}
    if samples is not None:
        kwargs["points_per_side" if shape == "square" else "n_samples"] = samples
    if radius is not None:
        if shape == "line":
            typer.echo("❌ --radius does not apply to line traces", err=True)
            raise typer.Exit(1)
        kwargs["start_radius" if shape == "spiral" else "radius"] = radius
    if duration is not None:
        kwargs["duration"] = duration
    trace = TRACE_SHAPES[shape](**kwargs)

    if jitter > 0:
        trace = add_jitter(trace, amount=jitter, seed=seed)

    screen = ScreenSize(width=width, height=height)
    if pixels:
        trace = to_pixels(trace, screen)

    recorder = SampleRecorder(screen=screen)
    recorder.start()
    recorder.extend(trace)
    recorder.stop()

    if compact:
        path = recorder.save_compact(output)
    else:
        path = Path(output)
        recorder.save(path)

    typer.echo(f"💾 Wrote {recorder.sample_count} {shape} samples to {path}")


@app.command()
def benchmark(
    iterations: int = typer.Option(200, min=1, help="Number of circle traces to feed"),
):
    """Measure how fast the recognizer consumes samples."""
    from circle_gesture.recognizer import GestureRecognizer, Transition
    from circle_gesture.traces import add_jitter, circle_trace

    typer.echo(f"⚡ Running benchmark: {iterations} circles")

    recognizer = GestureRecognizer()
    trace = add_jitter(circle_trace(n_samples=44, turns=1.1, duration=0.9), amount=0.003, seed=42)
    span = trace[-1].timestamp + 1.0

    times = []
    performed = 0
    for i in range(iterations):
        offset = i * span
        for sample in trace:
            t0 = time.perf_counter()
            result = recognizer.on_sample(sample.position, sample.timestamp + offset)
            times.append(time.perf_counter() - t0)
            if Transition.PERFORMED in result:
                performed += 1
        recognizer.reset()

    avg_us = sum(times) / len(times) * 1e6
    p95_us = sorted(times)[int(len(times) * 0.95)] * 1e6
    rate = 1e6 / avg_us if avg_us > 0 else 0

    typer.echo(f"\n📊 Results:")
    typer.echo(f"   Samples:          {len(times)}")
    typer.echo(f"   Circles detected: {performed}/{iterations}")
    typer.echo(f"   Average latency:  {avg_us:.1f} µs")
    typer.echo(f"   P95 latency:      {p95_us:.1f} µs")
    typer.echo(f"   Throughput:       {rate:,.0f} samples/s")


def main():
    app()


if __name__ == "__main__":
    main()
