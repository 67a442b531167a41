"""Tests for the command line interface."""

import math

import pytest
from typer.testing import CliRunner

from circle_gesture.cli import app
from circle_gesture.recorder import TracePlayer

runner = CliRunner()


class TestGenerate:
    def test_generate_circle(self, tmp_path):
        path = tmp_path / "circle.json"
        result = runner.invoke(app, ["generate", "circle", "-o", str(path)])
        assert result.exit_code == 0
        assert TracePlayer.load(path).sample_count == 40

    def test_generate_compact(self, tmp_path):
        result = runner.invoke(app, ["generate", "spiral", "-o", str(tmp_path / "s"), "--compact"])
        assert result.exit_code == 0
        assert (tmp_path / "s.npz").exists()

    def test_generate_circle_radius(self, tmp_path):
        path = tmp_path / "wide.json"
        result = runner.invoke(app, ["generate", "circle", "-o", str(path), "--radius", "0.5"])
        assert result.exit_code == 0
        radii = [math.hypot(s.x, s.y) for s in TracePlayer.load(path).play()]
        assert radii == pytest.approx([0.5] * 40)

    def test_generate_square_radius(self, tmp_path):
        path = tmp_path / "square.json"
        result = runner.invoke(app, ["generate", "square", "-o", str(path), "--radius", "0.2"])
        assert result.exit_code == 0
        first = TracePlayer.load(path).get_sample(0)
        assert (first.x, first.y) == pytest.approx((0.2, 0.0))

    def test_radius_rejected_for_line(self, tmp_path):
        path = tmp_path / "line.json"
        result = runner.invoke(app, ["generate", "line", "-o", str(path), "--radius", "0.5"])
        assert result.exit_code == 1
        assert not path.exists()

    def test_unknown_shape(self, tmp_path):
        result = runner.invoke(app, ["generate", "hexagram", "-o", str(tmp_path / "x.json")])
        assert result.exit_code == 1


class TestReplay:
    def test_replay_circle(self, tmp_path):
        path = tmp_path / "circle.json"
        runner.invoke(app, ["generate", "circle", "-o", str(path)])
        result = runner.invoke(app, ["replay", str(path)])
        assert result.exit_code == 0
        assert "performed" in result.output
        assert "1 circle(s)" in result.output

    def test_replay_pixels(self, tmp_path):
        path = tmp_path / "circle.json"
        runner.invoke(app, ["generate", "circle", "-o", str(path), "--pixels", "--width", "1280", "--height", "720"])
        result = runner.invoke(app, ["replay", str(path)])
        assert result.exit_code == 0
        assert "1 circle(s)" in result.output

    def test_replay_spiral(self, tmp_path):
        path = tmp_path / "spiral.json"
        runner.invoke(app, ["generate", "spiral", "-o", str(path)])
        result = runner.invoke(app, ["replay", str(path)])
        assert result.exit_code == 0
        assert "0 circle(s)" in result.output

    def test_replay_with_config(self, tmp_path):
        trace = tmp_path / "circle.json"
        settings = tmp_path / "settings.yml"
        settings.write_text("circle:\n  circle_close_tolerance: 0.01\n")
        runner.invoke(app, ["generate", "circle", "-o", str(trace)])
        result = runner.invoke(app, ["replay", str(trace), "--config", str(settings)])
        assert result.exit_code == 0
        assert "0 circle(s)" in result.output

    def test_replay_missing_file(self, tmp_path):
        result = runner.invoke(app, ["replay", str(tmp_path / "nope.json")])
        assert result.exit_code == 1

    def test_replay_invalid_config(self, tmp_path):
        trace = tmp_path / "circle.json"
        settings = tmp_path / "settings.yml"
        settings.write_text("circle:\n  idle_timeout: 0\n")
        runner.invoke(app, ["generate", "circle", "-o", str(trace)])
        result = runner.invoke(app, ["replay", str(trace), "--config", str(settings)])
        assert result.exit_code == 1


class TestBenchmark:
    def test_benchmark_runs(self):
        result = runner.invoke(app, ["benchmark", "--iterations", "3"])
        assert result.exit_code == 0
        assert "Circles detected: 3/3" in result.output

    def test_benchmark_rejects_zero_iterations(self):
        result = runner.invoke(app, ["benchmark", "--iterations", "0"])
        assert result.exit_code == 2
        assert not isinstance(result.exception, ZeroDivisionError)
