from __future__ import annotations

from pathlib import Path

import PIL.Image
import pytest

import explore
from fractals import FractalSelection


def _config(*args: str):
    parser = explore.build_parser()
    return explore.resolve_config(parser.parse_args(list(args)), parser)


class TestResolveConfig:
    def test_defaults(self) -> None:
        config = _config()
        assert config.selection is FractalSelection.KOCH
        assert (config.width, config.height) == (800, 600)
        assert config.view.zoom == 1.0
        assert config.output_path.name == "koch.png"
        assert config.background == (0, 0, 0, 0)

    def test_button_presses_and_drags(self) -> None:
        config = _config("--zoom-in", "3", "--zoom-out", "1", "--pan", "10", "5", "--pan", "-3", "1")
        assert config.view.zoom == pytest.approx(1.2 ** 2)
        assert config.view.pan == (7.0, 6.0)

    def test_output_suffix_added(self, tmp_path: Path) -> None:
        config = _config("--output", str(tmp_path / "flake"), "--format", "jpg")
        assert config.output_path == (tmp_path / "flake.jpg").resolve()

    def test_background_colour(self) -> None:
        assert _config("--background", "#ffffff").background == (255, 255, 255, 255)

    @pytest.mark.parametrize(
        "args",
        [
            ["--zoom", "0"],
            ["--zoom", "-2"],
            ["--zoom", "1e308", "--zoom-in", "5"],
            ["--width", "0"],
            ["--zoom-in", "-1"],
            ["--band-rows", "0"],
            ["--fractal", "julia"],
            ["--output", "x.jpg"],
            ["--background", "not-a-colour"],
        ],
    )
    def test_rejects_bad_arguments(self, args: list[str]) -> None:
        with pytest.raises(SystemExit) as excinfo:
            _config(*args)
        assert excinfo.value.code == 2


class TestMain:
    def test_writes_koch_image(self, tmp_path: Path) -> None:
        output = tmp_path / "out" / "koch.png"
        assert explore.main(["--width", "200", "--height", "150", "--output", str(output)]) == 0
        with PIL.Image.open(output) as image:
            assert image.size == (200, 150)
            assert image.mode == "RGBA"

    def test_writes_annotated_mandelbrot(self, tmp_path: Path) -> None:
        output = tmp_path / "set.png"
        explore.main([
            "--fractal", "mandelbrot", "--width", "48", "--height", "32",
            "--pan", "24", "16", "--annotate", "--output", str(output),
        ])
        with PIL.Image.open(output) as image:
            assert image.size == (48, 32)

    def test_jpeg_drops_alpha(self, tmp_path: Path) -> None:
        output = tmp_path / "gasket.jpg"
        explore.main([
            "--fractal", "sierpinski", "--width", "120", "--height", "120",
            "--format", "jpg", "--output", str(output),
        ])
        with PIL.Image.open(output) as image:
            assert image.format == "JPEG"
            assert image.mode == "RGB"
