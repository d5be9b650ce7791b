from __future__ import annotations

import shutil
import subprocess
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

EXAMPLES_ROOT = Path("examples/cli-options")
BASE_ARGS = ["--width", "320", "--height", "240"]


@dataclass
class Example:
    name: str
    args: list[str]
    output: Path

    def full_args(self) -> list[str]:
        return [sys.executable, "explore.py", *BASE_ARGS, *self.args, "--output", str(self.output)]


def _example(name: str, filename: str, *args: str) -> Example:
    return Example(name=name, args=list(args), output=EXAMPLES_ROOT / name / filename)


EXAMPLES: list[Example] = [
    _example("koch", "snowflake.png", "--fractal", "koch"),
    _example("koch-zoom-in", "snowflake-deep.png", "--fractal", "koch", "--zoom-in", "8"),
    _example("sierpinski", "gasket.png", "--fractal", "sierpinski", "--background", "#ffffff"),
    _example("sierpinski-pan", "gasket-panned.png", "--fractal", "sierpinski", "--zoom", "4", "--pan", "120", "-80"),
    _example("mandelbrot", "set.png", "--fractal", "mandelbrot", "--pan", "160", "120"),
    _example("mandelbrot-zoom-out", "set-wide.png", "--fractal", "mandelbrot", "--zoom-out", "3", "--pan", "160", "120"),
    _example("mandelbrot-colormap", "set-magma.png", "--fractal", "mandelbrot", "--colormap", "magma", "--pan", "160", "120"),
    _example("annotate", "annotated.png", "--fractal", "mandelbrot", "--annotate", "--zoom", "2.5", "--pan", "200", "90"),
    _example("jpeg", "snowflake.jpg", "--fractal", "koch", "--format", "jpg", "--background", "#000000"),
]


def _ensure_clean(paths: Iterable[Path]) -> None:
    for path in paths:
        if path.exists():
            if path.is_dir():
                shutil.rmtree(path)
            else:
                path.unlink()


def _prepare(example: Example) -> None:
    _ensure_clean([example.output.parent])
    example.output.parent.mkdir(parents=True, exist_ok=True)


def _verify(example: Example) -> None:
    if not example.output.is_file():
        raise RuntimeError(f"Expected file {example.output} was not created")


def main() -> None:
    EXAMPLES_ROOT.mkdir(parents=True, exist_ok=True)
    for example in EXAMPLES:
        print(f"\n[cli-example] {example.name}")
        _prepare(example)
        completed = subprocess.run(example.full_args(), check=True)
        if completed.returncode != 0:
            raise RuntimeError(f"Example {example.name} failed with {completed.returncode}")
        _verify(example)
    print("\nAll CLI examples generated successfully.")


if __name__ == "__main__":
    main()
