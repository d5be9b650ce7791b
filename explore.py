import os
import sys
from dataclasses import dataclass
from pathlib import Path

_VERBOSE_FLAGS = {"--verbose", "-v"}
_cli_verbose = any(arg in _VERBOSE_FLAGS for arg in sys.argv[1:])
_env_log_level = os.environ.get("TF_CPP_MIN_LOG_LEVEL")
_suppress_messages = (not _cli_verbose) and _env_log_level != "0"

if _suppress_messages and _env_log_level is None:
    os.environ["TF_CPP_MIN_LOG_LEVEL"] = "3"

VERBOSE = _cli_verbose


def log(message, *args, **kwargs):
    if VERBOSE:
        print(message, *args, **kwargs)


import tensorflow as tf

if _suppress_messages:
    tf.get_logger().setLevel("ERROR")
    for handler in tf.get_logger().handlers:
        handler.setLevel("ERROR")

import PIL.ImageColor
import PIL.ImageDraw
import PIL.ImageFont

from fractals import (
    EscapeTimeEngine,
    FractalError,
    FractalRenderer,
    FractalSelection,
    RasterSurface,
    ViewState,
    ViewStore,
)

log("TensorFlow version: %s" % tf.__version__)


def select_device():
    """Use the first GPU when one is visible, the CPU otherwise."""

    gpus = tf.config.list_physical_devices('GPU')
    if not gpus:
        log("No GPU found, using CPU")
        return '/CPU:0'
    try:
        for gpu in gpus:
            tf.config.experimental.set_memory_growth(gpu, True)
    except RuntimeError as e:
        log(e)
        return '/CPU:0'
    log("GPU found, using %s" % gpus[0].name)
    return '/GPU:0'


from argparse import ArgumentParser


@dataclass(frozen=True)
class ExploreConfig:
    selection: FractalSelection
    width: int
    height: int
    view: ViewState
    output_path: Path
    image_format: str
    colormap: str | None
    background: tuple[int, int, int, int]
    band_rows: int
    annotate: bool


def build_parser():
    parser = ArgumentParser(description="Render a Koch snowflake, Sierpinski triangle or Mandelbrot set.")

    parser.add_argument('--fractal', dest='fractal', default='koch',
                        choices=[member.value for member in FractalSelection],
                        help='which fractal to draw')

    parser.add_argument('--width', type=int, dest='width', metavar='WIDTH', default=800,
                        help='canvas width in pixels')

    parser.add_argument('--height', type=int, dest='height', metavar='HEIGHT', default=600,
                        help='canvas height in pixels')

    parser.add_argument('--zoom', type=float, dest='zoom', metavar='ZOOM', default=1.0,
                        help='starting zoom factor')

    parser.add_argument('--zoom-in', type=int, dest='zoom_in', metavar='STEPS', default=0,
                        help='press the zoom-in button STEPS times (x1.2 each)')

    parser.add_argument('--zoom-out', type=int, dest='zoom_out', metavar='STEPS', default=0,
                        help='press the zoom-out button STEPS times (/1.2 each)')

    parser.add_argument('--pan', type=float, nargs=2, action='append', dest='pan', metavar=('DX', 'DY'),
                        help='drag the view by DX, DY pixels; may be repeated')

    parser.add_argument('--output', dest='output', metavar='PATH', default=None,
                        help='image file to write (default: <fractal>.<format>)')

    parser.add_argument('--format', dest='format', default='png',
                        help='image format used when writing the output')

    parser.add_argument('--colormap', dest='colormap', default=None,
                        help='matplotlib colormap for the Mandelbrot set instead of the HSL ramp')

    parser.add_argument('--background', dest='background', default=None,
                        help='canvas colour behind vector fractals, e.g. #ffffff (default: transparent)')

    parser.add_argument('--band-rows', type=int, dest='band_rows', metavar='ROWS', default=64,
                        help='rows iterated per Mandelbrot band')

    parser.add_argument('--annotate', action='store_true', dest='annotate',
                        help='overlay the view state and detail budget')

    parser.add_argument('--verbose', '-v', action='store_true', dest='verbose',
                        help='show progress and TensorFlow diagnostics')

    return parser


def _pil_format_name(ext):
    upper = ext.upper()
    if upper == "JPG":
        return "JPEG"
    if upper == "TIF":
        return "TIFF"
    return upper


def resolve_config(opt, parser):
    """Validate parsed arguments and apply the button presses and drags."""

    if opt.width <= 0 or opt.height <= 0:
        parser.error("--width and --height must be positive.")
    if opt.zoom_in < 0 or opt.zoom_out < 0:
        parser.error("--zoom-in and --zoom-out take a non-negative number of steps.")
    if opt.band_rows <= 0:
        parser.error("--band-rows must be positive.")

    try:
        selection = FractalSelection.parse(opt.fractal)
        store = ViewStore(ViewState(zoom=opt.zoom))
        for _ in range(opt.zoom_in):
            store.zoom_in()
        for _ in range(opt.zoom_out):
            store.zoom_out()
        for dx, dy in opt.pan or ():
            store.drag(dx, dy)
    except FractalError as exc:
        parser.error(str(exc))

    image_format = (opt.format or "png").lower().lstrip(".") or "png"
    if opt.output:
        output_path = Path(opt.output).expanduser()
        suffix = output_path.suffix
        if suffix:
            if suffix.lower() != f".{image_format}":
                parser.error(f"--output extension {suffix} does not match --format {image_format}.")
        else:
            output_path = output_path.with_suffix(f".{image_format}")
    else:
        output_path = Path(f"{selection.value}.{image_format}")

    background = (0, 0, 0, 0)
    if opt.background:
        try:
            rgb = PIL.ImageColor.getrgb(opt.background)
        except ValueError:
            parser.error(f"Invalid --background colour '{opt.background}'.")
        background = tuple(rgb[:3]) + (rgb[3] if len(rgb) == 4 else 255,)

    return ExploreConfig(
        selection=selection,
        width=opt.width,
        height=opt.height,
        view=store.snapshot(),
        output_path=output_path.expanduser().resolve(),
        image_format=image_format,
        colormap=opt.colormap,
        background=background,
        band_rows=opt.band_rows,
        annotate=bool(opt.annotate),
    )


_FONT_CANDIDATES = (
    "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
    "/usr/share/fonts/truetype/liberation/LiberationSans-Regular.ttf",
    "/usr/share/fonts/truetype/freefont/FreeSans.ttf",
)


def _load_annotation_font(image):
    target_size = max(12, int(round(max(min(image.size), 1) * 0.028)))
    for path in _FONT_CANDIDATES:
        font_path = Path(path)
        if font_path.exists():
            try:
                return PIL.ImageFont.truetype(str(font_path), target_size)
            except OSError:
                continue
    return PIL.ImageFont.load_default()


def annotate_view(image, config, budget):
    """Draw the fractal name, view state and budget in the top-left corner."""

    if image.mode != "RGBA":
        image = image.convert("RGBA")

    budget_label = "iterations" if config.selection is FractalSelection.MANDELBROT else "depth"
    lines = [
        f"{config.selection.value}",
        f"zoom: {config.view.zoom:.6g}",
        f"pan: ({config.view.pan[0]:.6g}, {config.view.pan[1]:.6g})",
        f"{budget_label}: {budget}",
    ]
    text = "\n".join(lines)

    draw = PIL.ImageDraw.Draw(image, "RGBA")
    font = _load_annotation_font(image)
    spacing = max(2, int(round(getattr(font, "size", 12) * 0.3)))
    padding = max(6, int(round(getattr(font, "size", 12) * 0.5)))
    left, top, right, bottom = draw.multiline_textbbox((0, 0), text, font=font, spacing=spacing)

    box = [(12, 12), (12 + right - left + padding * 2, 12 + bottom - top + padding * 2)]
    draw.rectangle(box, fill=(10, 12, 24, 170), outline=(255, 255, 255, 45))
    draw.multiline_text((12 + padding + 1, 12 + padding + 1), text, font=font, fill=(0, 0, 0, 170), spacing=spacing)
    draw.multiline_text((12 + padding, 12 + padding), text, font=font, fill=(240, 244, 255, 255), spacing=spacing)
    return image


def write_single_image(image, output_path, image_format):
    """Write a single image to ``output_path`` using the provided format."""

    pil_format = _pil_format_name(image_format)
    if pil_format == "JPEG" and image.mode == "RGBA":
        image = image.convert("RGB")
    output_path.parent.mkdir(parents=True, exist_ok=True)
    image.save(str(output_path), format=pil_format)


def main(argv=None):
    parser = build_parser()
    opt = parser.parse_args(argv)

    global VERBOSE
    VERBOSE = bool(opt.verbose)

    config = resolve_config(opt, parser)
    log("Rendering %s at zoom %.6g, pan (%.6g, %.6g)" % (
        config.selection.value, config.view.zoom, config.view.pan[0], config.view.pan[1]))

    device = select_device() if config.selection is FractalSelection.MANDELBROT else None
    renderer = FractalRenderer(
        EscapeTimeEngine(band_rows=config.band_rows, colormap=config.colormap, device=device)
    )
    surface = RasterSurface(config.width, config.height, background=config.background)

    try:
        budget = renderer.render(config.selection, config.view, surface)
    except (FractalError, ValueError) as exc:
        parser.error(str(exc))

    log("Budget used: %d" % budget)

    image = surface.image
    if config.annotate:
        image = annotate_view(image, config, budget)

    write_single_image(image, config.output_path, config.image_format)
    print(config.output_path)
    return 0


if __name__ == '__main__':
    sys.exit(main())
