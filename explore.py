import logging
import os
import sys
import time
import warnings
from argparse import ArgumentParser
from dataclasses import dataclass
from pathlib import Path

# TensorFlow reads TF_CPP_MIN_LOG_LEVEL when it is imported, before argparse runs.
VERBOSE = bool({"-v", "--verbose"} & set(sys.argv[1:]))
QUIET_TENSORFLOW = not VERBOSE and os.environ.get("TF_CPP_MIN_LOG_LEVEL") != "0"

if QUIET_TENSORFLOW:
    os.environ.setdefault("TF_CPP_MIN_LOG_LEVEL", "3")
    warnings.filterwarnings("ignore", message=r"Protobuf gencode version", category=UserWarning)


def log(message, *args, **kwargs):
    if VERBOSE:
        print(message, *args, **kwargs)


import numpy as np  # noqa: E402
import tensorflow as tf  # noqa: E402

if QUIET_TENSORFLOW:
    tf_logger = tf.get_logger()
    tf_logger.setLevel(logging.ERROR)
    for handler in tf_logger.handlers:
        handler.setLevel(logging.ERROR)

from fractal_engine import (  # noqa: E402
    DEFAULT_VIEWPORT,
    ColorScheme,
    FractalSession,
    GenerationConfig,
    GenerationStatus,
    GifRecorder,
    MatplotlibSurface,
    RasterBuffer,
    Viewport,
    is_drag_selection,
    parse_iterations,
    scale_factors,
    zoom_in_region,
)
from fractal_engine.batch import render_grid  # noqa: E402

gpus = tf.config.list_physical_devices('GPU')
DEVICE = '/GPU:0' if gpus else '/CPU:0'


@dataclass
class RunConfig:
    viewport: Viewport
    generation: GenerationConfig
    zooms: tuple[tuple[int, int, int, int], ...]
    zoom_out: int | None
    output_path: Path
    image_format: str
    gif_path: Path | None
    time_limit: float | None


class TeeSurface:
    """Forward every frame to several display surfaces."""

    def __init__(self, *surfaces):
        self.surfaces = surfaces

    def present(self, pixels, width, height):
        for surface in self.surfaces:
            surface.present(pixels, width, height)


def _positive_iterations(text):
    value = parse_iterations(text)
    if value is None:
        raise ValueError(f"'{text}' is not a positive integer")
    return value


def _zoom_rect(text):
    parts = text.split(',')
    if len(parts) != 4:
        raise ValueError("zoom rectangles must be TOP,LEFT,WIDTH,HEIGHT")
    return tuple(int(part) for part in parts)


def build_parser():
    parser = ArgumentParser(description='Render the Mandelbrot set with a segmented, cancellable worker pool.')

    parser.add_argument('--width', type=int, dest='width', help='width of the raster in pixels',
                        metavar='WIDTH', default=800)
    parser.add_argument('--height', type=int, dest='height', help='height of the raster in pixels',
                        metavar='HEIGHT', default=600)

    parser.add_argument('--left', type=float, default=DEFAULT_VIEWPORT.left,
                        help='real coordinate of the left edge of the viewport')
    parser.add_argument('--right', type=float, default=DEFAULT_VIEWPORT.right,
                        help='real coordinate of the right edge of the viewport')
    parser.add_argument('--top', type=float, default=DEFAULT_VIEWPORT.top,
                        help='imaginary coordinate of the top edge of the viewport')
    parser.add_argument('--bottom', type=float, default=DEFAULT_VIEWPORT.bottom,
                        help='imaginary coordinate of the bottom edge of the viewport')

    parser.add_argument('--max-iterations', type=str, dest='max_iterations',
                        help='iteration budget per point; points that use it all are drawn black',
                        metavar='MAX_ITERATIONS', default='1000')
    parser.add_argument('--segments', type=int, dest='segments', default=0,
                        help='number of worker segments; 0 uses one per logical core minus one')
    parser.add_argument('--scheme', type=str, dest='scheme', default=ColorScheme.CONTINUOUS.value,
                        help='color scheme: ' + ', '.join(f'"{scheme.value}"' for scheme in ColorScheme))
    parser.add_argument('--draw-interval', type=int, dest='draw_interval', default=100,
                        help='milliseconds between preview refreshes; 0 uses the default')

    parser.add_argument('--zoom', dest='zooms', action='append', metavar='TOP,LEFT,WIDTH,HEIGHT',
                        help='zoom into a pixel rectangle of the current image. May be repeated.')
    parser.add_argument('--zoom-out', type=int, dest='zoom_out', metavar='INDEX',
                        help='after zooming, go back to the history entry with this zoom index')

    parser.add_argument('--backend', choices=['threads', 'tensor'], default='threads',
                        help='"threads" renders progressively on a worker pool; "tensor" renders the final view in one TensorFlow pass.')
    parser.add_argument('--time-limit', type=float, dest='time_limit', default=None,
                        help='cancel each render after this many seconds, keeping the partial image')

    parser.add_argument('--output', dest='output', type=str, default=None,
                        help='destination of the final image')
    parser.add_argument('--format', type=str, dest='format', metavar='FORMAT', default='png',
                        help='file format for the final image. Can be any extension supported by Pillow. Default: "png".')
    parser.add_argument('--record-gif', dest='record_gif', type=str, default=None,
                        help='record every preview frame into this GIF file')
    parser.add_argument('--show', action='store_true',
                        help='display the render progressively in a matplotlib window')
    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Enable verbose logging, including TensorFlow and worker diagnostics.')

    return parser


def resolve_run_config(opt, parser):
    try:
        viewport = Viewport(left=opt.left, right=opt.right, top=opt.top, bottom=opt.bottom)
    except ValueError as exc:
        parser.error(str(exc))

    if opt.width <= 0 or opt.height <= 0:
        parser.error("--width and --height must be positive.")

    try:
        generation = GenerationConfig(
            max_iterations=_positive_iterations(opt.max_iterations),
            segment_count=opt.segments,
            color_scheme=ColorScheme.parse(opt.scheme),
            draw_interval_ms=opt.draw_interval,
        )
    except ValueError as exc:
        parser.error(str(exc))

    zooms = []
    for text in opt.zooms or []:
        try:
            rect = _zoom_rect(text)
        except ValueError as exc:
            parser.error(f"--zoom {text}: {exc}")
        if not is_drag_selection(rect[2], rect[3]):
            parser.error(f"--zoom {text}: selection is too small to zoom into.")
        zooms.append(rect)

    if opt.zoom_out is not None:
        if opt.backend == 'tensor':
            parser.error("--zoom-out requires the threads backend.")
        if not 1 <= opt.zoom_out <= len(zooms):
            parser.error(f"--zoom-out must be between 1 and the number of zooms ({len(zooms)}).")

    image_format = (opt.format or "png").lower().lstrip(".") or "png"
    output_path = Path(opt.output or f"fractal.{image_format}").expanduser()
    if output_path.suffix:
        if output_path.suffix.lower() != f".{image_format}":
            parser.error(f"--output extension {output_path.suffix} does not match --format {image_format}.")
    else:
        output_path = output_path.with_suffix(f".{image_format}")

    gif_path = None
    if opt.record_gif:
        if opt.backend == 'tensor':
            parser.error("--record-gif requires the threads backend.")
        gif_path = Path(opt.record_gif).expanduser()
        if gif_path.suffix.lower() != ".gif":
            gif_path = gif_path.with_suffix(".gif")

    return RunConfig(
        viewport=viewport,
        generation=generation,
        zooms=tuple(zooms),
        zoom_out=opt.zoom_out,
        output_path=output_path.resolve(),
        image_format=image_format,
        gif_path=gif_path.resolve() if gif_path is not None else None,
        time_limit=opt.time_limit,
    )


def run_tensor(run, width, height):
    viewport = run.viewport
    for top, left, rect_width, rect_height in run.zooms:
        x_scale, y_scale = scale_factors(viewport, width, height)
        viewport = zoom_in_region(viewport, x_scale, y_scale, top, left, rect_width, rect_height)
    log("rendering %s on %s" % (viewport, DEVICE))
    buffer = RasterBuffer.allocate(width, height, viewport)
    result = render_grid(buffer, run.generation, device=DEVICE)
    inside = int(np.count_nonzero(result.iterations == run.generation.max_iterations))
    log("%d of %d points did not escape" % (inside, buffer.pixel_count))
    return buffer


def _wait_for(session, window, time_limit):
    started = time.monotonic()
    while session.busy:
        if time_limit is not None and time.monotonic() - started > time_limit:
            session.stop()
        if window is not None:
            window.pump()
        else:
            time.sleep(0.01)
    status = session.join()
    if window is not None:
        window.pump()
    return status


def run_threads(run, width, height, window):
    surfaces = []
    gif = GifRecorder(run.gif_path) if run.gif_path is not None else None
    if gif is not None:
        surfaces.append(gif)
    if window is not None:
        surfaces.append(window)

    session = FractalSession(width, height, run.generation, surface=TeeSurface(*surfaces) if surfaces else None)
    try:
        session.render(run.viewport, wait=False)
        status = _wait_for(session, window, run.time_limit)
        print("view 0: %s" % status.value)

        for step, (top, left, rect_width, rect_height) in enumerate(run.zooms, start=1):
            session.zoom_in(top, left, rect_width, rect_height, wait=False)
            status = _wait_for(session, window, run.time_limit)
            print("view {0} out of {1}: {2}".format(step, len(run.zooms), status.value))
            if status is GenerationStatus.CANCELLED:
                log("render cancelled, keeping the partial image")

        if run.zoom_out is not None:
            target = next(entry for entry in session.history if entry.zoom_index == run.zoom_out)
            session.zoom_out(target)
            log("zoomed back out to %s" % target.viewport)
            if window is not None:
                window.pump()

        return session.image
    finally:
        session.close()
        if gif is not None:
            gif.close()


def main():
    parser = build_parser()
    opt = parser.parse_args()

    global VERBOSE
    VERBOSE = bool(opt.verbose)
    logging.basicConfig(
        level=logging.DEBUG if VERBOSE else logging.WARNING,
        format='%(asctime)s %(threadName)s %(name)s %(levelname)s %(message)s',
    )
    log("TensorFlow version: %s" % tf.__version__)

    run = resolve_run_config(opt, parser)
    log("segments: %d, scheme: %s" % (run.generation.resolved_segments(), run.generation.color_scheme.value))

    window = MatplotlibSurface() if opt.show else None

    if opt.backend == 'tensor':
        image = run_tensor(run, opt.width, opt.height)
        if window is not None:
            image.flush_to_display(window)
    else:
        image = run_threads(run, opt.width, opt.height, window)

    path = image.export(run.output_path, run.image_format)
    print("saved %s" % path)

    if window is not None:
        window.show()


if __name__ == '__main__':
    main()
