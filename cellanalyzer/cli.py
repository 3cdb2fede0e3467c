"""Command-line entry point: detect cells, apply known diameters, save results."""

from __future__ import annotations

import argparse
from dataclasses import replace
from pathlib import Path
from typing import Sequence

from .logger import DEFAULT_LOG_FILE, Logger
from .processor import DEBUG_IMAGE, ImageProcessor
from .export import SaveMode, save_results
from .settings import SettingsManager
from .verification import VerificationSession

NO_CELLS_MESSAGE = "Клетки не обнаружены на выбранных изображениях"

_PARAM_OPTIONS = (
    ("--dp", "dp", float, "inverse ratio of accumulator resolution to image resolution"),
    ("--min-dist", "min_dist", float, "minimum distance between detected centres"),
    ("--param1", "param1", float, "upper threshold of the Canny edge detector"),
    ("--param2", "param2", float, "accumulator threshold for circle centres"),
    ("--min-radius", "min_radius", int, "minimum circle radius"),
    ("--max-radius", "max_radius", int, "maximum circle radius"),
)


def _known_diameter(text: str) -> tuple[int, float]:
    index_text, sep, nm_text = text.partition("=")
    if not sep:
        raise argparse.ArgumentTypeError(f"expected INDEX=NM, got {text!r}")
    try:
        index = int(index_text)
        nm = float(nm_text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected INDEX=NM, got {text!r}") from None
    if index < 1:
        raise argparse.ArgumentTypeError("cell index must be 1 or more")
    return index, nm


def build_parser() -> argparse.ArgumentParser:
    """Return the argument parser of the command."""
    parser = argparse.ArgumentParser(
        prog="cellanalyzer",
        description="Detect cells in micrographs and measure their diameters.",
    )
    parser.add_argument("images", nargs="+", help="microscope images to analyse")
    group = parser.add_argument_group("detection parameters (default: saved settings)")
    for flag, dest, kind, help_text in _PARAM_OPTIONS:
        group.add_argument(flag, dest=dest, type=kind, default=None, help=help_text)
    parser.add_argument(
        "--known",
        metavar="INDEX=NM",
        type=_known_diameter,
        action="append",
        default=[],
        help="known diameter in nm of the cell with this 1-based index; repeatable",
    )
    parser.add_argument(
        "--mode",
        choices=[mode.value for mode in SaveMode],
        default=SaveMode.SEPARATE.value,
        help="save each image's results in its own folder or all in one",
    )
    parser.add_argument("--output-dir", type=Path, default=None, help="where 'results' is created")
    parser.add_argument("--no-save", action="store_true", help="do not write results")
    parser.add_argument("--config-dir", type=Path, default=None, help="settings directory")
    parser.add_argument("--debug-image", type=Path, default=Path(DEBUG_IMAGE))
    parser.add_argument("--log-file", type=Path, default=Path(DEFAULT_LOG_FILE))
    return parser


def _run(args: argparse.Namespace, parser: argparse.ArgumentParser, log: Logger) -> int:
    settings = SettingsManager(args.config_dir)
    overrides = {
        dest: getattr(args, dest)
        for _, dest, _, _ in _PARAM_OPTIONS
        if getattr(args, dest) is not None
    }
    params = replace(settings.hough_params, **overrides)
    settings.hough_params = params
    log.info("Parameters saved")

    processor = ImageProcessor(args.debug_image)
    log.info(f"Processing {len(args.images)} images")
    cells = processor.process_images(args.images, params)
    log.info(f"Detected {len(cells)} cells")

    if not cells:
        log.warning("No cells detected")
        print(NO_CELLS_MESSAGE)
        return 0

    session = VerificationSession(cells, settings)
    for index, nm in args.known:
        if index > len(session.entries):
            parser.error(f"no cell with index {index}; {len(session.entries)} detected")
        session.entries[index - 1].set_diameter_nm(nm)
    if args.known:
        session.recalculate()

    print(f"Detected {len(session.entries)} cells")
    for number, entry in enumerate(session.entries, start=1):
        print(f"{number}\t{entry.diameter_px}\t{entry.diameter_nm_text or '-'}")
    if session.coefficient_text:
        print(f"nm/pixel: {session.coefficient_text}")

    if not args.no_save:
        results = save_results(session.entries, args.output_dir, SaveMode(args.mode))
        print(f"Results saved to: {results.resolve()}")
    log.info("Analysis completed")
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Run the analysis and return the exit status."""
    parser = build_parser()
    args = parser.parse_args(argv)
    with Logger(args.log_file) as log:
        log.info("=" * 50)
        log.info("CellAnalyzer application started")
        log.info("=" * 50)
        try:
            return _run(args, parser, log)
        except Exception as exc:
            log.error(f"Fatal error: {exc}")
            return 1


if __name__ == "__main__":
    raise SystemExit(main())