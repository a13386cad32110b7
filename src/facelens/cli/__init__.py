"""Command-line interface for facelens."""

import argparse
import logging
import sys

from facelens.cli.utils import StderrFilter, configure_log_levels, suppress_thirdparty_noise

# Apply third-party noise suppression early
suppress_thirdparty_noise()


def _positive_float(value: str) -> float:
    number = float(value)
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be positive, got {value}")
    return number


def _add_common_args(parser):
    """Add --config, --device args to a parser."""
    parser.add_argument("--config", type=str, metavar="PATH", help="Path to config YAML file")
    parser.add_argument("--device", type=str, default=None, help="Device for ML (default: from config, cpu)")
    parser.add_argument(
        "--breakdown", action="store_true",
        help="Draw every expression above 10%% under each face box",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="facelens",
        description="facelens - Face detection, landmarks, age/gender and expression overlay",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  facelens live                          # Webcam window (s: start/stop, q: quit)
  facelens live --image face.jpg         # u: analyze face.jpg
  facelens image face.jpg -o out.png     # One-shot analysis, save overlay + panel
  facelens info                          # Backend availability and config
""",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable verbose logging"
    )
    sub = parser.add_subparsers(dest="command", help="Available commands")

    # facelens live
    live_p = sub.add_parser("live", help="Interactive webcam window")
    live_p.add_argument("--camera", type=int, default=None, help="Camera index (default: 0)")
    live_p.add_argument("--period", type=_positive_float, default=None, help="Detection period in seconds (default: 0.3)")
    live_p.add_argument("--image", type=str, metavar="PATH", help="Image analyzed when 'u' is pressed")
    live_p.add_argument(
        "--loop-image", type=str, metavar="PATH",
        help="Use a still image as the live source instead of the camera",
    )
    live_p.add_argument("--autostart", action="store_true", help="Start the stream immediately")
    live_p.add_argument(
        "--stop-stream", action="store_true",
        help="Stop the live stream on upload instead of rejecting the upload",
    )
    _add_common_args(live_p)

    # facelens image
    image_p = sub.add_parser("image", help="Analyze a single image")
    image_p.add_argument("path", help="Path to image file")
    image_p.add_argument("--output", "-o", type=str, help="Save overlay + panel to file")
    image_p.add_argument("--no-window", action="store_true", help="Do not open a result window")
    _add_common_args(image_p)

    # facelens info
    info_p = sub.add_parser("info", help="Show backend availability and resolved config")
    info_p.add_argument("--config", type=str, metavar="PATH", help="Path to config YAML file")

    return parser


def main(argv=None):
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG)
    else:
        logging.basicConfig(level=logging.INFO)
        configure_log_levels()

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    StderrFilter().install()

    from facelens.cli import commands

    if args.command == "live":
        code = commands.run_live(args)
    elif args.command == "image":
        code = commands.run_image(args)
    elif args.command == "info":
        code = commands.run_info(args)
    else:
        parser.print_help()
        code = 1

    sys.exit(code or 0)


if __name__ == "__main__":
    main()
