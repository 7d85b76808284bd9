#!/usr/bin/env python3
"""vintagecam - vintage film photo processing.

This is the command-line entry point for processing local files without the
web server.

Usage:
    python -m vintagecam photo.jpg out.jpg --film-stock velvia
    python -m vintagecam photo.jpg out.png --crop 100,50,800,600 --grain
    python -m vintagecam --batch ./photos ./vintage --aspect-ratio 4:5
"""

import sys
import logging
import argparse
from pathlib import Path
from typing import Optional

from ._version import __version__
from .config import ConfigManager
from .config.manager import ConfigError
from .film import FilmStock
from .processing import ImageProcessor, ProcessingError, ProcessingOptions
from .processing.crop import ASPECT_RATIOS, CropRequest
from .processing.effects import GRAIN_SIGMAS


def setup_logging(verbose: bool = False, config: Optional[ConfigManager] = None) -> None:
    """Configure logging for the application.

    Args:
        verbose: If True, enable DEBUG level logging
        config: Configuration providing logging.file and logging.format
    """
    level = logging.DEBUG if verbose else logging.INFO

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter('%(levelname)s - %(name)s - %(message)s'))

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.addHandler(console_handler)

    log_file = config.get("logging.file") if config else None
    if log_file:
        log_path = Path(log_file).expanduser()
        try:
            log_path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_path)
        except OSError as e:
            root_logger.warning(f"Could not open log file {log_path}: {e}")
            return
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(
            config.get(
                "logging.format",
                "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
            )
        ))
        root_logger.addHandler(file_handler)


def parse_crop(value: str) -> CropRequest:
    """Parse an ``x,y,width,height`` crop argument."""
    parts = value.split(",")
    if len(parts) != 4:
        raise argparse.ArgumentTypeError("crop must be x,y,width,height")
    try:
        x, y, width, height = (int(p) for p in parts)
    except ValueError as e:
        raise argparse.ArgumentTypeError("crop values must be integers") from e
    if width <= 0 or height <= 0:
        raise argparse.ArgumentTypeError("crop width and height must be positive")
    return CropRequest(x=x, y=y, width=width, height=height)


def parse_arguments(argv=None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="vintagecam - apply a vintage film look to photos",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Square crop with the default classic_chrome look
  python -m vintagecam photo.jpg out.jpg

  # Velvia at 4:5 with grain and vignette
  python -m vintagecam photo.jpg out.jpg --film-stock velvia --aspect-ratio 4:5 \\
      --grain --vignette

  # Explicit crop rectangle
  python -m vintagecam photo.png out.png --crop 100,50,800,600

  # Process every image in a directory
  python -m vintagecam --batch ./photos ./vintage --film-stock portra_400
"""
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"vintagecam {__version__}"
    )

    parser.add_argument("input", help="Input image (or directory with --batch)")
    parser.add_argument("output", help="Output image (or directory with --batch)")

    parser.add_argument(
        "--batch",
        action="store_true",
        help="Treat input and output as directories"
    )

    # Processing options
    parser.add_argument(
        "--film-stock",
        default=FilmStock.CLASSIC_CHROME.value,
        choices=[stock.value for stock in FilmStock],
        help="Film stock to emulate (default: classic_chrome)"
    )
    parser.add_argument(
        "--aspect-ratio",
        default="1:1",
        choices=list(ASPECT_RATIOS),
        help="Centered crop aspect ratio (default: 1:1)"
    )
    parser.add_argument(
        "--crop",
        type=parse_crop,
        metavar="X,Y,W,H",
        help="Explicit crop rectangle (overrides --aspect-ratio)"
    )
    parser.add_argument("--grain", action="store_true", help="Add film grain")
    parser.add_argument(
        "--grain-intensity",
        type=float,
        default=0.15,
        help="Grain intensity 0-1 (default: 0.15)"
    )
    parser.add_argument(
        "--grain-size",
        default="fine",
        choices=list(GRAIN_SIGMAS),
        help="Grain size (default: fine)"
    )
    parser.add_argument("--vignette", action="store_true", help="Add vignette")
    parser.add_argument(
        "--vignette-intensity",
        type=float,
        default=0.3,
        help="Vignette intensity 0-1 (default: 0.3)"
    )

    # Configuration
    parser.add_argument(
        "--config",
        metavar="PATH",
        help="Path to config file (default: ~/.vintagecam/config.yaml)"
    )

    # Output control
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose debug logging"
    )
    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Suppress all output except errors"
    )

    return parser.parse_args(argv)


def build_options(args: argparse.Namespace) -> ProcessingOptions:
    """Build processing options from parsed arguments."""
    return ProcessingOptions(
        aspect_ratio=args.aspect_ratio,
        film_stock=FilmStock.parse(args.film_stock),
        crop=args.crop,
        add_grain=args.grain,
        grain_intensity=min(1.0, max(0.01, args.grain_intensity)),
        grain_size=args.grain_size,
        add_vignette=args.vignette,
        vignette_intensity=min(1.0, max(0.0, args.vignette_intensity)),
    )


def print_summary(stats) -> None:
    """Print batch processing summary.

    Args:
        stats: BatchProcessingStats object
    """
    print()
    print("=" * 70)
    print("Processing Summary")
    print("=" * 70)
    print()
    print(f"Total images:     {stats.total_images}")
    print(f"Processed:        {stats.processed} ✓")
    if stats.errors > 0:
        print(f"Errors:           {stats.errors} ✗")
        for result in stats.results:
            if not result.success:
                print(f"  - {result.filename}: {result.error}")
    print(f"Processing time:  {stats.total_time:.1f}s")
    if stats.total_images > 0:
        print(f"Avg per image:    {stats.total_time / stats.total_images:.1f}s")
    print()


def main(argv=None) -> int:
    """Main entry point for the vintagecam CLI.

    Returns:
        Exit code (0 for success, non-zero for errors)
    """
    args = parse_arguments(argv)
    logger = logging.getLogger(__name__)

    try:
        config = ConfigManager.load(config_path=args.config)
    except ConfigError as e:
        logging.basicConfig(level=logging.ERROR)
        logger.error(f"Configuration error: {e}")
        if not args.quiet:
            print(f"✗ Configuration Error: {e}")
        return 2

    if not args.quiet:
        setup_logging(args.verbose, config)
    else:
        logging.basicConfig(level=logging.ERROR)

    processor = ImageProcessor(
        jpeg_quality=int(config.get("processing.jpeg_quality", 90)),
        vignette_radius=float(config.get("processing.vignette_radius", 0.8)),
    )
    options = build_options(args)

    try:
        if args.batch:
            input_dir = Path(args.input)
            if not input_dir.is_dir():
                print(f"✗ Input directory not found: {input_dir}")
                return 2
            stats = processor.process_directory(input_dir, args.output, options)
            if not args.quiet:
                print_summary(stats)
            return 1 if stats.errors > 0 else 0

        output = processor.process_file(args.input, args.output, options)
        if not args.quiet:
            print(f"✓ {options.film_stock.value} image written to {output}")
        return 0

    except ProcessingError as e:
        logger.error(f"Processing error: {e}", exc_info=args.verbose)
        if not args.quiet:
            print(f"✗ Processing Error: {e}")
        return 3

    except KeyboardInterrupt:
        if not args.quiet:
            print()
            print("Processing interrupted by user")
        return 130

    except Exception as e:
        logger.error(f"Unexpected error: {e}", exc_info=True)
        if not args.quiet:
            print(f"✗ Unexpected Error: {e}")
            if not args.verbose:
                print("Run with --verbose for detailed error information")
        return 1


if __name__ == "__main__":
    sys.exit(main())
