#!/usr/bin/env python3
"""CLI entry point for the vintagecam web API server."""

import argparse
import logging
import sys
from typing import Optional

from ..config import ConfigManager
from .app import create_app, get_image_service


def setup_logging(verbose: bool = False, log_file: Optional[str] = None,
                  log_format: Optional[str] = None) -> None:
    """Configure logging for the web server.

    Args:
        verbose: If True, enable DEBUG level logging
        log_file: Optional file to mirror log output into
        log_format: Log record format
    """
    level = logging.DEBUG if verbose else logging.INFO
    log_format = log_format or '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

    handlers = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(level=level, format=log_format, handlers=handlers, force=True)

    # Reduce noise from werkzeug in non-debug mode
    if not verbose:
        logging.getLogger('werkzeug').setLevel(logging.WARNING)


def parse_arguments(argv=None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="vintagecam Web API - upload, film-process and download photos",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Start API server with config defaults (port 5000, or $PORT)
  vintagecam-web

  # Start on custom port
  vintagecam-web --port 8080

  # Use custom config file
  vintagecam-web --config /path/to/config.yaml
"""
    )

    parser.add_argument(
        "--port", "-p",
        type=int,
        help="Port to run the server on (default: server.port from config)"
    )

    parser.add_argument(
        "--host",
        help="Host to bind to (default: server.host from config)"
    )

    parser.add_argument(
        "--config",
        metavar="PATH",
        help="Path to vintagecam config file (default: ~/.vintagecam/config.yaml)"
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug mode with auto-reload"
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging"
    )

    return parser.parse_args(argv)


def print_banner(host: str, port: int, storage: str) -> None:
    """Print startup banner."""
    print()
    print("=" * 60)
    print("  vintagecam Web API")
    print("=" * 60)
    print()
    print(f"  Server running at: http://{host}:{port}")
    print(f"  Health check:      http://{host}:{port}/health")
    print(f"  Metadata storage:  {storage}")
    print()
    print("  Press Ctrl+C to stop the server")
    print("=" * 60)
    print()


def main(argv=None) -> int:
    """Main entry point for the vintagecam web server.

    Returns:
        Exit code (0 for success, non-zero for errors)
    """
    args = parse_arguments(argv)
    logger = logging.getLogger(__name__)

    try:
        config = ConfigManager.load(config_path=args.config)
        setup_logging(
            args.verbose or args.debug,
            log_file=config.get("logging.file") or None,
            log_format=config.get("logging.format"),
        )

        host = args.host or config.get("server.host", "127.0.0.1")
        port = args.port or int(config.get("server.port", 5000))

        app = create_app(config=config, debug=args.debug)
        service = get_image_service(app)
        service.store.wait_ready()

        print_banner(host, port, service.store.active_backend.name)

        app.run(
            host=host,
            port=port,
            debug=args.debug,
            threaded=True,
            use_reloader=args.debug
        )

        return 0

    except KeyboardInterrupt:
        print()
        print("Server stopped.")
        return 0

    except Exception as e:
        logger.error(f"Failed to start server: {e}", exc_info=args.verbose)
        print(f"\nError: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
