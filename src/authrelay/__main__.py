"""authrelay entry point."""

import argparse
import logging
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as get_version

from authrelay.config import get_settings
from authrelay.logging_setup import setup_logging

logger = logging.getLogger(__name__)


def _version() -> str:
    try:
        return get_version("authrelay")
    except PackageNotFoundError:
        return "unknown"


def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="authrelay - OAuth relay and Headscale registration gateway",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Configuration comes from AUTHRELAY_* environment variables or a .env file.

Examples:
  authrelay                          Serve on AUTHRELAY_HOST:AUTHRELAY_PORT
  authrelay --host 0.0.0.0 --port 80 Listen on all interfaces
  authrelay --dev                    Auto-reload on code changes
""",
    )
    parser.add_argument("--host", help="Bind address (default: AUTHRELAY_HOST)")
    parser.add_argument("--port", type=int, help="Port (default: AUTHRELAY_PORT)")
    parser.add_argument("--dev", action="store_true", help="Development mode with auto-reload")
    parser.add_argument("--version", "-v", action="version", version=f"%(prog)s {_version()}")
    args = parser.parse_args()

    settings = get_settings()
    setup_logging(level="DEBUG" if args.dev else settings.log_level)

    from authrelay.api.serve import run_api_server

    try:
        run_api_server(settings, host=args.host, port=args.port, dev=args.dev)
    except KeyboardInterrupt:
        logger.info("authrelay stopped")


if __name__ == "__main__":
    main()
