#!/usr/bin/env python3
"""
Nitya Proxy - Main Entry Point
Chat backend for the StarterNode design consultant

Usage:
    python main.py                    # Serve on HTTP_HOST:HTTP_PORT from .env
    python main.py --port 8080        # Override the port
    python main.py --debug            # Include error details in HTTP responses
"""

import sys
import signal
import threading
import argparse
from pathlib import Path
from typing import Optional

# Ensure we can import from project root
sys.path.insert(0, str(Path(__file__).parent))

import config
from core.logger import (
    setup_logging,
    log_startup_banner,
    log_section,
    log_success,
    log_warning,
    log_error,
    log_ready,
    log_config
)
from core.services import ServiceContainer, build_services, log_services
from interface.http_api import HTTPServer

# Shutdown event
_shutdown_event = threading.Event()


def signal_handler(signum, frame):
    """Handle shutdown signals gracefully."""
    print()  # New line after ^C
    log_warning("Shutdown signal received...")
    _shutdown_event.set()


def print_configuration() -> None:
    """Print the configuration summary."""
    log_section("Configuration", "⚙️")
    log_config("Model", config.ANTHROPIC_MODEL, indent=1)
    log_config("Max tokens", str(config.ANTHROPIC_MAX_TOKENS), indent=1)
    log_config("API key", "set" if config.ANTHROPIC_API_KEY else "MISSING", indent=1)
    log_config("Tool loop bound", f"{config.TOOL_USE_MAX_ITERATIONS} calls", indent=1)
    log_config("Tool batch workers", str(config.TOOL_BATCH_MAX_WORKERS), indent=1)
    log_config("Brain modules", str(config.BRAIN_MODULES_DIR), indent=1)


def initialize_system(debug: bool) -> Optional[ServiceContainer]:
    """
    Initialize all system components.

    Returns:
        ServiceContainer, or None if startup failed
    """
    setup_logging(
        log_file_path=config.DIAGNOSTIC_LOG_PATH,
        level=config.LOG_LEVEL,
        log_to_file=config.LOG_TO_FILE
    )

    log_startup_banner(config.VERSION, config.PROJECT_NAME)

    config.PROSPECTS_DIR.mkdir(parents=True, exist_ok=True)

    if not config.ANTHROPIC_API_KEY:
        log_warning("ANTHROPIC_API_KEY is not set; chat requests will fail")

    print_configuration()

    try:
        services = build_services(debug=debug)
    except Exception as e:
        log_error(f"Failed to build services: {e}")
        return None

    log_services(services)
    return services


def main() -> int:
    """
    Main entry point.

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    parser = argparse.ArgumentParser(
        description="Nitya Proxy - Design Consultant Chat Backend",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument("--host", default=config.HTTP_HOST, help="Interface to bind")
    parser.add_argument("--port", "-p", type=int, default=config.HTTP_PORT, help="Port to listen on")
    parser.add_argument(
        "--debug", "-d",
        action="store_true",
        default=config.HTTP_DEBUG,
        help="Include exception details in HTTP error responses"
    )
    args = parser.parse_args()

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    try:
        services = initialize_system(debug=args.debug)
        if services is None:
            log_error("System initialization failed")
            return 1

        server = HTTPServer(services, host=args.host, port=args.port)
        server.start()
        log_ready(args.host, args.port)

        # Serve until a signal arrives or the server thread dies
        while not _shutdown_event.is_set() and server.is_running():
            _shutdown_event.wait(1.0)

        services.locks.log_stats()
        log_success("Nitya Proxy shutdown complete")
        return 0

    except KeyboardInterrupt:
        log_warning("Interrupted")
        return 130

    except Exception as e:
        log_error(f"Fatal error: {e}")
        import traceback
        traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
