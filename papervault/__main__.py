"""Entry point for running papervault as a module or installed script.

Usage:
    papervault / python -m papervault         → HTTP API (uvicorn)
    papervault <command> ... / python -m papervault <command> ... → CLI
"""

import sys


def run() -> None:
    """Entry point: no args → API server, else → CLI."""
    from papervault.cli import main, serve
    from papervault.config import Settings
    from papervault.logging_setup import configure_logging

    if len(sys.argv) == 1:
        settings = Settings.load()
        configure_logging(settings.log_level)
        serve(settings)
    else:
        sys.exit(main())


if __name__ == "__main__":
    run()
