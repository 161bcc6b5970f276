"""llamastream CLI entry point."""

from llamastream.cli.app import app

if __name__ == "__main__":
    app()
