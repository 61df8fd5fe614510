#!/usr/bin/env python3
"""Main entry point for the face attendance core.

Simplified entry point that delegates to the CLI module.

Usage:
    python main.py quality photo.jpg            # Check image quality
    python main.py register --id E001 --name Ada step1.jpg ... step5.jpg
    python main.py recognize photo.jpg          # Recognize and toggle attendance
    python main.py list                         # List registered identities

Or use the CLI directly:
    python -m face_attendance recognize photo.jpg
"""

import sys


def main():
    """Main entry point - delegates to CLI."""
    # If no arguments, show help
    if len(sys.argv) == 1:
        print(__doc__)
        print("Run 'python main.py --help' for more options")
        sys.exit(0)

    # Import and run CLI
    from face_attendance.cli import main as cli_main
    sys.exit(cli_main())


if __name__ == "__main__":
    main()
