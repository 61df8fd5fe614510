"""Entry point for running the package as a module.

Usage:
    python -m face_attendance quality photo.jpg
    python -m face_attendance recognize photo.jpg --db data/attendance.db
"""

import sys

from .cli import main

if __name__ == "__main__":
    sys.exit(main())
