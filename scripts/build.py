#!/usr/bin/env python3
"""
Launcher for running bookpack from a source checkout.

Usage:
    python scripts/build.py mybook             Build mybook's EPUB
    python scripts/build.py check mybook       Report broken asset links
    python scripts/build.py validate mybook    Run epubcheck on the EPUB

Installed copies provide the same commands as `bookpack`.
"""

import os
import sys

# Ensure bookpack is importable from the scripts/ directory
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from bookpack.cli import run


if __name__ == "__main__":
    run()
