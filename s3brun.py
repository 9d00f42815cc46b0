#!/usr/bin/env python3
"""s3bench CLI entrypoint -- run without pip install.

Usage:
    python s3brun.py compile s3bench.yaml
    python s3brun.py --help
"""

import sys
from pathlib import Path

# Add src/ to import path so the s3bench package is importable
sys.path.insert(0, str(Path(__file__).resolve().parent / "src"))

from s3bench.cli import main

if __name__ == "__main__":
    main()
