"""Thin CLI launcher that delegates to `tinymacro.cli.main` implementation."""

import sys
from pathlib import Path

# Add src directory to Python path
src_path = Path(__file__).parent / "src"
sys.path.insert(0, str(src_path))

from tinymacro.cli.main import main


if __name__ == '__main__':
    sys.exit(main())
