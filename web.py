"""Web launcher for the tinymacro command/status server.

Equivalent to ``cli.py serve``; an optional first argument sets the port.
"""

import sys
from pathlib import Path

# Add src directory to Python path
src_path = Path(__file__).parent / "src"
sys.path.insert(0, str(src_path))

from tinymacro.cli.main import main


if __name__ == '__main__':
    args = ['serve']
    if len(sys.argv) > 1:
        try:
            args += ['--port', str(int(sys.argv[1]))]
        except ValueError:
            print(f"Invalid port: {sys.argv[1]}")
            sys.exit(1)
    sys.exit(main(args))
