import sys

from tinymacro.cli.main import main

sys.exit(main())
