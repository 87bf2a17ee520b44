"""Entry point for python -m tonvanity."""

import sys

from tonvanity.cli import main

if __name__ == "__main__":
    sys.exit(main())
