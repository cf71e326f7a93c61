"""Entry point for running the archive feed as a module.

Usage:
    python -m meshfeed serve
"""

import sys

from .main import main

if __name__ == "__main__":
    sys.exit(main())
