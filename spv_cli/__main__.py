"""
Module execution entry point.

Allows running with: python -m spv_cli
"""

import sys
from spv_cli.main import main

if __name__ == "__main__":
    sys.exit(main())
