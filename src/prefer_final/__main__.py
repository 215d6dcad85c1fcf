"""
Entry point for module execution (``python -m prefer_final``).

This module delegates execution to the CLI handler in ``prefer_final.cli.__main__``.
"""

import sys
from prefer_final.cli.__main__ import main

if __name__ == "__main__":
  sys.exit(main())
