"""
Entry point for module execution (``python -m monofuzz``).

This module delegates execution to the CLI handler in ``monofuzz.cli.__main__``.
"""

import sys
from monofuzz.cli.__main__ import main

if __name__ == "__main__":
  sys.exit(main())
