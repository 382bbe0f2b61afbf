"""
Main entry point for the avalanche report service.
"""

import sys
from avalanche_report.cli import main

if __name__ == "__main__":
    sys.exit(main())
