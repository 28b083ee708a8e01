"""
Round Plans — Entry Point.

`python main.py audit` reports candidate anchors.
`python main.py migrate` creates the service plans.
"""

import sys

from roundplan.cli import main

if __name__ == "__main__":
    sys.exit(main())
