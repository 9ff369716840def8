"""Allow ``python -m dronenet``."""

import sys

from dronenet.cli import main

sys.exit(main())
