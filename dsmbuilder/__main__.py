"""Allow ``python -m dsmbuilder``."""

import sys

from dsmbuilder.cli import main

sys.exit(main())
