"""Allow ``python -m goupc``."""

import sys

from goupc.cli import main

sys.exit(main())
