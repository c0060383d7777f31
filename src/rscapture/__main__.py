"""Allow ``python -m rscapture``."""

import sys

from rscapture.cli import main

sys.exit(main())
