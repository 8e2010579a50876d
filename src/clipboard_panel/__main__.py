"""Entry point for ``python -m clipboard_panel``."""

import sys

from clipboard_panel.cli import main

sys.exit(main())
