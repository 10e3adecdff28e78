"""Allow running as: python -m godiagram"""

import sys

from .cli import main

sys.exit(main())
