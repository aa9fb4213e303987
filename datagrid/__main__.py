"""Allow ``python -m datagrid``."""

import sys

from .cli import main


sys.exit(main())
