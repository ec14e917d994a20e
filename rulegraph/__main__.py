"""Allow ``python -m rulegraph``."""

from .main import main

raise SystemExit(main())
