#!/usr/bin/env python3
"""
PrismWatch Folder Watcher Script.

Watches a PhotoPrism import folder and triggers an import once activity
settles.
Requires Python 3.11+.

Usage:
    PHOTOPRISM_APP_PASSWORD=... python scripts/watch_import.py [options] /path/to/import
"""

import sys
from pathlib import Path

# Add backend to path
sys.path.insert(0, str(Path(__file__).parent.parent / "backend"))

from service.main import main


if __name__ == "__main__":
    sys.exit(main())
