from __future__ import annotations

import os
import sys
from pathlib import Path


BASE_DIR = Path(__file__).resolve().parents[1]
if str(BASE_DIR) not in sys.path:
    sys.path.insert(0, str(BASE_DIR))

# Settings are read at import time; keep local .env overrides out of the suite.
os.environ.setdefault("ENV", "test")
os.environ.setdefault("ANALYTICS_DOMAIN", "IT")
os.environ.setdefault("ANALYTICS_RESOLUTION_POLICY", "earliest")
