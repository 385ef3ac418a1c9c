#!/usr/bin/env python3
"""Remove expired fallback session files.

Only files written while Redis was unavailable live on disk; Redis
records expire through their TTL and are not touched here.

Usage:
  SESSION_SAVE_PATH=var/sessions python -m scripts.session_gc

Optional env vars:
  SESSION_GC_MAX_AGE=1440   (defaults to the session TTL)
"""

import logging
import os
import sys

# Ensure imports work when executed as a script/module
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from blogcache.services.session_store import build_session_store  # noqa: E402
from blogcache.settings import get_settings  # noqa: E402


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
    settings = get_settings()
    max_age = int(os.getenv("SESSION_GC_MAX_AGE", str(settings.session_ttl)))

    store = build_session_store(settings)
    removed = store.gc(max_age)
    print(f"{removed} expired session file(s) removed from {store.save_path}.")


if __name__ == "__main__":
    main()
