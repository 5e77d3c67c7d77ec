"""
Turi — Entry Point.

`python main.py` prints today's chore agenda from the configured database.
"""

import logging

from turi.config import settings

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

from turi.core.agenda import main

if __name__ == "__main__":
    main()
