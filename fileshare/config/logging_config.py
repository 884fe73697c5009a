"""
Logging Configuration
"""

import logging
import os
from typing import Optional

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: Optional[str] = None) -> None:
    """
    Configure root logging once from ``LOG_LEVEL`` (default INFO).

    Calling it again only adjusts the level.
    """
    level_name = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    root = logging.getLogger()

    if not root.handlers:
        logging.basicConfig(level=level_name, format=LOG_FORMAT)
    else:
        root.setLevel(level_name)

    # Request lines only at WARNING and above
    logging.getLogger("werkzeug").setLevel(max(logging.WARNING, root.level))
