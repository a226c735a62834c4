"""
Logging setup shared by the CLI and ad-hoc scripts.
"""

import logging
import os
from typing import Optional


def setup_logging(level: Optional[str] = None) -> None:
    """
    Configure basic logging. LOG_LEVEL from the environment is used unless
    an explicit level is passed.
    """
    log_level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
