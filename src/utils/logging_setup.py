import logging
import os
from typing import Optional

def setup_logging(level: Optional[str] = None) -> None:
    """
    Configure a single console handler via logging.basicConfig.
    Uses the LOG_LEVEL env var when level is None (default INFO).
    """
    level_name = (level or os.getenv("LOG_LEVEL") or "INFO").upper()
    level_value = getattr(logging, level_name, logging.INFO)

    logging.basicConfig(
        level=level_value,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    # the SDK clients log every HTTP request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
