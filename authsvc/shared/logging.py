from __future__ import annotations

import logging
import sys


LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: str = "INFO") -> None:
    root_logger = logging.getLogger()
    resolved = getattr(logging, (level or "INFO").upper(), logging.INFO)
    if not root_logger.handlers:
        logging.basicConfig(level=resolved, format=LOG_FORMAT, stream=sys.stdout)
    root_logger.setLevel(resolved)
    # httpx logs every request line at INFO, including tokeninfo query strings.
    logging.getLogger("httpx").setLevel(max(resolved, logging.WARNING))
