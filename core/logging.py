import os
import sys
import logging
from typing import Optional

from core.config import settings


LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_FILE_NAME = "smartintern.log"



def configure_logging(level: Optional[str] = None, logging_dir: Optional[str] = None) -> None:
    """Configure the root logger.

    Records go to stderr and to a file under LOGGING_DIR. Stdout is left alone
    because the MCP stdio transport owns it.
    """
    level = (level or settings.LOG_LEVEL).upper()
    logging_dir = logging_dir or settings.LOGGING_DIR

    handlers = [logging.StreamHandler(sys.stderr)]
    if logging_dir:
        os.makedirs(logging_dir, exist_ok=True)
        handlers.append(logging.FileHandler(os.path.join(logging_dir, LOG_FILE_NAME)))

    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format=LOG_FORMAT,
        handlers=handlers,
        force=True,
    )

    # slack_sdk logs every request at DEBUG
    logging.getLogger("slack_sdk").setLevel(logging.WARNING)
