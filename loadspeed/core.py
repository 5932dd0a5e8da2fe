"""
FILE DESCRIPTION: Foundational module for probe configuration and logging.
KEY FUNCTIONS/CLASSES: setup_logger, CompanyFormatter, engine/settle defaults
"""

import logging
import sys
import os
from datetime import datetime

from dotenv import load_dotenv

# === CONFIGURATION SECTION ===

# Load .env from the working directory (values already in the environment win)
load_dotenv()

# iPhone 6
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 10_0_2 like Mac OS X) "
    "AppleWebKit/602.1.50 (KHTML, like Gecko) Version/10.0 Mobile/14A456 Safari/602.1"
)

USER_AGENT = os.getenv("LOADSPEED_USER_AGENT", DEFAULT_USER_AGENT)
VIEWPORT_WIDTH = int(os.getenv("LOADSPEED_VIEWPORT_WIDTH", 750))
VIEWPORT_HEIGHT = int(os.getenv("LOADSPEED_VIEWPORT_HEIGHT", 1334))

# Per-resource timeout handed to the browser engine (milliseconds)
RESOURCE_TIMEOUT_MS = int(os.getenv("LOADSPEED_RESOURCE_TIMEOUT_MS", 30000))

# Quiescence window between load finished and the report snapshot (milliseconds)
SETTLE_DELAY_MS = int(os.getenv("LOADSPEED_SETTLE_DELAY_MS", 1000))

# Playwright browser type: chromium, firefox or webkit
BROWSER = os.getenv("LOADSPEED_BROWSER", "chromium")
SUPPORTED_BROWSERS = ("chromium", "firefox", "webkit")

# Stored resource URLs are cut to this many characters
MAX_URL_LENGTH = 64

LOG_LEVEL = os.getenv("LOADSPEED_LOG_LEVEL", "INFO").upper()


# === LOGGING SECTION ===

class CompanyFormatter(logging.Formatter):
    """
    FLOW: Receives a log record -> Extracts timestamp -> Formats according to company standard
    (e.g., [ Tue Jan 06 05:32:41 AM UTC 2026 ]) -> Prepends level and context -> Returns final string.
    """
    def format(self, record):
        dt = datetime.fromtimestamp(record.created)
        timestamp = dt.strftime("%a %b %d %I:%M:%S %p UTC %Y")
        context = getattr(record, 'context', record.name)
        return f"[ {timestamp} ] : {record.levelname} : {context} : {record.getMessage()}"

def setup_logger(name="loadspeed", log_file=None, level=logging.INFO):
    """
    FLOW: Initializes/Retrieves logger -> Checks for existing handlers to prevent duplicates ->
    Sets propagation for child loggers -> Attaches Console and optional File handlers with CompanyFormatter.
    """
    logger = logging.getLogger(name)

    # Child loggers inherit the level of the root 'loadspeed' logger
    if name != "loadspeed":
        logger.propagate = True
        if not logging.getLogger("loadspeed").handlers:
            setup_logger("loadspeed", log_file=log_file, level=level)
        return logger

    logger.setLevel(level)
    if logger.handlers:
        return logger

    formatter = CompanyFormatter()

    # Console handler. The report framing lets consumers skip these lines.
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    # File handler (optional)
    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger

# Global logger instance
logger = setup_logger(level=getattr(logging, LOG_LEVEL, logging.INFO))
