# liveshare/utils/logger.py

import logging
import traceback
import os
# Import our centralized config
from liveshare import config

# Ensure the log directory exists, using the path from config
os.makedirs(config.LOGS_PATH, exist_ok=True)

# Log file paths are taken from the central config
access_log_file = os.path.join(config.LOGS_PATH, "access.log")
error_log_file = os.path.join(config.LOGS_PATH, "error.log")

# Define formatter
formatter = logging.Formatter("%(asctime)s [%(levelname)s] %(message)s", "%Y-%m-%d %H:%M:%S")

def setup_logger(name, log_file, level):
    """A helper function to set up a logger."""
    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.propagate = False # Prevent duplicate logs in parent loggers

    # Avoid adding handlers if they already exist (e.g., during autoreload)
    if not logger.handlers:
        handler = logging.FileHandler(log_file, encoding="utf-8")
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger

# ACCESS and ERROR loggers are set up using the helper function
access_logger = setup_logger("access", access_log_file, logging.INFO)
error_logger = setup_logger("error", error_log_file, logging.ERROR)


# === Logging functions ===

def log_info(message):
    access_logger.info(message)

def log_warning(message):
    access_logger.warning(message)

def log_exception(e: Exception, context: str = ""):
    # format_exc is empty outside an except block, fall back to the exception itself
    tb = traceback.format_exc()
    if tb.strip() == "NoneType: None":
        tb = "".join(traceback.format_exception(type(e), e, e.__traceback__))
    error_logger.error(f"❌ Exception in {context}:\n{tb}")
