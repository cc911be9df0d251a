import logging
import os


# -------------------------------------------------------------------
# FORMATTER
# -------------------------------------------------------------------
LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def setup_logging(level: str = None) -> logging.Logger:
    """
    Attach one console handler to the root logger.
    Level comes from LOG_LEVEL (default INFO).
    """
    level_name = (level or os.getenv("LOG_LEVEL", "INFO")).upper()

    root = logging.getLogger()
    root.setLevel(getattr(logging, level_name, logging.INFO))

    # Prevent duplicate handlers when reloading app
    if not any(getattr(h, "_tripchat", False) for h in root.handlers):
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        console_handler._tripchat = True
        root.addHandler(console_handler)

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)

    return root
