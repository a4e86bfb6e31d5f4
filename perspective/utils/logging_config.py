import logging
from pathlib import Path
from typing import Optional

PACKAGE_LOGGER = "perspective"
LOG_FORMAT = "[%(levelname)s] %(name)s - %(message)s"


def setup_logging(level: str = "INFO", log_file: Optional[str] = None) -> logging.Logger:
    """
    Attach a handler to the ``perspective`` logger.

    The root logger is left alone so host applications keep their own
    configuration. Calling this again replaces the handler added by the
    previous call instead of stacking a second one.

    Parameters
    ----------
    level:
        Logging level name (e.g., "INFO", "DEBUG"). Unknown names fall back to INFO.
    log_file:
        Optional path to log output. When not provided, logs go to stderr.

    Returns
    -------
    logging.Logger
        The configured package logger.
    """

    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    for old in [h for h in logger.handlers if getattr(h, "_perspective_handler", False)]:
        logger.removeHandler(old)
        old.close()

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handler: logging.Handler = logging.FileHandler(log_file)
    else:
        handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._perspective_handler = True  # type: ignore[attr-defined]
    logger.addHandler(handler)
    return logger
