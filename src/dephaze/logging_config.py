"""Console logging for the dephaze command line."""

import logging
import sys

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(level: int = logging.INFO) -> logging.Logger:
    """Route the ``dephaze`` logger to stderr at ``level``.

    Repeated calls replace the handler instead of stacking another one.
    """
    logger = logging.getLogger("dephaze")
    logger.setLevel(level)
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt='%H:%M:%S'))
    logger.addHandler(handler)
    return logger
