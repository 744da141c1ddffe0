# utils/logger.py
import logging
import os
import sys
from pathlib import Path

LEVEL_ENV = "REPLICATION_LOG_LEVEL"
LOGFILE_ENV = "REPLICATION_LOG_FILE"


def get_logger(name=__name__, level=None, logfile=None):
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger  # already configured

    if level is None:
        level = os.environ.get(LEVEL_ENV, "INFO").upper()
    logger.setLevel(level)
    fmt = logging.Formatter(fmt="%(asctime)s | %(levelname)7s | %(name)s | %(message)s",
                            datefmt="%Y-%m-%d %H:%M:%S")

    sh = logging.StreamHandler(sys.stdout)
    sh.setFormatter(fmt)
    logger.addHandler(sh)

    logfile = logfile or os.environ.get(LOGFILE_ENV)
    if logfile:
        log_dir = Path(logfile).parent
        log_dir.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(logfile)
        fh.setFormatter(fmt)
        logger.addHandler(fh)

    return logger
