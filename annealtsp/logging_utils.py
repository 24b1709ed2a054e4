# annealtsp/logging_utils.py
import logging
from pathlib import Path
from typing import Optional


def setup_logger(name: str, log_file: Optional[Path] = None, level=logging.INFO):
    logger = logging.getLogger(name)
    logger.setLevel(level)
    for h in list(logger.handlers):
        h.close()
        logger.removeHandler(h)

    fmt = logging.Formatter(
        "[%(asctime)s][%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
    )

    # console
    ch = logging.StreamHandler()
    ch.setFormatter(fmt)
    logger.addHandler(ch)

    # file
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setFormatter(fmt)
        logger.addHandler(fh)

    return logger
