from __future__ import annotations

import logging


def setup_logging(level: int | str = logging.INFO) -> logging.Logger:
    logger = logging.getLogger("vps_monitor")
    logger.setLevel(level)
    logger.propagate = False

    if not any(isinstance(h, logging.StreamHandler) for h in logger.handlers):
        sh = logging.StreamHandler()
        sh.setFormatter(logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s"))
        logger.addHandler(sh)

    return logger
