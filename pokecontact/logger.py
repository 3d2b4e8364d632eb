# pokecontact/logger.py
import logging
import os

logger = logging.getLogger("pokecontact")

_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"


def configure_logging(log_file: str | None = None, level: int = logging.INFO) -> logging.Logger:
    """Attach a stream handler (and a file handler when log_file is set). Safe to call twice."""
    logger.setLevel(level)
    formatter = logging.Formatter(_FORMAT)

    if not any(isinstance(h, logging.StreamHandler) and not isinstance(h, logging.FileHandler)
               for h in logger.handlers):
        stream = logging.StreamHandler()
        stream.setFormatter(formatter)
        logger.addHandler(stream)

    if log_file:
        target = os.path.abspath(log_file)
        if not any(isinstance(h, logging.FileHandler) and h.baseFilename == target
                   for h in logger.handlers):
            os.makedirs(os.path.dirname(target) or ".", exist_ok=True)
            fh = logging.FileHandler(target, encoding="utf-8")
            fh.setFormatter(formatter)
            logger.addHandler(fh)
    return logger


def log_action(message: str) -> None:
    # "ERROR ..." messages go out at error level, everything else is info
    if message.startswith("ERROR"):
        logger.error(message)
    else:
        logger.info(message)
