import sys

from loguru import logger

LOG_FORMAT = (
    "<green>[{time:YYYY-MM-DD HH:mm:ss}]</green> "
    "<level>{level: <8}</level> <level>{message}</level>"
)


def configure_logging(level: str = "INFO") -> None:
    """Replace loguru's default sink with a coloured stderr sink at `level`"""
    logger.remove()
    logger.add(sys.stderr, level=level.upper(), format=LOG_FORMAT, colorize=None)
