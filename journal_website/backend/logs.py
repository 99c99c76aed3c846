import sys

from loguru import logger


def setup_logging(level: str = "INFO", sink=sys.stderr) -> None:
    """
    Replace loguru's default sink with one sink at ``level``.

    ``diagnose`` stays off: it would render frame locals into tracebacks,
    and those include the session token of the request being served.
    """
    logger.remove()
    logger.add(
        sink,
        level=level.upper(),
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | {name}:{line} - {message}",
        backtrace=False,
        diagnose=False,
    )
