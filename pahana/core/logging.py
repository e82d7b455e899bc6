import sys
from pathlib import Path
from loguru import logger
from .config import settings

LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {extra[frontend]: <7} | {name}:{function}:{line} - {message}"
CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)

def setup_logging(frontend: str = "web", console: bool = True):
    """
    Route loguru output for one front end.

    The web server and the interactive console write to separate files
    (``web_<date>.log``, ``console_<date>.log``) in ``LOG_DIR``; errors of
    both also go to ``errors_<date>.log``. ``console=False`` keeps log lines
    off stdout so they do not interleave with menus and prompts.
    """
    logger.remove()
    logger.configure(extra={"frontend": frontend})
    level = "DEBUG" if settings.DEBUG else settings.LOG_LEVEL

    if console:
        logger.add(sys.stdout, colorize=True, format=CONSOLE_FORMAT, level=level)

    log_dir = Path(settings.LOG_DIR)
    logger.add(
        log_dir / f"{frontend}_{{time:YYYY-MM-DD}}.log",
        rotation="00:00",
        retention=f"{settings.LOG_RETENTION_DAYS} days",
        compression="zip",
        format=LOG_FORMAT,
        level="DEBUG",
        enqueue=True,
    )
    logger.add(
        log_dir / "errors_{time:YYYY-MM-DD}.log",
        rotation="00:00",
        retention=f"{settings.ERROR_LOG_RETENTION_DAYS} days",
        compression="zip",
        format=LOG_FORMAT,
        level="ERROR",
        enqueue=True,
    )

    return logger

app_logger = setup_logging()
