import logging
import sys
from pathlib import Path

from loguru import logger

from owner_intel.utils.logging_utils import env_log_level


class InterceptHandler(logging.Handler):
    """Intercept standard logging and redirect to loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Find caller from where originated the logged message
        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def intercept_stdlib_logging(names: tuple[str, ...] = ("httpx", "httpcore", "asyncio")) -> None:
    """Route stdlib loggers used by the HTTP stack into loguru."""
    logging.basicConfig(handlers=[InterceptHandler()], level=logging.INFO, force=True)
    for logger_name in names:
        logging.getLogger(logger_name).handlers = [InterceptHandler()]
        logging.getLogger(logger_name).propagate = False


def configure_logger(log_file: str = "owner_intel.log", level: str | None = None):
    """
    Configure loguru logger for the entire project.
    """
    level = level or env_log_level()

    log_dir = Path("logs")
    log_dir.mkdir(exist_ok=True)

    # Remove default handler to avoid duplicate logs
    logger.remove()

    logger.add(
        sys.stderr,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
        level=level,
    )

    logger.add(
        log_dir / log_file,
        rotation="10 MB",
        retention="10 days",
        level=level,
        format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} | {extra} - {message}",
        backtrace=True,
        diagnose=True,
    )


_configured = False


def setup_default_logging():
    global _configured
    if not _configured:
        configure_logger()
        intercept_stdlib_logging()
        _configured = True
