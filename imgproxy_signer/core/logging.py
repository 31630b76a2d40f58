import logging
import sys
from typing import Optional

from loguru import logger
from pydantic_settings import BaseSettings, SettingsConfigDict

# Library records stay silent until the host opts in through setup_logging
PACKAGE_NAME = "imgproxy_signer"
logger.disable(PACKAGE_NAME)


class LogConfig(BaseSettings):
    """Logging configuration"""

    model_config = SettingsConfigDict(env_prefix="IMGPROXY_LOG_")

    # Logging level
    LEVEL: str = "INFO"

    # Logging format
    FORMAT: str = (
        "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
        "<level>{level: <8}</level> | "
        "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
        "<level>{message}</level>"
    )

    # Whether to serialize the log message to JSON
    JSON_LOGS: bool = False

    # Optional log file, rotated by size
    FILE: Optional[str] = None


class InterceptHandler(logging.Handler):
    """
    Intercept handler to route standard logging to loguru.
    """

    def emit(self, record: logging.LogRecord) -> None:
        # Get corresponding Loguru level if it exists
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Find caller from where originated the logged message
        frame, depth = logging.currentframe(), 2
        while frame is not None and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(
            level, record.getMessage()
        )


def get_logger(name: str):
    """Get a logger instance with the specified name.

    Args:
        name: The name of the logger, typically the module name.

    Returns:
        A logger instance bound with the specified name.
    """
    return logger.bind(name=name)


def setup_logging(log_config: Optional[LogConfig] = None) -> None:
    """Configure logging with loguru.

    Records from this package are disabled on import; host applications
    call this once at startup to enable them and install the default sinks.
    """
    log_config = log_config or LogConfig()

    logger.enable(PACKAGE_NAME)

    # Remove default configuration
    logger.remove()

    logger.add(
        sys.stdout,
        backtrace=True,
        level=log_config.LEVEL,
        format=log_config.FORMAT,
        serialize=log_config.JSON_LOGS,
    )

    if log_config.FILE:
        logger.add(
            log_config.FILE,
            rotation="10 MB",
            retention="1 week",
            backtrace=True,
            level=log_config.LEVEL,
            format=log_config.FORMAT,
            serialize=log_config.JSON_LOGS,
        )

    # Intercept standard logging
    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)

    logger.debug("Logging configuration completed")
