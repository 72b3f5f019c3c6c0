"""Logging configuration for Grocerly using loguru."""
import sys
from typing import List, Optional
from loguru import logger

from grocerly.config.settings import GrocerlySettings, get_settings

DETAILED_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{extra[name]}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "<level>{message}</level> | "
    "<level>{extra}</level>"
)

SIMPLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<level>{message}</level>"
)

# Handlers added by configure_logging, replaced on reconfiguration
_handler_ids: List[int] = []


def configure_logging(settings: Optional[GrocerlySettings] = None) -> List[int]:
    """
    Install the console and rotating file sinks.

    Safe to call again with new settings (e.g. the validated config at
    startup); previously installed sinks are replaced. The log directory is
    created here rather than at import, and the file sink is skipped when
    it cannot be (read-only installs).

    Args:
        settings: Application settings, defaults to the cached instance

    Returns:
        Ids of the installed loguru handlers
    """
    settings = settings or get_settings()
    log_format = DETAILED_FORMAT if settings.LOG_FORMAT == "detailed" else SIMPLE_FORMAT

    if not _handler_ids:
        # Default loguru handler
        logger.remove()
    for handler_id in _handler_ids:
        logger.remove(handler_id)
    _handler_ids.clear()

    logger.configure(extra={"name": "grocerly"})

    _handler_ids.append(logger.add(
        sys.stderr,
        format=log_format,
        level=settings.LOG_LEVEL,
        colorize=True,
        backtrace=True,
        diagnose=True,
    ))

    file_error = None
    if settings.LOG_FILE:
        try:
            settings.LOG_FILE.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            file_error = str(e)
        else:
            _handler_ids.append(logger.add(
                settings.LOG_FILE,
                format=log_format,
                level=settings.LOG_LEVEL,
                rotation=f"{settings.LOG_ROTATION_SIZE_MB} MB",
                retention=f"{settings.LOG_RETENTION_DAYS} days",
                compression="zip",
                serialize=True,
                backtrace=True,
                diagnose=True,
                enqueue=True,  # Thread-safe logging
            ))

    if file_error:
        logger.warning(
            "File logging disabled",
            path=str(settings.LOG_FILE),
            error=file_error,
        )

    return list(_handler_ids)


def get_logger(name: str):
    """Get a logger instance with the given name.

    Logging is configured from the cached settings on first use.

    Args:
        name: The name of the module/component requesting the logger.
            Should be the module's __name__ attribute.

    Returns:
        A logger instance bound with the given name.
    """
    if not _handler_ids:
        configure_logging()
    if not name.startswith("grocerly.") and name != "__main__":
        name = f"grocerly.{name}"
    return logger.bind(name=name)
