"""
Logging configuration

One loguru logger for the app. Besides the console and the daily app/error
files, records bound with a `channel` (see DispatchService) also go to a
deliveries file, one line per send attempt.
"""
from loguru import logger
import os
import sys
from app.config import get_settings

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>"
)
DELIVERY_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {extra[channel]: <8} | {extra[campaign]} | {message}"


def _is_delivery(record) -> bool:
    return "channel" in record["extra"]


def setup_logger(level: str = None, log_dir: str = None):
    """Configure console and file sinks; safe to call again (handlers are replaced)"""
    settings = get_settings()
    level = level or settings.log_level
    log_dir = log_dir or settings.log_dir

    logger.remove()
    logger.configure(extra={"campaign": "-"})

    logger.add(sys.stdout, colorize=True, format=CONSOLE_FORMAT, level=level)

    os.makedirs(log_dir, exist_ok=True)
    logger.add(
        os.path.join(log_dir, "campaigns_{time:YYYY-MM-DD}.log"),
        rotation="00:00",
        retention="30 days",
        compression="zip",
        level="INFO",
    )
    logger.add(
        os.path.join(log_dir, "errors_{time:YYYY-MM-DD}.log"),
        rotation="00:00",
        retention="90 days",
        level="ERROR",
    )
    logger.add(
        os.path.join(log_dir, "deliveries_{time:YYYY-MM-DD}.log"),
        rotation="00:00",
        retention="90 days",
        level="INFO",
        format=DELIVERY_FORMAT,
        filter=_is_delivery,
    )

    return logger


log = setup_logger()
