"""
Logging for the Angel One gateway.

Each service logs to the console and to its own size-rotated file under
Logs/, named with the exchange-local (IST) date it was opened on.
"""
import logging
import logging.handlers
import os
from datetime import datetime
from pathlib import Path

import pytz

from angel_gateway.config import settings

# Exchange-local timezone (NSE)
IST = pytz.timezone("Asia/Kolkata")

LOGS_DIR = Path(os.getenv("LOGS_DIR", Path(__file__).parent.parent / "Logs"))

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
MAX_LOG_BYTES = 10 * 1024 * 1024
LOG_BACKUPS = 7

HTTP_SERVER = "http_server"
BROKER_CLIENT = "broker_client"


def resolve_log_level(level_name: str | None = None) -> int:
    """Map a level name such as 'info' or 'DEBUG' to a logging level; unknown names give INFO."""
    level = logging.getLevelName((level_name or settings.log_level).upper())
    return level if isinstance(level, int) else logging.INFO


def setup_service_logger(service_name: str) -> logging.Logger:
    """Attach the rotating file and console handlers to a service's logger once."""
    logger = logging.getLogger(service_name)
    level = resolve_log_level()
    logger.setLevel(level)
    if logger.handlers:
        return logger

    LOGS_DIR.mkdir(parents=True, exist_ok=True)
    log_file = LOGS_DIR / f"{service_name}_{datetime.now(IST):%Y-%m-%d}.log"
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    handlers = [
        logging.handlers.RotatingFileHandler(
            filename=str(log_file), maxBytes=MAX_LOG_BYTES, backupCount=LOG_BACKUPS, encoding="utf-8"
        ),
        logging.StreamHandler(),
    ]
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger


def get_http_server_logger() -> logging.Logger:
    return setup_service_logger(HTTP_SERVER)


def get_broker_client_logger() -> logging.Logger:
    return setup_service_logger(BROKER_CLIENT)


def initialize_gateway_loggers():
    """Set up every gateway logger; a log directory that cannot be written is reported, not fatal."""
    for service_name in (HTTP_SERVER, BROKER_CLIENT):
        try:
            setup_service_logger(service_name)
        except OSError as e:
            print(f"Warning: Failed to initialize {service_name} logger: {e}")
