"""Logging configuration for the CFD Invoice scanner."""
import logging
import logging.config
from pathlib import Path
from typing import Dict, Any

LOG_FILE = "cfd_invoice.log"
PACKAGE_LOGGER = "cfd_invoice"


def get_logging_config(
    logs_folder: Path,
    log_filename: str = LOG_FILE,
    console_level: str = "WARNING",
    file_level: str = "INFO"
) -> Dict[str, Any]:
    """Build a dictConfig: terse console lines on stderr, full records in the log file."""
    logs_folder.mkdir(parents=True, exist_ok=True)

    handlers = {
        # stderr keeps log lines out of the rendered screens on stdout
        "console": {
            "class": "logging.StreamHandler",
            "level": console_level,
            "formatter": "console",
            "stream": "ext://sys.stderr"
        },
        "file": {
            "class": "logging.FileHandler",
            "level": file_level,
            "formatter": "detailed",
            "filename": str(logs_folder / log_filename),
            "mode": "a",
            "encoding": "utf-8"
        }
    }

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "console": {"format": "%(levelname)s: %(message)s"},
            "detailed": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s"
            }
        },
        "handlers": handlers,
        "root": {"level": "WARNING", "handlers": list(handlers)},
        "loggers": {
            PACKAGE_LOGGER: {"level": "DEBUG", "handlers": list(handlers), "propagate": False}
        }
    }


def setup_logging(
    logs_folder: Path,
    log_filename: str = LOG_FILE,
    console_level: str = "WARNING",
    file_level: str = "INFO"
) -> None:
    """Set up logging with the specified configuration."""
    config = get_logging_config(logs_folder, log_filename, console_level, file_level)

    # Clear any existing handlers to prevent duplicate logs
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    logging.config.dictConfig(config)
