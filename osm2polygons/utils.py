import logging
import sys
from pathlib import Path
from typing import Optional

PACKAGE_LOGGER = "osm2polygons"


def create_logger(
    name: str, log_level: int = logging.INFO, log_file: Optional[str] = None
) -> logging.Logger:
    """Create a logger for an entry point of the package.

    The handlers are attached to the package logger ``osm2polygons``, so
    records emitted by library modules through ``logging.getLogger(__name__)``
    end up in the same console and file output as the entry point's own.

    Args:
        name (str): Short name of the entry point, e.g. "BuildIntersections".
            The returned logger is ``osm2polygons.<name>``.
        log_level (int): The minimum logging level to be processed (e.g.,
            logging.INFO).
        log_file (Optional[str]): Path to the log file. If provided, logs
            will also be written to this file.

    Returns:
        logging.Logger: The configured logger instance.
    """
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.setLevel(log_level)
    package_logger.handlers.clear()
    package_logger.propagate = False

    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    package_logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        package_logger.addHandler(file_handler)

    return package_logger.getChild(name)
