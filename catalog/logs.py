# catalog/logs.py
import logging
from typing import Optional

from rich.logging import RichHandler

FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str = "INFO", log_file: Optional[str] = "app.log") -> None:
    """Console output through rich, plus a plain-text copy in ``log_file``."""
    handlers = [RichHandler(rich_tracebacks=True, show_path=False)]
    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
        handlers.append(file_handler)

    logging.basicConfig(level=level, format="%(message)s", datefmt="[%X]", handlers=handlers, force=True)
