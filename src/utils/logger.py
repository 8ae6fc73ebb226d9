import logging
import os

from rich.logging import RichHandler

from utils.config import settings


class CenteredFormatter(logging.Formatter):
    longest_name_length = 12  # grows with the longest logger name seen

    def __init__(self, fmt=None, datefmt=None, style="%", initial_width=12):
        super().__init__(fmt, datefmt, style)
        CenteredFormatter.longest_name_length = initial_width

    def format(self, record):
        CenteredFormatter.longest_name_length = max(
            CenteredFormatter.longest_name_length, len(record.name)
        )

        # other handlers see the same record, pad a copy only
        padded = logging.makeLogRecord(record.__dict__)
        padded.name = record.name.center(CenteredFormatter.longest_name_length)
        return super().format(padded)


def _file_handler(path: str, level: int) -> logging.FileHandler:
    log_dir = os.path.dirname(path)
    if log_dir and not os.path.isdir(log_dir):
        os.makedirs(log_dir, exist_ok=True)

    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setFormatter(
        logging.Formatter("%(asctime)s %(levelname)s [%(name)s] %(message)s")
    )
    handler.setLevel(level)
    return handler


def get_logger(name=None) -> logging.Logger:
    """
    Return a storefront logger printing through rich.

    Level is DEBUG when the DEBUG env flag is set, INFO otherwise. When a log
    file is configured, records are also appended to it in plain text so the
    terminal UI can stay clean.
    """
    if name is None:
        name = "storefront"
    logger = logging.getLogger(name)
    log_level = logging.DEBUG if settings.debug else logging.INFO
    logger.setLevel(log_level)

    if not logger.handlers:
        console_handler = RichHandler(
            show_time=True,
            show_level=True,
            show_path=False,
            rich_tracebacks=True,
            log_time_format="[%X]",
        )
        console_handler.setFormatter(CenteredFormatter("[%(name)s]  %(message)s"))
        console_handler.setLevel(log_level)
        logger.addHandler(console_handler)

        if settings.log_file:
            logger.addHandler(_file_handler(settings.log_file, log_level))

        logger.propagate = False
        logger.debug(f"Logger '{name}' ready.")

    return logger
