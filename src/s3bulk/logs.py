import logging

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "s3bulk"

# Логи идут в stderr, чтобы не смешиваться со строками статистики в stdout
console = Console(stderr=True)


def setup_logging(debug: bool = False) -> logging.Logger:
    """Настраивает логгер пакета: RichHandler, DEBUG при --debug, иначе INFO."""
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)
    handler = RichHandler(console=console, show_path=debug, rich_tracebacks=True, markup=False)
    handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if debug else logging.INFO)
    return logger
