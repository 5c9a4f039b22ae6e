import logging
import os
from logging.handlers import RotatingFileHandler

from rich.console import Console
from rich.logging import RichHandler


def setup_logger(verbose: bool = False, log_file: str | None = None) -> None:
    handlers = [RichHandler(console=Console(stderr=True), show_path=verbose)]
    if log_file:
        log_dir = os.path.dirname(os.path.abspath(log_file))
        os.makedirs(log_dir, exist_ok=True)
        handler = RotatingFileHandler(log_file, maxBytes=1_000_000, backupCount=3, encoding='utf-8')
        handler.setFormatter(
            logging.Formatter('%(asctime)s %(module)-10s %(levelname)-8s %(message)s')
        )
        handler.setLevel(logging.DEBUG)
        handlers.append(handler)

    logging.basicConfig(
        level=logging.DEBUG if verbose or log_file else logging.WARNING,
        datefmt='[%H:%M:%S]',
        format='%(message)s',
        handlers=handlers,
        force=True,
    )
    handlers[0].setLevel(logging.DEBUG if verbose else logging.WARNING)
