"""
Konfigurasi logging untuk semua aplikasi
"""
import logging
import os
from logging import Logger

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def configure_logging(level: str = "INFO", log_file: str = None) -> Logger:
    """
    Setup logging dasar dan kembalikan logger root aplikasi

    Args:
        level: Nama level logging (INFO, DEBUG, ...)
        log_file: Path file log (optional), direktori dibuat jika belum ada
    """
    handlers = [logging.StreamHandler()]
    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=handlers,
    )
    return logging.getLogger("kuis_pintar")
