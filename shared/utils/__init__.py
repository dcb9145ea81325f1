from .config_loader import ConfigLoader
from .clock import Clock, SystemClock, ensure_utc, utc_now
from .logging_config import configure_logging

__all__ = [
    'ConfigLoader',
    'Clock',
    'SystemClock',
    'ensure_utc',
    'utc_now',
    'configure_logging'
]
