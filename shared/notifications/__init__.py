from .models import ViolationType, Violation, ViolationEvent

__all__ = [
    'ViolationType',
    'Violation',
    'ViolationEvent'
]
