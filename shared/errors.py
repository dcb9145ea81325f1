"""
Error taxonomy untuk quiz lifecycle dan notification pipeline
"""
import enum
from typing import Optional


class KuisError(Exception):
    """Base class untuk semua error di project ini"""


class RepositoryError(KuisError):
    """Query atau command ke repository gagal (tidak di-retry otomatis)"""


class JoinErrorKind(enum.Enum):
    """Alasan kegagalan join quiz"""
    INVALID_CODE = "invalid_code"
    ALREADY_JOINED = "already_joined"
    QUIZ_FULL = "quiz_full"
    NETWORK = "network"


class JoinError(RepositoryError):
    """Join quiz ditolak atau gagal"""

    def __init__(self, kind: JoinErrorKind, message: str = None):
        self.kind = kind
        super().__init__(message or kind.value)


class SubscriptionError(KuisError):
    """Subscribe ke violation channel gagal (tidak di-retry otomatis)"""


class PersistenceError(KuisError):
    """Read/write dismissal store gagal"""


class InvalidEventError(KuisError):
    """Payload live event tidak valid, ditolak di transport boundary"""


class PipelineStateError(KuisError):
    """Transisi state pipeline tidak valid"""

    def __init__(self, message: str, state: Optional[enum.Enum] = None):
        self.state = state
        super().__init__(message)
