"""
Context eksplisit untuk service: clock, repository, channel, dismissal store

Setiap komponen menerima context saat konstruksi sehingga tidak ada singleton
global dan semua kolaborator bisa diganti fake di test.
"""
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Iterable, List, Optional, Protocol, Set

from shared.notifications.models import Violation, ViolationEvent
from shared.quiz.models import Quiz, Submission
from shared.utils.clock import Clock, SystemClock

EventCallback = Callable[[ViolationEvent], None]
LostCallback = Callable[[Exception], None]


class QuizRepository(Protocol):
    def list_joined_quizzes(self, student_id: str) -> List[Quiz]:
        ...

    def list_submissions(self, student_id: str) -> List[Submission]:
        ...

    def join_quiz(self, student_id: str, code: str) -> Quiz:
        ...


class ViolationRepository(Protocol):
    def list_teacher_quiz_ids(self, teacher_id: str) -> List[str]:
        ...

    def list_violations(self, quiz_ids: Iterable[str], limit: int = None) -> List[Violation]:
        ...


class ViolationChannel(Protocol):
    def subscribe(self, teacher_id: str, on_event: EventCallback,
                  on_lost: Optional[LostCallback] = None) -> Awaitable[Any]:
        ...

    def unsubscribe(self, handle: Any) -> Awaitable[None]:
        ...


class DismissalStore(Protocol):
    def load(self) -> Set[str]:
        ...

    def save(self, violation_ids: Set[str]) -> None:
        ...


@dataclass
class QuizContext:
    """Kolaborator untuk quiz lifecycle"""
    repository: QuizRepository
    clock: Clock = field(default_factory=SystemClock)


@dataclass
class NotificationContext:
    """Kolaborator untuk security notification pipeline"""
    violations: ViolationRepository
    channel: ViolationChannel
    dismissals: DismissalStore
    clock: Clock = field(default_factory=SystemClock)
    history_limit: Optional[int] = None
