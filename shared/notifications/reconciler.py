"""
Security violation notification pipeline

Menggabungkan violation historis, event live dari channel, dan dismissal set
menjadi satu daftar visible yang authoritative untuk satu guru.
"""
import enum
import logging
from datetime import datetime
from typing import Any, Callable, FrozenSet, Iterable, List, Optional, Set, Tuple

from shared.context import NotificationContext
from shared.errors import PersistenceError, PipelineStateError, RepositoryError, SubscriptionError
from shared.utils.clock import ensure_utc, to_millis
from .models import Violation, ViolationEvent

logger = logging.getLogger(__name__)

ChangeCallback = Callable[[Tuple[Violation, ...]], None]
LostCallback = Callable[[SubscriptionError], None]


class PipelineState(enum.Enum):
    """State lifecycle pipeline"""
    UNINITIALIZED = "uninitialized"
    LOADING = "loading"
    SUBSCRIBED = "subscribed"
    TORN_DOWN = "torn_down"


def synthesize_violation_id(teacher_id: str, timestamp: datetime) -> str:
    """
    ID lokal untuk event live tanpa ID durable

    Hanya stabil selama (teacher_id, timestamp dalam ms) sama persis.
    """
    return f"live:{teacher_id}:{to_millis(timestamp)}"


def _newest_first(violations: Iterable[Violation]) -> List[Violation]:
    return sorted(violations, key=lambda v: ensure_utc(v.occurred_at), reverse=True)


class SecurityNotificationPipeline:
    """Pipeline notifikasi violation untuk satu guru"""

    def __init__(self, context: NotificationContext):
        """
        Args:
            context: Repository violation, channel, dismissal store, dan clock
        """
        self.context = context
        self.state = PipelineState.UNINITIALIZED
        self.teacher_id: Optional[str] = None

        self._visible: List[Violation] = []
        self._dismissed: Set[str] = set()
        self._handle: Any = None
        self._change_callback: Optional[ChangeCallback] = None
        self._lost_callback: Optional[LostCallback] = None
        self.subscription_error: Optional[SubscriptionError] = None

    @property
    def visible_violations(self) -> Tuple[Violation, ...]:
        """Daftar violation yang tampil, terbaru di depan"""
        return tuple(self._visible)

    @property
    def dismissed_ids(self) -> FrozenSet[str]:
        return frozenset(self._dismissed)

    def set_change_callback(self, callback: Optional[ChangeCallback]):
        """Set callback yang dipanggil setiap daftar visible berubah"""
        self._change_callback = callback

    def set_lost_callback(self, callback: Optional[LostCallback]):
        """Set callback yang dipanggil jika subscription putus setelah initialize"""
        self._lost_callback = callback

    async def initialize(self, teacher_id: str):
        """
        Load dismissal, query historis, lalu subscribe channel untuk guru

        Jika query historis gagal, subscribe tetap dicoba lalu RepositoryError
        dilempar ke caller. Jika subscribe gagal, SubscriptionError dilempar
        dan pipeline kembali ke UNINITIALIZED (tanpa retry otomatis).

        Raises:
            PipelineStateError: jika pipeline bukan UNINITIALIZED
            RepositoryError: query historis gagal (subscription tetap aktif)
            SubscriptionError: subscribe channel gagal
        """
        if self.state is not PipelineState.UNINITIALIZED:
            raise PipelineStateError(
                f"Cannot initialize pipeline in state {self.state.value}", self.state
            )

        self.state = PipelineState.LOADING
        self.teacher_id = teacher_id
        self._dismissed = self._load_dismissals()

        history_error: Optional[RepositoryError] = None
        try:
            history = self._load_history(teacher_id)
        except RepositoryError as e:
            logger.error("Error fetching violation history for teacher %s: %s", teacher_id, e)
            history_error = e
            history = []

        self._visible = self._filter_history(history)
        self._notify_change()

        try:
            handle = await self.context.channel.subscribe(
                teacher_id, self.on_live_event, self._on_subscription_lost
            )
        except Exception as e:
            logger.error("Subscription failed for teacher %s: %s", teacher_id, e)
            if self.state is PipelineState.LOADING:
                self.state = PipelineState.UNINITIALIZED
            if isinstance(e, SubscriptionError):
                raise
            raise SubscriptionError(f"Cannot subscribe to violation channel: {e}") from e

        if self.state is PipelineState.TORN_DOWN:
            # teardown() dipanggil selama subscribe berlangsung
            logger.info("Pipeline torn down during initialize, releasing subscription")
            await self._release(handle)
            return

        self._handle = handle
        self.state = PipelineState.SUBSCRIBED
        logger.info("Subscribed to violations for teacher %s (%d visible)",
                    teacher_id, len(self._visible))

        if history_error is not None:
            raise history_error

    def on_live_event(self, event: ViolationEvent):
        """Terapkan satu event live dari channel (urutan delivery)"""
        if self.state not in (PipelineState.LOADING, PipelineState.SUBSCRIBED):
            return

        if event.teacher_id != self.teacher_id:
            logger.warning("Discarding violation event scoped to another teacher")
            return

        violation = self._event_to_violation(event)
        if violation.id in self._dismissed:
            logger.debug("Dropping dismissed violation %s", violation.id)
            return
        if any(v.id == violation.id for v in self._visible):
            logger.debug("Dropping duplicate violation %s", violation.id)
            return

        logger.info("New violation received: %s (%s)", violation.id, violation.violation_type.value)
        self._visible = _newest_first([violation] + self._visible)
        self._notify_change()

    def dismiss(self, violation_id: str) -> bool:
        """
        Sembunyikan violation dan simpan dismissal segera

        Returns:
            False jika ID sudah di-dismiss atau tidak dikenal (no-op)
        """
        if violation_id in self._dismissed:
            return False
        if not any(v.id == violation_id for v in self._visible):
            return False

        self._dismissed.add(violation_id)
        self._visible = [v for v in self._visible if v.id != violation_id]
        self._persist_dismissals()
        self._notify_change()
        return True

    def _on_subscription_lost(self, error: Exception):
        """Dipanggil channel jika subscription aktif putus"""
        if self.state not in (PipelineState.LOADING, PipelineState.SUBSCRIBED):
            return

        if not isinstance(error, SubscriptionError):
            error = SubscriptionError(str(error))
        self.subscription_error = error
        logger.error("Live violation feed lost for teacher %s: %s", self.teacher_id, error)
        if self._lost_callback:
            self._lost_callback(error)

    async def teardown(self):
        """Lepas subscription channel; aman dipanggil berulang kali"""
        if self.state is PipelineState.TORN_DOWN:
            return

        self.state = PipelineState.TORN_DOWN
        handle, self._handle = self._handle, None
        if handle is not None:
            await self._release(handle)
        logger.info("Violation pipeline torn down for teacher %s", self.teacher_id)

    def _load_history(self, teacher_id: str) -> List[Violation]:
        repository = self.context.violations
        quiz_ids = repository.list_teacher_quiz_ids(teacher_id)
        if not quiz_ids:
            return []
        return repository.list_violations(quiz_ids, limit=self.context.history_limit)

    def _filter_history(self, history: Iterable[Violation]) -> List[Violation]:
        seen: Set[str] = set()
        merged = []
        for violation in history:
            if violation.id in self._dismissed or violation.id in seen:
                continue
            seen.add(violation.id)
            merged.append(violation)
        return _newest_first(merged)

    def _event_to_violation(self, event: ViolationEvent) -> Violation:
        if event.timestamp is not None:
            occurred_at = ensure_utc(event.timestamp)
        else:
            occurred_at = ensure_utc(self.context.clock.now())

        violation_id = event.violation_id or synthesize_violation_id(event.teacher_id, occurred_at)
        return Violation(
            id=violation_id,
            student_name=event.student_name,
            quiz_title=event.quiz_title,
            violation_type=event.violation_type,
            occurred_at=occurred_at,
            quiz_id=event.quiz_id,
            teacher_id=event.teacher_id
        )

    def _load_dismissals(self) -> Set[str]:
        try:
            return set(self.context.dismissals.load())
        except PersistenceError as e:
            # Gagal baca = anggap belum ada dismissal
            logger.error("Error loading dismissals, treating as empty: %s", e)
            return set()

    def _persist_dismissals(self):
        try:
            self.context.dismissals.save(set(self._dismissed))
        except PersistenceError as e:
            logger.error("Error saving dismissals: %s", e)

    async def _release(self, handle: Any):
        try:
            await self.context.channel.unsubscribe(handle)
        except Exception as e:
            logger.error("Error unsubscribing from violation channel: %s", e)

    def _notify_change(self):
        if self._change_callback:
            self._change_callback(self.visible_violations)
