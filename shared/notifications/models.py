"""Domain models untuk security violation notifications."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime


class ViolationType(enum.Enum):
    """Jenis pelanggaran proctoring. Tipe di luar enum ditolak."""

    TAB_SWITCH = "tab_switch"
    WINDOW_BLUR = "window_blur"
    FULLSCREEN_EXIT = "fullscreen_exit"
    OTHER = "other"


@dataclass(frozen=True)
class Violation:
    """Violation yang bisa tampil di daftar notifikasi guru."""

    id: str
    student_name: str
    quiz_title: str
    violation_type: ViolationType
    occurred_at: datetime
    quiz_id: str | None = None
    teacher_id: str | None = None


@dataclass(frozen=True)
class ViolationEvent:
    """Event `violation_occurred` dari live channel.

    violation_id hanya terisi jika producer menyertakan id durable.
    """

    teacher_id: str
    student_name: str
    quiz_title: str
    violation_type: ViolationType
    timestamp: datetime | None = None
    violation_id: str | None = None
    quiz_id: str | None = None
