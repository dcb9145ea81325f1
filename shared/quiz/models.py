"""Domain models untuk quiz lifecycle."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class Quiz:
    """Quiz yang sudah di-join siswa. release_at None = selalu tersedia."""

    id: str
    title: str
    release_at: datetime | None = None
    duration_minutes: int | None = None
    code: str | None = None
    teacher_id: str | None = None
    created_at: datetime | None = None


@dataclass(frozen=True)
class Submission:
    quiz_id: str
    student_id: str
    submitted_at: datetime | None = None


@dataclass(frozen=True)
class ClassifiedQuizSet:
    """Tiga bucket disjoint hasil klasifikasi, urutan mengikuti input."""

    active: tuple[Quiz, ...] = ()
    upcoming: tuple[Quiz, ...] = ()
    completed: tuple[Quiz, ...] = ()

    def all_quizzes(self) -> tuple[Quiz, ...]:
        return self.active + self.upcoming + self.completed

    def bucket_of(self, quiz_id: str) -> str | None:
        for name in ("active", "upcoming", "completed"):
            if any(quiz.id == quiz_id for quiz in getattr(self, name)):
                return name
        return None
