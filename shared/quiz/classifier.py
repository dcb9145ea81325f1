"""
Quiz lifecycle classifier: active / upcoming / completed
"""
from datetime import datetime
from typing import Iterable, List

from shared.utils.clock import ensure_utc
from .models import ClassifiedQuizSet, Quiz, Submission


def classify(quizzes: Iterable[Quiz], submissions: Iterable[Submission],
             now: datetime) -> ClassifiedQuizSet:
    """
    Partisi quiz yang sudah di-join ke tiga bucket disjoint

    Submission selalu menang atas timing: quiz yang sudah disubmit masuk
    completed walaupun release_at masih di masa depan. release_at == now
    termasuk active.

    Args:
        quizzes: Quiz yang di-join siswa, urutan dari repository
        submissions: Submission milik siswa
        now: Waktu sekarang dari clock source

    Returns:
        ClassifiedQuizSet dengan urutan relatif input dipertahankan
    """
    submitted_ids = {submission.quiz_id for submission in submissions}
    now = ensure_utc(now)

    active: List[Quiz] = []
    upcoming: List[Quiz] = []
    completed: List[Quiz] = []

    for quiz in quizzes:
        if quiz.id in submitted_ids:
            completed.append(quiz)
        elif quiz.release_at is not None and ensure_utc(quiz.release_at) > now:
            upcoming.append(quiz)
        else:
            active.append(quiz)

    return ClassifiedQuizSet(
        active=tuple(active),
        upcoming=tuple(upcoming),
        completed=tuple(completed),
    )
