"""
Service quiz untuk siswa: fetch, klasifikasi, dan join
"""
import logging
from typing import Optional

from shared.context import QuizContext
from shared.errors import JoinError
from .classifier import classify
from .models import ClassifiedQuizSet

logger = logging.getLogger(__name__)


class StudentQuizService:
    """Menjaga klasifikasi quiz milik satu siswa tetap sinkron dengan repository"""

    def __init__(self, context: QuizContext, student_id: str):
        self.context = context
        self.student_id = student_id
        self._classified: Optional[ClassifiedQuizSet] = None

    @property
    def classified(self) -> ClassifiedQuizSet:
        """Hasil klasifikasi terakhir (kosong sebelum refresh pertama)"""
        return self._classified or ClassifiedQuizSet()

    def refresh(self) -> ClassifiedQuizSet:
        """
        Fetch ulang quiz dan submission lalu klasifikasi dari awal

        Raises:
            RepositoryError: jika query gagal; hasil sebelumnya tidak diubah
        """
        repository = self.context.repository
        quizzes = repository.list_joined_quizzes(self.student_id)
        submissions = repository.list_submissions(self.student_id)

        self._classified = classify(quizzes, submissions, self.context.clock.now())
        logger.debug(
            "Classified quizzes for %s: %d active, %d upcoming, %d completed",
            self.student_id,
            len(self._classified.active),
            len(self._classified.upcoming),
            len(self._classified.completed),
        )
        return self._classified

    def join_quiz(self, code: str) -> ClassifiedQuizSet:
        """
        Join quiz dengan kode, lalu klasifikasi ulang dari data baru

        Raises:
            JoinError: jika join ditolak atau gagal
        """
        try:
            quiz = self.context.repository.join_quiz(self.student_id, code)
        except JoinError as e:
            logger.warning("Join quiz failed for %s (%s): %s", self.student_id, e.kind.value, e)
            raise

        logger.info("Student %s joined quiz %s", self.student_id, quiz.id)
        return self.refresh()
