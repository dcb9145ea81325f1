"""
Database manager: quiz repository dan violation repository
"""
import logging
import os
from contextlib import contextmanager
from datetime import datetime
from typing import Iterable, List, Optional, Union

from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from shared.errors import JoinError, JoinErrorKind, RepositoryError
from shared.notifications.models import Violation
from shared.quiz.codes import generate_quiz_code, normalize_quiz_code
from shared.quiz.models import Quiz, Submission
from shared.utils.clock import ensure_utc
from .models import Base, QuizRow, StudentQuizRow, SubmissionRow, ViolationRow, ViolationType

logger = logging.getLogger(__name__)


def _to_db_time(value: Optional[datetime]) -> Optional[datetime]:
    """SQLite menyimpan datetime naive; simpan selalu sebagai UTC naive"""
    if value is None:
        return None
    return ensure_utc(value).replace(tzinfo=None)


class DatabaseManager:
    """Manager untuk operasi database"""

    def __init__(self, db_path: str = "data/kuis.db"):
        """
        Initialize database manager

        Args:
            db_path: Path ke file database SQLite
        """
        db_dir = os.path.dirname(db_path)
        if db_dir:
            os.makedirs(db_dir, exist_ok=True)

        self.db_path = db_path
        self.engine = create_engine(f'sqlite:///{db_path}', echo=False)
        # Objek ORM tetap bisa dibaca setelah session ditutup
        self.SessionLocal = sessionmaker(bind=self.engine, expire_on_commit=False)

        Base.metadata.create_all(self.engine)

    @contextmanager
    def get_session(self):
        """Context manager untuk session database"""
        session = self.SessionLocal()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            logger.error("Database error: %s", e)
            raise RepositoryError(str(e)) from e
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    # Quiz Operations
    def create_quiz(self, title: str, teacher_id: str, code: str = None,
                    release_at: datetime = None, duration_minutes: int = None,
                    max_participants: int = None) -> Quiz:
        """Buat quiz baru; kode dibuat otomatis jika tidak diberikan"""
        try:
            code = normalize_quiz_code(code) if code else generate_quiz_code()
        except JoinError as e:
            raise ValueError(str(e)) from e
        with self.get_session() as session:
            quiz = QuizRow(
                title=title,
                teacher_id=teacher_id,
                code=code,
                release_date=_to_db_time(release_at),
                duration_minutes=duration_minutes,
                max_participants=max_participants
            )
            session.add(quiz)
            session.flush()
            return self._to_quiz(quiz)

    def get_quiz(self, quiz_id: str) -> Optional[Quiz]:
        """Ambil quiz berdasarkan ID"""
        with self.get_session() as session:
            quiz = session.query(QuizRow).filter_by(id=quiz_id).first()
            return self._to_quiz(quiz) if quiz else None

    def get_quiz_by_code(self, code: str) -> Optional[Quiz]:
        """Ambil quiz berdasarkan kode join"""
        with self.get_session() as session:
            quiz = session.query(QuizRow).filter_by(code=code.strip().upper()).first()
            return self._to_quiz(quiz) if quiz else None

    def list_joined_quizzes(self, student_id: str) -> List[Quiz]:
        """Ambil semua quiz yang sudah di-join siswa, urut berdasarkan waktu join"""
        with self.get_session() as session:
            joins = session.query(StudentQuizRow).filter_by(
                student_id=student_id
            ).order_by(StudentQuizRow.joined_at, StudentQuizRow.id).all()

            quizzes = []
            for join in joins:
                quiz = join.quiz
                if quiz is None or not quiz.id or not quiz.title:
                    logger.warning("Skipping invalid quiz row for join %s", join.id)
                    continue
                quizzes.append(self._to_quiz(quiz))
            return quizzes

    def join_quiz(self, student_id: str, code: str) -> Quiz:
        """
        Daftarkan siswa ke quiz berdasarkan kode

        Raises:
            JoinError: INVALID_CODE, ALREADY_JOINED, QUIZ_FULL, atau NETWORK
        """
        normalized = normalize_quiz_code(code)
        try:
            with self.get_session() as session:
                quiz = session.query(QuizRow).filter_by(code=normalized).first()
                if not quiz:
                    raise JoinError(JoinErrorKind.INVALID_CODE,
                                    "Invalid quiz code or quiz not found")

                existing = session.query(StudentQuizRow).filter_by(
                    student_id=student_id, quiz_id=quiz.id
                ).first()
                if existing:
                    raise JoinError(JoinErrorKind.ALREADY_JOINED,
                                    "You have already joined this quiz")

                if quiz.max_participants:
                    count = session.query(StudentQuizRow).filter_by(quiz_id=quiz.id).count()
                    if count >= quiz.max_participants:
                        raise JoinError(JoinErrorKind.QUIZ_FULL,
                                        "This quiz has reached its maximum number of participants")

                session.add(StudentQuizRow(student_id=student_id, quiz_id=quiz.id))
                session.flush()
                return self._to_quiz(quiz)
        except JoinError:
            raise
        except RepositoryError as e:
            raise JoinError(JoinErrorKind.NETWORK, str(e)) from e

    # Submission Operations
    def list_submissions(self, student_id: str) -> List[Submission]:
        """Ambil semua submission siswa"""
        with self.get_session() as session:
            rows = session.query(SubmissionRow).filter_by(student_id=student_id).all()
            return [self._to_submission(row) for row in rows]

    def submit_quiz(self, student_id: str, quiz_id: str,
                    submitted_at: datetime = None) -> Submission:
        """Catat submission; submission kedua mengembalikan yang sudah ada"""
        with self.get_session() as session:
            existing = session.query(SubmissionRow).filter_by(
                student_id=student_id, quiz_id=quiz_id
            ).first()
            if existing:
                return self._to_submission(existing)

            row = SubmissionRow(student_id=student_id, quiz_id=quiz_id)
            if submitted_at is not None:
                row.submitted_at = _to_db_time(submitted_at)
            session.add(row)
            session.flush()
            return self._to_submission(row)

    # Violation Operations
    def list_teacher_quiz_ids(self, teacher_id: str) -> List[str]:
        """Ambil ID semua quiz milik guru"""
        with self.get_session() as session:
            rows = session.query(QuizRow.id).filter_by(teacher_id=teacher_id).all()
            return [row[0] for row in rows]

    def list_violations(self, quiz_ids: Iterable[str], limit: int = None) -> List[Violation]:
        """Ambil violation untuk quiz tertentu, terbaru di depan"""
        quiz_ids = list(quiz_ids)
        if not quiz_ids:
            return []

        with self.get_session() as session:
            query = session.query(ViolationRow).filter(
                ViolationRow.quiz_id.in_(quiz_ids)
            ).order_by(ViolationRow.occurred_at.desc(), ViolationRow.id.desc())
            if limit:
                query = query.limit(limit)
            return [self._to_violation(row) for row in query.all()]

    def record_violation(self, quiz_id: str, student_name: str,
                         violation_type: Union[ViolationType, str],
                         student_id: str = None, occurred_at: datetime = None) -> Violation:
        """Simpan violation baru; judul quiz dan guru diambil dari baris quiz"""
        if not isinstance(violation_type, ViolationType):
            violation_type = ViolationType(violation_type)

        with self.get_session() as session:
            quiz = session.query(QuizRow).filter_by(id=quiz_id).first()
            if not quiz:
                raise RepositoryError(f"Quiz {quiz_id} not found")

            row = ViolationRow(
                quiz=quiz,
                student_id=student_id,
                student_name=student_name,
                quiz_title=quiz.title,
                violation_type=violation_type
            )
            if occurred_at is not None:
                row.occurred_at = _to_db_time(occurred_at)
            session.add(row)
            session.flush()
            return self._to_violation(row)

    @staticmethod
    def _to_quiz(row: QuizRow) -> Quiz:
        return Quiz(
            id=row.id,
            title=row.title,
            release_at=ensure_utc(row.release_date),
            duration_minutes=row.duration_minutes,
            code=row.code,
            teacher_id=row.teacher_id,
            created_at=ensure_utc(row.created_at)
        )

    @staticmethod
    def _to_submission(row: SubmissionRow) -> Submission:
        return Submission(
            quiz_id=row.quiz_id,
            student_id=row.student_id,
            submitted_at=ensure_utc(row.submitted_at)
        )

    @staticmethod
    def _to_violation(row: ViolationRow) -> Violation:
        return Violation(
            id=row.id,
            student_name=row.student_name,
            quiz_title=row.quiz_title,
            violation_type=row.violation_type,
            occurred_at=ensure_utc(row.occurred_at),
            quiz_id=row.quiz_id,
            teacher_id=row.quiz.teacher_id if row.quiz is not None else None
        )
