"""
Database models untuk quiz dan security violation
"""
import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Enum, UniqueConstraint
from sqlalchemy.orm import declarative_base, relationship

from shared.notifications.models import ViolationType

Base = declarative_base()


def _new_id() -> str:
    return uuid.uuid4().hex


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class QuizRow(Base):
    """Quiz yang dibuat guru"""
    __tablename__ = 'quizzes'

    id = Column(String(64), primary_key=True, default=_new_id)
    title = Column(String(200), nullable=False)
    code = Column(String(6), unique=True, nullable=True)
    teacher_id = Column(String(64), nullable=False, index=True)
    release_date = Column(DateTime, nullable=True)  # null = selalu tersedia
    duration_minutes = Column(Integer, nullable=True)
    max_participants = Column(Integer, nullable=True)
    created_at = Column(DateTime, default=_utcnow)

    joins = relationship("StudentQuizRow", back_populates="quiz")
    violations = relationship("ViolationRow", back_populates="quiz")

    def __repr__(self):
        return f"<QuizRow(id='{self.id}', title='{self.title}', code='{self.code}')>"


class StudentQuizRow(Base):
    """Relasi siswa yang sudah join quiz"""
    __tablename__ = 'student_quizzes'
    __table_args__ = (UniqueConstraint('student_id', 'quiz_id', name='uq_student_quiz'),)

    id = Column(Integer, primary_key=True)
    student_id = Column(String(64), nullable=False, index=True)
    quiz_id = Column(String(64), ForeignKey('quizzes.id'), nullable=False)
    joined_at = Column(DateTime, default=_utcnow)

    quiz = relationship("QuizRow", back_populates="joins")

    def __repr__(self):
        return f"<StudentQuizRow(student_id='{self.student_id}', quiz_id='{self.quiz_id}')>"


class SubmissionRow(Base):
    """Submission quiz, maksimal satu per (student, quiz)"""
    __tablename__ = 'quiz_submissions'
    __table_args__ = (UniqueConstraint('student_id', 'quiz_id', name='uq_submission'),)

    id = Column(Integer, primary_key=True)
    student_id = Column(String(64), nullable=False, index=True)
    quiz_id = Column(String(64), ForeignKey('quizzes.id'), nullable=False)
    submitted_at = Column(DateTime, default=_utcnow)

    def __repr__(self):
        return f"<SubmissionRow(student_id='{self.student_id}', quiz_id='{self.quiz_id}')>"


class ViolationRow(Base):
    """Pelanggaran keamanan yang tercatat selama quiz"""
    __tablename__ = 'quiz_security_violations'

    id = Column(String(64), primary_key=True, default=_new_id)
    quiz_id = Column(String(64), ForeignKey('quizzes.id'), nullable=False, index=True)
    student_id = Column(String(64), nullable=True)
    student_name = Column(String(200), nullable=False)
    quiz_title = Column(String(200), nullable=False)
    violation_type = Column(Enum(ViolationType), nullable=False)
    occurred_at = Column(DateTime, default=_utcnow, index=True)

    quiz = relationship("QuizRow", back_populates="violations")

    def __repr__(self):
        return f"<ViolationRow(id='{self.id}', type='{self.violation_type.value}', quiz_id='{self.quiz_id}')>"
