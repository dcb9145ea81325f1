from .models import Base, QuizRow, StudentQuizRow, SubmissionRow, ViolationRow, ViolationType
from .database_manager import DatabaseManager

__all__ = [
    'Base',
    'QuizRow',
    'StudentQuizRow',
    'SubmissionRow',
    'ViolationRow',
    'ViolationType',
    'DatabaseManager'
]
