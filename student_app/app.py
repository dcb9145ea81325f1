"""
Student Application - daftar quiz, join quiz, dan lapor violation
"""
import logging
from pathlib import Path
from typing import Optional

from shared.context import QuizContext
from shared.database.database_manager import DatabaseManager
from shared.networking.client import ViolationReporter
from shared.notifications.models import ViolationType
from shared.quiz.models import ClassifiedQuizSet, Quiz
from shared.quiz.service import StudentQuizService
from shared.utils.config_loader import ConfigLoader

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("config/student_config.json")
DEFAULT_TEMPLATE_PATH = Path("config/student_config_template.json")


def format_quiz_line(quiz: Quiz) -> str:
    """Satu baris ringkasan quiz untuk output terminal"""
    parts = [quiz.title, f"[{quiz.id}]"]
    if quiz.release_at is not None:
        parts.append(f"release {quiz.release_at.isoformat()}")
    if quiz.duration_minutes:
        parts.append(f"{quiz.duration_minutes} min")
    return "  - " + " ".join(parts)


def format_classified(classified: ClassifiedQuizSet) -> str:
    """Render tiga bucket quiz"""
    lines = []
    for label, quizzes in (("Active", classified.active),
                           ("Upcoming", classified.upcoming),
                           ("Completed", classified.completed)):
        lines.append(f"{label} ({len(quizzes)})")
        lines.extend(format_quiz_line(quiz) for quiz in quizzes)
    return "\n".join(lines)


class StudentApp:
    """Aplikasi siswa (headless)"""

    def __init__(self, config_path: Path = DEFAULT_CONFIG_PATH,
                 template_path: Path = DEFAULT_TEMPLATE_PATH, config: dict = None):
        if config is None:
            config = ConfigLoader.load_config(str(config_path), str(template_path))
        self.config = config

        self.student_id = str(ConfigLoader.get(config, 'student.id', '') or '')
        if not self.student_id:
            raise ValueError("student.id must be set in the student config")
        self.student_name = ConfigLoader.get(config, 'student.name') or self.student_id

        self.db_manager = DatabaseManager(ConfigLoader.get(config, 'database.path', 'data/kuis.db'))
        self.service = StudentQuizService(QuizContext(repository=self.db_manager), self.student_id)
        self.server_url = ConfigLoader.get(config, 'server.url', 'ws://localhost:8765')

    def list_quizzes(self) -> ClassifiedQuizSet:
        """Fetch dan klasifikasi quiz siswa"""
        return self.service.refresh()

    def join_quiz(self, code: str) -> ClassifiedQuizSet:
        """Join quiz dengan kode; JoinError diteruskan ke pemanggil"""
        return self.service.join_quiz(code)

    async def report_violation(self, quiz_id: str,
                               violation_type: ViolationType) -> Optional[str]:
        """
        Laporkan violation ke server

        Returns:
            ID violation dari server, atau None jika gagal terkirim
        """
        reporter = ViolationReporter(self.server_url, self.student_id)
        if not await reporter.connect():
            return None
        try:
            return await reporter.report_violation(quiz_id, self.student_name, violation_type)
        finally:
            await reporter.disconnect()
