"""
Format pesan notifikasi violation untuk guru
"""
from .models import Violation, ViolationType

_VIOLATION_MESSAGES = {
    ViolationType.TAB_SWITCH: "switched tabs",
    ViolationType.WINDOW_BLUR: "left the quiz window",
    ViolationType.FULLSCREEN_EXIT: "exited fullscreen mode",
}
_DEFAULT_MESSAGE = "performed an unauthorized action"


def format_violation_message(violation_type: ViolationType) -> str:
    return _VIOLATION_MESSAGES.get(violation_type, _DEFAULT_MESSAGE)


def describe_violation(violation: Violation) -> str:
    """Kalimat notifikasi lengkap untuk satu violation"""
    return (
        f"{violation.quiz_title}: Student {violation.student_name} has "
        f"{format_violation_message(violation.violation_type)} during the quiz."
    )
