"""
Validasi dan pembuatan kode join quiz
"""
import re
import secrets
import string

from shared.errors import JoinError, JoinErrorKind

QUIZ_CODE_LENGTH = 6
QUIZ_CODE_PATTERN = re.compile(r"^[A-Z0-9]{6}$")
_ALPHABET = string.ascii_uppercase + string.digits


def normalize_quiz_code(code: str) -> str:
    """
    Uppercase dan validasi kode quiz

    Raises:
        JoinError(INVALID_CODE) jika kosong, bukan 6 karakter, atau bukan huruf/angka
    """
    normalized = (code or "").strip().upper()
    if not normalized:
        raise JoinError(JoinErrorKind.INVALID_CODE, "Please enter a quiz code")
    if len(normalized) != QUIZ_CODE_LENGTH:
        raise JoinError(JoinErrorKind.INVALID_CODE,
                        f"Quiz code must be {QUIZ_CODE_LENGTH} characters long")
    if not QUIZ_CODE_PATTERN.match(normalized):
        raise JoinError(JoinErrorKind.INVALID_CODE,
                        "Quiz code can only contain letters and numbers")
    return normalized


def generate_quiz_code() -> str:
    return "".join(secrets.choice(_ALPHABET) for _ in range(QUIZ_CODE_LENGTH))
