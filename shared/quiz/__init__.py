from .models import Quiz, Submission, ClassifiedQuizSet
from .classifier import classify

__all__ = [
    'Quiz',
    'Submission',
    'ClassifiedQuizSet',
    'classify'
]
