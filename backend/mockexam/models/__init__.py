"""Database models."""

from mockexam.models.attempt import Answer, TestAttempt
from mockexam.models.audit import AuditLog
from mockexam.models.custom_quiz import CustomQuiz
from mockexam.models.exam import Enrollment, Exam, ExamCategory, Subject, Topic
from mockexam.models.test_paper import (
    Difficulty,
    Question,
    QuestionOption,
    QuestionType,
    Section,
    TestPaper,
)
from mockexam.models.user import User, UserRole

__all__ = [
    "Answer",
    "AuditLog",
    "CustomQuiz",
    "Difficulty",
    "Enrollment",
    "Exam",
    "ExamCategory",
    "Question",
    "QuestionOption",
    "QuestionType",
    "Section",
    "Subject",
    "TestAttempt",
    "TestPaper",
    "Topic",
    "User",
    "UserRole",
]
