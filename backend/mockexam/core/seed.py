"""Seed a demo catalog and demo accounts for development."""

from sqlalchemy import select
from sqlalchemy.orm import Session

from mockexam.core.logging import get_logger
from mockexam.models.exam import Enrollment, Exam, ExamCategory, Subject, Topic
from mockexam.models.test_paper import Difficulty, Question, QuestionOption, Section, TestPaper
from mockexam.models.user import User, UserRole

logger = get_logger(__name__)

DEMO_USERS = [
    ("admin@example.com", "Admin User", UserRole.ADMIN),
    ("student@example.com", "Test Student", UserRole.STUDENT),
]

# exam -> subjects -> topics -> questions (text, marks, difficulty, explanation, options, correct index)
DEMO_CATALOG = [
    {
        "name": "UPSC Civil Services Examination",
        "description": "India's most prestigious civil services examination",
        "category": ExamCategory.UPSC,
        "duration": 180,
        "total_marks": 200,
        "subject": "General Studies",
        "paper": "UPSC Prelims Mock Test 1",
        "questions": [
            (
                "Indian History",
                "Who was the first Governor-General of India?",
                Difficulty.MEDIUM,
                "Warren Hastings was the first Governor-General of India from 1773 to 1785.",
                ["Lord Mountbatten", "Warren Hastings", "Lord Canning", "Lord Dalhousie"],
                1,
            ),
            (
                "Indian Geography",
                "Which is the longest river in India?",
                Difficulty.EASY,
                "The Ganges is the longest river in India with a length of 2,525 km.",
                ["Yamuna", "Ganges", "Brahmaputra", "Godavari"],
                1,
            ),
        ],
    },
    {
        "name": "Banking Exams",
        "description": "IBPS, SBI, RBI and other banking sector examinations",
        "category": ExamCategory.BANKING,
        "duration": 120,
        "total_marks": 200,
        "subject": "Quantitative Aptitude",
        "paper": "Banking Prelims Mock Test 1",
        "questions": [
            (
                "Arithmetic",
                "If 2x + 3 = 11, what is the value of x?",
                Difficulty.EASY,
                "2x + 3 = 11, so 2x = 8, therefore x = 4.",
                ["3", "4", "5", "6"],
                1,
            ),
            (
                "Arithmetic",
                "Complete the series: 2, 4, 8, 16, ?",
                Difficulty.EASY,
                "Each number is multiplied by 2, so 16 x 2 = 32.",
                ["24", "32", "28", "20"],
                1,
            ),
        ],
    },
]


def _get_or_create_user(db: Session, email: str, name: str, role: UserRole) -> User:
    user = db.execute(select(User).where(User.email == email)).scalar_one_or_none()
    if user is None:
        user = User(email=email, full_name=name, role=role.value, is_active=True)
        db.add(user)
        db.flush()
        logger.info("Created demo account", extra={"email": email, "role": role.value})
    return user


def seed_demo_data(db: Session) -> dict[str, int]:
    """
    Create demo users and a small catalog; existing exams are left untouched.

    The demo student is enrolled in every seeded exam.
    """
    users = {email: _get_or_create_user(db, email, name, role) for email, name, role in DEMO_USERS}
    student = users["student@example.com"]

    created = 0
    for entry in DEMO_CATALOG:
        exists = db.execute(select(Exam).where(Exam.name == entry["name"])).scalar_one_or_none()
        if exists is not None:
            continue

        exam = Exam(
            name=entry["name"],
            description=entry["description"],
            category=entry["category"].value,
            duration=entry["duration"],
            total_marks=entry["total_marks"],
            is_active=True,
        )
        subject = Subject(name=entry["subject"], exam=exam)
        topics: dict[str, Topic] = {}
        paper = TestPaper(title=entry["paper"], duration=60, subject=subject, is_active=True)
        section = Section(name="Section A", position=0, test_paper=paper)

        for position, (topic_name, text, difficulty, explanation, options, correct) in enumerate(
            entry["questions"]
        ):
            topic = topics.setdefault(topic_name, Topic(name=topic_name, subject=subject))
            section.questions.append(
                Question(
                    question_text=text,
                    marks=2,
                    difficulty=difficulty.value,
                    explanation=explanation,
                    position=position,
                    topic=topic,
                    options=[
                        QuestionOption(option_text=label, is_correct=(i == correct), position=i)
                        for i, label in enumerate(options)
                    ],
                )
            )

        db.add(exam)
        db.add(Enrollment(user=student, exam=exam, is_active=True))
        created += 1

    db.commit()
    logger.info("Demo data seeded", extra={"event": "seed_completed", "exams_created": created})
    return {"users": len(users), "exams_created": created}
