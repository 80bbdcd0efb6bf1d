"""Custom quiz endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from mockexam.core.dependencies import StudentUser
from mockexam.db.session import get_db
from mockexam.schemas.custom_quiz import CustomQuizCreate, CustomQuizOut, QuizSubject
from mockexam.services import custom_quiz

router = APIRouter(prefix="/quiz", tags=["Quiz"])


@router.get("/subjects", response_model=list[QuizSubject], summary="Subjects for custom quizzes")
def quiz_subjects(current_user: StudentUser, db: Session = Depends(get_db)) -> list[dict]:
    return custom_quiz.list_quiz_subjects(db)


@router.get("/custom", response_model=list[CustomQuizOut], summary="List my custom quizzes")
def list_quizzes(current_user: StudentUser, db: Session = Depends(get_db)):
    return custom_quiz.list_custom_quizzes(db, current_user)


@router.post(
    "/custom",
    response_model=CustomQuizOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create a custom quiz",
)
def create_quiz(payload: CustomQuizCreate, current_user: StudentUser, db: Session = Depends(get_db)):
    return custom_quiz.create_custom_quiz(db, current_user, payload)


@router.delete("/custom/{quiz_id}", summary="Delete a custom quiz")
def delete_quiz(quiz_id: UUID, current_user: StudentUser, db: Session = Depends(get_db)) -> dict:
    custom_quiz.delete_custom_quiz(db, current_user, quiz_id)
    return {"message": "Quiz deleted successfully"}
