"""Test-taking endpoints: fetch, start, save progress and submit a test paper.

Failures surface to the learner as SUBMISSION_FAILED with a generic message;
the category (not_found, forbidden, invalid_state, malformed_input) is logged.
"""

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from mockexam.core.app_exceptions import learner_errors
from mockexam.core.dependencies import StudentUser
from mockexam.db.session import get_db
from mockexam.schemas.attempt import AttemptOut, ProgressRequest, SubmitRequest, SubmitResult
from mockexam.schemas.test_paper import AttemptState, SectionPublic, TestPaperPublic
from mockexam.services import submission
from mockexam.services.exam_gate import build_paper_key, check_access, load_paper

router = APIRouter(prefix="/exam", tags=["Exam"])


@router.get(
    "/{test_paper_id}",
    response_model=TestPaperPublic,
    summary="Get a test paper for taking",
    description="Sections, questions and options without correctness or explanations.",
)
def get_test_paper(
    test_paper_id: UUID, current_user: StudentUser, db: Session = Depends(get_db)
) -> TestPaperPublic:
    with learner_errors("fetch", test_paper_id=test_paper_id, user_id=current_user.id):
        paper = load_paper(db, test_paper_id)
        check_access(db, current_user, paper)
        submission.expire_overdue_attempts(db, test_paper_id=paper.id, user_id=current_user.id)
        attempt = submission.get_in_progress_attempt(db, current_user.id, paper.id)

    exam = paper.subject.exam
    return TestPaperPublic(
        id=paper.id,
        title=paper.title,
        description=paper.description,
        duration=paper.duration,
        total_marks=build_paper_key(paper).total_marks,
        exam_name=exam.name,
        subject_name=paper.subject.name,
        instructions=exam.instructions,
        sections=[SectionPublic.model_validate(s) for s in paper.sections],
        attempt=AttemptState.model_validate(attempt) if attempt is not None else None,
    )


@router.post(
    "/{test_paper_id}/start",
    response_model=AttemptOut,
    summary="Start or resume an attempt",
)
def start_attempt(test_paper_id: UUID, current_user: StudentUser, db: Session = Depends(get_db)):
    with learner_errors("start", test_paper_id=test_paper_id, user_id=current_user.id):
        return submission.start_attempt(db, current_user, test_paper_id)


@router.put(
    "/{test_paper_id}/progress",
    response_model=AttemptOut,
    summary="Save in-progress answers",
)
def save_progress(
    test_paper_id: UUID,
    payload: ProgressRequest,
    current_user: StudentUser,
    db: Session = Depends(get_db),
):
    with learner_errors(
        "progress",
        test_paper_id=test_paper_id,
        attempt_id=payload.attempt_id,
        user_id=current_user.id,
    ):
        return submission.save_progress(
            db, current_user, test_paper_id, payload.attempt_id, payload.answers
        )


@router.post(
    "/{test_paper_id}/submit",
    response_model=SubmitResult,
    summary="Submit answers and get the score",
    description="Completes the attempt begun with /start (attempt_id defaults to the one in progress).",
)
def submit(
    test_paper_id: UUID,
    payload: SubmitRequest,
    current_user: StudentUser,
    db: Session = Depends(get_db),
) -> SubmitResult:
    with learner_errors(
        "submit",
        test_paper_id=test_paper_id,
        attempt_id=payload.attempt_id,
        user_id=current_user.id,
    ):
        attempt = submission.submit_attempt(
            db,
            current_user,
            test_paper_id,
            payload.answers,
            attempt_id=payload.attempt_id,
            time_spent=payload.time_spent,
        )
    return SubmitResult(
        attempt_id=attempt.id,
        total_marks=attempt.total_marks,
        obtained_marks=attempt.obtained_marks,
        percentage=attempt.percentage,
        rank=attempt.rank,
    )
