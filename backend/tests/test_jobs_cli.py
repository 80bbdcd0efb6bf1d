"""Tests for the maintenance job CLI."""

from datetime import timedelta
from uuid import uuid4

import pytest
from click.testing import CliRunner
from sqlalchemy import select

from mockexam.core.security import verify_access_token
from mockexam.jobs import run
from mockexam.models.exam import Enrollment, Exam
from mockexam.models.user import User
from mockexam.services import submission
from tests.helpers.attempts import take_paper


@pytest.fixture
def cli_db(db, monkeypatch):
    """Point the CLI at the test session and keep logging configuration untouched."""
    monkeypatch.setattr(run, "SessionLocal", lambda: db)
    monkeypatch.setattr(run, "setup_logging", lambda level=None: None)
    monkeypatch.setattr(db, "close", lambda: None)
    return db


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


def test_seed_is_idempotent(runner, cli_db):
    first = runner.invoke(run.cli, ["seed"])
    assert first.exit_code == 0, first.output
    assert "'exams_created': 2" in first.output

    second = runner.invoke(run.cli, ["seed"])
    assert "'exams_created': 0" in second.output

    student = cli_db.execute(
        select(User).where(User.email == "student@example.com")
    ).scalar_one()
    enrolled = cli_db.execute(
        select(Exam.name).join(Enrollment).where(Enrollment.user_id == student.id)
    ).scalars().all()
    assert len(enrolled) == 2


def test_rerank_needs_a_target(runner, cli_db):
    assert runner.invoke(run.cli, ["rerank"]).exit_code == 2
    assert runner.invoke(run.cli, ["rerank", "not-a-uuid"]).exit_code == 2


def test_rerank_single_paper(runner, cli_db, student, enrolled_paper):
    take_paper(cli_db, student, enrolled_paper.id, enrolled_paper.answers([True, True]))

    result = runner.invoke(run.cli, ["rerank", str(enrolled_paper.id)])

    assert result.exit_code == 0, result.output
    assert f"{enrolled_paper.id}: ranked=1 updated=0" in result.output


def test_rerank_all(runner, cli_db, student, enrolled_paper):
    take_paper(cli_db, student, enrolled_paper.id, {})

    result = runner.invoke(run.cli, ["rerank", "--all"])

    assert result.exit_code == 0, result.output
    assert "Re-ranked 1 test paper(s)" in result.output


def test_expire_attempts(runner, cli_db, student, enrolled_paper):
    attempt = submission.start_attempt(cli_db, student, enrolled_paper.id)
    overdue = timedelta(minutes=enrolled_paper.paper.duration + 5)
    attempt.started_at = submission.as_utc(attempt.started_at) - overdue
    attempt.expires_at = submission.as_utc(attempt.expires_at) - overdue
    cli_db.flush()

    result = runner.invoke(run.cli, ["expire-attempts"])

    assert result.exit_code == 0, result.output
    assert "Expired 1 attempt(s)" in result.output
    cli_db.refresh(attempt)
    assert attempt.auto_submitted is True


def test_issue_token(runner, cli_db, student):
    result = runner.invoke(run.cli, ["issue-token", student.email, "--minutes", "5"])

    assert result.exit_code == 0, result.output
    payload = verify_access_token(result.output.strip())
    assert payload["sub"] == str(student.id)
    assert payload["role"] == student.role


def test_issue_token_unknown_user(runner, cli_db):
    result = runner.invoke(run.cli, ["issue-token", f"{uuid4().hex}@example.com"])
    assert result.exit_code == 1
