"""CLI entry point for maintenance jobs.

Example:
    python -m mockexam.jobs.run rerank --all
"""

import sys
from uuid import UUID

import click
from sqlalchemy import select

from mockexam.core.logging import get_logger, setup_logging
from mockexam.core.security import create_access_token
from mockexam.core.seed import seed_demo_data
from mockexam.db.init_db import create_schema
from mockexam.db.session import SessionLocal
from mockexam.models.user import User
from mockexam.services.ranking import rerank_all, rerank_test_paper
from mockexam.services.submission import expire_overdue_attempts

logger = get_logger(__name__)


@click.group()
@click.option("--log-level", default=None, help="Override LOG_LEVEL for this run.")
def cli(log_level: str | None):
    """Mock exam platform jobs."""
    setup_logging(log_level)


@cli.command()
@click.option("--create-schema", "with_schema", is_flag=True, help="Create missing tables first.")
def seed(with_schema: bool):
    """Seed demo users and catalog."""
    if with_schema:
        create_schema()
    db = SessionLocal()
    try:
        result = seed_demo_data(db)
        click.echo(f"Seed completed: {result}")
    finally:
        db.close()


@cli.command()
@click.argument("test_paper_id", required=False)
@click.option("--all", "all_papers", is_flag=True, help="Re-rank every test paper.")
def rerank(test_paper_id: str | None, all_papers: bool):
    """Recompute ranks of completed attempts."""
    if not all_papers and not test_paper_id:
        click.echo("Pass a TEST_PAPER_ID or --all", err=True)
        sys.exit(2)

    db = SessionLocal()
    try:
        if all_papers:
            results = rerank_all(db)
            for paper_id, (ranked, updated) in results.items():
                click.echo(f"{paper_id}: ranked={ranked} updated={updated}")
            click.echo(f"Re-ranked {len(results)} test paper(s)")
        else:
            try:
                paper_uuid = UUID(test_paper_id)
            except ValueError:
                click.echo(f"Invalid test paper id: {test_paper_id}", err=True)
                sys.exit(2)
            ranked, updated = rerank_test_paper(db, paper_uuid)
            click.echo(f"{paper_uuid}: ranked={ranked} updated={updated}")
    except Exception as e:
        logger.error("Rerank job failed", extra={"event": "job_failed", "job": "rerank"}, exc_info=True)
        click.echo(f"Job failed: {e}", err=True)
        sys.exit(1)
    finally:
        db.close()


@cli.command("expire-attempts")
def expire_attempts():
    """Auto-submit in-progress attempts past their duration."""
    db = SessionLocal()
    try:
        count = expire_overdue_attempts(db)
        click.echo(f"Expired {count} attempt(s)")
    except Exception as e:
        logger.error(
            "Expiry job failed", extra={"event": "job_failed", "job": "expire_attempts"}, exc_info=True
        )
        click.echo(f"Job failed: {e}", err=True)
        sys.exit(1)
    finally:
        db.close()


@cli.command("issue-token")
@click.argument("email")
@click.option("--minutes", type=int, default=None, help="Token lifetime in minutes.")
def issue_token(email: str, minutes: int | None):
    """Print a development access token for an existing user."""
    db = SessionLocal()
    try:
        user = db.execute(select(User).where(User.email == email)).scalar_one_or_none()
        if user is None:
            click.echo(f"No user with email {email}", err=True)
            sys.exit(1)
        click.echo(create_access_token(str(user.id), user.role, expires_minutes=minutes))
    finally:
        db.close()


if __name__ == "__main__":
    cli()
