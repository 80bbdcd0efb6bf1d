"""API v1 router - includes all v1 endpoints."""

from fastapi import APIRouter

from mockexam.api.v1.endpoints import (
    admin_exams,
    admin_questions,
    admin_stats,
    admin_test_papers,
    dashboard,
    exam,
    exams,
    health,
    quiz,
    results,
)

api_router = APIRouter()

api_router.include_router(health.router)
api_router.include_router(exams.router)
api_router.include_router(exam.router)
api_router.include_router(results.router)
api_router.include_router(dashboard.router)
api_router.include_router(quiz.router)
api_router.include_router(admin_stats.router)
api_router.include_router(admin_exams.router)
api_router.include_router(admin_questions.router)
api_router.include_router(admin_test_papers.router)
