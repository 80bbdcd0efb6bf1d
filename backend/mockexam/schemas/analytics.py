"""Pydantic schemas for learner dashboards and admin analytics."""

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel

AnalyticsPeriod = Literal["7d", "30d", "90d", "1y"]

# ============================================================================
# Learner dashboard
# ============================================================================


class RecentTest(BaseModel):
    id: UUID
    title: str
    score: float
    percentage: float
    completed_at: datetime


class SubjectStat(BaseModel):
    subject: str
    tests: int
    average_score: int
    accuracy: int


class DashboardStats(BaseModel):
    total_tests: int
    average_score: int
    best_score: float
    total_time_spent: int  # minutes
    accuracy: int
    recent_tests: list[RecentTest]
    subject_stats: list[SubjectStat]


# ============================================================================
# Admin
# ============================================================================


class AdminStats(BaseModel):
    total_users: int
    total_exams: int
    total_test_papers: int
    total_questions: int
    total_attempts: int


class ExamPerformance(BaseModel):
    id: UUID
    name: str
    category: str
    attempts: int
    average_score: float
    completion_rate: float


class CategoryPerformance(BaseModel):
    category: str
    attempts: int
    average_score: float
    completion_rate: float


class AnalyticsOverview(AdminStats):
    period: AnalyticsPeriod
    active_users: int
    new_users: int
    completion_rate: float
    average_score: float
    top_exams: list[ExamPerformance]
    category_performance: list[CategoryPerformance]
