# =============================================
# File: app/db/models.py
# Purpose: SQLModel ORM definition for persisted recommendation submissions (profile + result + owner).
# =============================================

from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime, timezone


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Submission(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: Optional[str] = Field(default=None, index=True)
    age: int
    annual_income: float
    dependents: int
    risk_tolerance: str
    policy_type: str
    coverage_amount: int
    term_years: int
    recommendation: str
    explanation: str
    created_at: datetime = Field(default_factory=_utcnow, index=True)
