# =============================================
# File: app/services/recommender.py
# Purpose: Recommendation service: run the coverage rules and persist the submission
# =============================================

from __future__ import annotations
from typing import List, Optional

from loguru import logger

from app.db.models import Submission
from app.db.repo import SubmissionRepository
from app.utils import slog
from app.utils.recommend_core import Recommendation, UserProfile, compute


def to_submission(profile: UserProfile, rec: Recommendation, user_id: Optional[str]) -> Submission:
    return Submission(
        user_id=user_id,
        age=profile.age,
        annual_income=profile.annual_income,
        dependents=profile.dependents,
        risk_tolerance=profile.risk_tolerance.value,
        policy_type=rec.policy_type.value,
        coverage_amount=rec.coverage_amount,
        term_years=rec.term_years,
        recommendation=rec.summary_text,
        explanation=rec.explanation_text,
    )


def generate_recommendation(
    profile: UserProfile,
    repo: SubmissionRepository,
    user_id: Optional[str] = None,
) -> Recommendation:
    """
    Compute the recommendation and store it as a new submission.
    Storage errors propagate to the caller; nothing is returned unless the write succeeded.
    """
    rec = compute(profile)
    saved = repo.create(to_submission(profile, rec, user_id))
    logger.info(
        f"[recommend] submission={saved.id} user={user_id or '-'} "
        f"type={rec.policy_type.value} amount={rec.coverage_amount} term={rec.term_years}"
    )
    slog.log_recommendation(
        submission_id=saved.id,
        user_id=user_id,
        age=profile.age,
        dependents=profile.dependents,
        risk_tolerance=profile.risk_tolerance.value,
        policy_type=rec.policy_type.value,
        coverage_amount=rec.coverage_amount,
        term_years=rec.term_years,
    )
    return rec


def list_submissions(repo: SubmissionRepository, user_id: Optional[str] = None) -> List[Submission]:
    if user_id is None:
        return repo.find_all()
    return repo.find_by_owner(user_id)
