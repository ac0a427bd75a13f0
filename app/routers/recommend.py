# app/routers/recommend.py
from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status
from loguru import logger
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from sqlalchemy.exc import SQLAlchemyError

from app.db.repo import SubmissionRepository, get_repository
from app.services.recommender import generate_recommendation, list_submissions
from app.utils.recommend_core import PolicyType, UserProfile

router = APIRouter(prefix="/recommendation", tags=["recommendations"])


# ---------- Response schemas ----------
class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class RecommendationResponse(_CamelModel):
    recommendation: str
    explanation: str
    policy_type: PolicyType
    coverage_amount: int
    term_years: int


class SubmissionOut(_CamelModel):
    id: int
    user_id: Optional[str] = None
    age: int
    annual_income: float
    dependents: int
    risk_tolerance: str
    policy_type: str
    coverage_amount: int
    term_years: int
    recommendation: str
    explanation: str
    created_at: datetime


# ---------- Helpers ----------
def _require_owner(user_id: Optional[str]) -> str:
    if not isinstance(user_id, str) or not user_id.strip():
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing user identifier.")
    return user_id.strip()


def _load(repo: SubmissionRepository, user_id: Optional[str]) -> List[SubmissionOut]:
    try:
        rows = list_submissions(repo, user_id=user_id)
    except SQLAlchemyError:
        logger.exception("[recommend] failed to read submissions")
        raise HTTPException(status_code=500, detail="Failed to load submissions.")
    return [SubmissionOut.model_validate(r) for r in rows]


# ---------- Endpoints ----------
@router.post("", response_model=RecommendationResponse, status_code=status.HTTP_201_CREATED)
def post_recommendation(
    profile: UserProfile,
    request: Request,
    repo: SubmissionRepository = Depends(get_repository),
    x_user_id: Optional[str] = Header(default=None),
) -> RecommendationResponse:
    """
    Generate a life insurance recommendation.

    Input: age, annual income, dependents, risk tolerance (validated by pydantic).
    Output: summary line + explanation, plus the structured fields behind them.
    The submission is stored with the caller's id when the X-User-Id header is present.
    """
    owner = x_user_id.strip() if x_user_id and x_user_id.strip() else None
    try:
        rec = generate_recommendation(profile, repo, user_id=owner)
    except SQLAlchemyError:
        logger.exception("[recommend] failed to store submission")
        raise HTTPException(status_code=500, detail="Failed to store submission.")

    request.state.log_context = {"user_id": owner, "policy_type": rec.policy_type.value}
    return RecommendationResponse(
        recommendation=rec.summary_text,
        explanation=rec.explanation_text,
        policy_type=rec.policy_type,
        coverage_amount=rec.coverage_amount,
        term_years=rec.term_years,
    )


@router.get("", response_model=List[SubmissionOut])
def get_user_submissions(
    repo: SubmissionRepository = Depends(get_repository),
    x_user_id: Optional[str] = Header(default=None),
) -> List[SubmissionOut]:
    """Submissions of the calling user, newest first."""
    return _load(repo, _require_owner(x_user_id))


@router.get("/history", response_model=List[SubmissionOut])
def get_user_history(
    repo: SubmissionRepository = Depends(get_repository),
    x_user_id: Optional[str] = Header(default=None),
) -> List[SubmissionOut]:
    return _load(repo, _require_owner(x_user_id))


@router.get("/all", response_model=List[SubmissionOut])
def get_all_submissions(repo: SubmissionRepository = Depends(get_repository)) -> List[SubmissionOut]:
    """Every stored submission, newest first."""
    return _load(repo, None)
