# =============================================
# File: tests/test_repo.py
# Purpose: Submission repository append/query against in-memory SQLite
# =============================================
import sys, os
sys.path.append(os.path.dirname(os.path.dirname(__file__)))

from datetime import datetime, timedelta, timezone

from sqlmodel import create_engine

from app.db.models import Submission
from app.db.repo import SubmissionRepository, init_db
from app.services.recommender import generate_recommendation, list_submissions, to_submission
from app.utils.recommend_core import UserProfile, compute


def _repo():
    engine = create_engine("sqlite://")
    init_db(engine)
    return SubmissionRepository(engine)


def _profile(age=30):
    return UserProfile(age=age, annualIncome=1000, dependents=1, riskTolerance="Low")


def test_create_assigns_id_and_timestamp():
    repo = _repo()
    p = _profile()
    saved = repo.create(to_submission(p, compute(p), "u1"))
    assert saved.id is not None
    assert isinstance(saved.created_at, datetime)
    assert saved.risk_tolerance == "Low"


def test_reads_are_newest_first():
    repo = _repo()
    base = datetime(2024, 1, 1, tzinfo=timezone.utc)
    for i, owner in enumerate(["a", "b", "a"]):
        p = _profile(age=30 + i)
        sub = to_submission(p, compute(p), owner)
        sub.created_at = base + timedelta(minutes=i)
        repo.create(sub)

    assert [s.age for s in repo.find_all()] == [32, 31, 30]
    assert [s.age for s in repo.find_by_owner("a")] == [32, 30]
    assert repo.find_by_owner("nobody") == []


def test_service_persists_what_it_returns():
    repo = _repo()
    rec = generate_recommendation(_profile(age=40), repo, user_id="svc")
    stored = list_submissions(repo, user_id="svc")
    assert len(stored) == 1
    assert stored[0].recommendation == rec.summary_text
    assert stored[0].explanation == rec.explanation_text
    assert stored[0].coverage_amount == rec.coverage_amount
    assert len(list_submissions(repo)) == 1
