# =============================================
# File: app/db/repo.py
# Purpose: DB repository: configure engine from DB_URL (default SQLite), create tables, append/query submissions.
# =============================================

from __future__ import annotations
import os
from typing import List

from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, Session, create_engine, select

from app.db.models import Submission


def make_engine(url: str | None = None) -> Engine:
    url = url or os.getenv("DB_URL", "sqlite:///./app.db")
    # FastAPI runs sync endpoints in a threadpool
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    return create_engine(url, echo=False, connect_args=connect_args)


engine = make_engine()


def init_db(target: Engine | None = None) -> None:
    SQLModel.metadata.create_all(target or engine)


class SubmissionRepository:
    """Append-only store of submissions; reads are newest first."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def create(self, submission: Submission) -> Submission:
        with Session(self._engine) as session:
            session.add(submission)
            session.commit()
            session.refresh(submission)
            return submission

    def find_all(self) -> List[Submission]:
        stmt = select(Submission).order_by(Submission.created_at.desc(), Submission.id.desc())
        with Session(self._engine) as session:
            return list(session.exec(stmt).all())

    def find_by_owner(self, user_id: str) -> List[Submission]:
        stmt = (
            select(Submission)
            .where(Submission.user_id == user_id)
            .order_by(Submission.created_at.desc(), Submission.id.desc())
        )
        with Session(self._engine) as session:
            return list(session.exec(stmt).all())


def get_repository() -> SubmissionRepository:
    """FastAPI dependency; tests override it with an in-memory engine."""
    return SubmissionRepository(engine)
