# bidguard/db.py
from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, Field, create_engine, Session, select

from bidguard.core import ActionOutcome


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Action(SQLModel, table=True):
    __tablename__ = "action"
    id: Optional[int] = Field(default=None, primary_key=True)
    timestamp: datetime = Field(default_factory=_utcnow, index=True)
    action: str = Field(index=True)  # "cancel" | "block" | "unblock"
    user_id: str = Field(index=True)
    item_id: Optional[str] = Field(default=None, index=True)
    description: Optional[str] = None
    message: Optional[str] = Field(default=None, description="Console <h1> text")


_engine: Optional[Engine] = None


def configure(url: str) -> Engine:
    global _engine
    _engine = create_engine(url, echo=False)
    SQLModel.metadata.create_all(_engine)
    return _engine


def get_engine() -> Engine:
    if _engine is None:
        from bidguard.settings import load_settings

        return configure(load_settings().database_url)
    return _engine


def record_action(outcome: ActionOutcome) -> Action:
    row = Action(
        action=outcome.action,
        user_id=outcome.user_id,
        item_id=outcome.item_id,
        description=outcome.description,
        message=outcome.message,
    )
    with Session(get_engine()) as s:
        s.add(row)
        s.commit()
        s.refresh(row)
        return row


def recent_actions(limit: int = 20, user_id: Optional[str] = None) -> list[Action]:
    with Session(get_engine()) as s:
        stmt = select(Action)
        if user_id is not None:
            stmt = stmt.where(Action.user_id == user_id)
        stmt = stmt.order_by(Action.timestamp.desc(), Action.id.desc()).limit(limit)
        return list(s.exec(stmt).all())
