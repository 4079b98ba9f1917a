from __future__ import annotations

from typing import Any, Optional, Type

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import Prospect
from .errors import PersistenceFailure


class ProspectStore:
    """Thin entity store over a SQLAlchemy session.

    The services never touch ``db.session`` directly; they go through this
    object so a transaction boundary is always an explicit ``commit()``.
    """

    def __init__(self, session=None):
        self._session = session

    @property
    def session(self):
        return self._session if self._session is not None else db.session

    def find_by_email(self, email: str) -> Optional[Prospect]:
        """Exact email match, including prospects staged but not yet flushed."""
        for obj in self.session.new:
            if isinstance(obj, Prospect) and obj.email == email:
                return obj
        return self.session.execute(
            select(Prospect).where(Prospect.email == email).order_by(Prospect.created_at, Prospect.id).limit(1)
        ).scalar_one_or_none()

    def list_by_email(self, email: str) -> list[Prospect]:
        """All prospects sharing ``email``, earliest created first."""
        return list(
            self.session.execute(
                select(Prospect).where(Prospect.email == email).order_by(Prospect.created_at, Prospect.id)
            ).scalars()
        )

    def find_by_id(self, model: Type[Any], entity_id: Any) -> Any:
        if entity_id is None:
            return None
        return self.session.get(model, entity_id)

    def list_unlinked(self, model: Type[Any]) -> list[Any]:
        """Touchpoints of ``model`` that are not linked to a prospect yet."""
        return list(
            self.session.execute(
                select(model).where(model.prospect_id.is_(None)).order_by(model.created_at, model.id)
            ).scalars()
        )

    def group_by_email_having_count_greater_than_one(self) -> list[tuple[str, int]]:
        rows = self.session.execute(
            select(Prospect.email, func.count(Prospect.id))
            .group_by(Prospect.email)
            .having(func.count(Prospect.id) > 1)
            .order_by(Prospect.email)
        ).all()
        return [(email, count) for email, count in rows]

    def stage(self, entity: Any) -> None:
        self.session.add(entity)

    def remove(self, entity: Any) -> None:
        self.session.delete(entity)

    def flush(self) -> None:
        try:
            self.session.flush()
        except SQLAlchemyError as e:
            self.session.rollback()
            raise PersistenceFailure(f"Flush failed: {e}") from e

    def commit(self) -> None:
        try:
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            raise PersistenceFailure(f"Commit failed: {e}") from e

    def rollback(self) -> None:
        self.session.rollback()
