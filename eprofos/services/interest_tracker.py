from __future__ import annotations

import logging
from typing import Any, Optional

from ..models import Formation, Prospect, Service
from .errors import UnresolvableReference
from .prospect_store import ProspectStore


prospect_logger = logging.getLogger("eprofos.prospects")


class InterestTracker:
    """Attach formations and services a prospect showed interest in."""

    def __init__(self, store: ProspectStore | None = None):
        self.store = store or ProspectStore()

    def add_interest(
        self,
        prospect: Prospect,
        formation: Optional[Formation] = None,
        service: Optional[Service] = None,
    ) -> None:
        """
        Add ``formation`` and/or ``service`` to the prospect's interests.

        The references are looked up again by id so the instance attached to
        the prospect is the one held by the current session, whatever copy the
        caller passed in. Adding an interest twice is a no-op.

        Raises:
            UnresolvableReference: a reference has no id, or no row with that id exists.
        """
        if formation is not None:
            managed = self._resolve(Formation, formation)
            if managed not in prospect.interested_formations:
                prospect.interested_formations.add(managed)
                prospect_logger.info(
                    "event=prospect.interest.formation_added prospect_id=%s formation_id=%s title=%s",
                    prospect.id,
                    managed.id,
                    managed.title,
                )

        if service is not None:
            managed = self._resolve(Service, service)
            if managed not in prospect.interested_services:
                prospect.interested_services.add(managed)
                prospect_logger.info(
                    "event=prospect.interest.service_added prospect_id=%s service_id=%s title=%s",
                    prospect.id,
                    managed.id,
                    managed.title,
                )

    def _resolve(self, model: type, reference: Any) -> Any:
        entity_id = getattr(reference, "id", None)
        if entity_id is None:
            raise UnresolvableReference(f"{model.__name__} must have an id")

        managed = self.store.find_by_id(model, entity_id)
        if managed is None:
            raise UnresolvableReference(f"{model.__name__} not found: {entity_id}")
        return managed
