"""
Touchpoint Merger

Rattache chaque point de contact (demande de contact, inscription à une
session, analyse de besoins) à un prospect unique, puis fusionne ses données
dans la fiche sans jamais écraser une information déjà renseignée.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Optional

from sqlalchemy.exc import SQLAlchemyError

from ..models import ContactRequest, NeedsAnalysisRequest, Prospect, SessionRegistration
from ..models.prospect import DEFAULT_SOURCE
from .errors import InvalidIdentity, PersistenceFailure, ProspectError
from .identity_resolver import IdentityResolver
from .interest_tracker import InterestTracker
from .notification_service import NotificationService
from .prospect_store import ProspectStore
from .touchpoints import (
    CONTACT_REQUEST,
    NEEDS_ANALYSIS,
    SESSION_REGISTRATION,
    TouchpointView,
    from_contact_request,
    from_needs_analysis,
    from_session_registration,
    render_note,
)


prospect_logger = logging.getLogger("eprofos.prospects")

# Contact request type -> prospect source.
CONTACT_SOURCES = {
    "quote": "quote_request",
    "advice": "consultation_request",
    "information": "information_request",
    "quick_registration": "quick_registration",
}
DEFAULT_CONTACT_SOURCE = "contact_form"

TOUCHPOINT_SOURCES = {
    SESSION_REGISTRATION: "session_registration",
    NEEDS_ANALYSIS: "needs_analysis",
}

# (kind, subtype) -> (statuses the promotion applies from, target status).
# A subtype of None matches every subtype of that kind.
STATUS_PROMOTIONS = {
    (CONTACT_REQUEST, "quote"): ({"lead"}, "prospect"),
    (SESSION_REGISTRATION, None): ({"lead", "prospect"}, "qualified"),
    (NEEDS_ANALYSIS, None): ({"lead", "prospect"}, "qualified"),
}

_MISSING_EMAIL_MESSAGES = {
    CONTACT_REQUEST: "Contact request must have an email address",
    SESSION_REGISTRATION: "Session registration must have an email address",
    NEEDS_ANALYSIS: "Needs analysis request must have a recipient email address",
}


def source_for(view: TouchpointView) -> str:
    if view.kind == CONTACT_REQUEST:
        return CONTACT_SOURCES.get(view.subtype, DEFAULT_CONTACT_SOURCE)
    return TOUCHPOINT_SOURCES[view.kind]


def promotion_for(view: TouchpointView) -> Optional[tuple[set, str]]:
    return STATUS_PROMOTIONS.get((view.kind, view.subtype)) or STATUS_PROMOTIONS.get((view.kind, None))


@dataclass
class BackfillReport:
    found: dict[str, int] = field(default_factory=dict)
    linked: dict[str, int] = field(default_factory=dict)
    failures: list[tuple[str, Any, str]] = field(default_factory=list)
    dry_run: bool = False

    @property
    def total_linked(self) -> int:
        return sum(self.linked.values())


class TouchpointMerger:
    """Resolve a touchpoint to its prospect and merge it in, one transaction per touchpoint."""

    def __init__(
        self,
        store: ProspectStore | None = None,
        resolver: IdentityResolver | None = None,
        interests: InterestTracker | None = None,
        notify: Callable[..., bool] | None = None,
    ):
        self.store = store or ProspectStore()
        self.resolver = resolver or IdentityResolver(self.store)
        self.interests = interests or InterestTracker(self.store)
        self.notify = notify if notify is not None else NotificationService.send_notification

    # -----------------
    # Entry points
    # -----------------
    def merge_contact_request(self, contact: ContactRequest) -> Prospect:
        return self._process(from_contact_request(contact))

    def merge_session_registration(self, registration: SessionRegistration) -> Prospect:
        return self._process(from_session_registration(registration))

    def merge_needs_analysis(self, analysis: NeedsAnalysisRequest) -> Prospect:
        return self._process(from_needs_analysis(analysis))

    def merge(self, record: Any) -> Prospect:
        """Dispatch on the touchpoint type."""
        if isinstance(record, ContactRequest):
            return self.merge_contact_request(record)
        if isinstance(record, SessionRegistration):
            return self.merge_session_registration(record)
        if isinstance(record, NeedsAnalysisRequest):
            return self.merge_needs_analysis(record)
        raise TypeError(f"Not a touchpoint: {type(record).__name__}")

    # -----------------
    # Algorithm
    # -----------------
    def _process(self, view: TouchpointView) -> Prospect:
        prospect_logger.info(
            "event=prospect.merge.start kind=%s touchpoint_id=%s email=%s",
            view.kind,
            view.record_id,
            view.email,
        )
        try:
            prospect = self._apply(view)
            self.store.commit()
        except PersistenceFailure:
            prospect_logger.exception(
                "event=prospect.merge.persistence_failed kind=%s touchpoint_id=%s", view.kind, view.record_id
            )
            raise
        except ProspectError:
            self.store.rollback()
            raise
        except SQLAlchemyError as e:
            self.store.rollback()
            prospect_logger.exception(
                "event=prospect.merge.persistence_failed kind=%s touchpoint_id=%s", view.kind, view.record_id
            )
            raise PersistenceFailure(f"Failed to merge {view.kind}: {e}") from e

        prospect_logger.info(
            "event=prospect.merge.done kind=%s touchpoint_id=%s prospect_id=%s status=%s source=%s",
            view.kind,
            view.record_id,
            prospect.id,
            prospect.status,
            prospect.source,
        )
        self.notify(prospect, view.kind, touchpoint=view.record)
        return prospect

    def _apply(self, view: TouchpointView) -> Prospect:
        if not view.email:
            raise InvalidIdentity(_MISSING_EMAIL_MESSAGES[view.kind])

        prospect = self.resolver.resolve(view.email, view.first_name, view.last_name)

        for field_name, value in view.merge_fields().items():
            if prospect.fill_missing(field_name, value):
                prospect_logger.debug(
                    "event=prospect.merge.field_filled prospect_id=%s field=%s", prospect.id, field_name
                )

        # A touchpoint already linked to this prospect has its note and date in place.
        already_linked = prospect.id is not None and view.record.prospect_id == prospect.id
        if already_linked:
            prospect_logger.info(
                "event=prospect.merge.already_linked kind=%s touchpoint_id=%s prospect_id=%s",
                view.kind,
                view.record_id,
                prospect.id,
            )
        else:
            # Recency always advances, unlike profile fields.
            contacted_at = view.created_at or datetime.utcnow()
            prospect.last_contact_date = contacted_at

            prospect.append_note(
                view.kind,
                contacted_at,
                render_note(view),
                payload={"touchpoint_id": view.record_id, "type": view.subtype},
            )

        self._apply_source(prospect, view)
        self._apply_promotion(prospect, view)

        if view.formation is not None or view.service is not None:
            self.interests.add_interest(prospect, formation=view.formation, service=view.service)

        view.record.prospect = prospect
        return prospect

    def _apply_source(self, prospect: Prospect, view: TouchpointView) -> None:
        if prospect.source and prospect.source != DEFAULT_SOURCE:
            return
        original = prospect.source
        prospect.source = source_for(view)
        prospect_logger.info(
            "event=prospect.merge.source_set prospect_id=%s from=%s to=%s", prospect.id, original, prospect.source
        )

    def _apply_promotion(self, prospect: Prospect, view: TouchpointView) -> None:
        rule = promotion_for(view)
        if rule is None:
            return
        from_statuses, target = rule
        original = prospect.status
        if original in from_statuses and prospect.promote_to(target):
            prospect_logger.info(
                "event=prospect.merge.status_promoted prospect_id=%s from=%s to=%s", prospect.id, original, target
            )

    # -----------------
    # Backfill
    # -----------------
    def link_unlinked_touchpoints(self, dry_run: bool = False) -> BackfillReport:
        """
        Run every touchpoint without a prospect through the merge.

        Each touchpoint is its own transaction; a failing record is logged,
        reported and skipped.
        """
        report = BackfillReport(dry_run=dry_run)
        batches = (
            (SESSION_REGISTRATION, SessionRegistration),
            (CONTACT_REQUEST, ContactRequest),
            (NEEDS_ANALYSIS, NeedsAnalysisRequest),
        )

        for kind, model in batches:
            records = self.store.list_unlinked(model)
            report.found[kind] = len(records)
            report.linked[kind] = 0
            prospect_logger.info("event=prospect.backfill.found kind=%s count=%s", kind, len(records))

            if dry_run:
                continue

            for record in records:
                try:
                    self.merge(record)
                    report.linked[kind] += 1
                except ProspectError as e:
                    prospect_logger.error(
                        "event=prospect.backfill.failed kind=%s touchpoint_id=%s err=%s", kind, record.id, str(e)
                    )
                    report.failures.append((kind, record.id, str(e)))

        return report
