"""
Duplicate Consolidator

Fusionne les prospects qui partagent la même adresse email. Le plus ancien
est conservé ; les autres lui cèdent leurs données et leurs relations, puis
sont supprimés.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime

from ..models import Prospect, ProspectEvent
from .errors import ProspectError
from .prospect_store import ProspectStore


prospect_logger = logging.getLogger("eprofos.prospects")

MERGE_MARKER = "--- Fusionné ---"

FILL_ONLY_FIELDS = ("phone", "company", "position")


@dataclass
class ConsolidationReport:
    merged_count: int = 0
    groups_processed: int = 0
    failed_groups: list[tuple[str, str]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed_groups


class DuplicateConsolidator:
    """Batch merge of same-email prospects.

    Each duplicate group is committed on its own. A group that fails is rolled
    back, logged and reported, and the run moves on to the next group. Runs
    should not overlap; a second run over consolidated data merges nothing.
    """

    def __init__(self, store: ProspectStore | None = None):
        self.store = store or ProspectStore()

    def consolidate_all(self) -> int:
        return self.consolidate().merged_count

    def consolidate(self) -> ConsolidationReport:
        report = ConsolidationReport()
        groups = self.store.group_by_email_having_count_greater_than_one()
        prospect_logger.info("event=prospect.consolidate.start duplicate_groups=%s", len(groups))

        for email, count in groups:
            report.groups_processed += 1
            try:
                merged = self._consolidate_group(email)
                self.store.commit()
            except Exception as e:
                # One broken cluster must not block the others.
                self.store.rollback()
                prospect_logger.exception(
                    "event=prospect.consolidate.group_failed email=%s prospect_count=%s err=%s", email, count, str(e)
                )
                report.failed_groups.append((email, str(e)))
                continue

            report.merged_count += merged

        prospect_logger.info(
            "event=prospect.consolidate.done merged=%s groups=%s failed=%s",
            report.merged_count,
            report.groups_processed,
            len(report.failed_groups),
        )
        return report

    def _consolidate_group(self, email: str) -> int:
        prospects = self.store.list_by_email(email)
        if len(prospects) < 2:
            return 0

        target, sources = prospects[0], prospects[1:]
        for source in sources:
            self.merge_prospects(target, source)
            prospect_logger.info(
                "event=prospect.consolidate.merged target_id=%s source_id=%s email=%s",
                target.id,
                source.id,
                email,
            )
        return len(sources)

    def merge_prospects(self, target: Prospect, source: Prospect) -> None:
        """Fold ``source`` into ``target`` and stage the deletion of ``source``."""
        if target is source:
            raise ProspectError("Cannot merge a prospect into itself")

        for field_name in FILL_ONLY_FIELDS:
            target.fill_missing(field_name, getattr(source, field_name))

        if source.description:
            merged_text = f"{MERGE_MARKER}\n{source.description}"
            target.description = f"{target.description}\n\n{merged_text}" if target.description else merged_text

        for contact in list(source.contact_requests):
            contact.prospect = target
        for registration in list(source.session_registrations):
            registration.prospect = target
        for analysis in list(source.needs_analysis_requests):
            analysis.prospect = target
        for event in list(source.events):
            event.prospect = target

        for formation in list(source.interested_formations):
            target.interested_formations.add(formation)
        for service in list(source.interested_services):
            target.interested_services.add(service)

        if source.last_contact_date and (
            not target.last_contact_date or source.last_contact_date > target.last_contact_date
        ):
            target.last_contact_date = source.last_contact_date

        if source.next_follow_up_date and (
            not target.next_follow_up_date or source.next_follow_up_date < target.next_follow_up_date
        ):
            target.next_follow_up_date = source.next_follow_up_date

        if source.status_rank > target.status_rank:
            target.status = source.status

        now = datetime.utcnow()
        target.events.append(ProspectEvent(
            kind="merge",
            occurred_at=now,
            note=f"[{now:%Y-%m-%d}] Fusion du prospect #{source.id} ({source.email})",
            payload={"source_id": source.id, "target_id": target.id, "source_status": source.status},
        ))

        # Push the re-pointed rows out before the source row goes away.
        self.store.flush()
        self.store.remove(source)
        self.store.flush()
