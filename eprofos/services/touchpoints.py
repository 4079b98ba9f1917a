"""Read-only views over the records that can resolve to a prospect.

Each adapter pulls out only what identity resolution and merging need, so the
merge code handles contact requests, registrations and needs analyses the
same way.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from ..models import ContactRequest, NeedsAnalysisRequest, SessionRegistration
from ..models.prospect import DEFAULT_FIRST_NAME, DEFAULT_LAST_NAME


CONTACT_REQUEST = "contact_request"
SESSION_REGISTRATION = "session_registration"
NEEDS_ANALYSIS = "needs_analysis"


@dataclass(frozen=True)
class TouchpointView:
    kind: str
    record: Any
    email: Optional[str]
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    company: Optional[str] = None
    position: Optional[str] = None
    formation: Any = None
    service: Any = None
    created_at: Optional[datetime] = None
    label: str = ""
    message: Optional[str] = None
    extra_lines: tuple[str, ...] = field(default_factory=tuple)
    subtype: Optional[str] = None

    @property
    def record_id(self):
        return getattr(self.record, "id", None)

    def merge_fields(self) -> dict[str, Optional[str]]:
        """Profile fields that are merged fill-only into the prospect."""
        return {"phone": self.phone, "company": self.company, "position": self.position}


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def split_full_name(full_name: Optional[str]) -> tuple[str, str]:
    """First token is the first name, the remaining tokens the last name."""
    parts = (full_name or "").split()
    first = parts[0] if parts else DEFAULT_FIRST_NAME
    last = " ".join(parts[1:]) if len(parts) > 1 else DEFAULT_LAST_NAME
    return first, last


def from_contact_request(contact: ContactRequest) -> TouchpointView:
    return TouchpointView(
        kind=CONTACT_REQUEST,
        record=contact,
        email=_clean(contact.email),
        first_name=_clean(contact.first_name),
        last_name=_clean(contact.last_name),
        phone=_clean(contact.phone),
        company=_clean(contact.company),
        formation=contact.formation,
        service=contact.service,
        created_at=contact.created_at,
        label=contact.type_label,
        message=contact.message,
        subtype=contact.type,
    )


def from_session_registration(registration: SessionRegistration) -> TouchpointView:
    session = registration.session
    formation = session.formation if session is not None else None
    message = None
    if session is not None:
        message = f"{session.name} - {formation.title}" if formation is not None else session.name
    extra = ()
    if registration.special_requirements:
        extra = (f"Besoins spécifiques: {registration.special_requirements}",)

    return TouchpointView(
        kind=SESSION_REGISTRATION,
        record=registration,
        email=_clean(registration.email),
        first_name=_clean(registration.first_name),
        last_name=_clean(registration.last_name),
        phone=_clean(registration.phone),
        company=_clean(registration.company),
        position=_clean(registration.position),
        formation=formation,
        created_at=registration.created_at,
        label="Inscription session",
        message=message,
        extra_lines=extra,
    )


def from_needs_analysis(analysis: NeedsAnalysisRequest) -> TouchpointView:
    first, last = split_full_name(analysis.recipient_name)
    extra = ()
    if analysis.admin_notes:
        extra = (f"Notes admin: {analysis.admin_notes}",)

    return TouchpointView(
        kind=NEEDS_ANALYSIS,
        record=analysis,
        email=_clean(analysis.recipient_email),
        first_name=first,
        last_name=last,
        company=_clean(analysis.company_name),
        formation=analysis.formation,
        created_at=analysis.created_at,
        label=f"Analyse de besoins ({analysis.type_label}) envoyée",
        extra_lines=extra,
        subtype=analysis.type,
    )


def render_note(view: TouchpointView) -> str:
    """Human-readable note for the prospect description (date prefix added by the prospect)."""
    note = f"{view.label}: {view.message}" if view.message else view.label
    if view.extra_lines:
        note += "\n" + "\n".join(view.extra_lines)
    return note
