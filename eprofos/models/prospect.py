from __future__ import annotations

from datetime import datetime

from ..extensions import db


# Forward-only CRM ladder. "lost" is set by hand only and ranks below it.
STATUS_LADDER = {
    "lost": 0,
    "lead": 1,
    "prospect": 2,
    "qualified": 3,
    "negotiation": 4,
    "customer": 5,
}

STATUS_LABELS = {
    "lead": "Lead",
    "prospect": "Prospect",
    "qualified": "Qualifié",
    "negotiation": "Négociation",
    "customer": "Client",
    "lost": "Perdu",
}

PRIORITIES = ("low", "medium", "high", "urgent")

DEFAULT_SOURCE = "website"
DEFAULT_FIRST_NAME = "Prénom"
DEFAULT_LAST_NAME = "Nom"

# Webmail domains do not earn the company-domain bonus in the lead score.
_PERSONAL_EMAIL_DOMAINS = {"gmail.com", "yahoo.com", "hotmail.com", "outlook.com"}

_CONTACT_TYPE_SCORES = {
    "quote": 50,
    "advice": 30,
    "information": 20,
    "quick_registration": 60,
}


prospect_formations = db.Table(
    "prospect_formations",
    db.Column("prospect_id", db.Integer, db.ForeignKey("prospects.id", ondelete="CASCADE"), primary_key=True),
    db.Column("formation_id", db.Integer, db.ForeignKey("formations.id", ondelete="CASCADE"), primary_key=True),
)

prospect_services = db.Table(
    "prospect_services",
    db.Column("prospect_id", db.Integer, db.ForeignKey("prospects.id", ondelete="CASCADE"), primary_key=True),
    db.Column("service_id", db.Integer, db.ForeignKey("services.id", ondelete="CASCADE"), primary_key=True),
)


class Prospect(db.Model):
    __tablename__ = "prospects"

    id = db.Column(db.Integer, primary_key=True)

    # Not unique: concurrent touchpoints may create duplicates, which the
    # consolidation job folds back together.
    email = db.Column(db.String(180), nullable=False, index=True)
    first_name = db.Column(db.String(100), nullable=False, default=DEFAULT_FIRST_NAME)
    last_name = db.Column(db.String(100), nullable=False, default=DEFAULT_LAST_NAME)
    phone = db.Column(db.String(20), nullable=True)
    company = db.Column(db.String(150), nullable=True)
    position = db.Column(db.String(100), nullable=True)

    status = db.Column(db.String(20), nullable=False, default="lead")
    priority = db.Column(db.String(20), nullable=False, default="medium")
    source = db.Column(db.String(50), nullable=True, default=DEFAULT_SOURCE)

    description = db.Column(db.Text, nullable=True)

    last_contact_date = db.Column(db.DateTime, nullable=True)
    next_follow_up_date = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, nullable=True, default=datetime.utcnow, onupdate=datetime.utcnow)

    interested_formations = db.relationship(
        "Formation", secondary=prospect_formations, collection_class=set, lazy="selectin"
    )
    interested_services = db.relationship(
        "Service", secondary=prospect_services, collection_class=set, lazy="selectin"
    )

    contact_requests = db.relationship(
        "ContactRequest", back_populates="prospect", order_by="ContactRequest.created_at"
    )
    session_registrations = db.relationship(
        "SessionRegistration", back_populates="prospect", order_by="SessionRegistration.created_at"
    )
    needs_analysis_requests = db.relationship(
        "NeedsAnalysisRequest", back_populates="prospect", order_by="NeedsAnalysisRequest.created_at"
    )

    events = db.relationship(
        "ProspectEvent",
        back_populates="prospect",
        cascade="all, delete-orphan",
        order_by="ProspectEvent.occurred_at",
    )

    def __repr__(self) -> str:
        return f"<Prospect id={self.id} email={self.email} status={self.status}>"

    def __str__(self) -> str:
        return self.full_name

    @property
    def full_name(self) -> str:
        return f"{self.first_name or ''} {self.last_name or ''}".strip()

    @property
    def status_label(self) -> str:
        return STATUS_LABELS.get(self.status, "Inconnu")

    @property
    def status_rank(self) -> int:
        return STATUS_LADDER.get(self.status, 0)

    def promote_to(self, status: str) -> bool:
        """Move ``status`` up the ladder. Returns False when it would not be a forward move."""
        if status not in STATUS_LADDER:
            raise ValueError(f"Unknown prospect status: {status}")
        if STATUS_LADDER[status] <= self.status_rank:
            return False
        self.status = status
        return True

    def fill_missing(self, field: str, value) -> bool:
        """Set ``field`` only while it is still empty."""
        if getattr(self, field) or not value:
            return False
        setattr(self, field, value)
        return True

    def append_note(self, kind: str, occurred_at: datetime, note: str, payload: dict | None = None) -> "ProspectEvent":
        """Append a dated block to the description and record it as an event."""
        occurred_at = occurred_at or datetime.utcnow()
        block = f"[{occurred_at:%Y-%m-%d}] {note}"
        self.description = f"{self.description}\n\n{block}" if self.description else block

        event = ProspectEvent(kind=kind, occurred_at=occurred_at, note=block, payload=payload or {})
        self.events.append(event)
        return event

    # -----------------
    # Follow-up helpers
    # -----------------
    def needs_follow_up(self, now: datetime | None = None) -> bool:
        if not self.next_follow_up_date:
            return False
        return self.next_follow_up_date <= (now or datetime.utcnow())

    def is_overdue_for_follow_up(self, now: datetime | None = None, overdue_days: int = 3) -> bool:
        if not self.next_follow_up_date:
            return False
        now = now or datetime.utcnow()
        return self.next_follow_up_date < now and (now - self.next_follow_up_date).days > overdue_days

    def days_since_last_contact(self, now: datetime | None = None) -> int | None:
        if not self.last_contact_date:
            return None
        return ((now or datetime.utcnow()) - self.last_contact_date).days

    def days_until_follow_up(self, now: datetime | None = None) -> int | None:
        if not self.next_follow_up_date:
            return None
        return (self.next_follow_up_date - (now or datetime.utcnow())).days

    def lead_score(self) -> int:
        """Heuristic engagement score, capped at 999."""
        base = {"lead": 10, "prospect": 20, "qualified": 40, "negotiation": 60, "customer": 100, "lost": 0}
        score = base.get(self.status, 5)

        for contact in self.contact_requests:
            score += _CONTACT_TYPE_SCORES.get(contact.type, 15)

        score += len(self.session_registrations) * 80

        for analysis in self.needs_analysis_requests:
            score += 60 if analysis.is_completed else 30

        score += len(self.interested_formations) * 20

        if self.company and self.email and "@" in self.email:
            domain = self.email.rsplit("@", 1)[1].lower()
            if domain not in _PERSONAL_EMAIL_DOMAINS:
                score += 10

        return min(score, 999)

    def all_interactions(self) -> list[dict]:
        """Linked touchpoints as a timeline, most recent first."""
        interactions = []

        for registration in self.session_registrations:
            session = registration.session
            interactions.append({
                "type": "session_registration",
                "entity": registration,
                "date": registration.created_at,
                "title": f"Inscription session: {session.name if session else '-'}",
                "description": f"Formation: {session.formation.title if session and session.formation else '-'}",
            })

        for contact in self.contact_requests:
            interactions.append({
                "type": "contact_request",
                "entity": contact,
                "date": contact.created_at,
                "title": contact.type_label,
                "description": contact.subject or (contact.message or "")[:100],
            })

        for analysis in self.needs_analysis_requests:
            interactions.append({
                "type": "needs_analysis",
                "entity": analysis,
                "date": analysis.created_at,
                "title": f"Analyse de besoins: {analysis.type_label}",
                "description": f"Destinataire: {analysis.recipient_name}",
            })

        interactions.sort(key=lambda i: i["date"] or datetime.min, reverse=True)
        return interactions


class ProspectEvent(db.Model):
    """One entry of a prospect's history: a touchpoint merged in, or a duplicate folded in."""

    __tablename__ = "prospect_events"

    id = db.Column(db.Integer, primary_key=True)
    prospect_id = db.Column(db.Integer, db.ForeignKey("prospects.id", ondelete="CASCADE"), nullable=False, index=True)

    kind = db.Column(db.String(32), nullable=False)  # contact_request|session_registration|needs_analysis|merge
    occurred_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    note = db.Column(db.Text, nullable=False)
    payload = db.Column(db.JSON, nullable=False, default=dict)

    prospect = db.relationship("Prospect", back_populates="events")

    def __repr__(self) -> str:
        return f"<ProspectEvent id={self.id} prospect={self.prospect_id} kind={self.kind}>"
