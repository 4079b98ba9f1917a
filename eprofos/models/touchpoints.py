from __future__ import annotations

from datetime import datetime

from ..extensions import db


CONTACT_TYPE_LABELS = {
    "quote": "Demande de devis",
    "advice": "Demande de conseil",
    "information": "Demande d'information",
    "quick_registration": "Inscription rapide",
}

NEEDS_ANALYSIS_TYPE_LABELS = {
    "company": "Entreprise",
    "individual": "Particulier",
}


class ContactRequest(db.Model):
    __tablename__ = "contact_requests"

    id = db.Column(db.Integer, primary_key=True)
    type = db.Column(db.String(50), nullable=False, default="information")

    first_name = db.Column(db.String(100), nullable=True)
    last_name = db.Column(db.String(100), nullable=True)
    email = db.Column(db.String(180), nullable=True)
    phone = db.Column(db.String(20), nullable=True)
    company = db.Column(db.String(150), nullable=True)
    subject = db.Column(db.String(255), nullable=True)
    message = db.Column(db.Text, nullable=True)

    status = db.Column(db.String(20), nullable=False, default="pending")  # pending|in_progress|completed|cancelled
    admin_notes = db.Column(db.Text, nullable=True)
    additional_data = db.Column(db.JSON, nullable=True)

    formation_id = db.Column(db.Integer, db.ForeignKey("formations.id", ondelete="SET NULL"), nullable=True)
    service_id = db.Column(db.Integer, db.ForeignKey("services.id", ondelete="SET NULL"), nullable=True)
    prospect_id = db.Column(db.Integer, db.ForeignKey("prospects.id", ondelete="SET NULL"), nullable=True, index=True)

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    processed_at = db.Column(db.DateTime, nullable=True)

    formation = db.relationship("Formation")
    service = db.relationship("Service")
    prospect = db.relationship("Prospect", back_populates="contact_requests")

    @property
    def type_label(self) -> str:
        return CONTACT_TYPE_LABELS.get(self.type, "Autre")

    def __repr__(self) -> str:
        return f"<ContactRequest id={self.id} type={self.type} email={self.email}>"


class SessionRegistration(db.Model):
    __tablename__ = "session_registrations"

    id = db.Column(db.Integer, primary_key=True)

    first_name = db.Column(db.String(100), nullable=True)
    last_name = db.Column(db.String(100), nullable=True)
    email = db.Column(db.String(180), nullable=True)
    phone = db.Column(db.String(20), nullable=True)
    company = db.Column(db.String(150), nullable=True)
    position = db.Column(db.String(100), nullable=True)

    status = db.Column(db.String(20), nullable=False, default="pending")  # pending|confirmed|cancelled|attended|no_show
    notes = db.Column(db.Text, nullable=True)
    special_requirements = db.Column(db.Text, nullable=True)

    session_id = db.Column(db.Integer, db.ForeignKey("sessions.id", ondelete="SET NULL"), nullable=True)
    prospect_id = db.Column(db.Integer, db.ForeignKey("prospects.id", ondelete="SET NULL"), nullable=True, index=True)

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    confirmed_at = db.Column(db.DateTime, nullable=True)

    session = db.relationship("TrainingSession")
    prospect = db.relationship("Prospect", back_populates="session_registrations")

    def __repr__(self) -> str:
        return f"<SessionRegistration id={self.id} session={self.session_id} email={self.email}>"


class NeedsAnalysisRequest(db.Model):
    __tablename__ = "needs_analysis_requests"

    id = db.Column(db.Integer, primary_key=True)
    type = db.Column(db.String(20), nullable=False, default="individual")

    recipient_name = db.Column(db.String(255), nullable=True)
    recipient_email = db.Column(db.String(180), nullable=True)
    company_name = db.Column(db.String(255), nullable=True)

    status = db.Column(db.String(20), nullable=False, default="pending")  # pending|sent|completed|expired|cancelled
    admin_notes = db.Column(db.Text, nullable=True)

    formation_id = db.Column(db.Integer, db.ForeignKey("formations.id", ondelete="SET NULL"), nullable=True)
    prospect_id = db.Column(db.Integer, db.ForeignKey("prospects.id", ondelete="SET NULL"), nullable=True, index=True)

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    sent_at = db.Column(db.DateTime, nullable=True)
    completed_at = db.Column(db.DateTime, nullable=True)

    formation = db.relationship("Formation")
    prospect = db.relationship("Prospect", back_populates="needs_analysis_requests")

    @property
    def type_label(self) -> str:
        return NEEDS_ANALYSIS_TYPE_LABELS.get(self.type, "Inconnu")

    @property
    def is_completed(self) -> bool:
        return self.status == "completed"

    def __repr__(self) -> str:
        return f"<NeedsAnalysisRequest id={self.id} type={self.type} email={self.recipient_email}>"
