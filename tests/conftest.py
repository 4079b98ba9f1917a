import os
import sys
from datetime import datetime


# Ensure the project root is on PYTHONPATH when running pytest from any working dir.
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

import pytest

from eprofos import create_app
from eprofos.config import TestConfig
from eprofos.extensions import db
from eprofos.models import (
    ContactRequest,
    Formation,
    NeedsAnalysisRequest,
    Prospect,
    Service,
    SessionRegistration,
    TrainingSession,
)


@pytest.fixture()
def app():
    app = create_app(TestConfig)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def formation(app):
    formation = Formation(title="Management d'équipe", slug="management-equipe")
    db.session.add(formation)
    db.session.commit()
    return formation


@pytest.fixture()
def service(app):
    service = Service(title="Conseil RH", slug="conseil-rh")
    db.session.add(service)
    db.session.commit()
    return service


@pytest.fixture()
def training_session(formation):
    session = TrainingSession(formation=formation, name="Session Mars 2026", location="Paris")
    db.session.add(session)
    db.session.commit()
    return session


@pytest.fixture()
def notifications():
    """Collects notifier calls instead of sending mail."""
    calls = []

    def notify(prospect, event, **context):
        calls.append((prospect.id, event, context))
        return True

    notify.calls = calls
    return notify


def mk_prospect(email, created_at, **fields):
    fields.setdefault("first_name", "Jean")
    fields.setdefault("last_name", "Dupont")
    prospect = Prospect(email=email, created_at=created_at, **fields)
    db.session.add(prospect)
    db.session.commit()
    return prospect


def mk_contact(email="jean.dupont@acme.fr", type="information", created_at=None, **fields):
    contact = ContactRequest(
        email=email,
        type=type,
        created_at=created_at or datetime(2026, 3, 1, 9, 0),
        **fields,
    )
    db.session.add(contact)
    db.session.commit()
    return contact


def mk_registration(session, email="jean.dupont@acme.fr", created_at=None, **fields):
    registration = SessionRegistration(
        session=session,
        email=email,
        created_at=created_at or datetime(2026, 3, 2, 9, 0),
        **fields,
    )
    db.session.add(registration)
    db.session.commit()
    return registration


def mk_analysis(email="marie.curie@example.com", created_at=None, **fields):
    fields.setdefault("type", "individual")
    analysis = NeedsAnalysisRequest(
        recipient_email=email,
        created_at=created_at or datetime(2026, 3, 3, 9, 0),
        **fields,
    )
    db.session.add(analysis)
    db.session.commit()
    return analysis
