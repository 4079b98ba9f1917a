from datetime import datetime

import pytest

from conftest import mk_prospect
from eprofos.extensions import db
from eprofos.models import Formation, Service
from eprofos.services.errors import UnresolvableReference
from eprofos.services.interest_tracker import InterestTracker


def test_adds_formation_and_service(formation, service):
    prospect = mk_prospect("interest@example.com", datetime(2026, 1, 1))

    InterestTracker().add_interest(prospect, formation=formation, service=service)
    db.session.commit()

    assert prospect.interested_formations == {formation}
    assert prospect.interested_services == {service}


def test_adding_same_interest_twice_is_noop(formation):
    prospect = mk_prospect("interest@example.com", datetime(2026, 1, 1))
    tracker = InterestTracker()

    tracker.add_interest(prospect, formation=formation)
    tracker.add_interest(prospect, formation=formation)
    db.session.commit()

    assert len(prospect.interested_formations) == 1


def test_interest_does_not_touch_status_or_source(formation):
    prospect = mk_prospect("interest@example.com", datetime(2026, 1, 1), status="lead", source="website")

    InterestTracker().add_interest(prospect, formation=formation)

    assert prospect.status == "lead"
    assert prospect.source == "website"


def test_reference_without_id_is_unresolvable(app):
    prospect = mk_prospect("interest@example.com", datetime(2026, 1, 1))

    with pytest.raises(UnresolvableReference):
        InterestTracker().add_interest(prospect, formation=Formation(title="Jamais enregistrée"))


def test_unknown_id_is_unresolvable(app):
    prospect = mk_prospect("interest@example.com", datetime(2026, 1, 1))
    ghost = Service(title="Fantôme")
    ghost.id = 4242

    with pytest.raises(UnresolvableReference):
        InterestTracker().add_interest(prospect, service=ghost)

    assert prospect.interested_services == set()


def test_detached_reference_is_replaced_by_session_instance(formation):
    prospect = mk_prospect("interest@example.com", datetime(2026, 1, 1))
    db.session.expunge(formation)
    managed = db.session.get(Formation, formation.id)

    InterestTracker().add_interest(prospect, formation=formation)
    db.session.commit()

    (attached,) = prospect.interested_formations
    assert attached is managed
    assert attached is not formation
