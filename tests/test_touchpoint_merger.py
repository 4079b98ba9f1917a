from datetime import datetime

import pytest
from sqlalchemy.exc import OperationalError

from conftest import mk_analysis, mk_contact, mk_prospect, mk_registration
from eprofos.extensions import db
from eprofos.models import ContactRequest, Prospect, ProspectEvent
from eprofos.services.errors import InvalidIdentity, PersistenceFailure, UnresolvableReference
from eprofos.services.touchpoint_merger import TouchpointMerger


def test_contact_request_creates_prospect_and_links_it(app, notifications):
    contact = mk_contact(
        email="jean.dupont@acme.fr",
        type="information",
        first_name="Jean",
        last_name="Dupont",
        phone="0102030405",
        company="ACME",
        message="Je voudrais le programme.",
    )

    prospect = TouchpointMerger(notify=notifications).merge_contact_request(contact)

    assert prospect.id is not None
    assert contact.prospect_id == prospect.id
    assert prospect.full_name == "Jean Dupont"
    assert prospect.phone == "0102030405"
    assert prospect.company == "ACME"
    assert prospect.source == "information_request"
    assert prospect.status == "lead"
    assert prospect.last_contact_date == contact.created_at
    assert prospect.description == "[2026-03-01] Demande d'information: Je voudrais le programme."


def test_fill_only_merge_keeps_existing_values(app, notifications):
    prospect = mk_prospect("jean.dupont@acme.fr", datetime(2026, 1, 1), phone="0600000000", company=None)
    contact = mk_contact(phone="0700000000", company="ACME", first_name="Jeannot")

    merged = TouchpointMerger(notify=notifications).merge_contact_request(contact)

    assert merged.id == prospect.id
    assert merged.phone == "0600000000"
    assert merged.company == "ACME"
    assert merged.first_name == "Jean"


def test_last_contact_date_follows_latest_merged_touchpoint(app, notifications):
    mk_prospect("jean.dupont@acme.fr", datetime(2026, 1, 1), last_contact_date=datetime(2026, 5, 1))
    contact = mk_contact(created_at=datetime(2026, 3, 1, 9, 0))

    prospect = TouchpointMerger(notify=notifications).merge_contact_request(contact)

    assert prospect.last_contact_date == datetime(2026, 3, 1, 9, 0)


def test_quote_request_promotes_lead_to_prospect(app, notifications):
    prospect = TouchpointMerger(notify=notifications).merge_contact_request(mk_contact(type="quote"))

    assert prospect.status == "prospect"
    assert prospect.source == "quote_request"


@pytest.mark.parametrize(
    "contact_type, source",
    [
        ("advice", "consultation_request"),
        ("quick_registration", "quick_registration"),
        ("partnership", "contact_form"),
    ],
)
def test_contact_type_maps_to_source(app, notifications, contact_type, source):
    prospect = TouchpointMerger(notify=notifications).merge_contact_request(mk_contact(type=contact_type))

    assert prospect.source == source
    assert prospect.status == "lead"


def test_specific_source_is_never_overwritten(app, notifications):
    mk_prospect("jean.dupont@acme.fr", datetime(2026, 1, 1), source="quote_request")

    prospect = TouchpointMerger(notify=notifications).merge_contact_request(mk_contact(type="advice"))

    assert prospect.source == "quote_request"


def test_status_never_moves_backwards(app, training_session, notifications):
    mk_prospect("jean.dupont@acme.fr", datetime(2026, 1, 1), status="negotiation")
    merger = TouchpointMerger(notify=notifications)

    merger.merge_contact_request(mk_contact(type="quote"))
    prospect = merger.merge_session_registration(mk_registration(training_session))

    assert prospect.status == "negotiation"


def test_quote_does_not_demote_qualified_prospect(app, notifications):
    mk_prospect("jean.dupont@acme.fr", datetime(2026, 1, 1), status="qualified")

    prospect = TouchpointMerger(notify=notifications).merge_contact_request(mk_contact(type="quote"))

    assert prospect.status == "qualified"


def test_contact_request_adds_formation_and_service_interest(app, formation, service, notifications):
    contact = mk_contact(formation=formation, service=service)

    prospect = TouchpointMerger(notify=notifications).merge_contact_request(contact)

    assert prospect.interested_formations == {formation}
    assert prospect.interested_services == {service}


def test_session_registration_qualifies_and_tracks_formation(app, training_session, formation, notifications):
    registration = mk_registration(
        training_session,
        first_name="Luc",
        last_name="Petit",
        position="Responsable formation",
        special_requirements="Accès PMR",
    )

    prospect = TouchpointMerger(notify=notifications).merge_session_registration(registration)

    assert prospect.status == "qualified"
    assert prospect.source == "session_registration"
    assert prospect.position == "Responsable formation"
    assert prospect.interested_formations == {formation}
    assert registration.prospect_id == prospect.id
    assert prospect.description == (
        "[2026-03-02] Inscription session: Session Mars 2026 - Management d'équipe\n"
        "Besoins spécifiques: Accès PMR"
    )


def test_needs_analysis_splits_recipient_name(app, notifications):
    analysis = mk_analysis(recipient_name="Marie Curie", company_name="Institut du Radium")

    prospect = TouchpointMerger(notify=notifications).merge_needs_analysis(analysis)

    assert prospect.first_name == "Marie"
    assert prospect.last_name == "Curie"
    assert prospect.status == "qualified"
    assert prospect.source == "needs_analysis"
    assert prospect.company == "Institut du Radium"
    assert prospect.description.startswith("[2026-03-03] Analyse de besoins (Particulier) envoyée")


def test_needs_analysis_with_compound_last_name_and_admin_notes(app, notifications):
    analysis = mk_analysis(
        email="jp@example.com",
        type="company",
        recipient_name="Jean Pierre de la Tour",
        admin_notes="Relancer en avril",
    )

    prospect = TouchpointMerger(notify=notifications).merge_needs_analysis(analysis)

    assert prospect.first_name == "Jean"
    assert prospect.last_name == "Pierre de la Tour"
    assert "Analyse de besoins (Entreprise) envoyée\nNotes admin: Relancer en avril" in prospect.description


def test_notes_accumulate_and_events_are_recorded(app, training_session, notifications):
    merger = TouchpointMerger(notify=notifications)
    contact = mk_contact(type="quote", message="Devis pour 10 personnes")

    merger.merge_contact_request(contact)
    prospect = merger.merge_session_registration(mk_registration(training_session))

    assert prospect.description.count("\n\n") == 1
    assert [event.kind for event in prospect.events] == ["contact_request", "session_registration"]
    assert prospect.events[0].payload == {"touchpoint_id": contact.id, "type": "quote"}


def test_touchpoints_for_same_email_share_one_prospect(app, training_session, notifications):
    merger = TouchpointMerger(notify=notifications)

    a = merger.merge_contact_request(mk_contact())
    b = merger.merge_session_registration(mk_registration(training_session))
    c = merger.merge_needs_analysis(mk_analysis(email="jean.dupont@acme.fr", recipient_name="Jean Dupont"))

    assert a.id == b.id == c.id
    assert Prospect.query.count() == 1


def test_notifier_is_called_after_commit(app, notifications):
    contact = mk_contact()

    prospect = TouchpointMerger(notify=notifications).merge_contact_request(contact)

    assert notifications.calls == [(prospect.id, "contact_request", {"touchpoint": contact})]


def test_missing_email_raises_and_leaves_touchpoint_unlinked(app, notifications):
    contact = mk_contact(email=None)

    with pytest.raises(InvalidIdentity):
        TouchpointMerger(notify=notifications).merge_contact_request(contact)

    assert db.session.get(ContactRequest, contact.id).prospect_id is None
    assert Prospect.query.count() == 0
    assert notifications.calls == []


def test_malformed_email_raises_invalid_identity(app, notifications):
    analysis = mk_analysis(email="pas-un-email", recipient_name="Marie Curie")

    with pytest.raises(InvalidIdentity):
        TouchpointMerger(notify=notifications).merge_needs_analysis(analysis)

    assert Prospect.query.count() == 0


def test_failure_midway_rolls_back_every_change(app, formation, notifications):
    class BrokenTracker:
        def add_interest(self, prospect, formation=None, service=None):
            raise UnresolvableReference("Formation not found: 1")

    contact = mk_contact(type="quote", formation=formation, phone="0102030405")

    with pytest.raises(UnresolvableReference):
        TouchpointMerger(interests=BrokenTracker(), notify=notifications).merge_contact_request(contact)

    assert Prospect.query.count() == 0
    assert ProspectEvent.query.count() == 0
    assert db.session.get(ContactRequest, contact.id).prospect_id is None
    assert notifications.calls == []


def test_merge_dispatches_on_record_type(app, notifications):
    contact = mk_contact()

    prospect = TouchpointMerger(notify=notifications).merge(contact)

    assert contact.prospect_id == prospect.id
    with pytest.raises(TypeError):
        TouchpointMerger(notify=notifications).merge(object())


def test_link_unlinked_touchpoints(app, training_session, notifications):
    mk_contact(email="a@example.com")
    mk_contact(email="broken")
    mk_registration(training_session, email="a@example.com")
    mk_analysis(email="b@example.com", recipient_name="Bob Martin")

    report = TouchpointMerger(notify=notifications).link_unlinked_touchpoints()

    assert report.found == {"session_registration": 1, "contact_request": 2, "needs_analysis": 1}
    assert report.total_linked == 3
    assert [(kind, error) for kind, _, error in report.failures] == [
        ("contact_request", "Invalid email format: 'broken'")
    ]
    assert Prospect.query.count() == 2
    assert Prospect.query.filter_by(email="a@example.com").one().status == "qualified"


def test_link_unlinked_touchpoints_dry_run_changes_nothing(app, notifications):
    mk_contact(email="a@example.com")

    report = TouchpointMerger(notify=notifications).link_unlinked_touchpoints(dry_run=True)

    assert report.found["contact_request"] == 1
    assert report.total_linked == 0
    assert Prospect.query.count() == 0


def test_merging_linked_touchpoint_again_keeps_history_intact(app, notifications):
    mk_prospect("jean.dupont@acme.fr", datetime(2026, 1, 1))
    contact = mk_contact(message="hello", created_at=datetime(2026, 3, 1, 9, 0))
    merger = TouchpointMerger(notify=notifications)

    prospect = merger.merge_contact_request(contact)
    prospect.last_contact_date = datetime(2026, 4, 1)
    db.session.commit()

    again = merger.merge_contact_request(contact)

    assert again.id == prospect.id
    assert again.description == "[2026-03-01] Demande d'information: hello"
    assert len(again.events) == 1
    assert again.last_contact_date == datetime(2026, 4, 1)
    assert contact.prospect_id == prospect.id


def test_commit_failure_raises_persistence_failure_and_rolls_back(app, monkeypatch, notifications):
    contact = mk_contact(type="quote")

    def failing_commit():
        raise OperationalError("COMMIT", {}, Exception("database is locked"))

    monkeypatch.setattr(db.session, "commit", failing_commit)

    with pytest.raises(PersistenceFailure) as excinfo:
        TouchpointMerger(notify=notifications).merge_contact_request(contact)

    assert isinstance(excinfo.value.__cause__, OperationalError)
    assert Prospect.query.count() == 0
    assert ProspectEvent.query.count() == 0
    assert db.session.get(ContactRequest, contact.id).prospect_id is None
    assert notifications.calls == []
