import uuid

import pytest
from sqlmodel import select

from conftest import item_form
from hostel_tracker.core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from hostel_tracker.models.notification import Notification
from hostel_tracker.services import lost_found as engine


def test_report_item_snapshots_hostel_and_contact(session, make_actor):
    reporter = make_actor(hostel="H2")

    item = engine.report_item(session, reporter, item_form(), ["https://cdn.example.com/bottle.webp"])

    assert item.status == "lost"
    assert item.hostel == "H2"
    assert item.contact_info == reporter.phone
    assert item.images == ["https://cdn.example.com/bottle.webp"]
    assert item.claim_requests == []

    item = engine.report_item(session, reporter, item_form(contact_info="Room 12, ask for Anu"))
    assert item.contact_info == "Room 12, ask for Anu"


def test_students_only_see_their_hostel(session, make_actor):
    h1 = make_actor(hostel="H1")
    h2 = make_actor(hostel="H2")
    staff = make_actor(role="staff", hostel="H1")

    engine.report_item(session, h1, item_form(item_name="Umbrella"))
    engine.report_item(session, h2, item_form(item_name="Calculator", status="found", location="Library"))

    assert [i.item_name for i in engine.list_items(session, h1)] == ["Umbrella"]
    assert len(engine.list_items(session, staff)) == 2
    assert [i.item_name for i in engine.list_items(session, staff, status="found")] == ["Calculator"]
    assert [i.item_name for i in engine.list_items(session, staff, search="library")] == ["Calculator"]


def test_claim_rules(session, make_actor):
    reporter = make_actor()
    claimant = make_actor()
    item = engine.report_item(session, reporter, item_form(status="found"))

    with pytest.raises(AuthorizationError):
        engine.claim_item(session, reporter, item.id)

    item = engine.claim_item(session, claimant, item.id)
    assert [(c.claimant_id, c.status) for c in item.claim_requests] == [(claimant.id, "pending")]

    with pytest.raises(ConflictError) as exc:
        engine.claim_item(session, claimant, item.id)
    assert exc.value.reason == "duplicate_claim"

    notes = session.exec(select(Notification).where(Notification.user_id == reporter.id)).all()
    assert [n.type for n in notes] == ["claim_created"]


def test_approval_does_not_cascade(session, make_actor):
    reporter = make_actor()
    first = make_actor()
    second = make_actor()
    item = engine.report_item(session, reporter, item_form(status="lost"))

    engine.claim_item(session, first, item.id)
    item = engine.claim_item(session, second, item.id)
    first_claim, second_claim = item.claim_requests

    item = engine.decide_claim(session, reporter, item.id, first_claim.id, "approved")

    statuses = {c.claimant_id: c.status for c in item.claim_requests}
    assert item.status == "claimed"
    assert statuses == {first.id: "approved", second.id: "pending"}

    # claimed items accept no new claims and no further approvals
    with pytest.raises(ConflictError):
        engine.claim_item(session, make_actor(), item.id)
    with pytest.raises(ConflictError):
        engine.decide_claim(session, reporter, item.id, second_claim.id, "approved")

    # the leftover claim can still be turned down
    item = engine.decide_claim(session, reporter, item.id, second_claim.id, "rejected")
    assert {c.claimant_id: c.status for c in item.claim_requests}[second.id] == "rejected"


def test_decided_claim_is_immutable(session, make_actor):
    reporter = make_actor()
    claimant = make_actor()
    item = engine.report_item(session, reporter, item_form())
    claim_id = engine.claim_item(session, claimant, item.id).claim_requests[0].id

    item = engine.decide_claim(session, reporter, item.id, claim_id, "rejected")
    assert item.status == "lost"

    with pytest.raises(ConflictError):
        engine.decide_claim(session, reporter, item.id, claim_id, "approved")

    notes = session.exec(select(Notification).where(Notification.user_id == claimant.id)).all()
    assert [n.type for n in notes] == ["claim_rejected"]


def test_decide_claim_permissions_and_lookup(session, make_actor):
    reporter = make_actor()
    claimant = make_actor()
    manager = make_actor(role="management")
    item = engine.report_item(session, reporter, item_form())
    claim_id = engine.claim_item(session, claimant, item.id).claim_requests[0].id

    with pytest.raises(AuthorizationError):
        engine.decide_claim(session, claimant, item.id, claim_id, "approved")

    with pytest.raises(NotFoundError):
        engine.decide_claim(session, reporter, item.id, uuid.uuid4(), "approved")

    with pytest.raises(ValidationError):
        engine.decide_claim(session, reporter, item.id, claim_id, "maybe")

    item = engine.decide_claim(session, manager, item.id, claim_id, "approved")
    assert item.status == "claimed"


def test_update_and_delete_item(session, make_actor):
    reporter = make_actor()
    stranger = make_actor()
    manager = make_actor(role="management")
    item = engine.report_item(session, reporter, item_form())

    item = engine.update_item(session, reporter, item.id, {"location": " Gym ", "status": "found"})
    assert (item.location, item.status) == ("Gym", "found")

    with pytest.raises(ValidationError):
        engine.update_item(session, reporter, item.id, {"reporter_id": "7"})
    with pytest.raises(ValidationError):
        engine.update_item(session, reporter, item.id, {"status": "stolen"})
    with pytest.raises(AuthorizationError):
        engine.update_item(session, stranger, item.id, {"location": "Roof"})
    with pytest.raises(AuthorizationError):
        engine.delete_item(session, stranger, item.id)

    item_id = item.id
    engine.delete_item(session, manager, item_id)

    with pytest.raises(NotFoundError):
        engine.get_item(session, reporter, item_id)
