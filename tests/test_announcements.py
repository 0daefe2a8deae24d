import pytest

from hostel_tracker.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from hostel_tracker.services import announcements as engine
from hostel_tracker.services.announcements import AnnouncementCreate, AnnouncementUpdate


def post(session, manager, **fields):
    data = {"title": "Water outage", "content": "No water from 10am to 2pm."}
    data.update(fields)
    return engine.create_announcement(session, manager, AnnouncementCreate(**data))


def test_management_only_announcement(session, make_actor):
    manager = make_actor(role="management", hostel="H9")
    other_manager = make_actor(role="management", hostel="H3")
    student = make_actor(hostel="H9")

    announcement = post(session, manager, target_roles=["management"])

    assert [a.id for a in engine.list_announcements(session, other_manager)] == [announcement.id]
    assert engine.list_announcements(session, student) == []

    with pytest.raises(NotFoundError):
        engine.get_announcement(session, student, announcement.id)


def test_hostel_targeting_ignores_blocks(session, make_actor):
    manager = make_actor(role="management")
    block_a = make_actor(hostel="H1", block="A")
    other_hostel = make_actor(hostel="H2", block="B")

    announcement = post(session, manager, target_hostels=["H1"], target_blocks=["B"])

    assert [a.id for a in engine.list_announcements(session, block_a)] == [announcement.id]
    assert engine.list_announcements(session, other_hostel) == []
    assert engine.get_announcement(session, block_a, announcement.id).id == announcement.id


def test_empty_targets_reach_everyone(session, make_actor):
    manager = make_actor(role="management")
    post(session, manager, target_roles=[])

    for role in ("student", "staff", "management"):
        assert len(engine.list_announcements(session, make_actor(role=role, hostel="Hx"))) == 1


def test_omitted_roles_default_to_students_and_staff(session, make_actor):
    manager = make_actor(role="management")
    announcement = post(session, manager)

    assert announcement.target_roles == ["student", "staff"]
    assert len(engine.list_announcements(session, make_actor(role="student"))) == 1
    assert len(engine.list_announcements(session, make_actor(role="staff"))) == 1
    assert engine.list_announcements(session, manager) == []
    # management still opens it by id
    assert engine.get_announcement(session, manager, announcement.id).id == announcement.id


def test_inactive_announcements_hidden(session, make_actor):
    manager = make_actor(role="management")
    student = make_actor()
    announcement = post(session, manager)

    engine.update_announcement(session, manager, announcement.id, AnnouncementUpdate(is_active=False))

    assert engine.list_announcements(session, student) == []
    assert engine.list_announcements(session, manager) == []
    assert [a.id for a in engine.list_announcements(session, manager, include_all=True)] == [announcement.id]

    with pytest.raises(AuthorizationError):
        engine.list_announcements(session, student, include_all=True)


def test_update_and_delete_are_management_only(session, make_actor):
    manager = make_actor(role="management")
    staff = make_actor(role="staff")
    announcement = post(session, manager)

    with pytest.raises(AuthorizationError):
        post(session, staff)
    with pytest.raises(AuthorizationError):
        engine.update_announcement(session, staff, announcement.id, AnnouncementUpdate(title="Hacked"))
    with pytest.raises(AuthorizationError):
        engine.delete_announcement(session, staff, announcement.id)

    updated = engine.update_announcement(
        session, manager, announcement.id, AnnouncementUpdate(title="Water restored", target_roles=["student"])
    )
    assert updated.title == "Water restored"
    assert updated.target_roles == ["student"]
    assert updated.content == "No water from 10am to 2pm."

    announcement_id = announcement.id
    engine.delete_announcement(session, manager, announcement_id)
    with pytest.raises(NotFoundError):
        engine.get_announcement(session, manager, announcement_id)


def test_unknown_target_role_rejected(session, make_actor):
    with pytest.raises(ValidationError):
        post(session, make_actor(role="management"), target_roles=["warden"])
