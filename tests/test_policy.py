from types import SimpleNamespace

from hostel_tracker.services import policy
from hostel_tracker.services.policy import Actor


def actor(id=1, role="student", hostel="H1"):
    return Actor(id=id, public_id=f"u{id}", role=role, hostel=hostel, block="A")


def issue(reporter_id=1, assignee_id=None, is_public=True, hostel="H1"):
    return SimpleNamespace(
        reporter_id=reporter_id,
        assignee_id=assignee_id,
        is_public=is_public,
        hostel=hostel,
    )


def test_view_rules():
    private = issue(reporter_id=1, assignee_id=2, is_public=False)

    assert policy.can_view_issue(actor(1), private)
    assert policy.can_view_issue(actor(2, role="staff"), private)
    assert policy.can_view_issue(actor(9, role="management", hostel="H9"), private)

    denied = policy.can_view_issue(actor(3), private)
    assert not denied
    assert denied.reason == policy.ISSUE_NOT_VISIBLE


def test_public_issue_visible_only_within_hostel():
    public = issue(reporter_id=1, hostel="H1")

    assert policy.can_view_issue(actor(3, hostel="H1"), public)
    assert not policy.can_view_issue(actor(3, hostel="H2"), public)


def test_status_update_rules():
    assigned = issue(assignee_id=5)

    assert policy.can_update_status(actor(9, role="management"), assigned)
    assert policy.can_update_status(actor(5, role="staff"), assigned)
    assert policy.can_update_status(actor(6, role="staff"), assigned).reason == policy.NOT_ASSIGNEE
    assert policy.can_update_status(actor(6, role="staff"), issue()).reason == policy.NOT_ASSIGNEE
    assert policy.can_update_status(actor(1), assigned).reason == policy.ROLE_NOT_PERMITTED


def test_assign_is_management_only():
    assert policy.can_assign(actor(role="management"))
    assert not policy.can_assign(actor(role="staff"))
    assert not policy.can_assign(actor(role="student"))


def test_comment_denied_only_for_unrelated_student_on_private_issue():
    private = issue(reporter_id=1, is_public=False)

    assert policy.can_comment(actor(1), private)
    assert policy.can_comment(actor(7, role="staff"), private)
    assert policy.can_comment(actor(8, role="management"), private)
    assert policy.can_comment(actor(2), private).reason == policy.PRIVATE_ISSUE
    assert policy.can_comment(actor(2, hostel="H2"), issue(is_public=True))


def test_upvote_only_on_public_issues():
    assert policy.can_upvote(actor(2), issue(is_public=True))
    assert not policy.can_upvote(actor(1), issue(is_public=False))


def test_delete_reporter_or_management():
    target = issue(reporter_id=1)

    assert policy.can_delete_issue(actor(1), target)
    assert policy.can_delete_issue(actor(9, role="management"), target)
    assert policy.can_delete_issue(actor(2, role="staff"), target).reason == policy.NOT_OWNER


def test_claim_rules():
    item = SimpleNamespace(reporter_id=1, status="found")

    assert policy.can_claim(actor(2), item, set())
    assert policy.can_claim(actor(1), item, set()).reason == policy.OWN_ITEM
    assert policy.can_claim(actor(2), item, {2}).reason == policy.DUPLICATE_CLAIM

    claimed = SimpleNamespace(reporter_id=1, status="claimed")
    assert policy.can_claim(actor(3), claimed, set()).reason == policy.ITEM_ALREADY_CLAIMED


def test_item_modification_rules():
    item = SimpleNamespace(reporter_id=1, status="lost")

    assert policy.can_modify_item(actor(1), item)
    assert policy.can_modify_item(actor(9, role="management"), item)
    assert not policy.can_modify_item(actor(2), item)


def test_announcement_targeting():
    management_only = SimpleNamespace(target_hostels=[], target_blocks=[], target_roles=["management"])

    assert policy.can_view_announcement(actor(role="management", hostel="H7"), management_only)
    assert not policy.can_view_announcement(actor(role="student"), management_only)

    h1_students = SimpleNamespace(target_hostels=["H1"], target_blocks=["Z"], target_roles=["student"])
    # blocks are not enforced
    assert policy.can_view_announcement(actor(role="student", hostel="H1"), h1_students)
    assert not policy.can_view_announcement(actor(role="student", hostel="H2"), h1_students)

    everyone = SimpleNamespace(target_hostels=[], target_blocks=[], target_roles=[])
    assert policy.can_view_announcement(actor(role="staff", hostel="H3"), everyone)


def test_enforce_raises_with_reason():
    import pytest
    from hostel_tracker.core.exceptions import AuthorizationError

    with pytest.raises(AuthorizationError) as exc:
        policy.enforce(policy.deny(policy.NOT_OWNER), "nope")

    assert exc.value.reason == policy.NOT_OWNER
    assert exc.value.status_code == 403
