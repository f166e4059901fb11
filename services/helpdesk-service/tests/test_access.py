from types import SimpleNamespace

import pytest
from helpdesk.core.access import ticket_capabilities, visible_comments
from helpdesk.models.user import UserRole


def _requester(user_id, role):
    return SimpleNamespace(id=user_id, role=role)


def _ticket(owner_id=1, assignee_id=None, comments=()):
    return SimpleNamespace(created_by_id=owner_id, assigned_to_id=assignee_id, comments=list(comments))


def test_owner_can_read_and_edit_basics_but_not_workflow():
    caps = ticket_capabilities(_requester(1, UserRole.USER), _ticket(owner_id=1))

    assert caps.is_owner
    assert caps.can_read
    assert caps.can_write_basic
    assert not caps.can_write_workflow
    assert not caps.can_delete
    assert not caps.can_comment_internal


def test_stranger_has_no_access():
    caps = ticket_capabilities(_requester(2, UserRole.USER), _ticket(owner_id=1))

    assert not caps.can_read
    assert not caps.can_write_basic
    assert not caps.can_write_workflow


def test_assigned_plain_user_gets_workflow_access():
    caps = ticket_capabilities(_requester(3, UserRole.USER), _ticket(owner_id=1, assignee_id=3))

    assert caps.is_assigned
    assert caps.can_read
    assert caps.can_write_workflow
    assert not caps.can_view_internal


def test_unassigned_ticket_is_never_assigned_to_anyone():
    caps = ticket_capabilities(_requester(3, UserRole.USER), _ticket(owner_id=1, assignee_id=None))
    assert not caps.is_assigned


@pytest.mark.parametrize("role", [UserRole.AGENT, UserRole.ADMIN])
def test_staff_can_read_and_run_workflow(role):
    caps = ticket_capabilities(_requester(9, role), _ticket(owner_id=1))

    assert caps.can_read
    assert caps.can_write_workflow
    assert caps.can_comment_internal
    assert caps.can_view_internal
    assert caps.can_delete == (role == UserRole.ADMIN)


def test_visible_comments_hides_internal_from_non_staff():
    public = SimpleNamespace(is_internal=False)
    internal = SimpleNamespace(is_internal=True)
    ticket = _ticket(owner_id=1, comments=[public, internal])

    owner_caps = ticket_capabilities(_requester(1, UserRole.USER), ticket)
    agent_caps = ticket_capabilities(_requester(2, UserRole.AGENT), ticket)

    assert visible_comments(ticket, owner_caps) == [public]
    assert visible_comments(ticket, agent_caps) == [public, internal]
