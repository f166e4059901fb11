"""
Who may do what to a ticket.

Every ticket route asks ``ticket_capabilities`` once and consults the
resulting flags instead of re-deriving role checks on its own.
"""
from dataclasses import dataclass
from typing import List

from helpdesk.models.ticket import Comment, Ticket
from helpdesk.models.user import User, UserRole


@dataclass(frozen=True)
class TicketCapabilities:
    is_owner: bool
    is_assigned: bool
    is_admin: bool
    is_agent: bool

    @property
    def can_read(self) -> bool:
        return self.is_owner or self.is_assigned or self.is_admin or self.is_agent

    @property
    def can_write_basic(self) -> bool:
        # subject, description, category and tags: anyone who can read the ticket
        return self.can_read

    @property
    def can_write_workflow(self) -> bool:
        # status, priority, assignee, urgency and due date
        return self.is_agent or self.is_admin or self.is_assigned

    @property
    def can_delete(self) -> bool:
        return self.is_admin

    @property
    def can_comment_internal(self) -> bool:
        return self.is_agent or self.is_admin

    @property
    def can_view_internal(self) -> bool:
        return self.is_agent or self.is_admin


def ticket_capabilities(requester: User, ticket: Ticket) -> TicketCapabilities:
    return TicketCapabilities(
        is_owner=ticket.created_by_id == requester.id,
        is_assigned=ticket.assigned_to_id is not None and ticket.assigned_to_id == requester.id,
        is_admin=requester.role == UserRole.ADMIN,
        is_agent=requester.role == UserRole.AGENT,
    )


def visible_comments(ticket: Ticket, capabilities: TicketCapabilities) -> List[Comment]:
    if capabilities.can_view_internal:
        return list(ticket.comments)
    return [comment for comment in ticket.comments if not comment.is_internal]
