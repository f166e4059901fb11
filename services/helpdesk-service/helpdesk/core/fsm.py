from datetime import datetime
from typing import Optional

from helpdesk.core.errors import ValidationError
from helpdesk.models.ticket import Ticket


class TicketState:
    OPEN = "open"
    IN_PROGRESS = "in-progress"
    RESOLVED = "resolved"
    CLOSED = "closed"


class TicketPriority:
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


VALID_STATES = (TicketState.OPEN, TicketState.IN_PROGRESS, TicketState.RESOLVED, TicketState.CLOSED)
VALID_PRIORITIES = (TicketPriority.LOW, TicketPriority.MEDIUM, TicketPriority.HIGH, TicketPriority.URGENT)


class TicketStateMachine:
    """
    Status is a free assignment: any of the four states may follow any other.

    Two one-way markers ride on top of it. The first time a ticket enters
    ``resolved`` its ``resolved_at`` is stamped, the first time it enters
    ``closed`` its ``closed_at`` is stamped. Neither is ever cleared or
    overwritten, so they read as "has ever been resolved/closed".
    """

    def validate_transition(self, new_state: str):
        if new_state not in VALID_STATES:
            raise ValidationError(
                {
                    "error": "Invalid status",
                    "attempted_state": new_state,
                    "allowed": list(VALID_STATES),
                }
            )

    def transition(self, ticket: Ticket, new_state: str, now: Optional[datetime] = None) -> Ticket:
        """
        Move a ticket to a new status and apply the timestamp side effects.
        Does NOT commit. The caller must commit the transaction.
        """
        self.validate_transition(new_state)

        timestamp = now or datetime.utcnow()
        ticket.status = new_state

        if new_state == TicketState.RESOLVED and ticket.resolved_at is None:
            ticket.resolved_at = timestamp
        elif new_state == TicketState.CLOSED and ticket.closed_at is None:
            ticket.closed_at = timestamp

        return ticket

    def set_priority(self, ticket: Ticket, priority: str) -> Ticket:
        if priority not in VALID_PRIORITIES:
            raise ValidationError(
                {
                    "error": "Invalid priority level",
                    "attempted_priority": priority,
                    "allowed": list(VALID_PRIORITIES),
                }
            )
        ticket.priority = priority
        return ticket
