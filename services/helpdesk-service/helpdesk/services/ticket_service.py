import logging
from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError

from helpdesk.core.access import TicketCapabilities, ticket_capabilities
from helpdesk.core.errors import AuthorizationError, NotFoundError, ValidationError
from helpdesk.core.fsm import TicketState, TicketStateMachine
from helpdesk.models.category import Category
from helpdesk.models.ticket import Attachment, Comment, Ticket, TicketVote
from helpdesk.models.user import User, UserRole
from helpdesk.schemas.ticket import CommentCreate, TicketCreate, TicketUpdate
from helpdesk.services.base import BaseService

logger = logging.getLogger(__name__)

WORKFLOW_FIELDS = ("status", "priority", "assigned_to_id", "is_urgent", "due_date")
SORTABLE_COLUMNS = {
    "created_at": Ticket.created_at,
    "updated_at": Ticket.updated_at,
    "priority": Ticket.priority,
    "status": Ticket.status,
    "subject": Ticket.subject,
}
VOTE_DIRECTIONS = ("up", "down")


class TicketService(BaseService):

    def __init__(self, db):
        super().__init__(db)
        self.fsm = TicketStateMachine()

    def _get(self, ticket_id: int) -> Ticket:
        ticket = self.db.get(Ticket, ticket_id)
        if not ticket:
            raise NotFoundError("Ticket not found")
        return ticket

    def _readable(self, requester: User, ticket_id: int) -> Tuple[Ticket, TicketCapabilities]:
        ticket = self._get(ticket_id)
        capabilities = ticket_capabilities(requester, ticket)
        if not capabilities.can_read:
            raise AuthorizationError("Not authorized to access this ticket")
        return ticket, capabilities

    def _active_category(self, category_id: int) -> Category:
        category = self.db.get(Category, category_id)
        if not category:
            raise NotFoundError("Category not found")
        if not category.is_active:
            raise ValidationError("Invalid category")
        return category

    def create_ticket(self, requester: User, data: TicketCreate) -> Ticket:
        category = self._active_category(data.category_id)

        ticket = Ticket(
            subject=data.subject,
            description=data.description,
            category_id=category.id,
            status=TicketState.OPEN,
            priority=data.priority.value,
            created_by_id=requester.id,
            tags=list(data.tags),
            is_urgent=data.is_urgent,
            due_date=data.due_date,
            attachments=[
                Attachment(
                    filename=attachment.filename,
                    original_name=attachment.original_name,
                    path=attachment.path,
                    size=attachment.size,
                    uploaded_by_id=requester.id,
                )
                for attachment in data.attachments
            ],
        )
        self.db.add(ticket)
        self._commit(ticket)
        logger.info("Ticket %s created by user %s in category %s", ticket.id, requester.id, category.id)
        return ticket

    def list_tickets(
        self,
        requester: User,
        page: int = 1,
        limit: int = 10,
        status: Optional[str] = None,
        priority: Optional[str] = None,
        category_id: Optional[int] = None,
        created_by: Optional[int] = None,
        assigned_to: Optional[str] = None,
        search: Optional[str] = None,
        sort_by: str = "created_at",
        sort_order: str = "desc",
    ) -> Tuple[List[Ticket], int]:
        """
        Page through the tickets visible to ``requester``.

        Plain users only ever see tickets they created. Agents and admins see
        every ticket and may narrow to their own queue with ``assigned_to="me"``.
        ``search`` is a case-insensitive literal substring match over subject
        and description.
        """
        query = self.db.query(Ticket)

        if requester.role == UserRole.USER:
            query = query.filter(Ticket.created_by_id == requester.id)
        elif assigned_to == "me":
            query = query.filter(Ticket.assigned_to_id == requester.id)

        if status:
            query = query.filter(Ticket.status == status)
        if priority:
            query = query.filter(Ticket.priority == priority)
        if category_id is not None:
            query = query.filter(Ticket.category_id == category_id)
        if created_by is not None:
            query = query.filter(Ticket.created_by_id == created_by)
        if search:
            query = query.filter(
                or_(
                    Ticket.subject.icontains(search, autoescape=True),
                    Ticket.description.icontains(search, autoescape=True),
                )
            )

        total = query.count()

        column = SORTABLE_COLUMNS.get(sort_by, Ticket.created_at)
        if sort_order == "asc":
            query = query.order_by(column.asc(), Ticket.id.asc())
        else:
            query = query.order_by(column.desc(), Ticket.id.desc())

        tickets = query.offset((page - 1) * limit).limit(limit).all()
        return tickets, total

    def get_ticket(self, requester: User, ticket_id: int) -> Tuple[Ticket, TicketCapabilities]:
        return self._readable(requester, ticket_id)

    def update_ticket(self, requester: User, ticket_id: int, data: TicketUpdate) -> Tuple[Ticket, TicketCapabilities]:
        """
        Apply a partial update according to the requester's capabilities.

        Subject, description, category and tags are writable by anyone who can
        read the ticket. Workflow fields (status, priority, assignee, urgency,
        due date) need agent, admin or assignee standing; from anyone else they
        are dropped without error.
        """
        ticket, capabilities = self._readable(requester, ticket_id)
        fields = data.model_dump(exclude_unset=True)

        basic = capabilities.can_write_basic
        workflow = capabilities.can_write_workflow

        # Resolve references before touching the ticket.
        category = None
        if basic and data.category_id is not None and data.category_id != ticket.category_id:
            category = self._active_category(data.category_id)

        assignee = None
        if workflow and data.assigned_to_id is not None:
            assignee = self.db.get(User, data.assigned_to_id)
            if not assignee:
                raise NotFoundError("Assignee not found")

        if workflow:
            if data.status is not None:
                previous = ticket.status
                self.fsm.transition(ticket, data.status.value)
                if previous != ticket.status:
                    logger.info("Ticket %s status %s -> %s by %s", ticket.id, previous, ticket.status, requester.id)
            if data.priority is not None:
                self.fsm.set_priority(ticket, data.priority.value)
            if "assigned_to_id" in fields:
                ticket.assigned_to_id = assignee.id if assignee else None
            if data.is_urgent is not None:
                ticket.is_urgent = data.is_urgent
            if "due_date" in fields:
                ticket.due_date = data.due_date
        else:
            ignored = [name for name in WORKFLOW_FIELDS if name in fields]
            if ignored:
                logger.debug("Ignoring %s from user %s on ticket %s", ignored, requester.id, ticket.id)

        if basic:
            if data.subject:
                ticket.subject = data.subject
            if data.description:
                ticket.description = data.description
            if category is not None:
                ticket.category_id = category.id
            if data.tags is not None:
                ticket.tags = list(data.tags)

        self._commit(ticket)
        return ticket, ticket_capabilities(requester, ticket)

    def add_comment(self, requester: User, ticket_id: int, data: CommentCreate) -> Comment:
        ticket, capabilities = self._readable(requester, ticket_id)

        if data.is_internal and not capabilities.can_comment_internal:
            raise AuthorizationError("Not authorized to add internal comments")

        comment = Comment(content=data.content, author_id=requester.id, is_internal=data.is_internal)
        ticket.comments.append(comment)
        ticket.updated_at = datetime.utcnow()
        self._commit()
        self.db.refresh(comment)
        return comment

    def vote(self, requester: User, ticket_id: int, direction: str) -> Ticket:
        """
        Toggle ``requester``'s vote on a ticket.

        Voting the same way twice withdraws the vote; voting the other way
        moves it. Any authenticated user may vote on any ticket.
        """
        if direction not in VOTE_DIRECTIONS:
            raise ValidationError("Invalid vote type")

        try:
            return self._apply_vote(requester, ticket_id, direction)
        except IntegrityError:
            # another request recorded this user's first vote in the meantime
            logger.info("Retrying vote by %s on ticket %s after a concurrent write", requester.id, ticket_id)
            return self._apply_vote(requester, ticket_id, direction)

    def _apply_vote(self, requester: User, ticket_id: int, direction: str) -> Ticket:
        ticket = self._get(ticket_id)
        existing = next((vote for vote in ticket.votes if vote.user_id == requester.id), None)

        if existing is None:
            ticket.votes.append(TicketVote(user_id=requester.id, direction=direction))
        elif existing.direction == direction:
            ticket.votes.remove(existing)
        else:
            existing.direction = direction

        return self._commit(ticket)

    def delete_ticket(self, requester: User, ticket_id: int) -> None:
        ticket = self._get(ticket_id)
        if not ticket_capabilities(requester, ticket).can_delete:
            raise AuthorizationError("Only admins can delete tickets")

        self.db.delete(ticket)
        self._commit()
        logger.info("Ticket %s deleted by admin %s", ticket_id, requester.id)
