from typing import Optional, Type

from fastapi import APIRouter, Depends, Query, status

from helpdesk.api.deps import get_current_user, get_ticket_service, require_admin
from helpdesk.core.access import TicketCapabilities, ticket_capabilities, visible_comments
from helpdesk.models.ticket import Ticket
from helpdesk.models.user import User
from helpdesk.schemas.ticket import (
    CommentCreate,
    CommentResponse,
    SortOrderEnum,
    TicketCreate,
    TicketListResponse,
    TicketPriorityEnum,
    TicketResponse,
    TicketSortField,
    TicketStateEnum,
    TicketSummary,
    TicketUpdate,
    VoteRequest,
    VoteResponse,
)
from helpdesk.services.base import page_count
from helpdesk.services.ticket_service import TicketService

router = APIRouter(prefix="/tickets", tags=["Tickets"])


def render_ticket(ticket: Ticket, capabilities: TicketCapabilities, schema: Type[TicketSummary] = TicketResponse):
    """
    Serialize a ticket for one viewer; internal comments are dropped for non-staff.
    """
    rendered = schema.model_validate(ticket)
    if capabilities.can_view_internal:
        return rendered

    comments = visible_comments(ticket, capabilities)
    update = {"comment_count": len(comments)}
    if "comments" in schema.model_fields:
        update["comments"] = [CommentResponse.model_validate(comment) for comment in comments]
    return rendered.model_copy(update=update)


@router.post("", response_model=TicketResponse, status_code=status.HTTP_201_CREATED)
def create_ticket(
    ticket_in: TicketCreate,
    user: User = Depends(get_current_user),
    service: TicketService = Depends(get_ticket_service),
):
    """
    File a new ticket. The requester becomes its permanent owner; attachments
    are descriptors of files the upload layer has already stored.
    """
    ticket = service.create_ticket(user, ticket_in)
    return render_ticket(ticket, ticket_capabilities(user, ticket))


@router.get("", response_model=TicketListResponse)
def get_tickets(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    status: Optional[TicketStateEnum] = None,
    priority: Optional[TicketPriorityEnum] = None,
    category_id: Optional[int] = None,
    created_by: Optional[int] = None,
    assigned_to: Optional[str] = Query(None, pattern="^me$"),
    search: Optional[str] = Query(None, max_length=200),
    sort_by: TicketSortField = TicketSortField.CREATED_AT,
    sort_order: SortOrderEnum = SortOrderEnum.DESC,
    user: User = Depends(get_current_user),
    service: TicketService = Depends(get_ticket_service),
):
    """
    Retrieve a page of tickets with optional filtering, scoped by the requester's role.
    """
    tickets, total = service.list_tickets(
        user,
        page=page,
        limit=limit,
        status=status.value if status else None,
        priority=priority.value if priority else None,
        category_id=category_id,
        created_by=created_by,
        assigned_to=assigned_to,
        search=search,
        sort_by=sort_by.value,
        sort_order=sort_order.value,
    )
    return TicketListResponse(
        tickets=[render_ticket(ticket, ticket_capabilities(user, ticket), TicketSummary) for ticket in tickets],
        total=total,
        total_pages=page_count(total, limit),
        current_page=page,
    )


@router.get("/{ticket_id}", response_model=TicketResponse)
def get_ticket(
    ticket_id: int,
    user: User = Depends(get_current_user),
    service: TicketService = Depends(get_ticket_service),
):
    ticket, capabilities = service.get_ticket(user, ticket_id)
    return render_ticket(ticket, capabilities)


@router.put("/{ticket_id}", response_model=TicketResponse)
def update_ticket(
    ticket_id: int,
    update_data: TicketUpdate,
    user: User = Depends(get_current_user),
    service: TicketService = Depends(get_ticket_service),
):
    """
    Partially update a ticket. Status, priority and assignment changes from a
    requester who is not an agent, admin or the assignee are ignored.
    """
    ticket, capabilities = service.update_ticket(user, ticket_id, update_data)
    return render_ticket(ticket, capabilities)


@router.post("/{ticket_id}/comments", response_model=CommentResponse, status_code=status.HTTP_201_CREATED)
def add_comment(
    ticket_id: int,
    comment_in: CommentCreate,
    user: User = Depends(get_current_user),
    service: TicketService = Depends(get_ticket_service),
):
    return service.add_comment(user, ticket_id, comment_in)


@router.post("/{ticket_id}/vote", response_model=VoteResponse)
def vote_ticket(
    ticket_id: int,
    vote_in: VoteRequest,
    user: User = Depends(get_current_user),
    service: TicketService = Depends(get_ticket_service),
):
    ticket = service.vote(user, ticket_id, vote_in.direction.value)
    return VoteResponse(
        upvotes=len(ticket.upvotes),
        downvotes=len(ticket.downvotes),
        vote_count=ticket.vote_count,
    )


@router.delete("/{ticket_id}")
def delete_ticket(
    ticket_id: int,
    user: User = Depends(require_admin),
    service: TicketService = Depends(get_ticket_service),
):
    service.delete_ticket(user, ticket_id)
    return {"message": "Ticket deleted successfully"}
