from sqlalchemy import func

from helpdesk.core.fsm import TicketState
from helpdesk.models.category import Category
from helpdesk.models.ticket import Ticket
from helpdesk.models.user import User
from helpdesk.schemas.stats import DashboardStats
from helpdesk.services.base import BaseService

TOP_CATEGORY_LIMIT = 5


class StatsService(BaseService):
    """Read-only aggregates for the admin dashboard, recomputed on every call."""

    def dashboard(self) -> DashboardStats:
        by_role = dict(self.db.query(User.role, func.count(User.id)).group_by(User.role).all())
        by_status = dict(self.db.query(Ticket.status, func.count(Ticket.id)).group_by(Ticket.status).all())

        ticket_count = func.count(Ticket.id).label("count")
        top_categories = (
            self.db.query(Category.name, ticket_count)
            .join(Ticket, Ticket.category_id == Category.id)
            .group_by(Category.id, Category.name)
            .order_by(ticket_count.desc(), Category.name.asc())
            .limit(TOP_CATEGORY_LIMIT)
            .all()
        )

        return DashboardStats(
            users={"total": sum(by_role.values()), "by_role": by_role},
            tickets={
                "total": sum(by_status.values()),
                "open": by_status.get(TicketState.OPEN, 0),
                "in_progress": by_status.get(TicketState.IN_PROGRESS, 0),
                "resolved": by_status.get(TicketState.RESOLVED, 0),
                "closed": by_status.get(TicketState.CLOSED, 0),
            },
            categories={
                "total": self.db.query(func.count(Category.id)).scalar() or 0,
                "top_categories": [{"name": name, "count": count} for name, count in top_categories],
            },
        )
