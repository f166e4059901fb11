from typing import List

from pydantic import BaseModel

from helpdesk.schemas.user import DashboardUserStats


class TicketStatusCounts(BaseModel):
    total: int
    open: int
    in_progress: int
    resolved: int
    closed: int


class CategoryTicketCount(BaseModel):
    name: str
    count: int


class DashboardCategoryStats(BaseModel):
    total: int
    top_categories: List[CategoryTicketCount]


class DashboardStats(BaseModel):
    users: DashboardUserStats
    tickets: TicketStatusCounts
    categories: DashboardCategoryStats
