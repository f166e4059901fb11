from datetime import datetime
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from helpdesk.schemas.category import CategorySummary
from helpdesk.schemas.user import UserSummary


class TicketStateEnum(str, Enum):
    OPEN = "open"
    IN_PROGRESS = "in-progress"
    RESOLVED = "resolved"
    CLOSED = "closed"


class TicketPriorityEnum(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class VoteDirectionEnum(str, Enum):
    UP = "up"
    DOWN = "down"


class TicketSortField(str, Enum):
    CREATED_AT = "created_at"
    UPDATED_AT = "updated_at"
    PRIORITY = "priority"
    STATUS = "status"
    SUBJECT = "subject"


class SortOrderEnum(str, Enum):
    ASC = "asc"
    DESC = "desc"


def split_tags(value: Any) -> Any:
    """Accept either a list of tags or a single comma-separated string."""
    if value is None:
        return value
    if isinstance(value, str):
        value = value.split(",")
    if isinstance(value, list):
        return [tag.strip() for tag in value if isinstance(tag, str) and tag.strip()]
    return value


class AttachmentIn(BaseModel):
    filename: str = Field(..., min_length=1, max_length=255, description="Name the file was stored under.")
    original_name: str = Field(..., min_length=1, max_length=255, description="Name the file was uploaded with.")
    path: str = Field(..., min_length=1, max_length=500, description="Storage path of the file.")
    size: int = Field(0, ge=0, description="File size in bytes.")


class AttachmentResponse(AttachmentIn):
    id: int
    uploaded_by_id: Optional[int] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CommentCreate(BaseModel):
    content: str = Field(..., min_length=1, description="Comment body.")
    is_internal: bool = Field(False, description="Visible to agents and admins only.")

    model_config = ConfigDict(str_strip_whitespace=True)


class CommentResponse(BaseModel):
    id: int
    content: str
    author: Optional[UserSummary] = None
    is_internal: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TicketCreate(BaseModel):
    subject: str = Field(..., min_length=5, max_length=200, description="Short summary of the problem.")
    description: str = Field(..., min_length=10, description="Full description of the problem.")
    category_id: int = Field(..., description="The category this ticket is filed under.")
    priority: TicketPriorityEnum = Field(TicketPriorityEnum.MEDIUM, description="Requested priority.")
    tags: List[str] = Field(default_factory=list, description="Free-text tags.")
    is_urgent: bool = False
    due_date: Optional[datetime] = None
    attachments: List[AttachmentIn] = Field(default_factory=list, max_length=5)

    model_config = ConfigDict(str_strip_whitespace=True)

    @field_validator("tags", mode="before")
    @classmethod
    def split_tag_string(cls, value: Any) -> Any:
        return split_tags(value)


class TicketUpdate(BaseModel):
    subject: Optional[str] = Field(None, min_length=5, max_length=200)
    description: Optional[str] = Field(None, min_length=10)
    category_id: Optional[int] = None
    tags: Optional[List[str]] = None
    status: Optional[TicketStateEnum] = None
    priority: Optional[TicketPriorityEnum] = None
    assigned_to_id: Optional[int] = Field(None, description="User to assign; null unassigns.")
    is_urgent: Optional[bool] = None
    due_date: Optional[datetime] = None

    model_config = ConfigDict(str_strip_whitespace=True)

    @field_validator("tags", mode="before")
    @classmethod
    def split_tag_string(cls, value: Any) -> Any:
        return split_tags(value)


class VoteRequest(BaseModel):
    direction: VoteDirectionEnum


class VoteResponse(BaseModel):
    upvotes: int
    downvotes: int
    vote_count: int


class TicketSummary(BaseModel):
    id: int
    subject: str
    description: str
    category: Optional[CategorySummary] = None
    status: TicketStateEnum
    priority: TicketPriorityEnum
    created_by: Optional[UserSummary] = None
    assigned_to: Optional[UserSummary] = None
    tags: List[str] = []
    is_urgent: bool
    due_date: Optional[datetime] = None
    resolved_at: Optional[datetime] = None
    closed_at: Optional[datetime] = None
    vote_count: int
    comment_count: int
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TicketResponse(TicketSummary):
    attachments: List[AttachmentResponse] = []
    comments: List[CommentResponse] = []
    upvotes: List[int] = []
    downvotes: List[int] = []


class TicketListResponse(BaseModel):
    tickets: List[TicketSummary]
    total: int
    total_pages: int
    current_page: int
