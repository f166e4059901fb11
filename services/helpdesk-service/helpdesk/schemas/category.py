from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from helpdesk.schemas.user import UserSummary

HEX_COLOR_PATTERN = r"^#[0-9A-Fa-f]{6}$"


class CategorySummary(BaseModel):
    id: int
    name: str
    color: str

    model_config = ConfigDict(from_attributes=True)


class CategoryResponse(CategorySummary):
    description: Optional[str] = None
    is_active: bool
    created_by: Optional[UserSummary] = None
    created_at: datetime
    updated_at: datetime


class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=50)
    description: Optional[str] = Field(None, max_length=200)
    color: Optional[str] = Field(None, pattern=HEX_COLOR_PATTERN)

    model_config = ConfigDict(str_strip_whitespace=True)


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=50)
    description: Optional[str] = Field(None, max_length=200)
    color: Optional[str] = Field(None, pattern=HEX_COLOR_PATTERN)
    is_active: Optional[bool] = None

    model_config = ConfigDict(str_strip_whitespace=True)
