from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from helpdesk.api.deps import get_current_user, get_stats_service, get_user_service, require_admin
from helpdesk.models.user import User
from helpdesk.schemas.stats import DashboardStats
from helpdesk.schemas.user import UserListResponse, UserResponse, UserRoleEnum, UserSummary, UserUpdate
from helpdesk.services.base import page_count
from helpdesk.services.stats_service import StatsService
from helpdesk.services.user_service import UserService

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("", response_model=UserListResponse)
def get_users(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    role: Optional[UserRoleEnum] = None,
    active: Optional[bool] = None,
    search: Optional[str] = Query(None, max_length=200),
    user: User = Depends(require_admin),
    service: UserService = Depends(get_user_service),
):
    users, total = service.list_users(
        page=page,
        limit=limit,
        role=role.value if role else None,
        active=active,
        search=search,
    )
    return UserListResponse(
        users=[UserResponse.model_validate(u) for u in users],
        total=total,
        total_pages=page_count(total, limit),
        current_page=page,
    )


@router.get("/agents", response_model=List[UserSummary])
def get_agents(
    user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    """
    Active agents, for populating assignment pickers.
    """
    return service.list_agents()


@router.get("/stats/dashboard", response_model=DashboardStats)
def get_dashboard_stats(
    user: User = Depends(require_admin),
    service: StatsService = Depends(get_stats_service),
):
    return service.dashboard()


@router.get("/{user_id}", response_model=UserResponse)
def get_user(
    user_id: int,
    user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    return service.get_visible_user(user, user_id)


@router.put("/{user_id}", response_model=UserResponse)
def update_user(
    user_id: int,
    user_in: UserUpdate,
    user: User = Depends(require_admin),
    service: UserService = Depends(get_user_service),
):
    return service.update_user(user, user_id, user_in)


@router.delete("/{user_id}")
def delete_user(
    user_id: int,
    user: User = Depends(require_admin),
    service: UserService = Depends(get_user_service),
):
    """
    Hard-delete an account. Users who have filed tickets must be deactivated instead.
    """
    service.delete_user(user, user_id)
    return {"message": "User deleted successfully"}
