from typing import List, Optional

from fastapi import APIRouter, Depends, status

from helpdesk.api.deps import get_category_service, get_current_user, require_admin
from helpdesk.models.user import User
from helpdesk.schemas.category import CategoryCreate, CategoryResponse, CategoryUpdate
from helpdesk.services.category_service import CategoryService

router = APIRouter(prefix="/categories", tags=["Categories"])


@router.post("", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
def create_category(
    category_in: CategoryCreate,
    user: User = Depends(require_admin),
    service: CategoryService = Depends(get_category_service),
):
    return service.create_category(user, category_in)


@router.get("", response_model=List[CategoryResponse])
def get_categories(
    active: Optional[bool] = None,
    user: User = Depends(get_current_user),
    service: CategoryService = Depends(get_category_service),
):
    """
    List categories by name, optionally only active or only inactive ones.
    """
    return service.list_categories(active=active)


@router.get("/{category_id}", response_model=CategoryResponse)
def get_category(
    category_id: int,
    user: User = Depends(get_current_user),
    service: CategoryService = Depends(get_category_service),
):
    return service.get_category(category_id)


@router.put("/{category_id}", response_model=CategoryResponse)
def update_category(
    category_id: int,
    category_in: CategoryUpdate,
    user: User = Depends(require_admin),
    service: CategoryService = Depends(get_category_service),
):
    return service.update_category(category_id, category_in)


@router.delete("/{category_id}")
def delete_category(
    category_id: int,
    user: User = Depends(require_admin),
    service: CategoryService = Depends(get_category_service),
):
    """
    Hard-delete a category. Categories still referenced by tickets must be deactivated instead.
    """
    service.delete_category(category_id)
    return {"message": "Category deleted successfully"}
