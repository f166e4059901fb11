import logging
from typing import List, Optional

from sqlalchemy import func

from helpdesk.core.config import settings
from helpdesk.core.errors import ConflictError, NotFoundError
from helpdesk.models.category import Category
from helpdesk.models.ticket import Ticket
from helpdesk.models.user import User
from helpdesk.schemas.category import CategoryCreate, CategoryUpdate
from helpdesk.services.base import BaseService

logger = logging.getLogger(__name__)


class CategoryService(BaseService):

    def _name_taken(self, name: str, exclude_id: Optional[int] = None) -> bool:
        query = self.db.query(Category.id).filter(func.lower(Category.name) == name.strip().lower())
        if exclude_id is not None:
            query = query.filter(Category.id != exclude_id)
        return query.first() is not None

    def get_category(self, category_id: int) -> Category:
        category = self.db.get(Category, category_id)
        if not category:
            raise NotFoundError("Category not found")
        return category

    def list_categories(self, active: Optional[bool] = None) -> List[Category]:
        query = self.db.query(Category)
        if active is not None:
            query = query.filter(Category.is_active == active)
        return query.order_by(Category.name.asc()).all()

    def create_category(self, requester: User, data: CategoryCreate) -> Category:
        if self._name_taken(data.name):
            raise ConflictError("Category already exists")

        category = Category(
            name=data.name,
            description=data.description,
            color=data.color or settings.DEFAULT_CATEGORY_COLOR,
            is_active=True,
            created_by_id=requester.id,
        )
        self.db.add(category)
        self._commit(category)
        logger.info("Category '%s' created by %s", category.name, requester.id)
        return category

    def update_category(self, category_id: int, data: CategoryUpdate) -> Category:
        category = self.get_category(category_id)

        if data.name and data.name != category.name:
            if self._name_taken(data.name, exclude_id=category.id):
                raise ConflictError("Category name already exists")
            category.name = data.name

        update_data = data.model_dump(exclude_unset=True)
        if "description" in update_data:
            category.description = data.description
        if data.color:
            category.color = data.color
        if data.is_active is not None:
            category.is_active = data.is_active

        return self._commit(category)

    def delete_category(self, category_id: int) -> None:
        category = self.get_category(category_id)

        in_use = self.db.query(Ticket.id).filter(Ticket.category_id == category.id).first()
        if in_use:
            raise ConflictError("Cannot delete category that is being used by tickets. Deactivate it instead.")

        self.db.delete(category)
        self._commit()
        logger.info("Category %s deleted", category_id)
