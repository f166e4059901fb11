import logging
from typing import List, Optional, Tuple

from sqlalchemy import or_

from helpdesk.core.errors import AuthenticationError, AuthorizationError, ConflictError, NotFoundError
from helpdesk.core.security import create_access_token, hash_password, verify_password
from helpdesk.models.category import Category
from helpdesk.models.ticket import Attachment, Comment, Ticket, TicketVote
from helpdesk.models.user import User, UserRole
from helpdesk.schemas.user import ProfileUpdate, RegisterRequest, UserUpdate
from helpdesk.services.base import BaseService

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return email.strip().lower()


class UserService(BaseService):

    def get_user(self, user_id: int) -> User:
        user = self.db.get(User, user_id)
        if not user:
            raise NotFoundError("User not found")
        return user

    def get_by_email(self, email: str) -> Optional[User]:
        return self.db.query(User).filter(User.email == normalize_email(email)).first()

    def create_user(self, name: str, email: str, password: str, role: str = UserRole.USER) -> User:
        if self.get_by_email(email):
            raise ConflictError("Email already in use")

        user = User(
            name=name,
            email=normalize_email(email),
            password_hash=hash_password(password),
            role=role,
            is_active=True,
        )
        self.db.add(user)
        self._commit(user)
        logger.info("Created %s account %s (id=%s)", user.role, user.email, user.id)
        return user

    def register(self, data: RegisterRequest) -> User:
        return self.create_user(data.name, data.email, data.password)

    def authenticate(self, email: str, password: str) -> Tuple[User, str]:
        user = self.get_by_email(email)
        if not user or not verify_password(password, user.password_hash):
            raise AuthenticationError("Invalid email or password")
        if not user.is_active:
            raise AuthenticationError("Account is deactivated")
        return user, create_access_token(subject=str(user.id))

    def update_profile(self, requester: User, data: ProfileUpdate) -> User:
        if data.name:
            requester.name = data.name
        if data.avatar is not None:
            requester.avatar = data.avatar or None
        return self._commit(requester)

    def list_users(
        self,
        page: int = 1,
        limit: int = 10,
        role: Optional[str] = None,
        active: Optional[bool] = None,
        search: Optional[str] = None,
    ) -> Tuple[List[User], int]:
        query = self.db.query(User)

        if role:
            query = query.filter(User.role == role)
        if active is not None:
            query = query.filter(User.is_active == active)
        if search:
            query = query.filter(
                or_(User.name.icontains(search, autoescape=True), User.email.icontains(search, autoescape=True))
            )

        total = query.count()
        users = (
            query.order_by(User.created_at.desc(), User.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return users, total

    def list_agents(self) -> List[User]:
        return (
            self.db.query(User)
            .filter(User.role == UserRole.AGENT, User.is_active.is_(True))
            .order_by(User.name.asc())
            .all()
        )

    def get_visible_user(self, requester: User, user_id: int) -> User:
        user = self.get_user(user_id)
        if requester.role != UserRole.ADMIN and requester.id != user.id:
            raise AuthorizationError("Not authorized to view this user")
        return user

    def update_user(self, requester: User, user_id: int, data: UserUpdate) -> User:
        user = self.get_user(user_id)

        if user.id == requester.id and data.is_active is False:
            raise AuthorizationError("Cannot deactivate your own account")

        if data.email and normalize_email(data.email) != user.email:
            if self.get_by_email(data.email):
                raise ConflictError("Email already in use")
            user.email = normalize_email(data.email)

        if data.name:
            user.name = data.name
        if data.role is not None and data.role.value != user.role:
            logger.info("User %s role changed %s -> %s by %s", user.id, user.role, data.role.value, requester.id)
            user.role = data.role.value
        if data.is_active is not None:
            user.is_active = data.is_active

        return self._commit(user)

    def delete_user(self, requester: User, user_id: int) -> None:
        user = self.get_user(user_id)

        if user.id == requester.id:
            raise AuthorizationError("Cannot delete your own account")

        has_tickets = self.db.query(Ticket.id).filter(Ticket.created_by_id == user.id).first()
        if has_tickets:
            raise ConflictError("Cannot delete user who has created tickets. Deactivate the account instead.")

        # Detach the references a deleted user leaves behind.
        self.db.query(TicketVote).filter(TicketVote.user_id == user.id).delete(synchronize_session=False)
        self.db.query(Ticket).filter(Ticket.assigned_to_id == user.id).update(
            {Ticket.assigned_to_id: None}, synchronize_session=False
        )
        self.db.query(Comment).filter(Comment.author_id == user.id).update(
            {Comment.author_id: None}, synchronize_session=False
        )
        self.db.query(Attachment).filter(Attachment.uploaded_by_id == user.id).update(
            {Attachment.uploaded_by_id: None}, synchronize_session=False
        )
        self.db.query(Category).filter(Category.created_by_id == user.id).update(
            {Category.created_by_id: None}, synchronize_session=False
        )
        self.db.delete(user)
        self._commit()
        logger.info("User %s deleted by admin %s", user_id, requester.id)

