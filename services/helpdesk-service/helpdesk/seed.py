"""
Seed a fresh database with the default accounts and categories.

    python -m helpdesk.seed [--reset]
"""
import argparse
import logging

from sqlalchemy import func
from sqlalchemy.orm import Session

from helpdesk.core.db import Base, SessionLocal, engine
from helpdesk.core.errors import ConflictError
from helpdesk.models.category import Category
from helpdesk.models.ticket import Ticket
from helpdesk.models.user import User, UserRole
from helpdesk.services.user_service import UserService

logger = logging.getLogger(__name__)

DEFAULT_USERS = [
    {"name": "Admin User", "email": "admin@quickdesk.com", "password": "admin123", "role": UserRole.ADMIN},
    {"name": "Support Agent", "email": "agent@quickdesk.com", "password": "agent123", "role": UserRole.AGENT},
    {"name": "Regular User", "email": "user@quickdesk.com", "password": "user123", "role": UserRole.USER},
]

DEFAULT_CATEGORIES = [
    {"name": "Technical Support", "description": "Technical issues and troubleshooting", "color": "#3B82F6"},
    {"name": "Feature Request", "description": "New feature suggestions and requests", "color": "#10B981"},
    {"name": "Bug Report", "description": "Software bugs and issues", "color": "#EF4444"},
    {"name": "General Inquiry", "description": "General questions and inquiries", "color": "#F59E0B"},
    {"name": "Account Issues", "description": "Account-related problems", "color": "#8B5CF6"},
]


def seed_database(db: Session, reset: bool = False) -> dict:
    """
    Create the default users and categories, skipping any that already exist.

    With ``reset`` the users and categories tables are emptied first, which is
    refused once tickets reference them.
    """
    if reset:
        if db.query(Ticket.id).first():
            raise ConflictError("Cannot reset users and categories while tickets exist")
        db.query(Category).delete()
        db.query(User).delete()
        db.commit()
        logger.info("Cleared existing users and categories")

    users = UserService(db)
    created = {"users": 0, "categories": 0}

    admin = None
    for entry in DEFAULT_USERS:
        user = users.get_by_email(entry["email"])
        if user is None:
            user = users.create_user(entry["name"], entry["email"], entry["password"], role=entry["role"])
            created["users"] += 1
        if entry["role"] == UserRole.ADMIN:
            admin = user

    for entry in DEFAULT_CATEGORIES:
        if db.query(Category).filter(func.lower(Category.name) == entry["name"].lower()).first():
            continue
        db.add(Category(created_by_id=admin.id if admin else None, **entry))
        created["categories"] += 1
    db.commit()

    logger.info("Seeded %s users and %s categories", created["users"], created["categories"])
    return created


def main():
    parser = argparse.ArgumentParser(description="Seed the help-desk database")
    parser.add_argument("--reset", action="store_true", help="Clear users and categories before seeding")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s [%(name)s] %(message)s")

    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        seed_database(db, reset=args.reset)
    finally:
        db.close()


if __name__ == "__main__":
    main()
