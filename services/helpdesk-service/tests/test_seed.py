import pytest
from helpdesk.core.errors import ConflictError
from helpdesk.core.security import verify_password
from helpdesk.models.category import Category
from helpdesk.models.user import User
from helpdesk.schemas.ticket import TicketCreate
from helpdesk.seed import DEFAULT_CATEGORIES, DEFAULT_USERS, seed_database
from helpdesk.services.ticket_service import TicketService


def test_seed_creates_defaults(db_session):
    created = seed_database(db_session)

    assert created == {"users": len(DEFAULT_USERS), "categories": len(DEFAULT_CATEGORIES)}
    admin = db_session.query(User).filter(User.email == "admin@quickdesk.com").one()
    assert admin.role == "admin"
    assert verify_password("admin123", admin.password_hash)
    assert all(c.created_by_id == admin.id for c in db_session.query(Category).all())


def test_seed_is_idempotent(db_session):
    seed_database(db_session)
    assert seed_database(db_session) == {"users": 0, "categories": 0}
    assert db_session.query(User).count() == len(DEFAULT_USERS)


def test_seed_reset_refused_once_tickets_exist(db_session):
    seed_database(db_session)
    user = db_session.query(User).filter(User.email == "user@quickdesk.com").one()
    category = db_session.query(Category).first()
    TicketService(db_session).create_ticket(
        user,
        TicketCreate(subject="Seeded ticket", description="Created on top of seed data.", category_id=category.id),
    )

    with pytest.raises(ConflictError):
        seed_database(db_session, reset=True)


def test_seed_reset_rebuilds(db_session):
    seed_database(db_session)
    db_session.query(Category).filter(Category.name == "Bug Report").one().color = "#000000"
    db_session.commit()

    seed_database(db_session, reset=True)

    assert db_session.query(Category).filter(Category.name == "Bug Report").one().color == "#EF4444"


def test_seed_skips_category_differing_only_in_case(db_session):
    db_session.add(Category(name="bug report", description="Created by hand"))
    db_session.commit()

    created = seed_database(db_session)

    assert created["categories"] == len(DEFAULT_CATEGORIES) - 1
    names = [c.name for c in db_session.query(Category).all()]
    assert [name for name in names if name.lower() == "bug report"] == ["bug report"]
