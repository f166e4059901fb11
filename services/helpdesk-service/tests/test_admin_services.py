import pytest
from helpdesk.core.errors import AuthenticationError, AuthorizationError, ConflictError, NotFoundError
from helpdesk.models.category import Category
from helpdesk.models.ticket import Ticket, TicketVote
from helpdesk.models.user import User, UserRole
from helpdesk.schemas.category import CategoryCreate, CategoryUpdate
from helpdesk.schemas.ticket import TicketCreate, TicketUpdate
from helpdesk.schemas.user import UserUpdate
from helpdesk.services.category_service import CategoryService
from helpdesk.services.stats_service import StatsService
from helpdesk.services.ticket_service import TicketService
from helpdesk.services.user_service import UserService


def _file_ticket(db_session, owner, category, **overrides):
    data = {
        "subject": "Laptop will not boot",
        "description": "Black screen after the vendor logo appears.",
        "category_id": category.id,
    }
    data.update(overrides)
    return TicketService(db_session).create_ticket(owner, TicketCreate(**data))


# --- categories ---

def test_category_names_are_unique_case_insensitively(db_session, admin):
    service = CategoryService(db_session)
    service.create_category(admin, CategoryCreate(name="bug report"))

    with pytest.raises(ConflictError):
        service.create_category(admin, CategoryCreate(name="Bug Report"))


def test_category_uniqueness_includes_inactive(db_session, admin):
    service = CategoryService(db_session)
    old = service.create_category(admin, CategoryCreate(name="Hardware"))
    service.update_category(old.id, CategoryUpdate(is_active=False))

    with pytest.raises(ConflictError):
        service.create_category(admin, CategoryCreate(name="HARDWARE"))


def test_category_defaults(db_session, admin):
    category = CategoryService(db_session).create_category(
        admin, CategoryCreate(name="Network", description="Wi-Fi and VPN")
    )
    assert category.color == "#3B82F6"
    assert category.is_active is True
    assert category.created_by_id == admin.id


def test_category_rename(db_session, admin):
    service = CategoryService(db_session)
    network = service.create_category(admin, CategoryCreate(name="Network"))
    service.create_category(admin, CategoryCreate(name="Email"))

    # renaming to a different case of its own name is allowed
    renamed = service.update_category(network.id, CategoryUpdate(name="NETWORK", color="#000000"))
    assert renamed.name == "NETWORK"
    assert renamed.color == "#000000"

    with pytest.raises(ConflictError):
        service.update_category(network.id, CategoryUpdate(name="email"))


def test_category_description_can_be_cleared(db_session, admin):
    service = CategoryService(db_session)
    category = service.create_category(admin, CategoryCreate(name="Network", description="Wi-Fi"))

    cleared = service.update_category(category.id, CategoryUpdate(description=None))
    assert cleared.description is None


def test_delete_category_in_use(db_session, user, category):
    _file_ticket(db_session, user, category)

    with pytest.raises(ConflictError):
        CategoryService(db_session).delete_category(category.id)
    assert db_session.get(Category, category.id) is not None


def test_delete_unused_category(db_session, category):
    category_id = category.id
    service = CategoryService(db_session)
    service.delete_category(category_id)

    with pytest.raises(NotFoundError):
        service.get_category(category_id)


def test_list_categories_by_active_flag(db_session, admin):
    service = CategoryService(db_session)
    service.create_category(admin, CategoryCreate(name="Zeta"))
    retired = service.create_category(admin, CategoryCreate(name="Alpha"))
    service.update_category(retired.id, CategoryUpdate(is_active=False))

    assert [c.name for c in service.list_categories()] == ["Alpha", "Zeta"]
    assert [c.name for c in service.list_categories(active=True)] == ["Zeta"]
    assert [c.name for c in service.list_categories(active=False)] == ["Alpha"]


# --- users ---

def test_email_unique_case_insensitively(db_session, make_user):
    make_user(UserRole.USER, email="Jane.Doe@Example.com")

    with pytest.raises(ConflictError):
        UserService(db_session).create_user("Jane Again", "jane.doe@example.com", "secret123")


def test_authenticate(db_session, make_user):
    service = UserService(db_session)
    jane = make_user(UserRole.USER, email="jane@example.com", password="pa55word")

    user, token = service.authenticate("JANE@example.com", "pa55word")
    assert user.id == jane.id
    assert token

    with pytest.raises(AuthenticationError):
        service.authenticate("jane@example.com", "wrong")

    jane.is_active = False
    db_session.commit()
    with pytest.raises(AuthenticationError):
        service.authenticate("jane@example.com", "pa55word")


def test_admin_cannot_deactivate_or_delete_self(db_session, admin):
    service = UserService(db_session)

    with pytest.raises(AuthorizationError):
        service.update_user(admin, admin.id, UserUpdate(is_active=False))
    with pytest.raises(AuthorizationError):
        service.delete_user(admin, admin.id)

    db_session.refresh(admin)
    assert admin.is_active is True


def test_update_user_role_and_email(db_session, admin, user, make_user):
    service = UserService(db_session)
    taken = make_user(UserRole.USER, email="taken@example.com")

    with pytest.raises(ConflictError):
        service.update_user(admin, user.id, UserUpdate(email="TAKEN@example.com"))

    updated = service.update_user(admin, user.id, UserUpdate(role="agent", email="New.Address@example.com"))
    assert updated.role == UserRole.AGENT
    assert updated.email == "new.address@example.com"
    assert taken.email == "taken@example.com"


def test_delete_user_with_tickets_is_blocked(db_session, admin, user, category):
    _file_ticket(db_session, user, category)

    with pytest.raises(ConflictError):
        UserService(db_session).delete_user(admin, user.id)
    assert db_session.get(User, user.id) is not None


def test_delete_user_detaches_votes_and_assignments(db_session, admin, user, agent, category):
    tickets = TicketService(db_session)
    ticket = _file_ticket(db_session, user, category)
    tickets.update_ticket(admin, ticket.id, TicketUpdate(assigned_to_id=agent.id))
    tickets.vote(agent, ticket.id, "up")
    agent_id = agent.id

    UserService(db_session).delete_user(admin, agent_id)

    assert db_session.get(User, agent_id) is None
    refreshed = db_session.get(Ticket, ticket.id)
    assert refreshed.assigned_to_id is None
    assert refreshed.upvotes == []
    assert db_session.query(TicketVote).count() == 0


def test_user_visibility(db_session, admin, user, agent):
    service = UserService(db_session)

    assert service.get_visible_user(user, user.id).id == user.id
    assert service.get_visible_user(admin, user.id).id == user.id
    with pytest.raises(AuthorizationError):
        service.get_visible_user(agent, user.id)


def test_list_users_and_agents(db_session, admin, make_user):
    service = UserService(db_session)
    make_user(UserRole.AGENT, name="Zed Agent")
    make_user(UserRole.AGENT, name="Amy Agent")
    retired = make_user(UserRole.AGENT, name="Old Agent")
    service.update_user(admin, retired.id, UserUpdate(is_active=False))

    assert [a.name for a in service.list_agents()] == ["Amy Agent", "Zed Agent"]

    users, total = service.list_users(role="agent")
    assert total == 3
    users, total = service.list_users(role="agent", active=True, search="zed")
    assert [u.name for u in users] == ["Zed Agent"]
    users, total = service.list_users(page=2, limit=3)
    assert total == 4 and len(users) == 1


# --- dashboard ---

def test_dashboard_counts(db_session, admin, agent, user, category, make_user):
    tickets = TicketService(db_session)
    categories = CategoryService(db_session)
    billing = categories.create_category(admin, CategoryCreate(name="Billing"))
    categories.create_category(admin, CategoryCreate(name="Unused"))

    first = _file_ticket(db_session, user, category)
    _file_ticket(db_session, user, category)
    _file_ticket(db_session, user, billing)
    tickets.update_ticket(agent, first.id, TicketUpdate(status="resolved"))

    stats = StatsService(db_session).dashboard()

    assert stats.users.total == 3
    assert stats.users.by_role == {"admin": 1, "agent": 1, "user": 1}
    assert stats.tickets.total == 3
    assert (stats.tickets.open, stats.tickets.in_progress, stats.tickets.resolved, stats.tickets.closed) == (2, 0, 1, 0)
    assert stats.categories.total == 3
    assert [(c.name, c.count) for c in stats.categories.top_categories] == [("Technical Support", 2), ("Billing", 1)]


def test_dashboard_top_categories_limited_to_five(db_session, admin, user):
    categories = CategoryService(db_session)
    for i in range(7):
        category = categories.create_category(admin, CategoryCreate(name=f"Queue {i}"))
        for _ in range(i + 1):
            _file_ticket(db_session, user, category)

    top = StatsService(db_session).dashboard().categories.top_categories

    assert [c.name for c in top] == ["Queue 6", "Queue 5", "Queue 4", "Queue 3", "Queue 2"]
