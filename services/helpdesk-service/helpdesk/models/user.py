from datetime import datetime
from sqlalchemy import Column, Integer, String, Boolean, DateTime
from helpdesk.core.db import Base


class UserRole:
    USER = "user"
    AGENT = "agent"
    ADMIN = "admin"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(50), nullable=False)
    # stored lower-cased so uniqueness is case-insensitive
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(16), nullable=False, default=UserRole.USER, index=True)
    is_active = Column(Boolean, nullable=False, default=True)
    avatar = Column(String(500), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
