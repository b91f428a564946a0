"""
SQLite database configuration and ORM models.

This module defines the SQLAlchemy ORM models and database initialization.
All DateTime columns hold naive UTC.
"""

from datetime import datetime
from uuid import uuid4

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    JSON,
    UniqueConstraint,
)
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from studyplan.core.config import get_settings


class Base(DeclarativeBase):
    """SQLAlchemy declarative base."""

    pass


# ===========================================
# ORM Models
# ===========================================


class PlanORM(Base):
    """Plan ORM model."""

    __tablename__ = "plans"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    user_id = Column(String(255), nullable=False, index=True)
    title = Column(String(500), nullable=False)
    description = Column(Text, nullable=True)
    difficulty = Column(String(10), default="medium")
    estimated_duration = Column(Integer, nullable=True)
    status = Column(String(20), default="draft", index=True)
    is_forked = Column(Boolean, default=False)
    chat_id = Column(String(255), nullable=True)
    start_date = Column(DateTime, nullable=False, default=datetime.utcnow)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class TodoORM(Base):
    """Todo (plan step) ORM model."""

    __tablename__ = "todos"
    __table_args__ = (
        Index("ix_todos_plan_status", "plan_id", "status"),
        Index("ix_todos_plan_order", "plan_id", "order", "seq"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    plan_id = Column(String(36), ForeignKey("plans.id", ondelete="CASCADE"), nullable=False)
    title = Column(String(500), nullable=False)
    description = Column(Text, nullable=True)
    order = Column(Integer, nullable=False, default=0)
    seq = Column(Integer, nullable=False, default=0)
    priority = Column(String(10), default="medium")
    status = Column(String(20), default="pending")
    due_date = Column(DateTime, nullable=False, index=True)
    completed_at = Column(DateTime, nullable=True)
    estimated_time = Column(Integer, nullable=True)
    resources = Column(JSON, nullable=True, default=list)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class MarketplacePlanORM(Base):
    """Published plan listing ORM model."""

    __tablename__ = "marketplace_plans"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    source_plan_id = Column(String(36), nullable=False, index=True)
    author_id = Column(String(255), nullable=False, index=True)
    snapshot = Column(JSON, nullable=False)
    visibility = Column(String(10), default="public")
    tags = Column(JSON, nullable=True, default=list)
    price = Column(Float, nullable=True)
    is_free = Column(Boolean, default=True)
    installs = Column(Integer, default=0)
    version = Column(Integer, default=1)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class PurchaseORM(Base):
    """Marketplace purchase ORM model."""

    __tablename__ = "purchases"
    __table_args__ = (UniqueConstraint("user_id", "marketplace_plan_id"),)

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    user_id = Column(String(255), nullable=False, index=True)
    marketplace_plan_id = Column(String(36), nullable=False, index=True)
    price = Column(Float, default=0)
    purchased_at = Column(DateTime, default=datetime.utcnow)


class PlanForkORM(Base):
    """Fork attribution ORM model."""

    __tablename__ = "plan_forks"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    user_id = Column(String(255), nullable=False, index=True)
    original_plan_id = Column(String(36), nullable=False, index=True)
    forked_plan_id = Column(String(36), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)


class ActivityLogORM(Base):
    """Activity log ORM model."""

    __tablename__ = "activity_logs"
    __table_args__ = (UniqueConstraint("user_id", "idempotency_key"),)

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    user_id = Column(String(255), nullable=False, index=True)
    plan_id = Column(String(36), nullable=True, index=True)
    activity_type = Column(String(40), nullable=False)
    description = Column(Text, nullable=False, default="")
    idempotency_key = Column(String(200), nullable=True)
    payload = Column(JSON, nullable=True, default=dict)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)


# ===========================================
# Database Session Management
# ===========================================


def get_engine():
    """Get async engine instance."""
    settings = get_settings()
    return create_async_engine(settings.DATABASE_URL, echo=settings.DEBUG)


def get_session_factory():
    """Get async session factory."""
    engine = get_engine()
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def init_db():
    """Initialize database tables."""
    engine = get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


