"""
SQLAlchemy ORM models.  Every table is keyed by the user's email address.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import JSON, Column, DateTime, String, Text
from sqlalchemy.orm import DeclarativeBase


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class UserCredential(Base):
    __tablename__ = "user_credentials"

    email = Column(String(320), primary_key=True)
    access_token = Column(Text, nullable=False)
    refresh_token = Column(Text, nullable=True)
    token_type = Column(String(32), nullable=False, default="Bearer")
    scopes = Column(JSON, default=list)
    expiry = Column(DateTime(timezone=True), nullable=True)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)


class StoredQueryRecord(Base):
    __tablename__ = "stored_queries"

    email = Column(String(320), primary_key=True)
    query = Column(Text, nullable=False)
    query_last_updated = Column(DateTime(timezone=True), nullable=False, default=_utcnow)


class LastRunTime(Base):
    __tablename__ = "last_run_times"

    email = Column(String(320), primary_key=True)
    last_run_time = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
