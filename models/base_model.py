#!/usr/bin/env python3
"""
Declarative base and the column mixin every table of the blog platform shares.

Each row gets a string UUID id (assigned in Python, so it is known before the
first flush) plus created_at/updated_at stamped by the database clock; on
SQLite func.now() renders as CURRENT_TIMESTAMP.
"""

from __future__ import annotations

import uuid

from sqlalchemy import Column, String, DateTime
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()


def _uuid_str() -> str:
    return str(uuid.uuid4())


class BaseModel:
    """id, created_at and updated_at columns."""

    id = Column(String(36), primary_key=True, default=_uuid_str, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __init__(self, *args, **kwargs):
        """Set columns from kwargs; timestamps are left to the database."""
        for key, value in kwargs.items():
            if key != "__class__":
                setattr(self, key, value)
        # Tokens are minted for a user before its INSERT, so they need the id now
        if getattr(self, "id", None) is None:
            self.id = _uuid_str()
