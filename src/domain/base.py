"""Shared base for SQLModel domain entities"""

import uuid
from sqlalchemy import BigInteger, Integer
from sqlmodel import SQLModel

# SQLite only autoincrements INTEGER PRIMARY KEY columns
ID_TYPE = BigInteger().with_variant(Integer(), "sqlite")


class BaseModel(SQLModel):
    """Base class for all persisted entities"""
    pass


def generate_uuid() -> str:
    """Generate a business-facing unique identifier"""
    return str(uuid.uuid4())
