"""Shared base for domain entities"""

from sqlalchemy import BigInteger, Integer
from sqlmodel import SQLModel

# SQLite only auto-increments INTEGER PRIMARY KEY columns
BigIntId = BigInteger().with_variant(Integer(), "sqlite")

# Money columns use Numeric(18, 2); item pricing inputs keep extra scale
MONEY_PRECISION = (18, 2)
PRICE_PRECISION = (18, 4)
RATE_PRECISION = (7, 4)


class BaseModel(SQLModel):
    """Base class for all billing entities"""
    pass
