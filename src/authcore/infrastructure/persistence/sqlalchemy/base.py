"""Declarative base shared by the accounts, one-time code and reset token tables."""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass
