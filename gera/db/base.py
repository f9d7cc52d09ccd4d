"""
Declarative base shared by every ORM model.

Models annotate plain ``Column`` attributes with their Python types, so the
base opts out of the ``Mapped[]`` annotation requirement.
"""

from __future__ import annotations

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    __allow_unmapped__ = True
