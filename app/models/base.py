#app/models/base.py
"""
Базовый класс для ORM-моделей FormBuilder.

Соглашение об именах ограничений: безымянные индексы и ключи получают
одинаковые имена на SQLite и PostgreSQL.
"""

from sqlalchemy import MetaData
from sqlalchemy.orm import declarative_base

NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

Base = declarative_base(metadata=MetaData(naming_convention=NAMING_CONVENTION))
