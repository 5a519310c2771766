"""Database package — async SQLAlchemy engine, session factory, models and the SQL governance store."""
from .engine import build_engine, get_engine, get_session_factory, dispose_engine, governance_store
from .base import Base
from .governance_repository import SqlAlchemyGovernanceStore

__all__ = [
    "build_engine", "get_engine", "get_session_factory", "dispose_engine",
    "governance_store", "Base", "SqlAlchemyGovernanceStore",
]
