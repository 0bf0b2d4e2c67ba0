"""Database layer for TenderCalc with async SQLAlchemy."""

from tendercalc.db.connection import close_db, get_session, init_db
from tendercalc.db.models import (
    Base,
    ContractorModel,
    ExceptionModel,
    ITTItemModel,
    MatchModel,
    ProjectModel,
    ResponseItemModel,
    SectionModel,
)
from tendercalc.db.repository import sql_repositories

__all__ = [
    "Base",
    "ContractorModel",
    "ExceptionModel",
    "ITTItemModel",
    "MatchModel",
    "ProjectModel",
    "ResponseItemModel",
    "SectionModel",
    "close_db",
    "get_session",
    "init_db",
    "sql_repositories",
]
