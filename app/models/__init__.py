"""SQLAlchemy ORM models.

Every model shares one ``Base``; ``ordenes`` and ``historial`` are the active
and historical partitions of the work order store.
"""

from app.models.base import Base
from app.models.auth_models import User, UserSession
from app.models.person import Person
from app.models.client import Client
from app.models.project import Project
from app.models.work_order import ActiveWorkOrder, HistoricalWorkOrder

__all__ = [
    "Base", "User", "UserSession", "Person", "Client", "Project",
    "ActiveWorkOrder", "HistoricalWorkOrder",
]
