"""Pydantic request/response schemas."""

from app.schemas.flow import FlowResult
from app.schemas.client import ClientCreate, ClientRead, ClientUpdate
from app.schemas.person import PersonCreate, PersonRead, PersonUpdate, PasswordUpdate
from app.schemas.work_order import TeamMember, WorkOrderCreate, WorkOrderRead, WorkOrderUpdate
from app.schemas.project import ProjectCreate, ProjectRead, ProjectDetail
from app.schemas.signature import SignatureRequest, SignatureSubmission
from app.schemas.dashboard import CountItem, StatusTotals, DashboardRead

__all__ = [
    "FlowResult",
    "ClientCreate", "ClientRead", "ClientUpdate",
    "PersonCreate", "PersonRead", "PersonUpdate", "PasswordUpdate",
    "TeamMember", "WorkOrderCreate", "WorkOrderRead", "WorkOrderUpdate",
    "ProjectCreate", "ProjectRead", "ProjectDetail",
    "SignatureRequest", "SignatureSubmission",
    "CountItem", "StatusTotals", "DashboardRead",
]
