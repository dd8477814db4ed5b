"""Pydantic schemas for gate pass requests."""
from datetime import date, datetime, time
from typing import Optional
from pydantic import BaseModel

from gatepass.models.gate_pass import RequestStatus


class GatePassSubmit(BaseModel):
    reason: str
    destination: str
    departure_date: date
    departure_time: time
    return_date: date
    return_time: time
    parent_contact: str
    notes: Optional[str] = None


class GatePassReject(BaseModel):
    reason: str


class GatePassView(BaseModel):
    """Canonical read model. Missing display fields carry the "unknown" sentinel."""

    request_id: str
    requester_id: str
    requester_name: str
    requester_email: str
    requester_context: dict[str, str]
    reason: str
    destination: str
    departure_date: str
    departure_time: str
    return_date: str
    return_time: str
    parent_contact: str
    notes: Optional[str] = None
    status: RequestStatus
    decision_by: Optional[str] = None
    decided_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    created_at: Optional[datetime] = None


class StatusTally(BaseModel):
    pending: int = 0
    approved: int = 0
    rejected: int = 0
    total: int = 0


class DashboardSummary(BaseModel):
    tally: StatusTally
    recent: list[GatePassView]
    # warden dashboard only
    pending_recent: Optional[list[GatePassView]] = None
    total_students: Optional[int] = None
