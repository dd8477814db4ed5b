"""Gate pass API routes — submit, list, decide."""
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from gatepass.database import get_db
from gatepass.identity import get_current_principal
from gatepass.models.gate_pass import RequestStatus
from gatepass.models.principal import Principal
from gatepass.schemas.gate_pass import DashboardSummary, GatePassReject, GatePassSubmit, GatePassView
from gatepass.services import gate_pass_service, lifecycle_service
from gatepass.store import GatePassStore

router = APIRouter()


def get_store(db: Session = Depends(get_db)) -> GatePassStore:
    return GatePassStore(db)


@router.post("/", response_model=GatePassView, status_code=status.HTTP_201_CREATED)
def submit_gate_pass(
    payload: GatePassSubmit,
    store: GatePassStore = Depends(get_store),
    principal: Optional[Principal] = Depends(get_current_principal),
):
    """Submit a leave request (students with a completed profile only)."""
    return lifecycle_service.submit(store, principal, payload.model_dump())


@router.get("/", response_model=list[GatePassView])
def list_gate_passes(
    status_filter: Optional[RequestStatus] = Query(default=None, alias="status"),
    store: GatePassStore = Depends(get_store),
    principal: Optional[Principal] = Depends(get_current_principal),
):
    """Students see their own requests; wardens see all. Newest first."""
    return gate_pass_service.list_visible(store, principal, status_filter)


@router.get("/dashboard", response_model=DashboardSummary)
def gate_pass_dashboard(
    store: GatePassStore = Depends(get_store),
    principal: Optional[Principal] = Depends(get_current_principal),
):
    """Status counts and the most recent requests in the caller's scope."""
    return gate_pass_service.dashboard(store, principal)


@router.get("/{request_id}", response_model=GatePassView)
def get_gate_pass(
    request_id: str,
    store: GatePassStore = Depends(get_store),
    principal: Optional[Principal] = Depends(get_current_principal),
):
    return gate_pass_service.get_visible(store, principal, request_id)


@router.post("/{request_id}/approve", response_model=GatePassView)
def approve_gate_pass(
    request_id: str,
    store: GatePassStore = Depends(get_store),
    principal: Optional[Principal] = Depends(get_current_principal),
):
    """Approve a pending request (wardens only)."""
    return lifecycle_service.approve(store, principal, request_id)


@router.post("/{request_id}/reject", response_model=GatePassView)
def reject_gate_pass(
    request_id: str,
    payload: GatePassReject,
    store: GatePassStore = Depends(get_store),
    principal: Optional[Principal] = Depends(get_current_principal),
):
    """Reject a pending request with a reason (wardens only)."""
    return lifecycle_service.reject(store, principal, request_id, payload.reason)
