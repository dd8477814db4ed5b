"""Read side — role-scoped lists, detail and dashboard summaries.

Scope is enforced here, at the data-access boundary: students only ever
query by their own ``requester_id``; wardens may query everything.
"""
import logging
from typing import Optional

from gatepass.exceptions import AuthorizationError
from gatepass.models.gate_pass import RequestStatus
from gatepass.models.principal import Principal, Role
from gatepass.schemas.gate_pass import DashboardSummary, GatePassView
from gatepass.services import principal_service, projection
from gatepass.services.policy import Action, authorize, can_view
from gatepass.store import GatePassStore

logger = logging.getLogger(__name__)


def _fetch_scoped(
    store: GatePassStore,
    principal: Optional[Principal],
    status: Optional[RequestStatus] = None,
) -> list[GatePassView]:
    if principal is None:
        raise AuthorizationError(Action.view_own.value)
    if principal.role == Role.warden:
        authorize(principal, Action.view_any)
        records = store.query_by(status=status) if status is not None else store.query_by()
    else:
        if not principal.profile_complete:
            logger.warning("Principal %s must complete their profile first", principal.principal_id)
            raise AuthorizationError(Action.view_own.value, principal.principal_id)
        records = store.query_by(requester_id=principal.principal_id)
    views = [v for v in projection.project(records) if can_view(principal, v)]
    return projection.scope_for(principal, views, status)


def list_visible(
    store: GatePassStore,
    principal: Optional[Principal],
    status: Optional[RequestStatus] = None,
) -> list[GatePassView]:
    """Requests the principal may see, newest first."""
    return projection.order_by_recency(_fetch_scoped(store, principal, status))


def get_visible(store: GatePassStore, principal: Optional[Principal], request_id: str) -> GatePassView:
    """One request, if the principal may see it.

    Ownership lives on the record, so the read happens after the role
    checks; a missing record reports ``NotFoundError`` only to principals
    who could view some request.
    """
    if principal is None:
        raise AuthorizationError(Action.view_own.value)
    if principal.role == Role.student and not principal.profile_complete:
        logger.warning("Principal %s must complete their profile first", principal.principal_id)
        raise AuthorizationError(Action.view_own.value, principal.principal_id)
    view = projection.to_view(store.get_by_id(request_id))
    if not can_view(principal, view):
        logger.warning("Principal %s denied view of gate pass %s", principal.principal_id, request_id)
        raise AuthorizationError(Action.view_own.value, principal.principal_id)
    return view


def dashboard(
    store: GatePassStore,
    principal: Optional[Principal],
    limit: Optional[int] = None,
) -> DashboardSummary:
    """Status tally plus the most recent requests within the principal's scope.

    Wardens also get the number of registered students and the most recent
    requests still awaiting a decision.
    """
    authorize(principal, Action.view_aggregate_stats)
    views = _fetch_scoped(store, principal)
    summary = DashboardSummary(
        tally=projection.tally(views),
        recent=projection.recent(views, limit),
    )
    if principal.role == Role.warden:
        pending = projection.scope_for(principal, views, RequestStatus.pending)
        summary.pending_recent = projection.recent(pending, limit)
        summary.total_students = principal_service.count_students(store.db)
    return summary
