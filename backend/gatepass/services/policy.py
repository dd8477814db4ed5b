"""Authorization policy — who may do what to which gate pass.

``can_perform`` is pure: it looks only at the principal, the action and
(where the rule needs it) the request. Services call ``authorize`` before
touching the store so a denied action never reaches it.
"""
import enum
import logging
from typing import Any, Optional

from gatepass.exceptions import AuthorizationError
from gatepass.models.gate_pass import RequestStatus
from gatepass.models.principal import Principal, Role

logger = logging.getLogger(__name__)


class Action(str, enum.Enum):
    submit = "submit"
    view_own = "view_own"
    view_any = "view_any"
    approve = "approve"
    reject = "reject"
    view_aggregate_stats = "view_aggregate_stats"


def _is_student(principal: Principal) -> bool:
    return principal.role == Role.student and bool(principal.profile_complete)


def can_perform(principal: Optional[Principal], action: Action, request: Optional[Any] = None) -> bool:
    """Decide whether ``principal`` may take ``action`` on ``request``.

    ``request`` is anything with ``requester_id`` and ``status`` attributes
    (a stored record or its projected view). Students without a completed
    profile are refused every request-related action.
    """
    if principal is None:
        return False

    if action == Action.submit:
        return _is_student(principal)
    if action == Action.view_own:
        return (
            _is_student(principal)
            and request is not None
            and request.requester_id == principal.principal_id
        )
    if action == Action.view_any:
        return principal.role == Role.warden
    if action in (Action.approve, Action.reject):
        if principal.role != Role.warden:
            return False
        return request is None or request.status == RequestStatus.pending
    if action == Action.view_aggregate_stats:
        return principal.role == Role.warden or _is_student(principal)
    return False


def can_view(principal: Optional[Principal], request: Any) -> bool:
    return can_perform(principal, Action.view_any, request) or can_perform(principal, Action.view_own, request)


def authorize(principal: Optional[Principal], action: Action, request: Optional[Any] = None) -> None:
    """Raise ``AuthorizationError`` unless ``can_perform`` allows the action."""
    if can_perform(principal, action, request):
        return
    principal_id = principal.principal_id if principal is not None else None
    logger.warning("Denied %s to principal %s", action.value, principal_id)
    raise AuthorizationError(action.value, principal_id)
