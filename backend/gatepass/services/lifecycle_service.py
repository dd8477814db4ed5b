"""Request lifecycle — submit, approve, reject.

States: pending (initial), approved and rejected (both terminal).

Every call checks authorization and input before touching the store, and a
decision is written with a single conditional update that only matches
while the request is still pending. Two wardens racing on one request
therefore cannot both win: the loser gets ``InvalidStateError`` and the
stored decision is left as the winner wrote it.
"""
import logging
import re
from datetime import date, datetime, time, timezone
from typing import Any, Mapping, Optional

import pytz

from gatepass.config import settings
from gatepass.exceptions import InvalidStateError, ValidationError
from gatepass.models.gate_pass import RequestStatus
from gatepass.models.principal import Principal
from gatepass.schemas.gate_pass import GatePassView
from gatepass.services.policy import Action, authorize
from gatepass.services.projection import to_view
from gatepass.store import GatePassStore

logger = logging.getLogger(__name__)

REASON_MIN_LENGTH = 10
REASON_MAX_LENGTH = 300
NOTES_MAX_LENGTH = 500

_PHONE_RE = re.compile(r"^\+?\d{10,15}$")
_PHONE_SEPARATORS = re.compile(r"[\s-]")

REQUIRED_FIELDS = (
    "reason",
    "destination",
    "departure_date",
    "departure_time",
    "return_date",
    "return_time",
    "parent_contact",
)

# (current status, action) -> next status; anything absent is refused
TRANSITIONS: dict[tuple[RequestStatus, Action], RequestStatus] = {
    (RequestStatus.pending, Action.approve): RequestStatus.approved,
    (RequestStatus.pending, Action.reject): RequestStatus.rejected,
}


def next_status(request_id: str, current: RequestStatus, action: Action) -> RequestStatus:
    try:
        return TRANSITIONS[(current, action)]
    except KeyError:
        raise InvalidStateError(request_id, current.value, action.value) from None


def campus_today(now: datetime) -> date:
    """Calendar date on campus at the instant ``now``."""
    if now.tzinfo is None:
        now = pytz.utc.localize(now)
    return now.astimezone(pytz.timezone(settings.CAMPUS_TIMEZONE)).date()


def is_valid_phone(value: str) -> bool:
    return bool(_PHONE_RE.match(_PHONE_SEPARATORS.sub("", value)))


def _as_date(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value).strip())


def _as_time(value: Any) -> time:
    if isinstance(value, time):
        return value
    return time.fromisoformat(str(value).strip())


def validate_submission(fields: Mapping[str, Any], now: datetime) -> dict[str, Any]:
    """Check every field constraint; return cleaned canonical fields.

    All violations are collected so the requester can fix them in one go.
    """
    violations: dict[str, str] = {}
    cleaned: dict[str, Any] = {}

    for name in REQUIRED_FIELDS:
        value = fields.get(name)
        if value is None or (isinstance(value, str) and not value.strip()):
            violations[name] = "This field is required"

    reason = fields.get("reason")
    if "reason" not in violations:
        reason = str(reason).strip()
        if len(reason) < REASON_MIN_LENGTH:
            violations["reason"] = f"Reason must be at least {REASON_MIN_LENGTH} characters"
        elif len(reason) > REASON_MAX_LENGTH:
            violations["reason"] = f"Reason must be at most {REASON_MAX_LENGTH} characters"
        else:
            cleaned["reason"] = reason

    if "destination" not in violations:
        cleaned["destination"] = str(fields["destination"]).strip()

    for name, parse in (
        ("departure_date", _as_date),
        ("return_date", _as_date),
        ("departure_time", _as_time),
        ("return_time", _as_time),
    ):
        if name in violations:
            continue
        try:
            cleaned[name] = parse(fields[name])
        except ValueError:
            violations[name] = "Invalid format"

    today = campus_today(now)
    for name in ("departure_date", "return_date"):
        if name in cleaned and cleaned[name] < today:
            violations[name] = "Date cannot be in the past"

    if "departure_date" in cleaned and "return_date" in cleaned:
        if cleaned["return_date"] < cleaned["departure_date"]:
            violations["return_date"] = "Return date must not be before departure date"
        elif (
            cleaned["return_date"] == cleaned["departure_date"]
            and "departure_time" in cleaned
            and "return_time" in cleaned
            and cleaned["return_time"] < cleaned["departure_time"]
        ):
            violations["return_time"] = "Return time must not be before departure time on the same day"

    if "parent_contact" not in violations:
        contact = str(fields["parent_contact"]).strip()
        if is_valid_phone(contact):
            cleaned["parent_contact"] = _PHONE_SEPARATORS.sub("", contact)
        else:
            violations["parent_contact"] = "Contact number must have 10 to 15 digits"

    notes = fields.get("notes")
    if notes is not None and str(notes).strip():
        notes = str(notes).strip()
        if len(notes) > NOTES_MAX_LENGTH:
            violations["notes"] = f"Notes must be at most {NOTES_MAX_LENGTH} characters"
        else:
            cleaned["notes"] = notes

    if violations:
        raise ValidationError(violations)
    return cleaned


def submit(
    store: GatePassStore,
    principal: Optional[Principal],
    fields: Mapping[str, Any],
    now: Optional[datetime] = None,
) -> GatePassView:
    """Create a pending request on behalf of a student with a complete profile."""
    authorize(principal, Action.submit)
    now = now or datetime.now(timezone.utc)
    cleaned = validate_submission(fields, now)

    record = {
        **cleaned,
        "requester_id": principal.principal_id,
        "requester_name": principal.display_name,
        "requester_email": principal.email,
        "requester_context": {
            "enrollment_number": principal.enrollment_number,
            "course": principal.course,
            "hostel_block": principal.hostel_block,
            "room_number": principal.room_number,
        },
        "status": RequestStatus.pending,
    }
    request_id = store.create(record)
    logger.info(
        "Gate pass %s submitted by %s (%s to %s)",
        request_id, principal.principal_id, cleaned["departure_date"], cleaned["return_date"],
    )
    return to_view(store.get_by_id(request_id))


def _decide(
    store: GatePassStore,
    principal: Optional[Principal],
    request_id: str,
    action: Action,
    extra: Mapping[str, Any],
    now: Optional[datetime],
) -> GatePassView:
    current = RequestStatus(store.get_by_id(request_id).status)
    target = next_status(request_id, current, action)

    patch = {
        "status": target,
        "decision_by": principal.principal_id,
        "decided_at": now or datetime.now(timezone.utc),
        **extra,
    }
    if not store.update_if(request_id, patch, expected_status=current):
        latest = store.get_by_id(request_id)
        logger.warning(
            "Gate pass %s was decided concurrently (%s); %s by %s refused",
            request_id, latest.status.value, action.value, principal.principal_id,
        )
        raise InvalidStateError(request_id, latest.status.value, action.value)

    logger.info("Gate pass %s %s by warden %s", request_id, target.value, principal.principal_id)
    return to_view(store.get_by_id(request_id))


def approve(
    store: GatePassStore,
    principal: Optional[Principal],
    request_id: str,
    now: Optional[datetime] = None,
) -> GatePassView:
    """Approve a pending request."""
    authorize(principal, Action.approve)
    return _decide(store, principal, request_id, Action.approve, {}, now)


def reject(
    store: GatePassStore,
    principal: Optional[Principal],
    request_id: str,
    reason: Optional[str],
    now: Optional[datetime] = None,
) -> GatePassView:
    """Reject a pending request; ``reason`` must be non-blank."""
    authorize(principal, Action.reject)
    reason = (reason or "").strip()
    if not reason:
        raise ValidationError({"reason": "A rejection reason is required"})
    return _decide(store, principal, request_id, Action.reject, {"rejection_reason": reason}, now)
