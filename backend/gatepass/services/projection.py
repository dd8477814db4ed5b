"""View projection — canonical read models, tallies and role-scoped lists.

Historical records were written under several key generations (older
records store ``leaveDate``/``returnDate``, later ones
``dateOfLeaving``/``expectedReturnDate``). Every logical field is resolved
here by trying the canonical name first and then the documented aliases in
order. Nothing past this module ever sees an alias.

A record missing a field under every name projects the ``UNKNOWN``
sentinel instead of raising, so one malformed record cannot break a list.
"""
import logging
from datetime import date, datetime, time, timezone
from typing import Any, Iterable, Mapping, Optional

from gatepass.config import settings
from gatepass.models.gate_pass import GatePassRequest, RequestStatus
from gatepass.models.principal import Principal, Role
from gatepass.schemas.gate_pass import GatePassView, StatusTally

logger = logging.getLogger(__name__)

UNKNOWN = "unknown"

FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "requester_id": ("studentId",),
    "requester_name": ("studentName",),
    "requester_email": ("studentEmail",),
    "departure_date": ("dateOfLeaving", "leaveDate"),
    "departure_time": ("timeOfLeaving",),
    "return_date": ("expectedReturnDate", "returnDate"),
    "return_time": ("expectedReturnTime",),
    "parent_contact": ("parentContactNumber", "parentContact"),
    "notes": ("additionalNotes",),
    "decision_by": ("approvedBy", "rejectedBy"),
    "decided_at": ("approvedAt", "rejectedAt"),
    "rejection_reason": ("rejectionReason", "rejectReason"),
    "created_at": ("createdAt",),
    # requester context, nested in the snapshot or flat on older records
    "enrollment_number": ("enrollmentNumber",),
    "hostel_block": ("hostelBlock",),
    "room_number": ("roomNumber",),
}

CANONICAL_COLUMNS = (
    "request_id",
    "requester_id",
    "requester_name",
    "requester_email",
    "requester_context",
    "reason",
    "destination",
    "departure_date",
    "departure_time",
    "return_date",
    "return_time",
    "parent_contact",
    "notes",
    "status",
    "decision_by",
    "decided_at",
    "rejection_reason",
    "created_at",
)

CONTEXT_KEYS = ("enrollment_number", "course", "hostel_block", "room_number")


def _is_present(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str) and not value.strip():
        return False
    return True


def resolve_field(fields: Mapping[str, Any], canonical: str) -> Any:
    """Return the first present value among the canonical key and its aliases."""
    for key in (canonical,) + FIELD_ALIASES.get(canonical, ()):
        value = fields.get(key)
        if _is_present(value):
            return value
    return UNKNOWN


def record_fields(record: GatePassRequest) -> dict[str, Any]:
    """Merge a record's canonical columns over its stored extra attributes."""
    merged = dict(record.attributes or {})
    for column in CANONICAL_COLUMNS:
        value = getattr(record, column)
        if value is not None:
            merged[column] = value
    return merged


def _text(value: Any) -> str:
    if value is UNKNOWN:
        return UNKNOWN
    return str(value).strip()


def _display_date(value: Any) -> str:
    if value is UNKNOWN:
        return UNKNOWN
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    text = str(value).strip()
    try:
        return date.fromisoformat(text[:10]).isoformat()
    except ValueError:
        return text


def _display_time(value: Any) -> str:
    if value is UNKNOWN:
        return UNKNOWN
    if isinstance(value, time):
        return value.strftime("%H:%M")
    text = str(value).strip()
    try:
        return time.fromisoformat(text).strftime("%H:%M")
    except ValueError:
        return text


def _timestamp(value: Any) -> Optional[datetime]:
    """Coerce a stored timestamp to an aware datetime; None when unreadable."""
    if value is UNKNOWN or value is None:
        return None
    if isinstance(value, Mapping):
        # Exported document-store timestamps: {"seconds": ..., "nanoseconds": ...}
        seconds = value.get("seconds", value.get("_seconds"))
        try:
            return datetime.fromtimestamp(int(seconds), tz=timezone.utc)
        except (TypeError, ValueError, OverflowError, OSError):
            return None
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    if not isinstance(value, datetime):
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _status(value: Any) -> RequestStatus:
    try:
        return RequestStatus(value)
    except ValueError:
        return RequestStatus.pending


def _context_value(context: Mapping[str, Any], fields: Mapping[str, Any], key: str) -> Any:
    value = resolve_field(context, key)
    if value is UNKNOWN:
        return resolve_field(fields, key)
    return value


def to_view(record: GatePassRequest) -> GatePassView:
    """Project a stored record onto the canonical ``GatePassView``."""
    fields = record_fields(record)
    status = _status(fields.get("status", RequestStatus.pending))

    context = fields.get("requester_context") or {}
    if not isinstance(context, Mapping):
        context = {}

    notes = resolve_field(fields, "notes")
    decision_by = None
    decided_at = None
    rejection_reason = None
    if status != RequestStatus.pending:
        decision_by = _text(resolve_field(fields, "decision_by"))
        decided_at = _timestamp(resolve_field(fields, "decided_at"))
    if status == RequestStatus.rejected:
        rejection_reason = _text(resolve_field(fields, "rejection_reason"))

    return GatePassView(
        request_id=str(record.request_id),
        requester_id=_text(resolve_field(fields, "requester_id")),
        requester_name=_text(resolve_field(fields, "requester_name")),
        requester_email=_text(resolve_field(fields, "requester_email")),
        requester_context={key: _text(_context_value(context, fields, key)) for key in CONTEXT_KEYS},
        reason=_text(resolve_field(fields, "reason")),
        destination=_text(resolve_field(fields, "destination")),
        departure_date=_display_date(resolve_field(fields, "departure_date")),
        departure_time=_display_time(resolve_field(fields, "departure_time")),
        return_date=_display_date(resolve_field(fields, "return_date")),
        return_time=_display_time(resolve_field(fields, "return_time")),
        parent_contact=_text(resolve_field(fields, "parent_contact")),
        notes=None if notes is UNKNOWN else _text(notes),
        status=status,
        decision_by=decision_by,
        decided_at=decided_at,
        rejection_reason=rejection_reason,
        created_at=_timestamp(resolve_field(fields, "created_at")),
    )


def tally(views: Iterable[GatePassView]) -> StatusTally:
    """Count requests per status over the given set."""
    counts = StatusTally()
    for view in views:
        counts.total += 1
        if view.status == RequestStatus.pending:
            counts.pending += 1
        elif view.status == RequestStatus.approved:
            counts.approved += 1
        elif view.status == RequestStatus.rejected:
            counts.rejected += 1
    return counts


_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def order_by_recency(views: Iterable[GatePassView]) -> list[GatePassView]:
    """Newest first; records without a creation timestamp go last."""
    return sorted(
        views,
        key=lambda v: (v.created_at is not None, v.created_at or _EPOCH),
        reverse=True,
    )


def recent(views: Iterable[GatePassView], limit: Optional[int] = None) -> list[GatePassView]:
    if limit is None:
        limit = settings.DASHBOARD_RECENT_LIMIT
    return order_by_recency(views)[:limit]


def scope_for(
    principal: Optional[Principal],
    views: Iterable[GatePassView],
    status: Optional[RequestStatus] = None,
) -> list[GatePassView]:
    """Keep only the requests the principal may see, optionally by status."""
    if principal is None:
        return []
    if principal.role == Role.student:
        scoped = [v for v in views if v.requester_id == principal.principal_id]
    else:
        scoped = list(views)
    if status is not None:
        scoped = [v for v in scoped if v.status == status]
    return scoped


def project(records: Iterable[GatePassRequest]) -> list[GatePassView]:
    """Project every record; malformed ones carry UNKNOWN values."""
    views = [to_view(record) for record in records]
    logger.debug("Projected %d gate pass records", len(views))
    return views
