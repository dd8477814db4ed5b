"""Request store — document-style access to the gate pass collection.

Callers hand over plain field mappings. Keys that name a canonical column
are written to that column; everything else (legacy keys, arbitrary extras)
is merged into the record's ``attributes`` JSON. Each call is one commit.
"""
import logging
from datetime import date, datetime, time, timezone
from typing import Any, Mapping

from sqlalchemy import update as sa_update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from gatepass.exceptions import NotFoundError, StoreError, ValidationError
from gatepass.models.gate_pass import GatePassRequest, RequestStatus
from gatepass.services.projection import CANONICAL_COLUMNS, UNKNOWN, resolve_field

logger = logging.getLogger(__name__)

QUERYABLE_FIELDS = ("requester_id", "status")

_DATE_COLUMNS = ("departure_date", "return_date")
_TIME_COLUMNS = ("departure_time", "return_time")
_DATETIME_COLUMNS = ("decided_at", "created_at")


def _coerce(column: str, value: Any) -> Any:
    """Parse string values for typed columns; raises ValueError when unparseable."""
    if column in _DATETIME_COLUMNS and isinstance(value, Mapping):
        seconds = value.get("seconds", value.get("_seconds"))
        if seconds is None:
            raise ValueError(f"Unreadable timestamp {value!r}")
        return datetime.fromtimestamp(int(seconds), tz=timezone.utc)
    if not isinstance(value, str):
        return value
    if column in _DATE_COLUMNS:
        return date.fromisoformat(value.strip())
    if column in _TIME_COLUMNS:
        return time.fromisoformat(value.strip())
    if column in _DATETIME_COLUMNS:
        return datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    if column == "status":
        return RequestStatus(value)
    return value


def _split(fields: Mapping[str, Any]) -> tuple[dict[str, Any], dict[str, Any]]:
    columns: dict[str, Any] = {}
    extras: dict[str, Any] = {}
    for key, value in fields.items():
        if key not in CANONICAL_COLUMNS:
            extras[key] = value
            continue
        try:
            columns[key] = _coerce(key, value)
        except ValueError:
            if key == "status":
                raise ValidationError({"status": f"Unknown status {value!r}"})
            # Kept verbatim; the projection still resolves it by name
            extras[key] = value
    return columns, extras


class GatePassStore:
    """Store bound to the ``gate_pass_requests`` collection."""

    collection = GatePassRequest.__tablename__

    def __init__(self, db: Session):
        self.db = db

    def _fail(self, operation: str, exc: SQLAlchemyError) -> StoreError:
        self.db.rollback()
        logger.error("Store %s on %s failed: %s", operation, self.collection, exc)
        return StoreError(f"{self.collection} {operation} failed")

    def create(self, fields: Mapping[str, Any]) -> str:
        """Insert a record and return its store-assigned id."""
        columns, extras = _split(fields)
        requester_id = resolve_field(fields, "requester_id")
        if requester_id is UNKNOWN:
            raise ValidationError({"requester_id": "Requester is required"})
        columns["requester_id"] = str(requester_id)
        extras.pop("studentId", None)

        if "created_at" not in columns:
            created_at = resolve_field(fields, "created_at")
            if created_at is not UNKNOWN:
                try:
                    columns["created_at"] = _coerce("created_at", created_at)
                    extras.pop("createdAt", None)
                except (TypeError, ValueError):
                    logger.warning("Unreadable creation time %r kept as an attribute", created_at)

        record = GatePassRequest(**columns, attributes=extras)
        try:
            self.db.add(record)
            self.db.commit()
            self.db.refresh(record)
        except SQLAlchemyError as exc:
            raise self._fail("create", exc) from exc
        logger.info("Stored %s %s", self.collection, record.request_id)
        return record.request_id

    def get_by_id(self, request_id: str) -> GatePassRequest:
        try:
            record = (
                self.db.query(GatePassRequest)
                .filter(GatePassRequest.request_id == request_id)
                .first()
            )
        except SQLAlchemyError as exc:
            raise self._fail("read", exc) from exc
        if record is None:
            raise NotFoundError("GatePassRequest", request_id)
        return record

    def query_by(self, **equalities: Any) -> list[GatePassRequest]:
        """Records matching every given equality (``requester_id``, ``status``)."""
        unsupported = set(equalities) - set(QUERYABLE_FIELDS)
        if unsupported:
            raise ValueError(f"Cannot query {self.collection} by {sorted(unsupported)}")

        query = self.db.query(GatePassRequest)
        for field, value in equalities.items():
            if field == "status":
                value = RequestStatus(value)
            query = query.filter(getattr(GatePassRequest, field) == value)
        try:
            return query.order_by(GatePassRequest.created_at.desc(), GatePassRequest.request_id).all()
        except SQLAlchemyError as exc:
            raise self._fail("query", exc) from exc

    def update(self, request_id: str, patch: Mapping[str, Any]) -> None:
        """Partial merge: listed columns are overwritten, extras merged."""
        record = self.get_by_id(request_id)
        columns, extras = _split(patch)
        for field, value in columns.items():
            if field in ("request_id", "created_at"):
                continue
            setattr(record, field, value)
        if extras:
            record.attributes = {**(record.attributes or {}), **extras}
        try:
            self.db.commit()
        except SQLAlchemyError as exc:
            raise self._fail("update", exc) from exc

    def update_if(
        self,
        request_id: str,
        patch: Mapping[str, Any],
        expected_status: RequestStatus,
    ) -> bool:
        """Apply ``patch`` only while the record still has ``expected_status``.

        Returns False when no row matched (missing, or decided concurrently).
        """
        columns, extras = _split(patch)
        if extras:
            raise ValueError(f"Conditional updates accept columns only, got {sorted(extras)}")
        stmt = (
            sa_update(GatePassRequest)
            .where(
                GatePassRequest.request_id == request_id,
                GatePassRequest.status == expected_status,
            )
            .values(**columns)
        )
        try:
            result = self.db.execute(stmt)
            self.db.commit()
        except SQLAlchemyError as exc:
            raise self._fail("update", exc) from exc
        return result.rowcount == 1

