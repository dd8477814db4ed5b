"""GatePassRequest ORM model — one leave request and its decision state."""
import uuid
import enum
from datetime import datetime, timezone
from sqlalchemy import Column, String, Date, Time, DateTime, JSON, Text, Enum as SAEnum
from sqlalchemy.sql import func
from gatepass.database import Base


class RequestStatus(str, enum.Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"


class GatePassRequest(Base):
    __tablename__ = "gate_pass_requests"

    request_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    # No FKs to principals: snapshots only, integrity is not enforced
    requester_id = Column(String(36), nullable=False, index=True)
    requester_name = Column(String(100), nullable=True)
    requester_email = Column(String(255), nullable=True)
    requester_context = Column(JSON, nullable=True)  # snapshot at submission time

    reason = Column(Text, nullable=True)
    destination = Column(String(255), nullable=True)
    departure_date = Column(Date, nullable=True)
    departure_time = Column(Time, nullable=True)
    return_date = Column(Date, nullable=True)
    return_time = Column(Time, nullable=True)
    parent_contact = Column(String(20), nullable=True)
    notes = Column(Text, nullable=True)

    status = Column(SAEnum(RequestStatus), nullable=False, default=RequestStatus.pending, index=True)
    decision_by = Column(String(36), nullable=True)
    decided_at = Column(DateTime(timezone=True), nullable=True)
    rejection_reason = Column(Text, nullable=True)

    # Fields received under non-canonical keys (legacy record generations)
    attributes = Column(JSON, nullable=False, default=dict)

    # Python-side default keeps sub-second order; SQLite now() has one-second resolution
    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        server_default=func.now(),
    )
