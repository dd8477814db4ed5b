"""Principal ORM model — an authenticated student or warden."""
import uuid
import enum
from sqlalchemy import Column, String, Boolean, DateTime, Enum as SAEnum
from sqlalchemy.sql import func
from gatepass.database import Base


class Role(str, enum.Enum):
    student = "student"
    warden = "warden"


class Principal(Base):
    __tablename__ = "principals"

    principal_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    role = Column(SAEnum(Role), nullable=False)
    display_name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False, unique=True)
    photo_url = Column(String(500), nullable=True)
    profile_complete = Column(Boolean, nullable=False, default=False)

    # Student profile
    enrollment_number = Column(String(50), nullable=True)
    course = Column(String(100), nullable=True)
    semester = Column(String(20), nullable=True)
    hostel_block = Column(String(50), nullable=True)
    room_number = Column(String(20), nullable=True)
    permanent_address = Column(String(500), nullable=True)
    parent_name = Column(String(100), nullable=True)
    parent_contact = Column(String(20), nullable=True)
    emergency_contact = Column(String(20), nullable=True)

    # Warden profile
    designation = Column(String(100), nullable=True)
    assigned_block = Column(String(50), nullable=True)
    phone = Column(String(20), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
