"""Pydantic schemas for principals and their profiles."""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel

from gatepass.models.principal import Role


class PrincipalCreate(BaseModel):
    display_name: str
    email: str
    role: str  # student, warden


class StudentProfileComplete(BaseModel):
    display_name: Optional[str] = None
    enrollment_number: str
    course: str
    semester: str
    hostel_block: str
    room_number: str
    permanent_address: str
    parent_name: str
    parent_contact: str
    emergency_contact: str


class ProfileUpdate(BaseModel):
    display_name: Optional[str] = None
    enrollment_number: Optional[str] = None
    course: Optional[str] = None
    semester: Optional[str] = None
    hostel_block: Optional[str] = None
    room_number: Optional[str] = None
    permanent_address: Optional[str] = None
    parent_name: Optional[str] = None
    parent_contact: Optional[str] = None
    emergency_contact: Optional[str] = None
    designation: Optional[str] = None
    assigned_block: Optional[str] = None
    phone: Optional[str] = None
    role: Optional[str] = None  # rejected by the service: roles are immutable


class PrincipalOut(BaseModel):
    principal_id: str
    role: Role
    display_name: str
    email: str
    photo_url: Optional[str] = None
    profile_complete: bool
    enrollment_number: Optional[str] = None
    course: Optional[str] = None
    semester: Optional[str] = None
    hostel_block: Optional[str] = None
    room_number: Optional[str] = None
    permanent_address: Optional[str] = None
    parent_name: Optional[str] = None
    parent_contact: Optional[str] = None
    emergency_contact: Optional[str] = None
    designation: Optional[str] = None
    assigned_block: Optional[str] = None
    phone: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}
