"""Principal registration and profile maintenance."""
import logging
from typing import Any, Mapping, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from gatepass.blob_store import LocalBlobStore
from gatepass.exceptions import AuthorizationError, InvalidStateError, ValidationError
from gatepass.identity import IdentityProvider
from gatepass.models.principal import Principal, Role
from gatepass.services.lifecycle_service import is_valid_phone

logger = logging.getLogger(__name__)

# field -> minimum stripped length
STUDENT_PROFILE_RULES: dict[str, int] = {
    "enrollment_number": 3,
    "course": 1,
    "semester": 1,
    "hostel_block": 1,
    "room_number": 1,
    "permanent_address": 10,
    "parent_name": 3,
}
CONTACT_FIELDS = ("parent_contact", "emergency_contact", "phone")
STUDENT_FIELDS = tuple(STUDENT_PROFILE_RULES) + ("parent_contact", "emergency_contact")
WARDEN_FIELDS = ("designation", "assigned_block", "phone")
IMMUTABLE_FIELDS = ("role", "principal_id", "email", "profile_complete")

ALLOWED_IMAGE_TYPES = {"image/png": "png", "image/jpeg": "jpg", "image/webp": "webp"}
MAX_IMAGE_BYTES = 2 * 1024 * 1024


def _check_fields(fields: Mapping[str, Any], required: bool) -> dict[str, str]:
    violations: dict[str, str] = {}
    for name, minimum in STUDENT_PROFILE_RULES.items():
        if name not in fields and not required:
            continue
        value = (fields.get(name) or "").strip()
        if len(value) < minimum:
            violations[name] = f"Must be at least {minimum} characters"
    for name in CONTACT_FIELDS:
        if name not in fields:
            if required and name != "phone":
                violations[name] = "This field is required"
            continue
        if not is_valid_phone((fields.get(name) or "").strip()):
            violations[name] = "Contact number must have 10 to 15 digits"
    if "display_name" in fields and len((fields.get("display_name") or "").strip()) < 3:
        violations["display_name"] = "Must be at least 3 characters"
    return violations


def register(db: Session, display_name: str, email: str, role: str) -> Principal:
    """Create a principal on first authentication; profile starts incomplete."""
    violations: dict[str, str] = {}
    try:
        role = Role(role)
    except ValueError:
        violations["role"] = "Role must be student or warden"
    if len(display_name.strip()) < 3:
        violations["display_name"] = "Must be at least 3 characters"
    if "@" not in email:
        violations["email"] = "Invalid email address"
    if violations:
        raise ValidationError(violations)

    principal = Principal(
        display_name=display_name.strip(),
        email=email.strip().lower(),
        role=role,
        profile_complete=False,
    )
    db.add(principal)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ValidationError({"email": "Email is already registered"})
    db.refresh(principal)
    logger.info("Registered %s %s (%s)", role.value, principal.principal_id, principal.email)
    return principal


def count_students(db: Session) -> int:
    return db.query(Principal).filter(Principal.role == Role.student).count()


def complete_profile(identity: IdentityProvider, fields: Mapping[str, Any]) -> Principal:
    """Fill in the student profile and flip ``profile_complete`` (once)."""
    principal = identity.get_current_principal()
    if principal is None or principal.role != Role.student:
        principal_id = principal.principal_id if principal is not None else None
        raise AuthorizationError("complete a student profile", principal_id)
    if principal.profile_complete:
        raise InvalidStateError(principal.principal_id, "complete", "complete profile")

    fields = {k: v for k, v in fields.items() if v is not None}
    violations = _check_fields(fields, required=True)
    if violations:
        raise ValidationError(violations)

    for name in STUDENT_FIELDS + ("display_name",):
        if name in fields:
            setattr(principal, name, str(fields[name]).strip())
    principal.profile_complete = True
    identity.db.commit()
    identity.db.refresh(principal)
    logger.info("Student %s completed their profile", principal.principal_id)
    identity.notify_changed()
    return principal


def update_profile(identity: IdentityProvider, fields: Mapping[str, Any]) -> Principal:
    """Partial update of the caller's own profile. Role never changes.

    Requests already submitted keep the requester snapshot taken at
    submission time.
    """
    principal = identity.get_current_principal()
    if principal is None:
        raise AuthorizationError("update a profile")

    fields = {k: v for k, v in fields.items() if v is not None}
    frozen = [name for name in IMMUTABLE_FIELDS if name in fields]
    if frozen:
        raise ValidationError({name: "This field cannot be changed" for name in frozen})

    allowed = STUDENT_FIELDS if principal.role == Role.student else WARDEN_FIELDS
    foreign = [name for name in fields if name not in allowed and name != "display_name"]
    if foreign:
        raise ValidationError({name: f"Not a {principal.role.value} profile field" for name in foreign})

    violations = _check_fields(fields, required=False)
    if violations:
        raise ValidationError(violations)

    for name, value in fields.items():
        setattr(principal, name, str(value).strip())
    identity.db.commit()
    identity.db.refresh(principal)
    logger.info("Updated profile of %s", principal.principal_id)
    identity.notify_changed()
    return principal


def set_photo(
    identity: IdentityProvider,
    blobs: LocalBlobStore,
    data: bytes,
    content_type: Optional[str],
) -> Principal:
    """Upload a profile image and record its URL on the principal."""
    principal = identity.get_current_principal()
    if principal is None:
        raise AuthorizationError("upload a profile image")

    extension = ALLOWED_IMAGE_TYPES.get((content_type or "").split(";")[0].strip())
    if extension is None:
        raise ValidationError({"content_type": "Profile image must be PNG, JPEG or WebP"})
    if not data:
        raise ValidationError({"image": "Image is empty"})
    if len(data) > MAX_IMAGE_BYTES:
        raise ValidationError({"image": "Image must be at most 2 MB"})

    url = blobs.upload(f"profile-images/{principal.principal_id}.{extension}", data)
    principal.photo_url = url
    identity.db.commit()
    identity.db.refresh(principal)
    identity.notify_changed()
    return principal
