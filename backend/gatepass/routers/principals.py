"""Principal API routes — registration and the caller's own profile."""
from typing import Optional

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from gatepass.blob_store import LocalBlobStore, get_blob_store
from gatepass.database import get_db
from gatepass.exceptions import AuthorizationError
from gatepass.identity import IdentityProvider, get_current_principal, get_identity
from gatepass.models.principal import Principal
from gatepass.schemas.principal import PrincipalCreate, PrincipalOut, ProfileUpdate, StudentProfileComplete
from gatepass.services import principal_service

router = APIRouter()


@router.post("/", response_model=PrincipalOut, status_code=status.HTTP_201_CREATED)
def register_principal(payload: PrincipalCreate, db: Session = Depends(get_db)):
    """Create a student or warden principal with an incomplete profile."""
    return principal_service.register(db, payload.display_name, payload.email, payload.role)


@router.get("/me", response_model=PrincipalOut)
def read_me(principal: Optional[Principal] = Depends(get_current_principal)):
    """Return the authenticated principal."""
    if principal is None:
        raise AuthorizationError("read a profile")
    return principal


@router.post("/me/profile", response_model=PrincipalOut)
def complete_profile(payload: StudentProfileComplete, identity: IdentityProvider = Depends(get_identity)):
    """Complete a student profile — required before any gate pass can be requested."""
    return principal_service.complete_profile(identity, payload.model_dump())


@router.patch("/me/profile", response_model=PrincipalOut)
def update_profile(payload: ProfileUpdate, identity: IdentityProvider = Depends(get_identity)):
    """Update profile attributes (partial update)."""
    return principal_service.update_profile(identity, payload.model_dump(exclude_unset=True))


@router.put("/me/photo", response_model=PrincipalOut)
async def upload_photo(
    request: Request,
    identity: IdentityProvider = Depends(get_identity),
    blobs: LocalBlobStore = Depends(get_blob_store),
):
    """Upload a profile image as the raw request body."""
    data = await request.body()
    return principal_service.set_photo(identity, blobs, data, request.headers.get("content-type"))
