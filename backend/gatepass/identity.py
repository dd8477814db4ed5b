"""Identity provider — resolves the acting principal for one HTTP request.

Credentials are verified upstream; by the time a request reaches this
service the authenticated principal id travels in the ``X-Principal-Id``
header. The principal is passed explicitly into every service call rather
than held in module state.
"""
import logging
from typing import Callable, Optional

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from gatepass.database import get_db
from gatepass.models.principal import Principal

logger = logging.getLogger(__name__)

PrincipalListener = Callable[[Optional[Principal]], None]


class IdentityProvider:
    """Current-principal lookup plus change notification."""

    def __init__(self, db: Session, principal_id: Optional[str]):
        self.db = db
        self.principal_id = principal_id
        self._listeners: list[PrincipalListener] = []

    def get_current_principal(self) -> Optional[Principal]:
        if not self.principal_id:
            return None
        principal = (
            self.db.query(Principal)
            .filter(Principal.principal_id == self.principal_id)
            .first()
        )
        if principal is None:
            logger.warning("Unknown principal id %s presented", self.principal_id)
        return principal

    def on_principal_change(self, callback: PrincipalListener) -> Callable[[], None]:
        """Register ``callback``; returns a function that unregisters it."""
        self._listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    def notify_changed(self) -> None:
        """Re-read the principal and hand it to every listener."""
        principal = self.get_current_principal()
        for listener in list(self._listeners):
            listener(principal)


def get_identity(
    x_principal_id: Optional[str] = Header(default=None),
    db: Session = Depends(get_db),
) -> IdentityProvider:
    """FastAPI dependency."""
    return IdentityProvider(db, x_principal_id)


def get_current_principal(identity: IdentityProvider = Depends(get_identity)) -> Optional[Principal]:
    """FastAPI dependency — None when the caller is not authenticated."""
    return identity.get_current_principal()
