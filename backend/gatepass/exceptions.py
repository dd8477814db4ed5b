"""Typed errors raised by the gate pass services.

Services raise these instead of ``HTTPException``; ``gatepass.main`` maps
each kind onto an HTTP status. Every class carries a machine-readable
``code`` so clients can branch on the kind rather than the message.

    GatePassError
    +-- ValidationError      (VALIDATION_FAILED)
    +-- AuthorizationError   (NOT_AUTHORIZED)
    +-- NotFoundError        (NOT_FOUND)
    +-- InvalidStateError    (INVALID_STATE)
    +-- StoreError           (STORE_UNAVAILABLE)
"""
from typing import Optional


class GatePassError(Exception):
    """Base exception for all gate pass service errors."""

    code: str = "GATE_PASS_ERROR"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(GatePassError):
    """One or more input fields violate their constraints."""

    code: str = "VALIDATION_FAILED"

    def __init__(self, violations: dict[str, str]):
        self.violations = dict(violations)
        fields = ", ".join(sorted(self.violations))
        super().__init__(f"Invalid fields: {fields}")


class AuthorizationError(GatePassError):
    """The acting principal may not perform the action."""

    code: str = "NOT_AUTHORIZED"

    def __init__(self, action: str, principal_id: Optional[str] = None):
        self.action = action
        self.principal_id = principal_id
        if principal_id is None:
            message = f"Authentication required to {action}"
        else:
            message = f"Principal {principal_id} may not {action}"
        super().__init__(message)


class NotFoundError(GatePassError):
    """A referenced record does not exist."""

    code: str = "NOT_FOUND"

    def __init__(self, kind: str, record_id: str):
        self.kind = kind
        self.record_id = record_id
        super().__init__(f"{kind} {record_id} not found")


class InvalidStateError(GatePassError):
    """A transition was attempted from a state that does not allow it."""

    code: str = "INVALID_STATE"

    def __init__(self, record_id: str, current_status: str, action: str):
        self.record_id = record_id
        self.current_status = current_status
        self.action = action
        super().__init__(f"Cannot {action} {record_id}: already {current_status}")


class StoreError(GatePassError):
    """The backing store failed; not recoverable by the caller."""

    code: str = "STORE_UNAVAILABLE"
