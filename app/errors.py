"""Exception hierarchy shared by the flow services.

Flow services raise these; ``app.services.flows.run_flow`` turns them into the
uniform ``{success, error}`` result and routers map ``status_code`` onto the
HTTP response.

Usage:
    from app.errors import NotFoundError, ValidationError

    raise NotFoundError("Project", project_id)
    raise ValidationError("RUT inválido")
"""

from __future__ import annotations


class FlowError(Exception):
    """Base class for every error a flow reports to its caller."""

    status_code = 400

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ValidationError(FlowError):
    """Bad input (invalid RUT, missing required field). Never retried."""

    status_code = 400

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.details = details or {}
        super().__init__(message)


class NotFoundError(FlowError):
    """A project, order, client or person does not exist.

    The message never includes the id; it is kept on the instance for logs.
    """

    status_code = 404

    def __init__(self, resource: str, resource_id: str | None = None, message: str | None = None) -> None:
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(message or f"{resource} no encontrado.")


class AuthorizationError(FlowError):
    """Caller's role does not allow the operation."""

    status_code = 403


class InvalidTokenError(FlowError):
    status_code = 403


class TokenExpiredError(FlowError):
    status_code = 410


class TransportError(FlowError):
    """Email delivery failed."""

    status_code = 502


class SmtpAuthError(TransportError):
    """SMTP server rejected the credentials (reply code 535)."""
