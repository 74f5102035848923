"""Gateway error kinds and their HTTP mapping."""

from typing import Any


class GatewayError(Exception):
    """Base for errors the gateway reports to clients."""

    kind = "InternalError"
    status_code = 500

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"error": self.message, "kind": self.kind}
        if self.details:
            payload["details"] = self.details
        return payload


class ValidationError(GatewayError):
    kind = "ValidationError"
    status_code = 400


class NotFoundError(GatewayError):
    kind = "NotFound"
    status_code = 404


class Unauthorized(GatewayError):
    kind = "Unauthorized"
    status_code = 401


class UpstreamError(GatewayError):
    """Backend HTTP error or transport failure.

    Never raised to the transport layer; the prober and the generation proxy
    convert it into a status or a ``success: false`` result.
    """

    kind = "UpstreamError"
    status_code = 502


class InternalError(GatewayError):
    kind = "InternalError"
    status_code = 500
