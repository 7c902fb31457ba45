"""Client-facing error types for the forwarding gateway."""

from typing import Optional, Dict, Any


class ProxyError(Exception):
    """
    Base error carrying everything needed to build the client response.

    Body shapes:
        {"error": message}
        {"error": message, "endpoint": endpoint}
        {"error": summary, "message": message}
    """

    status_code: int = 500

    def __init__(
        self,
        message: str,
        endpoint: Optional[str] = None,
        summary: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.endpoint = endpoint
        self.summary = summary

    def to_dict(self) -> Dict[str, Any]:
        if self.summary:
            body = {"error": self.summary, "message": self.message}
        else:
            body = {"error": self.message}
        if self.endpoint:
            body["endpoint"] = self.endpoint
        return body


class ValidationError(ProxyError):
    """Malformed or missing input, detected before any network call."""
    status_code = 400


class UpstreamError(ProxyError):
    """Network failure, non-OK status, timeout or unparseable upstream body."""
    status_code = 500
