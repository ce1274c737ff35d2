from __future__ import annotations

from typing import Any, Optional


class ProxyError(Exception):
    """Base class for errors raised by the governance proxy."""

    status_code = 400

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class Unauthorized(ProxyError):
    """Owner or trust check failed."""

    status_code = 403


class NotFound(ProxyError):
    status_code = 404


class NotInitialized(ProxyError):
    status_code = 409

    def __init__(self, detail: str = "contract is not initialized"):
        super().__init__(detail)


class AlreadyInitialized(ProxyError):
    status_code = 409

    def __init__(self, detail: str = "contract is already initialized"):
        super().__init__(detail)


class RemoteFailure(ProxyError):
    """The voting system call errored, timed out or was rejected.

    Never raised to the caller of approve_proposal; it is handed to the
    governance callback as the failed result of the remote call.
    """

    status_code = 502

    def __init__(self, detail: str, *, status: Optional[int] = None, body: Any = None):
        super().__init__(detail)
        self.status = status
        self.body = body

    def to_dict(self) -> dict:
        return {"detail": self.detail, "status": self.status, "body": self.body}
