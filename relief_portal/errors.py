from __future__ import annotations

from typing import Optional


class PortalError(RuntimeError):
    """Base error converted to a JSON body at the request boundary."""

    status_code = 500
    public_message = "Internal Server Error"

    def __init__(self, message: str = "", *, detail: Optional[str] = None):
        super().__init__(message or self.public_message)
        self.detail = detail

    @property
    def message(self) -> str:
        return str(self)


class ValidationError(PortalError):
    status_code = 400
    public_message = "Invalid start coordinates"


class NotFoundError(PortalError):
    status_code = 404
    public_message = "Not found"


class UpstreamError(PortalError):
    """Hosted datastore or archival call failed."""

    status_code = 500
    public_message = "Upstream datastore error"

    def __init__(self, message: str = "", *, status: Optional[int] = None, detail: Optional[str] = None):
        super().__init__(message, detail=detail)
        self.status = status


class StorageReadError(PortalError):
    public_message = "Could not read the file."


class StorageWriteError(PortalError):
    public_message = "Could not update the file."


class ParseError(PortalError):
    public_message = "Could not parse the JSON data."
