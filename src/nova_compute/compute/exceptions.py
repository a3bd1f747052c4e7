from __future__ import annotations


class ComputeError(Exception):
    """Base class for everything this package raises."""


class TransportError(ComputeError):
    """The request could not be completed, or came back with an error status."""

    def __init__(self, message: str, *, status: int | None = None, body: bytes | None = None):
        super().__init__(message)
        self.status = status
        self.body = body


class ServiceNotFound(ComputeError):
    def __init__(self, name: str, region: str | None = None):
        where = f" in region {region!r}" if region else ""
        super().__init__(f"Service not found in catalog: {name!r}{where}")
        self.name = name
        self.region = region


class MalformedResponse(ComputeError):
    """Response body is not JSON or does not have the expected shape."""

    def __init__(self, message: str, *, body: bytes | None = None):
        super().__init__(message)
        self.body = body
