"""Exception hierarchy shared by the REST and streaming clients."""

from __future__ import annotations

from typing import Any


class NeuphonicError(Exception):
    """Base error raised by the SDK."""


class WebSocketError(NeuphonicError):
    """Failure of the duplex socket; ``cause`` holds the low-level exception."""

    def __init__(self, message: str, cause: BaseException | None = None):
        super().__init__(message)
        self.cause = cause


class ConnectError(WebSocketError):
    """Raised when the socket cannot reach the open state."""


class WebSocketRuntimeError(WebSocketError):
    """Reported to observers when the socket faults after it opened."""


class CloseError(WebSocketError):
    """Raised when the closing handshake fails."""


class ProtocolError(NeuphonicError):
    """Raised when a session is used in a state that does not allow it."""


class SocketClosedError(ProtocolError):
    """Raised by ``send`` once a session has been closed."""

    def __init__(self, message: str = "Socket already closed"):
        super().__init__(message)


class StillReceivingError(ProtocolError):
    """Raised by single-flight sessions while a response is still streaming."""

    def __init__(self, message: str = "There are not received messages"):
        super().__init__(message)


class AgentAlreadyRunningError(ProtocolError):
    """Raised when starting an agent session that is already running."""

    def __init__(self, message: str = "Agent already running"):
        super().__init__(message)


class TransportError(NeuphonicError):
    """Wrap transport or status failures when talking to the HTTP API."""

    def __init__(self, status_code: int, detail: Any):
        super().__init__(str(detail))
        self.status_code = status_code
        self.detail = detail


class ApiError(NeuphonicError):
    """A REST response matched neither the success nor the error envelope."""

    def __init__(self, message: str, *, operation: str | None = None):
        super().__init__(message)
        self.operation = operation

    @classmethod
    def unknown(cls, operation: str) -> "ApiError":
        return cls(f"Unknown {operation} error", operation=operation)


class NotFoundError(ApiError):
    """The server reported that the addressed resource does not exist."""


class AlreadyExistsError(ApiError):
    """The server refused to create a resource whose name is taken."""


class InvalidRequestError(ApiError):
    """The server rejected the request input; the message is the server detail."""


__all__ = [
    "AgentAlreadyRunningError",
    "AlreadyExistsError",
    "ApiError",
    "CloseError",
    "ConnectError",
    "InvalidRequestError",
    "NeuphonicError",
    "NotFoundError",
    "ProtocolError",
    "SocketClosedError",
    "StillReceivingError",
    "TransportError",
    "WebSocketError",
    "WebSocketRuntimeError",
]
