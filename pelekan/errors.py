"""
Error taxonomy for progression flows.

- NetworkFailure: transport error, timeout, or an unreadable response body.
- RejectedByServer: the service answered with ``ok: false`` (or a payload
  that does not match its schema).
- InvalidLocalState: an action that cannot be taken from the current local
  state. Raised before any remote call and never sent to the service.

NetworkFailure and RejectedByServer are recoverable: controllers store them
as their current error and the caller may re-invoke the action or reload.
"""

from typing import Optional


class FlowError(Exception):
    """Base class for progression flow errors."""

    recoverable: bool = True

    def __init__(self, code: str, message: Optional[str] = None):
        self.code = code
        self.message = message or code
        super().__init__(self.message)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r})"


class NetworkFailure(FlowError):
    """Transport-level failure talking to the progression service."""

    def __init__(self, message: Optional[str] = None, code: str = "NETWORK_ERROR"):
        super().__init__(code, message)


class RejectedByServer(FlowError):
    """The service replied but refused the call (``ok: false``)."""


class InvalidLocalState(FlowError):
    """Action rejected locally; the service is never contacted."""

    recoverable = False
