"""
Exception hierarchy for childguard.

Shutdown failures carry the pid they concern so that teardown can log them
meaningfully. The underlying OS or psutil error is always chained.
"""
from typing import Optional


class ChildguardError(Exception):
    """Base class for every error raised by childguard."""


#* --- Shutdown errors ---

class ShutdownError(ChildguardError):
    """A single shutdown attempt failed."""

    def __init__(self, message: str, pid: Optional[int] = None) -> None:
        super().__init__(message)
        self.pid = pid


class SignalError(ShutdownError):
    """The OS refused or failed a termination/kill request."""


class ProcessAlreadyReapedError(SignalError):
    """The handle was already reaped, so its pid must not be signaled."""

    def __init__(self, pid: Optional[int] = None) -> None:
        super().__init__(f"Process {pid} has already been reaped; refusing to signal it.", pid)


class WaitError(ShutdownError):
    """Observing or collecting the exit status failed."""


#* --- Other errors ---

class RegistrationError(ChildguardError):
    """A termination-flag signal handler could not be installed."""


class SupervisorClosedError(ChildguardError):
    """The supervisor has already torn down its processes."""
