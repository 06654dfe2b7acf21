"""
childguard: makes sure child processes are shut down when their owner goes away.

Processes handed to a Supervisor receive SIGTERM when it is closed, followed by
SIGKILL if they have not exited within the kill timeout. A TerminationFlag lets
a host program notice SIGINT/SIGTERM/SIGQUIT and exit in an orderly way.

Importing childguard has two side effects on the host process:

- `load_dotenv()` runs, so a `.env` file in the current directory (or above
  it) is loaded into `os.environ`. Variables already set are not overwritten.
- The JSON overrides file is read, if it exists. This is `childguard.json` in
  the current directory, or the path in `CHILDGUARD_OVERRIDES`.
"""

from .exceptions import (
    ChildguardError,
    ProcessAlreadyReapedError,
    RegistrationError,
    ShutdownError,
    SignalError,
    SupervisorClosedError,
    WaitError,
)
from .supervisor import ExitStatus, ManagedProcess, Supervisor, shutdown_process, supervised
from .termination import TerminationFlag, register_termination_flag

__all__ = [
    "ChildguardError",
    "ExitStatus",
    "ManagedProcess",
    "ProcessAlreadyReapedError",
    "RegistrationError",
    "ShutdownError",
    "SignalError",
    "Supervisor",
    "SupervisorClosedError",
    "TerminationFlag",
    "WaitError",
    "register_termination_flag",
    "shutdown_process",
    "supervised",
]
