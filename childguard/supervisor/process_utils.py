import os
import psutil
import logging
import subprocess
from dataclasses import dataclass
from signal import Signals
from typing import Optional, Union

from childguard.exceptions import ProcessAlreadyReapedError, SignalError, WaitError

log = logging.getLogger(__name__)

ProcessLike = Union["ManagedProcess", subprocess.Popen, psutil.Process, int]


#* --- Exit Status ---
@dataclass(frozen=True)
class ExitStatus:
    """
    The final status of a process.

    Exactly one of `code` and `signal` is set for a process whose status is
    known. Both are None when the OS could not report it (e.g. a psutil
    handle to a process that is not our child).
    """
    code: Optional[int] = None
    signal: Optional[int] = None

    @classmethod
    def from_returncode(cls, returncode: Optional[int]) -> "ExitStatus":
        """Maps the subprocess convention (negative means killed by signal) to an ExitStatus."""
        if returncode is None:
            return cls()
        returncode = int(returncode)
        if returncode < 0:
            return cls(signal=-returncode)
        return cls(code=returncode)

    @property
    def success(self) -> bool:
        return self.code == 0

    @property
    def signaled(self) -> bool:
        return self.signal is not None

    def __str__(self) -> str:
        if self.signal is not None:
            try:
                return f"signal: {self.signal} ({Signals(self.signal).name})"
            except ValueError:
                return f"signal: {self.signal}"
        if self.code is not None:
            return f"exit code: {self.code}"
        return "exit status unknown"


#* --- Process Handle ---
class ManagedProcess:
    """
    A handle to a running OS process, as consumed by the shutdown protocol.

    Wraps a `subprocess.Popen`, a `psutil.Process` or a bare pid and exposes
    the three operations the protocol needs: send_signal, poll and wait.
    Once an exit has been observed the status is cached and the handle
    counts as reaped; it must not be signaled again.
    """

    def __init__(self, process: Union[subprocess.Popen, psutil.Process, int], name: Optional[str] = None) -> None:
        if isinstance(process, bool) or not isinstance(process, (subprocess.Popen, psutil.Process, int)):
            raise TypeError(f"Cannot manage object of type {type(process).__name__}")
        if isinstance(process, int):
            try:
                process = get_process_from_pid(process)
            except psutil.NoSuchProcess as e:
                raise ValueError(f"No running process with PID {e.pid}") from e

        self._process = process
        self._status: Optional[ExitStatus] = None
        self.name = name

        if isinstance(process, subprocess.Popen) and process.returncode is not None:
            # Already reaped by whoever spawned it.
            self._status = ExitStatus.from_returncode(process.returncode)

    @classmethod
    def wrap(cls, process: ProcessLike, name: Optional[str] = None) -> "ManagedProcess":
        """Returns `process` unchanged if it is already a ManagedProcess, else wraps it."""
        if isinstance(process, cls):
            if name is not None:
                process.name = name
            return process
        return cls(process, name=name)

    @property
    def pid(self) -> int:
        return self._process.pid

    @property
    def reaped(self) -> bool:
        self._sync_popen()
        return self._status is not None

    @property
    def status(self) -> Optional[ExitStatus]:
        """The captured exit status, or None if the process has not been reaped."""
        return self._status

    def describe(self) -> str:
        return f"{self.name} (PID {self.pid})" if self.name else f"PID {self.pid}"

    def __repr__(self) -> str:
        state = f"reaped, {self._status}" if self._status else "running"
        return f"<ManagedProcess {self.describe()} [{state}]>"

    def _sync_popen(self) -> None:
        """Picks up a return code captured by someone calling the Popen directly."""
        if self._status is None and isinstance(self._process, subprocess.Popen) \
                and self._process.returncode is not None:
            self._status = ExitStatus.from_returncode(self._process.returncode)

    def send_signal(self, sig: int) -> None:
        """
        Sends `sig` to the process.

        :raises ProcessAlreadyReapedError: If the handle has already been reaped.
        :raises SignalError: If the OS could not locate or signal the process.
        """
        self._sync_popen()
        if self.reaped:
            raise ProcessAlreadyReapedError(self.pid)
        try:
            self._process.send_signal(sig)
        except psutil.NoSuchProcess as e:
            raise SignalError(f"No such process {self.pid} while sending {_signal_name(sig)}", self.pid) from e
        except psutil.AccessDenied as e:
            raise SignalError(f"Permission denied sending {_signal_name(sig)} to {self.pid}", self.pid) from e
        except (psutil.Error, OSError) as e:
            raise SignalError(f"Failed to send {_signal_name(sig)} to {self.pid}: {e}", self.pid) from e

    def poll(self) -> Optional[ExitStatus]:
        """
        Checks without blocking whether the process has exited.

        :return: The exit status if it has, else None.
        :raises WaitError: If the exit status could not be observed.
        """
        self._sync_popen()
        if self.reaped:
            return self._status
        try:
            if isinstance(self._process, subprocess.Popen):
                returncode = self._process.poll()
                if returncode is None:
                    return None
            else:
                try:
                    returncode = self._process.wait(timeout=0)
                except psutil.TimeoutExpired:
                    return None
        except (psutil.Error, OSError) as e:
            raise WaitError(f"Failed to poll process {self.pid}: {e}", self.pid) from e

        self._status = ExitStatus.from_returncode(returncode)
        return self._status

    def wait(self) -> ExitStatus:
        """
        Blocks until the process exits.

        :return: The exit status.
        :raises WaitError: If the exit status could not be collected.
        """
        self._sync_popen()
        if self.reaped:
            return self._status
        try:
            returncode = self._process.wait()
        except (psutil.Error, OSError) as e:
            raise WaitError(f"Failed to wait for process {self.pid}: {e}", self.pid) from e

        self._status = ExitStatus.from_returncode(returncode)
        return self._status


#* --- Helpers ---
def _signal_name(sig: int) -> str:
    try:
        return Signals(sig).name
    except ValueError:
        return f"signal {sig}"

def get_process_from_pid(pid: int) -> psutil.Process:
    """A wrapper for psutil.Process for easy testing/mocking if needed."""
    return psutil.Process(pid)

def is_current_process(pid: int) -> bool:
    """True if `pid` is this interpreter's own process."""
    return pid == os.getpid()
