import time
import signal
import logging
from typing import Optional, Union

from childguard.exceptions import SignalError
from childguard.supervisor.process_utils import ExitStatus, ManagedProcess, ProcessLike

log = logging.getLogger(__name__)

Seconds = Union[int, float]


def _validate_timeouts(kill_timeout: Seconds, poll_interval: Seconds) -> None:
    if kill_timeout < 0:
        raise ValueError(f"kill_timeout must be >= 0, got {kill_timeout}")
    if poll_interval <= 0:
        raise ValueError(f"poll_interval must be > 0, got {poll_interval}")


def _wait_for_exit(proc: ManagedProcess, kill_timeout: Seconds, poll_interval: Seconds) -> Optional[ExitStatus]:
    """
    Polls the process until it exits or `kill_timeout` has elapsed.

    :return: The exit status if the process exited in time, else None.
    """
    start_time = time.monotonic()
    while time.monotonic() - start_time < kill_timeout:
        status = proc.poll()
        if status is not None:
            return status
        time.sleep(poll_interval)
    return None


def _forceful_kill(proc: ManagedProcess) -> ExitStatus:
    """Sends SIGKILL and blocks until the process is reaped."""
    log.warning(f"Process {proc.describe()} did not terminate gracefully. Sending SIGKILL.")
    try:
        proc.send_signal(signal.SIGKILL)
    except SignalError:
        # It may have exited on its own right after the grace period ended.
        status = proc.poll()
        if status is None:
            raise
        log.debug(f"Process {proc.describe()} exited before SIGKILL could be delivered.")
        return status
    return proc.wait()


def shutdown_process(process: ProcessLike, kill_timeout: Seconds, poll_interval: Seconds) -> ExitStatus:
    """
    Shuts down a process using SIGTERM, sending SIGKILL after `kill_timeout`.

    The process is first asked to exit. It is then polled every `poll_interval`
    seconds until it does or `kill_timeout` seconds have passed, at which point
    it is killed and reaped. A `kill_timeout` of zero skips the grace period.

    :param process: The process to shut down (Popen, psutil.Process, pid or ManagedProcess).
    :param kill_timeout: Seconds to wait after SIGTERM before sending SIGKILL.
    :param poll_interval: Seconds between checks whether the process has exited.
    :return: The exit status of the process.
    :raises ProcessAlreadyReapedError: If the process was already reaped.
    :raises SignalError: If SIGTERM or SIGKILL could not be delivered.
    :raises WaitError: If the exit status could not be observed.
    """
    _validate_timeouts(kill_timeout, poll_interval)
    proc = ManagedProcess.wrap(process)

    # Ask nicely first.
    log.debug(f"Sending SIGTERM to {proc.describe()}")
    proc.send_signal(signal.SIGTERM)

    status = _wait_for_exit(proc, kill_timeout, poll_interval)
    if status is None:
        status = _forceful_kill(proc)

    log.debug(f"Process {proc.describe()} shut down with {status}")
    return status
