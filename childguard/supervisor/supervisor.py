import logging
import weakref
from contextlib import contextmanager
from typing import Iterator, List, Optional, Tuple

from childguard import settings
from childguard.config import effective_settings
from childguard.exceptions import SupervisorClosedError
from childguard.supervisor.process_utils import ManagedProcess, ProcessLike, is_current_process
from childguard.supervisor.shutdown import shutdown_process

log = logging.getLogger(__name__)


def _teardown(processes: List[ManagedProcess], kill_timeout: float, poll_interval: float) -> None:
    """
    Shuts down every process in `processes`, last registered first.

    Errors are logged and discarded so that one misbehaving process never
    prevents the others from being shut down. The list is consumed.

    If teardown is interrupted (e.g. KeyboardInterrupt), the interrupted
    process and all remaining ones are killed without a grace period, and
    the first interruption is re-raised once every process has been handled.
    """
    if not processes:
        return

    log.info(f"Initiating shutdown for {len(processes)} supervised processes...")
    interrupted: Optional[BaseException] = None
    while processes:
        proc = processes.pop()
        if proc.reaped:
            log.debug(f"Process {proc.describe()} already exited with {proc.status}, skipping.")
            continue
        try:
            status = shutdown_process(proc, 0 if interrupted else kill_timeout, poll_interval)
            log.info(f"Process {proc.describe()} stopped ({status}).")
        except Exception as e:
            log.error(f"Failed to shut down process {proc.describe()}: {e}")
        except BaseException as e:
            if interrupted is not None:
                log.error(f"Forced shutdown of process {proc.describe()} interrupted again: {e!r}")
                continue
            interrupted = e
            log.warning(
                f"Shutdown of {proc.describe()} interrupted ({e!r}). "
                "Killing remaining processes without grace period."
            )
            # Retry this one with an immediate SIGKILL.
            processes.append(proc)
    log.info("Supervisor shutdown sequence completed.")
    if interrupted is not None:
        raise interrupted


class Supervisor:
    """
    Owns a set of child processes and shuts them all down when it goes away.

    Processes are shut down in the reverse order they were registered, using
    `shutdown_process` with this supervisor's timeouts. Teardown runs exactly
    once: on `close()`, on leaving a `with` block, or, failing both, when the
    supervisor is garbage collected or the interpreter exits.
    """

    def __init__(self, kill_timeout: Optional[float] = None) -> None:
        """
        :param kill_timeout: Seconds to wait after SIGTERM before sending SIGKILL.
                             Defaults to the configured KILL_TIMEOUT (10 seconds).
        """
        if kill_timeout is None:
            kill_timeout = effective_settings.KILL_TIMEOUT
        if kill_timeout < 0:
            raise ValueError(f"kill_timeout must be >= 0, got {kill_timeout}")

        self._kill_timeout = float(kill_timeout)
        self._poll_interval = settings.DEFAULT_POLL_INTERVAL
        self._processes: List[ManagedProcess] = []
        # The finalizer must not reference self, only the state teardown needs.
        self._finalizer = weakref.finalize(
            self, _teardown, self._processes, self._kill_timeout, self._poll_interval
        )

    @property
    def kill_timeout(self) -> float:
        return self._kill_timeout

    @property
    def poll_interval(self) -> float:
        return self._poll_interval

    @property
    def closed(self) -> bool:
        return not self._finalizer.alive

    @property
    def processes(self) -> Tuple[ManagedProcess, ...]:
        """A snapshot of the supervised processes in registration order."""
        return tuple(self._processes)

    def __len__(self) -> int:
        return len(self._processes)

    def __repr__(self) -> str:
        return (
            f"Supervisor(processes={len(self._processes)}, kill_timeout={self._kill_timeout}, "
            f"poll_interval={self._poll_interval}, closed={self.closed})"
        )

    def register(self, process: ProcessLike, name: Optional[str] = None) -> ManagedProcess:
        """
        Hands a running process over to the supervisor.

        :param process: A subprocess.Popen, psutil.Process, pid or ManagedProcess.
        :param name: Optional label used in log messages.
        :return: The ManagedProcess handle now owned by the supervisor.
        """
        if self.closed:
            raise SupervisorClosedError("Cannot register a process with a closed supervisor.")

        proc = ManagedProcess.wrap(process, name=name)
        if is_current_process(proc.pid):
            raise ValueError("A supervisor cannot manage its own process.")
        if any(p is proc or (p.pid == proc.pid and not p.reaped) for p in self._processes):
            raise ValueError(f"Process {proc.describe()} is already supervised.")

        self._processes.append(proc)
        log.debug(f"Supervising {proc.describe()}")
        return proc

    def close(self) -> None:
        """Shuts down all supervised processes. Calling it again does nothing."""
        self._finalizer()

    teardown = close

    def __enter__(self) -> "Supervisor":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()


@contextmanager
def supervised(kill_timeout: Optional[float] = None) -> Iterator[Supervisor]:
    """
    Yields a new Supervisor and tears it down when the block exits,
    whether normally or through an exception.
    """
    supervisor = Supervisor(kill_timeout)
    try:
        yield supervisor
    finally:
        supervisor.close()
