"""
Signal-driven termination flag.

`register_termination_flag` installs handlers for SIGINT, SIGTERM and SIGQUIT
that flip a shared TerminationFlag. A host program polls the flag from its
main loop and exits in an orderly way, which tears down its Supervisor.
"""
import time
import signal
import logging
import threading
from typing import Any, Dict, Iterable, Optional, Tuple

from childguard import settings
from childguard.exceptions import RegistrationError

log = logging.getLogger(__name__)

DEFAULT_SIGNALS: Tuple[signal.Signals, ...] = tuple(
    getattr(signal, name) for name in ("SIGINT", "SIGTERM", "SIGQUIT") if hasattr(signal, name)
)

# Signals currently bound to a flag by this module, guarded by _registry_lock.
_registered: Dict[signal.Signals, "TerminationFlag"] = {}
_registry_lock = threading.Lock()


class TerminationFlag:
    """
    A boolean that signal handlers set and any thread may read.

    Setting the flag is a single attribute store, so it is safe from a signal
    handler and never blocks. It starts out false, is set at most once and
    is never reset.
    """

    def __init__(self) -> None:
        self._triggered = False
        self.signum: Optional[int] = None
        self._previous_handlers: Dict[signal.Signals, Any] = {}

    def set(self, signum: Optional[int] = None) -> None:
        if not self._triggered:
            self.signum = signum
            self._triggered = True

    def is_set(self) -> bool:
        return self._triggered

    def __bool__(self) -> bool:
        return self._triggered

    def __repr__(self) -> str:
        return f"TerminationFlag(set={self._triggered}, signum={self.signum})"

    @property
    def signals(self) -> Tuple[signal.Signals, ...]:
        """The signals whose handlers currently set this flag."""
        return tuple(self._previous_handlers)

    def wait(self, timeout: Optional[float] = None, interval: float = settings.DEFAULT_POLL_INTERVAL) -> bool:
        """
        Blocks until the flag is set or `timeout` seconds have passed.

        :return: Whether the flag is set.
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        while not self._triggered:
            if deadline is not None and time.monotonic() >= deadline:
                break
            time.sleep(interval)
        return self._triggered

    def _handle(self, signum: int, frame: Any) -> None:
        # Runs in signal context: no logging, no locks.
        self.set(signum)

    def _restore(self, sig: signal.Signals) -> None:
        previous = self._previous_handlers.pop(sig)
        # None means the old handler was not installed from Python.
        signal.signal(sig, signal.SIG_DFL if previous is None else previous)
        _registered.pop(sig, None)

    def uninstall(self) -> None:
        """Restores the handlers this flag replaced. The flag keeps its value."""
        with _registry_lock:
            for sig in list(self._previous_handlers):
                self._restore(sig)
        log.debug("Termination flag handlers uninstalled.")


def _claim(flag: TerminationFlag, sig: signal.Signals) -> None:
    """Installs the flag's handler for one signal, refusing signals already claimed."""
    if sig in _registered:
        raise RegistrationError(f"{sig.name} is already bound to a termination flag.")

    current = signal.getsignal(sig)
    if callable(current) and current is not signal.default_int_handler:
        raise RegistrationError(f"{sig.name} is already handled by {current!r}.")

    flag._previous_handlers[sig] = signal.signal(sig, flag._handle)
    _registered[sig] = flag


def register_termination_flag(
    flag: Optional[TerminationFlag] = None,
    signals: Optional[Iterable[int]] = None,
) -> TerminationFlag:
    """
    Registers handlers that set a termination flag on SIGINT, SIGTERM or SIGQUIT.

    Registration is all-or-nothing: if any handler cannot be installed, the
    ones installed by this call are restored before the error is raised.
    Must be called from the main thread.

    :param flag: An existing flag to bind. A new one is created if omitted.
    :param signals: The signals to handle. Defaults to SIGINT, SIGTERM and SIGQUIT.
    :return: The flag, set once any of the signals is received.
    :raises RegistrationError: If any handler could not be installed.
    """
    flag = flag if flag is not None else TerminationFlag()
    targets = DEFAULT_SIGNALS if signals is None else tuple(signals)
    installed = []

    with _registry_lock:
        try:
            for raw_sig in targets:
                try:
                    sig = signal.Signals(raw_sig)
                except ValueError as e:
                    raise RegistrationError(f"Invalid signal {raw_sig!r}") from e
                if sig in installed:
                    continue
                try:
                    _claim(flag, sig)
                except (ValueError, OSError) as e:
                    raise RegistrationError(f"Failed to install handler for {sig.name}: {e}") from e
                installed.append(sig)
        except RegistrationError:
            for sig in installed:
                flag._restore(sig)
            raise

    log.debug(f"Termination flag registered for {', '.join(s.name for s in installed)}.")
    return flag
