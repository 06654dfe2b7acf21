"""
The Supervisor package.
Shuts down the child processes a host program hands over to it.

This package contains the Supervisor class, the per-process shutdown
protocol, and the process handle both of them operate on.
"""
from .process_utils import ExitStatus, ManagedProcess
from .shutdown import shutdown_process
from .supervisor import Supervisor, supervised

__all__ = ['ExitStatus', 'ManagedProcess', 'Supervisor', 'shutdown_process', 'supervised']
