"""
Logging module for childguard.
This module provides the console logging setup for host programs.
"""

from .setup import setup_logging, MainFormatter

__all__ = ["setup_logging", "MainFormatter"]
