"""
Agent Relay exceptions.

This module contains all custom exception classes used throughout Agent Relay.
"""

from pathlib import Path
from typing import TYPE_CHECKING, Optional, Union

if TYPE_CHECKING:
    from agent_relay.models import SyncReport


class RelayError(Exception):
    """Base exception for Agent Relay errors."""
    pass


class ConfigRootError(RelayError):
    """Raised when an agent's configuration root cannot be determined."""
    pass


class InvalidTargetError(RelayError):
    """Raised when an unknown agent or an invalid sync direction is specified."""
    pass


class FileOperationError(RelayError):
    """Raised when file operations fail."""
    pass


class MalformedConfigError(RelayError):
    """Raised when an existing settings file cannot be parsed safely."""

    def __init__(self, path: Union[str, Path], reason: str):
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"Malformed config file {self.path}: {reason}")


class SyncAbortedError(RelayError):
    """Raised when a sync run stops because one domain failed.

    Attributes:
        domain: Domain that failed
        report: Partial report with the domains completed before the failure
    """

    def __init__(self, domain: str, report: 'SyncReport', cause: Optional[BaseException] = None):
        self.domain = domain
        self.report = report
        message = f"Sync aborted while syncing {domain}"
        if cause is not None:
            message += f": {cause}"
        super().__init__(message)
