"""Custom exceptions for gitbar"""

from typing import Optional, Sequence


class GitBarError(Exception):
    """Base exception for all gitbar errors."""
    pass


class ConfigurationError(GitBarError, ValueError):
    """Exception raised when a watch configuration value is invalid."""

    def __init__(self, field: str, message: str):
        self.field = field
        self.message = message
        super().__init__(f"{field} {message}")


class WatcherSubscriptionError(GitBarError):
    """Exception raised when the filesystem change source cannot subscribe."""

    def __init__(self, directories: Sequence[str], message: Optional[str] = None):
        self.directories = list(directories)
        self.message = message

        error_msg = f"Could not watch {len(self.directories)} director"
        error_msg += "y" if len(self.directories) == 1 else "ies"
        if message:
            error_msg += f": {message}"

        super().__init__(error_msg)
