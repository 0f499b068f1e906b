"""Exception hierarchy for the installer."""

from __future__ import annotations


class AicDrvError(Exception):
    """Base exception for all aicdrv errors."""

    def __init__(self, message: str, exit_code: int = 1) -> None:
        self.message = message
        self.exit_code = exit_code
        super().__init__(message)


class PrivilegeError(AicDrvError):
    """The process is not running with administrative rights."""


class InvalidChoiceError(AicDrvError):
    """The operator entered something other than a listed menu option."""


class ConfigError(AicDrvError):
    """Installer configuration failed validation."""
