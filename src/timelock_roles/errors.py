from typing import Optional


class TimelockRolesError(Exception):
    """Base class for every error raised by timelock_roles."""


class ConfigurationError(TimelockRolesError, ValueError):
    """Missing API key, unsupported network or similar setup problem."""


class BlockExplorerError(TimelockRolesError, RuntimeError):
    """The block explorer answered with an error status or could not be reached."""

    def __init__(self, status: Optional[str], message: str, url: Optional[str] = None):
        self.status = status
        self.message = message
        self.url = url
        text = f"block explorer api error (status {status}, msg: {message})"
        if url:
            text += f"\n{url}"
        super().__init__(text)


class NotATimelockError(TimelockRolesError, ValueError):
    pass


class RevocationError(TimelockRolesError, ValueError):
    """A revocation request violates one of the timelock safety rules."""


class InvalidAddressError(RevocationError):
    pass


class NotAnExecutorError(RevocationError):
    pass


class RoleEventError(TimelockRolesError, ValueError):
    """A role event log is malformed or conflicts with another one."""
