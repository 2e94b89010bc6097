# ABOUTME: Exception hierarchy for the stack deployment engine
# ABOUTME: Separates configuration, resolution, extraction, remote and command failures

"""Deployment errors."""

from enum import Enum


class DeployError(Exception):
    """Base exception for deployment operations."""

    pass


class ConfigError(DeployError):
    """Raised when a deployment plan is malformed."""

    pass


class ResolutionErrorKind(Enum):
    """Reasons an input binding cannot be satisfied."""

    INVALID_SYNTAX = "invalid_syntax"
    NOT_FOUND = "not_found"


class ResolutionError(DeployError):
    """Raised when an input binding cannot be resolved."""

    def __init__(self, kind: ResolutionErrorKind, message: str):
        super().__init__(message)
        self.kind = kind
        self.message = message


class PathErrorKind(Enum):
    """Reasons a JSON path lookup fails."""

    INVALID_SYNTAX = "invalid_syntax"
    TYPE_MISMATCH = "type_mismatch"
    TOO_MANY_MATCHES = "too_many_matches"
    NOT_FOUND = "not_found"


class PathError(DeployError):
    """Raised when a JSON path is malformed or matches nothing."""

    def __init__(self, kind: PathErrorKind, message: str):
        super().__init__(message)
        self.kind = kind
        self.message = message


class RemoteTransientError(DeployError):
    """Raised by adapters when the remote API throttles a request."""

    pass


class RemoteFatalError(DeployError):
    """Raised for any other remote failure, including rollback states."""

    pass


class CommandError(DeployError):
    """Raised when an external command fails or writes to standard error."""

    pass


class DeploymentFailed(DeployError):
    """Top-level failure wrapping whatever aborted the deployment sequence."""

    pass
