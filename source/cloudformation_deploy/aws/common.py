# ABOUTME: Shared helpers for the boto3 capability adapters
# ABOUTME: Translates botocore errors into the engine's remote error taxonomy

"""AWS adapter helpers."""

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..errors import RemoteFatalError, RemoteTransientError

THROTTLING_CODES = {
    "Throttling",
    "ThrottlingException",
    "ThrottledException",
    "RequestLimitExceeded",
    "TooManyRequestsException",
    "RequestThrottled",
    "SlowDown",
}

# Substring matched when a throttling error arrives without a recognised code
RATE_EXCEEDED_MESSAGE = "Rate exceeded"

DEFAULT_REGION = "us-east-1"


def is_throttling(error: ClientError) -> bool:
    """Whether a client error is a rate limit signal."""
    details = error.response.get("Error", {})
    if details.get("Code") in THROTTLING_CODES:
        return True
    return RATE_EXCEEDED_MESSAGE in (details.get("Message") or str(error))


def translate_error(error: Exception, action: str) -> Exception:
    """Map a botocore exception onto RemoteTransientError or RemoteFatalError."""
    if isinstance(error, ClientError):
        if is_throttling(error):
            return RemoteTransientError(f"{action}: {error}")
        return RemoteFatalError(f"{action}: {error}")
    if isinstance(error, BotoCoreError):
        return RemoteFatalError(f"{action}: {error}")
    return error


def effective_region(override: str | None = None) -> str:
    """Region for this run: explicit override, else the default provider chain."""
    if override:
        return override
    return boto3.Session().region_name or DEFAULT_REGION
