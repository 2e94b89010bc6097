# ABOUTME: Throttle-tolerant wrappers for the one-shot remote capabilities
# ABOUTME: Parameter store, credential and artifact calls retry through the poller while rate limited

"""Retrying capability wrappers."""

from pathlib import Path
from typing import Any

from ..capabilities import ArtifactStore, CredentialProvider, ParameterStore
from ..models import CallerIdentity, ParameterType, SessionToken
from .poller import Poller


class RetryingParameterStore:
    def __init__(self, store: ParameterStore, poller: Poller):
        self.store = store
        self.poller = poller

    def get(self, name: str, decrypt: bool = True) -> str | None:
        return self.poller.call(lambda: self.store.get(name, decrypt=decrypt))

    def put(
        self,
        name: str,
        value: str,
        type: ParameterType = ParameterType.STRING,
        description: str = "",
        overwrite: bool = True,
    ) -> None:
        self.poller.call(
            lambda: self.store.put(name, value, type=type, description=description, overwrite=overwrite)
        )


class RetryingCredentialProvider:
    def __init__(self, credentials: CredentialProvider, poller: Poller):
        self.credentials = credentials
        self.poller = poller

    def assume(self, role_arn: str) -> SessionToken:
        return self.poller.call(lambda: self.credentials.assume(role_arn))

    def identity(self) -> CallerIdentity:
        return self.poller.call(self.credentials.identity)


class RetryingArtifactStore:
    def __init__(self, store: ArtifactStore, poller: Poller):
        self.store = store
        self.poller = poller

    def upload(self, bucket: str, key: str, source: Path | bytes) -> Any:
        return self.poller.call(lambda: self.store.upload(bucket, key, source))
