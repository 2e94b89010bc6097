# ABOUTME: Interfaces for the remote services the deployment engine consumes
# ABOUTME: Credentials, stacks, parameter store, artifact store and command execution

"""Capability interfaces injected into the deployment engine."""

from pathlib import Path
from typing import Any, Protocol

from .models import CallerIdentity, ChangeSetResult, CommandResult, ParameterType, SessionToken, StackDescription


class CredentialProvider(Protocol):
    def assume(self, role_arn: str) -> SessionToken:
        """Assume a role and return temporary credentials."""
        ...

    def identity(self) -> CallerIdentity:
        """Return the identity of the ambient credentials."""
        ...


class StackAPI(Protocol):
    def describe(self, name: str) -> StackDescription | None:
        """Describe a stack, or return None when it does not exist."""
        ...

    def create(
        self, name: str, template_url: str, parameters: list[dict[str, str]], capabilities: list[str]
    ) -> str:
        """Start creating a stack and return its id."""
        ...

    def create_change_set(
        self,
        name: str,
        change_set_name: str,
        template_url: str,
        parameters: list[dict[str, str]],
        capabilities: list[str],
    ) -> str:
        """Request a change set against an existing stack and return its id."""
        ...

    def describe_change_set(self, name: str, change_set_name: str) -> ChangeSetResult:
        ...

    def execute_change_set(self, name: str, change_set_name: str) -> None:
        ...

    def delete_change_set(self, name: str, change_set_name: str) -> None:
        ...


class ParameterStore(Protocol):
    def get(self, name: str, decrypt: bool = True) -> str | None:
        """Return the stored value, or None when the parameter does not exist."""
        ...

    def put(self, name: str, value: str, type: ParameterType, description: str, overwrite: bool = True) -> None:
        ...


class ArtifactStore(Protocol):
    def upload(self, bucket: str, key: str, source: Path | bytes) -> Any:
        """Upload a file or raw bytes and return the store's acknowledgement."""
        ...


class CommandRunner(Protocol):
    def run(self, argv: list[str], env: dict[str, str]) -> CommandResult:
        ...


class ClientFactory(Protocol):
    """Builds service clients bound to a set of credentials.

    A ``None`` token means the ambient default provider chain.
    """

    def stack_api(self, token: SessionToken | None) -> StackAPI:
        ...

    def parameter_store(self, token: SessionToken | None) -> ParameterStore:
        ...

    def artifact_store(self, token: SessionToken | None) -> ArtifactStore:
        ...
