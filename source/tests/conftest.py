"""Pytest configuration and shared fixtures."""

import os

import pytest

from cloudformation_deploy.audit import MemoryAuditLog
from cloudformation_deploy.engine.conditions import ConditionEvaluator
from cloudformation_deploy.engine.poller import Poller
from cloudformation_deploy.models import (
    CallerIdentity,
    ChangeSetResult,
    CommandResult,
    ParameterType,
    SessionToken,
    StackDescription,
)


# Set AWS region for all tests to avoid NoRegionError
@pytest.fixture(autouse=True, scope="session")
def set_aws_region():
    """Set AWS region for all tests."""
    os.environ["AWS_DEFAULT_REGION"] = "us-east-1"
    os.environ["AWS_REGION"] = "us-east-1"


class FakeParameterStore:
    """In-memory parameter store recording every write.

    Errors queued in ``failures`` are raised by the next calls, one each.
    """

    def __init__(self, values=None):
        self.values = dict(values or {})
        self.reads = []
        self.writes = []
        self.failures = []

    def get(self, name, decrypt=True):
        self.reads.append(name)
        if self.failures:
            raise self.failures.pop(0)
        return self.values.get(name)

    def put(self, name, value, type=ParameterType.STRING, description="", overwrite=True):
        if self.failures:
            raise self.failures.pop(0)
        self.writes.append((name, value, type, description))
        self.values[name] = value


class FakeStackAPI:
    """In-memory stack API.

    ``describe_script`` holds per-stack answers (descriptions, None or
    exceptions) returned before falling back to the current stack state.
    """

    def __init__(self):
        self.stacks = {}
        self.describe_script = {}
        self.create_status = {}
        self.create_outputs = {}
        self.change_set_results = {}
        self.update_status = {}
        self.update_outputs = {}
        self.calls = []

    def add_stack(self, name, status="CREATE_COMPLETE", outputs=None):
        self.stacks[name] = StackDescription(
            name=name,
            status=status,
            stack_id=f"arn:aws:cloudformation:us-east-1:123456789012:stack/{name}/1",
            outputs=dict(outputs or {}),
        )

    def describe(self, name):
        self.calls.append(("describe", name))
        script = self.describe_script.get(name)
        if script:
            item = script.pop(0)
            if isinstance(item, Exception):
                raise item
            return item
        return self.stacks.get(name)

    def create(self, name, template_url, parameters, capabilities):
        self.calls.append(("create", name, template_url, parameters, capabilities))
        self.add_stack(name, self.create_status.get(name, "CREATE_COMPLETE"), self.create_outputs.get(name))
        return self.stacks[name].stack_id

    def create_change_set(self, name, change_set_name, template_url, parameters, capabilities):
        self.calls.append(("create_change_set", name, change_set_name, template_url, parameters, capabilities))
        return f"arn:aws:cloudformation:us-east-1:123456789012:changeSet/{change_set_name}"

    def describe_change_set(self, name, change_set_name):
        self.calls.append(("describe_change_set", name, change_set_name))
        result = self.change_set_results.get(name)
        if isinstance(result, list):
            return result.pop(0)
        if result is None:
            return ChangeSetResult(status="CREATE_COMPLETE", changes=[{"Type": "Resource"}])
        return result

    def execute_change_set(self, name, change_set_name):
        self.calls.append(("execute_change_set", name, change_set_name))
        outputs = self.update_outputs.get(name, self.stacks[name].outputs)
        self.add_stack(name, self.update_status.get(name, "UPDATE_COMPLETE"), outputs)

    def delete_change_set(self, name, change_set_name):
        self.calls.append(("delete_change_set", name, change_set_name))

    def call_names(self):
        return [call[0] for call in self.calls]


class FakeArtifactStore:
    """Records uploads, raising any queued ``failures`` first."""

    def __init__(self):
        self.uploads = []
        self.failures = []

    def upload(self, bucket, key, source):
        if self.failures:
            raise self.failures.pop(0)
        self.uploads.append((bucket, key, source))
        return {"ETag": "fake"}


class FakeCredentialProvider:
    """Hands out a distinct token per role, raising any queued ``failures`` first."""

    def __init__(self, arn="arn:aws:iam::123456789012:user/deployer"):
        self.arn = arn
        self.assumed = []
        self.failures = []

    def assume(self, role_arn):
        if self.failures:
            raise self.failures.pop(0)
        self.assumed.append(role_arn)
        suffix = role_arn.rsplit("/", 1)[-1]
        return SessionToken(access_key=f"AKIA-{suffix}", secret_key=f"secret-{suffix}", session_token=f"token-{suffix}")

    def identity(self):
        if self.failures:
            raise self.failures.pop(0)
        return CallerIdentity(arn=self.arn, account="123456789012")


class FakeCommandRunner:
    """Returns queued results and records each invocation."""

    def __init__(self, results=None):
        self.results = list(results or [])
        self.calls = []

    def run(self, argv, env):
        self.calls.append((argv, env))
        if self.results:
            return self.results.pop(0)
        return CommandResult(stdout="{}")


class FakeClientFactory:
    """Hands out the same fakes whatever the credentials, recording the tokens used."""

    def __init__(self, stacks, parameter_store, artifacts):
        self.stacks = stacks
        self.store = parameter_store
        self.artifacts = artifacts
        self.tokens = []

    def stack_api(self, token):
        self.tokens.append(("stack_api", token))
        return self.stacks

    def parameter_store(self, token):
        self.tokens.append(("parameter_store", token))
        return self.store

    def artifact_store(self, token):
        self.tokens.append(("artifact_store", token))
        return self.artifacts


@pytest.fixture
def audit():
    """In-memory audit log."""
    return MemoryAuditLog()


@pytest.fixture
def sleeps():
    """Durations the poller slept for."""
    return []


@pytest.fixture
def poller(sleeps):
    """Poller that records sleeps instead of sleeping."""
    return Poller(max_delay=10.0, retry_budget=3, rate_limit_delay=1.0, sleep=sleeps.append, jitter=lambda a, b: b)


@pytest.fixture
def parameter_store():
    return FakeParameterStore()


@pytest.fixture
def stack_api():
    return FakeStackAPI()


@pytest.fixture
def artifact_store():
    return FakeArtifactStore()


@pytest.fixture
def credentials():
    return FakeCredentialProvider()


@pytest.fixture
def command_runner():
    return FakeCommandRunner()


@pytest.fixture
def factory(stack_api, parameter_store, artifact_store):
    return FakeClientFactory(stack_api, parameter_store, artifact_store)


@pytest.fixture
def conditions():
    """Condition table with one enabled and one disabled condition, in us-east-1."""
    return ConditionEvaluator({"deployDev": True, "deployProd": False}, "us-east-1")


@pytest.fixture
def role_parameter_store():
    """Second store, for writes made under another role."""
    return FakeParameterStore()
