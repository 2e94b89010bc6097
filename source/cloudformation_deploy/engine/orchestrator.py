# ABOUTME: Top-level sequencing of a deployment plan
# ABOUTME: Stages artifacts and templates, runs master and secondary stacks, propagates outputs

"""
Deployment orchestration.

Each sequence position deploys the master stack with its own parameter file,
then the secondary stack group at the same position. The master's outputs
seed a copy of the output parameter set that the group's stacks extend in
order. A fatal error anywhere aborts the remaining sequence; stacks already
deployed are left as they are.
"""

import logging
import time
from collections.abc import Callable

from ..audit import AuditLog
from ..capabilities import ArtifactStore, ClientFactory, CommandRunner, CredentialProvider, ParameterStore
from ..config import DeploymentPlan, DeploymentUnit
from ..errors import DeploymentFailed
from ..models import CopyAction, SessionToken
from .changeset import ChangeSetPlanner
from .conditions import ConditionEvaluator
from .extractor import ExternalCommandExtractor
from .jsonpath import JsonPathExtractor
from .outputs import OutputParameterMapper
from .poller import Poller
from .resolver import ParameterResolver
from .retrying import RetryingArtifactStore, RetryingCredentialProvider, RetryingParameterStore
from .staging import Stager

logger = logging.getLogger(__name__)

FAILURE_MESSAGE = "Error executing the template stack or stack group."


class DeploymentOrchestrator:
    """Runs a deployment plan against injected remote capabilities."""

    def __init__(
        self,
        plan: DeploymentPlan,
        factory: ClientFactory,
        credentials: CredentialProvider,
        runner: CommandRunner,
        audit: AuditLog,
        region: str,
        poller: Poller | None = None,
        clock: Callable[[], float] = time.time,
        environ: dict[str, str] | None = None,
    ):
        self.plan = plan
        self.factory = factory
        self.credentials = credentials
        self.runner = runner
        self.audit = audit
        self.region = region
        self.clock = clock
        self.environ = environ

        settings = plan.settings
        self.poller = poller or Poller(
            max_delay=settings.poll_max_delay,
            retry_budget=settings.poll_retry_budget,
            rate_limit_delay=settings.rate_limit_delay,
        )
        self.credentials = RetryingCredentialProvider(credentials, self.poller)
        self.capabilities = ["CAPABILITY_NAMED_IAM"] if settings.requires_iam else []
        self.paths = JsonPathExtractor()
        self.conditions: ConditionEvaluator | None = None
        self.session: SessionToken | None = None
        self.session_started = 0.0

    def run(self) -> list[dict[str, str]]:
        """Execute every sequence position.

        Returns:
            The output parameter set visible at the end of each position.

        Raises:
            DeploymentFailed: Wrapping whatever aborted the sequence.
        """
        try:
            for note in self.plan.validate():
                self.audit.write(note)
            self.conditions = ConditionEvaluator(self.plan.conditions, self.region)

            self.session = self.assume(self.plan.settings.role_arn)
            self.session_started = self.clock()

            return [
                self.run_position(position, parameter_file)
                for position, parameter_file in enumerate(self.plan.stack_parameter_file_paths)
            ]
        except Exception as e:
            self.audit.write(FAILURE_MESSAGE)
            self.audit.write(str(e))
            logger.debug("Deployment aborted", exc_info=True)
            raise DeploymentFailed(f"{FAILURE_MESSAGE} {e}") from e

    def assume(self, role_arn: str | None) -> SessionToken | None:
        """Assume a role, or return None for the default provider chain."""
        if role_arn is None:
            self.audit.write("roleArn: From default provider chain.")
            return None

        self.audit.write(f"roleArn: {role_arn}")
        try:
            token = self.credentials.assume(role_arn)
        except Exception as e:
            self.audit.write("Wasn't able to assume role.")
            self.audit.write(str(e))
            raise
        self.audit.write("Role assumed.")
        return token

    def refresh_session(self) -> None:
        """Re-assume the run role once the session nears its validity ceiling."""
        if self.clock() - self.session_started > self.plan.settings.session_refresh_seconds:
            logger.info("Refreshing the deployment session")
            self.session = self.assume(self.plan.settings.role_arn)
            self.session_started = self.clock()

    def parameter_store(self, token: SessionToken | None) -> ParameterStore:
        return RetryingParameterStore(self.factory.parameter_store(token), self.poller)

    def artifact_store(self, token: SessionToken | None) -> ArtifactStore:
        return RetryingArtifactStore(self.factory.artifact_store(token), self.poller)

    def store_for_role(self, role_arn: str) -> ParameterStore:
        return self.parameter_store(self.assume(role_arn))

    def run_position(self, position: int, parameter_file: str) -> dict[str, str]:
        """Deploy the master stack and the secondary group at one sequence position."""
        plan = self.plan
        master = plan.master
        outputs: dict[str, str] = {}
        repository_filter = plan.group_filter(position)

        stager = Stager(self.artifact_store(self.session), self.audit, self.clock)
        if plan.artifacts.enabled and plan.artifacts.copy_action == CopyAction.BEFORE:
            stager.stage_artifact(plan.artifacts, repository_filter, outputs)

        template_url = stager.stage_template(
            master.template_path, master.stack_name, plan.template_bucket, plan.template_prefix
        )
        self.audit.write(f"Stack Parameter Path: {parameter_file}")

        unit = self.gate_region(master, master.stack_name)
        if unit is not None:
            token = self.session if master.role_arn is None else self.assume(master.role_arn)
            self.execute_unit(unit, master.stack_name, template_url, parameter_file, token, outputs, stager)

        if plan.artifacts.enabled and plan.artifacts.copy_action == CopyAction.AFTER:
            stager.stage_artifact(plan.artifacts, repository_filter, outputs)

        if not plan.secondary_stack_groups:
            return outputs

        self.refresh_session()
        group_outputs = dict(outputs)

        for stack in plan.secondary_stack_groups[position].stacks:
            stager = Stager(self.artifact_store(self.session), self.audit, self.clock)
            token = self.session if stack.role_arn is None else self.assume(stack.role_arn)

            name = stack.resolve_stack_name()
            template_url = stager.stage_template(stack.template_path, name, plan.template_bucket, plan.template_prefix)

            unit = self.gate_region(stack, name)
            if unit is not None:
                self.execute_unit(unit, name, template_url, stack.parameter_file_path, token, group_outputs, stager)

        return group_outputs

    def gate_region(self, unit: DeploymentUnit, name: str) -> DeploymentUnit | None:
        """Apply a unit's region gate.

        Returns:
            The unit to execute, a read-only copy of it when it is outside its
            region but asks to be read there, or None when it is skipped.
        """
        if self.conditions.region_gate(unit.region):
            return unit
        if unit.read_only_outside_region:
            self.audit.write(f"{name} is outside its region, reading its outputs only.")
            return unit.as_read_only()
        self.audit.write(f"{name} is not required in {self.region}.")
        return None

    def execute_unit(
        self,
        unit: DeploymentUnit,
        name: str,
        template_url: str,
        parameter_file: str,
        token: SessionToken | None,
        outputs: dict[str, str],
        stager: Stager,
    ) -> None:
        """Create, update or read one stack and propagate its outputs."""
        conditions = self.conditions
        if not (conditions.should_execute(unit.condition) and conditions.check_value(unit.check, outputs)):
            self.audit.write(f"{name} is not required.")
            return

        stacks = self.factory.stack_api(token)
        parameter_store = self.parameter_store(token)
        planner = ChangeSetPlanner(stacks, self.poller, self.audit, self.capabilities)
        exists = planner.exists(name)

        if unit.read_only:
            if not exists:
                self.audit.write(f"{name} is not required for this deployment.")
                return
            self.audit.write(f"Reading the output from {name}.")
        else:
            self.audit.write(f"{'Updating' if exists else 'Creating'} the CloudFormation Stack ({name}).")

            if unit.artifact_regex is not None:
                stager.stage_override(unit.artifact_regex, self.plan.artifacts, outputs)

            resolver = ParameterResolver(parameter_store)
            parameters = resolver.resolve_parameter_file(parameter_file, unit.input_parameters, outputs)
            if exists:
                planner.update(name, template_url, parameters)
            else:
                planner.create(name, template_url, parameters)

        description = planner.describe(name)
        mapper = OutputParameterMapper(conditions, parameter_store, self.audit, store_for_role=self.store_for_role)
        mapper.process_all(description.outputs, unit.output_mappings, outputs)

        extractor = ExternalCommandExtractor(
            conditions,
            self.paths,
            mapper,
            ParameterResolver(parameter_store),
            self.runner,
            self.credentials,
            self.audit,
            environ=self.environ,
        )
        extractor.process(unit.command_mappings, token, outputs)
