# ABOUTME: Extracts output values by running external describe commands
# ABOUTME: Builds the command line and credential environment, then maps JSON results

"""External command output extraction."""

import json
import logging
import os
import shlex
from collections.abc import Iterable

from ..audit import AuditLog
from ..capabilities import CommandRunner, CredentialProvider
from ..errors import CommandError
from ..models import CommandMapping, SessionToken
from .conditions import ConditionEvaluator
from .jsonpath import JsonPathExtractor
from .outputs import OutputParameterMapper
from .resolver import ParameterResolver

logger = logging.getLogger(__name__)


class ExternalCommandExtractor:
    """Runs command mappings and feeds their JSON output through output mappings."""

    def __init__(
        self,
        conditions: ConditionEvaluator,
        paths: JsonPathExtractor,
        mapper: OutputParameterMapper,
        resolver: ParameterResolver,
        runner: CommandRunner,
        credentials: CredentialProvider,
        audit: AuditLog,
        environ: dict[str, str] | None = None,
    ):
        self.conditions = conditions
        self.paths = paths
        self.mapper = mapper
        self.resolver = resolver
        self.runner = runner
        self.credentials = credentials
        self.audit = audit
        self.environ = dict(os.environ) if environ is None else dict(environ)

    def credential_environment(self, active: SessionToken | None, role_arn: str | None) -> dict[str, str]:
        """Environment for the child process.

        A mapping role wins over the caller's active credentials; with neither,
        credentials are derived from the ambient identity.
        """
        if role_arn is not None:
            token = self.credentials.assume(role_arn)
            self.audit.write(f"Using role: {role_arn}")
        elif active is not None:
            token = active
            self.audit.write("Using role from stack credentials.")
        else:
            identity = self.credentials.identity()
            token = self.credentials.assume(identity.arn)
            self.audit.write(f"Using role: {identity.arn}")

        env = dict(self.environ)
        env["AWS_ACCESS_KEY_ID"] = token.access_key
        env["AWS_SECRET_ACCESS_KEY"] = token.secret_key
        if token.session_token:
            env["AWS_SESSION_TOKEN"] = token.session_token
        else:
            env.pop("AWS_SESSION_TOKEN", None)
        env["AWS_DEFAULT_REGION"] = self.conditions.effective_region
        self.audit.write(f"Using region: {self.conditions.effective_region}")
        return env

    def build_command(self, mapping: CommandMapping, outputs: dict[str, str]) -> str:
        """Append each resolved command parameter to the base command."""
        command = mapping.command
        for binding in mapping.command_parameters:
            value = self.resolver.resolve(binding, outputs)
            name = binding.parameter_name or ""
            if mapping.command_parameter_spacing:
                command += f" {name} {value}"
            else:
                command += f"{name}{value}"
        return command

    def run(self, command: str, env: dict[str, str]) -> str:
        """Execute a command line and return its standard output.

        Raises:
            CommandError: If the process failed or wrote to standard error.
        """
        try:
            argv = shlex.split(command.replace("{SPACE}", " "))
        except ValueError as e:
            raise CommandError(f"Unable to parse command: {e}") from e
        if not argv:
            raise CommandError("Empty command")

        result = self.runner.run(argv, env)
        if result.errors:
            for error in result.errors:
                self.audit.write(str(error))
            raise CommandError(f"Unable to execute command: {result.errors[0]}")
        if result.stderr:
            self.audit.write(f"Errors: {result.stderr}")
            raise CommandError(f"Unable to execute command: {result.stderr.strip()}")
        return result.stdout

    def process(
        self, mappings: Iterable[CommandMapping], active: SessionToken | None, outputs: dict[str, str]
    ) -> None:
        """Evaluate every command mapping in declared order."""
        for mapping in mappings:
            if not (
                self.conditions.should_execute(mapping.condition)
                and self.conditions.check_value(mapping.check, outputs)
                and self.conditions.region_gate(mapping.region)
            ):
                logger.info(f"Command mapping '{mapping.description}' is not required")
                continue

            env = self.credential_environment(active, mapping.role_arn)
            command = self.build_command(mapping, outputs)
            self.audit.write(f"Executing: {command}")
            stdout = self.run(command, env)

            if not mapping.parameters:
                continue

            try:
                document = json.loads(stdout)
            except ValueError as e:
                raise CommandError(f"Command output is not a JSON document: {e}") from e

            for key, output_mapping in mapping.parameters.items():
                value = self.paths.extract(document, output_mapping.parameter_name, output_mapping.default_value)
                self.mapper.apply_mapping(key, value, output_mapping, outputs)
