# ABOUTME: Deployment plan configuration for the stack deployment engine
# ABOUTME: Loads plan files, builds units and groups, validates before any remote call

"""Deployment plan loading and validation."""

import json
import re
import uuid
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

import yaml

from .errors import ConfigError
from .models import (
    CommandMapping,
    CopyAction,
    InputBinding,
    OutputMapping,
    RegionGate,
    ValueCheck,
    parse_input_binding,
)


def split_artifact_regex(expression: str) -> tuple[Path, re.Pattern]:
    """Split an artifact expression into its directory and file name pattern.

    The part after the last ``/`` is a regular expression matched against
    file names; the part before it is a literal directory (a leading ``^`` is
    dropped). Without a ``/`` the current directory is searched.

    Raises:
        ConfigError: If the file name pattern is empty or not a valid regex.
    """
    directory, _, pattern = expression.rpartition("/")
    if directory.startswith("^"):
        directory = directory[1:]
    if not pattern:
        raise ConfigError(f"Invalid deployment artifact regular expression: {expression}")

    try:
        compiled = re.compile(pattern)
    except re.error as e:
        raise ConfigError(f"Invalid deployment artifact regular expression: {expression} ({e})") from e

    if not directory:
        return (Path("/") if expression.lstrip("^").startswith("/") else Path.cwd()), compiled
    return Path(directory), compiled


@dataclass
class RunSettings:
    """Settings that apply to a whole run."""

    region: str | None = None  # Explicit override; otherwise the default provider chain region
    audit_dir: str = "target"
    role_arn: str | None = None
    requires_iam: bool = False
    poll_max_delay: float = 10.0
    poll_retry_budget: int = 3
    rate_limit_delay: float = 1.0
    session_refresh_seconds: int = 3400  # Re-assume before the one hour session ceiling

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "RunSettings":
        data = dict(data or {})
        known = {name for name in cls.__dataclass_fields__}
        unknown = set(data) - known
        if unknown:
            raise ConfigError(f"Unknown settings: {', '.join(sorted(unknown))}")
        return cls(**data)


@dataclass
class ArtifactSettings:
    """Where the build artifact comes from and where it is staged."""

    enabled: bool = False
    bucket: str | None = None
    prefix: str | None = None
    copy_action: CopyAction = CopyAction.BEFORE
    repository_path: str | None = None
    group_id: str | None = None
    artifact_id: str | None = None
    version: str | None = None
    type: str = "jar"

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "ArtifactSettings":
        if not data:
            return cls()
        return cls(
            enabled=bool(data.get("enabled", True)),
            bucket=data.get("s3_bucket"),
            prefix=data.get("s3_prefix"),
            copy_action=CopyAction(str(data.get("copy_action", "before")).lower()),
            repository_path=data.get("repository_path"),
            group_id=data.get("group_id"),
            artifact_id=data.get("artifact_id"),
            version=data.get("version"),
            type=data.get("type", "jar"),
        )

    @property
    def artifact_directory(self) -> Path:
        """Directory holding the versioned artifact files."""
        repository = Path(self.repository_path) if self.repository_path else Path.home() / ".m2" / "repository"
        return repository.joinpath(*self.group_id.split("."), self.artifact_id, self.version)


@dataclass(frozen=True)
class DeploymentUnit:
    """One stack to create, update or read in the deployment sequence."""

    template_path: str
    stack_name: str | None = None
    stack_name_prefix: str | None = None
    parameter_file_path: str | None = None  # Master units take theirs from the plan's file list
    condition: str | None = None
    region: RegionGate = field(default_factory=RegionGate)
    check: ValueCheck | None = None
    read_only: bool = False
    read_only_outside_region: bool = False
    artifact_regex: str | None = None
    role_arn: str | None = None
    input_parameters: tuple[InputBinding, ...] = ()
    output_mappings: tuple[OutputMapping, ...] = ()
    command_mappings: tuple[CommandMapping, ...] = ()

    def __post_init__(self) -> None:
        if (self.stack_name is None) == (self.stack_name_prefix is None):
            raise ConfigError("A stack needs exactly one of stack_name or stack_name_prefix")
        if self.artifact_regex is not None:
            split_artifact_regex(self.artifact_regex)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DeploymentUnit":
        if not data.get("stack_path"):
            raise ConfigError("A stack requires stack_path")

        return cls(
            template_path=data["stack_path"],
            stack_name=data.get("stack_name"),
            stack_name_prefix=data.get("stack_name_prefix"),
            parameter_file_path=data.get("stack_parameter_file_path"),
            condition=data.get("condition"),
            region=RegionGate.from_dict(data),
            check=ValueCheck.from_dict(data.get("check_condition")),
            read_only=bool(data.get("stack_read_only", False)),
            read_only_outside_region=bool(data.get("read_only_outside_region", False)),
            artifact_regex=data.get("deployment_artifact_regex"),
            role_arn=data.get("role_arn"),
            input_parameters=tuple(parse_input_binding(item) for item in data.get("input_parameters") or []),
            output_mappings=tuple(OutputMapping.from_dict(item) for item in data.get("output_mappings") or []),
            command_mappings=tuple(CommandMapping.from_dict(item) for item in data.get("command_mappings") or []),
        )

    def resolve_stack_name(self) -> str:
        """Return the declared name, or the prefix with a generated suffix."""
        if self.stack_name is not None:
            return self.stack_name
        return f"{self.stack_name_prefix}-{uuid.uuid4()}Stack"

    def as_read_only(self) -> "DeploymentUnit":
        return replace(self, read_only=True)


@dataclass(frozen=True)
class StackGroup:
    """Secondary stacks executed in order after the master stack."""

    stacks: tuple[DeploymentUnit, ...]
    repository_filter: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "StackGroup":
        stacks = data.get("stacks") or []
        if not stacks:
            raise ConfigError("A secondary stack group requires at least one stack")

        units = []
        for item in stacks:
            unit = DeploymentUnit.from_dict(item)
            if unit.parameter_file_path is None:
                raise ConfigError(f"Secondary stack {unit.stack_name or unit.stack_name_prefix} needs a parameter file")
            units.append(unit)

        return cls(stacks=tuple(units), repository_filter=data.get("repository_filter"))


@dataclass
class DeploymentPlan:
    """A master stack, its parameter files and the secondary stack groups."""

    master: DeploymentUnit
    stack_parameter_file_paths: list[str]
    template_bucket: str
    template_prefix: str | None = None
    secondary_stack_groups: list[StackGroup] = field(default_factory=list)
    conditions: dict[str, bool] | None = None
    artifacts: ArtifactSettings = field(default_factory=ArtifactSettings)
    settings: RunSettings = field(default_factory=RunSettings)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DeploymentPlan":
        """Create a plan from a parsed plan document."""
        if "stack" not in data:
            raise ConfigError("Plan requires a master 'stack' section")
        if not data.get("template_s3_bucket"):
            raise ConfigError("Plan requires template_s3_bucket")

        master = DeploymentUnit.from_dict(data["stack"])
        if master.stack_name is None:
            raise ConfigError("The master stack requires stack_name")

        paths = data.get("stack_parameter_file_paths") or []
        if isinstance(paths, str):
            paths = [paths]

        conditions = data.get("conditions")
        if conditions is not None:
            conditions = {str(key): bool(value) for key, value in conditions.items()}

        return cls(
            master=master,
            stack_parameter_file_paths=list(paths),
            template_bucket=data["template_s3_bucket"],
            template_prefix=data.get("template_s3_prefix"),
            secondary_stack_groups=[StackGroup.from_dict(item) for item in data.get("secondary_stack_groups") or []],
            conditions=conditions,
            artifacts=ArtifactSettings.from_dict(data.get("artifacts")),
            settings=RunSettings.from_dict(data.get("settings")),
        )

    @classmethod
    def load(cls, path: str | Path) -> "DeploymentPlan":
        """Load a plan from a YAML or JSON file.

        Raises:
            ConfigError: If the file is missing, unparseable or malformed.
        """
        plan_path = Path(path)
        if not plan_path.exists():
            raise ConfigError(f"Plan file not found: {plan_path}")

        try:
            with open(plan_path) as f:
                if plan_path.suffix == ".json":
                    data = json.load(f)
                else:
                    data = yaml.safe_load(f)
        except (OSError, ValueError, yaml.YAMLError) as e:
            raise ConfigError(f"Could not load plan {plan_path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError(f"Plan {plan_path} must be a mapping")

        return cls.from_dict(data)

    def validate(self) -> list[str]:
        """Check cross-field consistency.

        Returns:
            Narrative lines describing what was checked, for the audit log.

        Raises:
            ConfigError: If file and group counts disagree or artifact identity is incomplete.
        """
        notes = []
        file_count = len(self.stack_parameter_file_paths)
        group_count = len(self.secondary_stack_groups)

        if group_count == 0:
            if file_count != 1:
                raise ConfigError("Can't have multiple parameter files without secondary stacks.")
            notes.append("Valid because no secondary stack exist and only one stack parameter file found.")
        elif file_count != group_count:
            raise ConfigError(
                f"Array counts don't match: {file_count} parameter files for {group_count} secondary stack groups."
            )
        else:
            notes.append("Array counts match.")

        if self.artifacts.enabled:
            if not self.artifacts.artifact_id:
                raise ConfigError("No artifact id.")
            if not self.artifacts.group_id:
                raise ConfigError("No group id.")
            if not self.artifacts.version:
                raise ConfigError("No version.")
            if not self.artifacts.bucket:
                raise ConfigError("No artifact bucket.")

        return notes

    def group_filter(self, position: int) -> str | None:
        """Repository filter for the group at a sequence position, if any."""
        if not self.secondary_stack_groups:
            return None
        return self.secondary_stack_groups[position].repository_filter
