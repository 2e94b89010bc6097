# ABOUTME: Value types shared by the deployment engine and its remote adapters
# ABOUTME: Input bindings, output mappings, gates, stack and change set descriptions

"""
Data model for stack deployment.

Input bindings are a tagged variant: exactly one of ``MatchingBinding``,
``ParameterStoreBinding`` or ``StaticBinding`` is built for each declared
input, so an ill-formed combination of fields is rejected when the plan is
loaded rather than when the binding is resolved.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Union

from .errors import ConfigError, ResolutionError, ResolutionErrorKind


class ParameterType(Enum):
    """Value types accepted by the parameter store."""

    STRING = "String"
    STRING_LIST = "StringList"
    SECURE_STRING = "SecureString"


class CopyAction(Enum):
    """When the build artifact is staged relative to the master stack."""

    BEFORE = "before"
    AFTER = "after"


@dataclass(frozen=True)
class MatchingBinding:
    """Take the value of a previously produced output, or a static fallback."""

    parameter_name: str | None
    matching_name: str
    fallback: str | None = None


@dataclass(frozen=True)
class ParameterStoreBinding:
    """Fetch the value from the remote parameter store, or a static fallback."""

    parameter_name: str | None
    field_name: str
    fallback: str | None = None


@dataclass(frozen=True)
class StaticBinding:
    """A literal value; ``{UUID}`` expands to a fresh identifier."""

    parameter_name: str | None
    value: str


InputBinding = Union[MatchingBinding, ParameterStoreBinding, StaticBinding]


def parse_input_binding(data: dict[str, Any]) -> InputBinding:
    """Build an input binding from its declaration.

    Args:
        data: Mapping with ``parameter_name`` and any of
            ``matching_parameter_name``, ``parameter_store_field_name`` and
            ``parameter_value``.

    Returns:
        The binding variant selected by the fields present.

    Raises:
        ResolutionError: If no strategy is declared, or a parameter store
            field is combined with other fields without a parameter name.
    """
    parameter_name = data.get("parameter_name")
    matching_name = data.get("matching_parameter_name")
    field_name = data.get("parameter_store_field_name")
    value = data.get("parameter_value")

    count = sum(1 for item in (matching_name, field_name, value) if item is not None)

    if count == 0:
        raise ResolutionError(ResolutionErrorKind.INVALID_SYNTAX, "Invalid stack input syntax: no value source given")

    if field_name is not None and count > 2:
        raise ResolutionError(
            ResolutionErrorKind.INVALID_SYNTAX,
            "Invalid stack input syntax: parameter store field combined with both a matching name and a value",
        )

    if field_name is not None and count == 2 and parameter_name is None:
        raise ResolutionError(
            ResolutionErrorKind.INVALID_SYNTAX,
            "Invalid stack input syntax: parameter store field combined with another source requires parameter_name",
        )

    if matching_name is not None:
        return MatchingBinding(parameter_name=parameter_name, matching_name=matching_name, fallback=value)
    if field_name is not None:
        return ParameterStoreBinding(parameter_name=parameter_name, field_name=field_name, fallback=value)
    return StaticBinding(parameter_name=parameter_name, value=str(value))


@dataclass(frozen=True)
class ValueCheck:
    """Gate satisfied when a prior output equals an expected value."""

    parameter_name: str
    check_value: str

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "ValueCheck | None":
        if data is None:
            return None
        if not data.get("parameter_name"):
            raise ConfigError("Value check requires parameter_name")
        return cls(parameter_name=data["parameter_name"], check_value=str(data.get("check_value", "")))


@dataclass(frozen=True)
class RegionGate:
    """Restrict execution to, or away from, a single region."""

    require: str | None = None
    exclude: str | None = None

    def __post_init__(self) -> None:
        if self.require is not None and self.exclude is not None:
            raise ConfigError("Region gate cannot both require and exclude a region")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RegionGate":
        """Read ``region_condition`` / ``region_exclude`` from a unit or mapping."""
        return cls(require=data.get("region_condition"), exclude=data.get("region_exclude"))


@dataclass(frozen=True)
class OutputMapping:
    """Rename, store or default a single output value."""

    parameter_name: str  # output key, or a JSON path when used in a command mapping
    description: str
    condition: str | None = None
    map_parameter_name: str | None = None
    parameter_store_field_name: str | None = None
    parameter_store_field_type: ParameterType = ParameterType.STRING
    role_arn: str | None = None
    default_value: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "OutputMapping":
        if not data.get("parameter_name"):
            raise ConfigError("Output mapping requires parameter_name")
        if not data.get("description"):
            raise ConfigError(f"Output mapping for {data['parameter_name']} requires a description")

        return cls(
            parameter_name=data["parameter_name"],
            description=data["description"],
            condition=data.get("condition"),
            map_parameter_name=data.get("map_parameter_name"),
            parameter_store_field_name=data.get("parameter_store_field_name"),
            parameter_store_field_type=ParameterType(data.get("parameter_store_field_type", "String")),
            role_arn=data.get("role_arn"),
            default_value=data.get("default_parameter_value"),
        )


@dataclass(frozen=True)
class CommandMapping:
    """An external describe command whose JSON output feeds output mappings."""

    description: str
    command: str
    condition: str | None = None
    check: ValueCheck | None = None
    region: RegionGate = field(default_factory=RegionGate)
    command_parameter_spacing: bool = True
    command_parameters: tuple[InputBinding, ...] = ()
    role_arn: str | None = None
    parameters: dict[str, OutputMapping] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CommandMapping":
        if not data.get("description"):
            raise ConfigError("Command mapping requires a description")
        if not str(data.get("command") or "").replace("{SPACE}", " ").strip():
            raise ConfigError(f"Command mapping '{data['description']}' requires a command")

        return cls(
            description=data["description"],
            command=data["command"],
            condition=data.get("condition"),
            check=ValueCheck.from_dict(data.get("check_condition")),
            region=RegionGate.from_dict(data),
            command_parameter_spacing=bool(data.get("command_parameter_spacing", True)),
            command_parameters=tuple(parse_input_binding(item) for item in data.get("command_parameters") or []),
            role_arn=data.get("role_arn"),
            parameters={
                key: OutputMapping.from_dict(value) for key, value in (data.get("parameters") or {}).items()
            },
        )


@dataclass(frozen=True)
class SessionToken:
    """Temporary credentials returned by a role assumption."""

    access_key: str
    secret_key: str
    session_token: str | None = None
    expiry: datetime | None = None


@dataclass(frozen=True)
class CallerIdentity:
    """Identity of the ambient credentials."""

    arn: str
    account: str | None = None


@dataclass
class StackDescription:
    """Current state of a deployed stack."""

    name: str
    status: str
    stack_id: str | None = None
    outputs: dict[str, str] = field(default_factory=dict)
    status_reason: str | None = None


@dataclass
class ChangeSetResult:
    """State of a computed change set."""

    status: str
    changes: list[dict[str, Any]] = field(default_factory=list)
    change_set_id: str | None = None
    stack_id: str | None = None
    reason: str | None = None


@dataclass
class CommandResult:
    """Captured output of an external command."""

    stdout: str = ""
    stderr: str = ""
    errors: list[Exception] = field(default_factory=list)
