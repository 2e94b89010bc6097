# ABOUTME: Resolves stack input values from prior outputs, the parameter store or literals
# ABOUTME: Also applies resolved bindings onto a template parameter file

"""Input parameter resolution."""

import json
import logging
import uuid
from pathlib import Path

from ..capabilities import ParameterStore
from ..errors import ConfigError, ResolutionError, ResolutionErrorKind
from ..models import InputBinding, MatchingBinding, ParameterStoreBinding, StaticBinding

logger = logging.getLogger(__name__)


class ParameterResolver:
    """Resolves a single input binding to a string value."""

    def __init__(self, parameter_store: ParameterStore):
        self.parameter_store = parameter_store

    def resolve(self, binding: InputBinding, outputs: dict[str, str]) -> str:
        """Resolve a binding against the outputs produced so far.

        Args:
            binding: Binding to resolve.
            outputs: Output parameter set accumulated in this run.

        Returns:
            The resolved value.

        Raises:
            ResolutionError: If the value cannot be found and no fallback is declared.
        """
        if isinstance(binding, MatchingBinding):
            if binding.matching_name in outputs:
                return outputs[binding.matching_name]
            if binding.fallback is not None:
                logger.debug(f"Output {binding.matching_name} not found, using fallback value")
                return binding.fallback
            raise ResolutionError(
                ResolutionErrorKind.NOT_FOUND, f"Matching parameter not found ({binding.matching_name})."
            )

        if isinstance(binding, ParameterStoreBinding):
            value = self.parameter_store.get(binding.field_name, decrypt=True)
            if value is not None:
                return value
            if binding.fallback is not None:
                logger.debug(f"Parameter store field {binding.field_name} not found, using fallback value")
                return binding.fallback
            raise ResolutionError(
                ResolutionErrorKind.NOT_FOUND, f"Parameter store field not found ({binding.field_name})."
            )

        if isinstance(binding, StaticBinding):
            return binding.value.replace("{UUID}", str(uuid.uuid4()))

        raise ResolutionError(ResolutionErrorKind.INVALID_SYNTAX, f"Unsupported input binding: {binding!r}")

    def resolve_parameter_file(
        self, path: str | Path, bindings: tuple[InputBinding, ...], outputs: dict[str, str]
    ) -> list[dict[str, str]]:
        """Read a template parameter file and overwrite the bound values.

        The file holds a JSON array of ``{"ParameterKey", "ParameterValue"}``
        objects. Bindings whose ``parameter_name`` matches no key are ignored.

        Raises:
            ConfigError: If the file cannot be read or is not a parameter array.
            ResolutionError: If a binding cannot be resolved.
        """
        try:
            with open(path) as f:
                parameters = json.load(f)
        except (OSError, ValueError) as e:
            raise ConfigError(f"Could not read stack parameter file {path}: {e}") from e

        if not isinstance(parameters, list) or not all(
            isinstance(item, dict) and "ParameterKey" in item for item in parameters
        ):
            raise ConfigError(f"Stack parameter file {path} must be an array of ParameterKey/ParameterValue objects")

        for binding in bindings:
            for parameter in parameters:
                if parameter["ParameterKey"] == binding.parameter_name:
                    parameter["ParameterValue"] = self.resolve(binding, outputs)
                    break

        return [
            {"ParameterKey": item["ParameterKey"], "ParameterValue": str(item.get("ParameterValue", ""))}
            for item in parameters
        ]
