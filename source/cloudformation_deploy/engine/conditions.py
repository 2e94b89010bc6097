# ABOUTME: Gate evaluation for stacks and mappings
# ABOUTME: Named boolean conditions, prior-output value checks and region gates

"""Condition evaluation."""

import re

from ..errors import ConfigError
from ..models import RegionGate, ValueCheck

REGION_PATTERN = re.compile(r"^[a-z]{2}(-gov|-iso[a-z]?)?-[a-z]+-\d+$")


def parse_region(name: str) -> str:
    """Validate a region identifier and return it normalized.

    Raises:
        ConfigError: If the name is not a region identifier.
    """
    region = name.strip().lower()
    if not REGION_PATTERN.match(region):
        raise ConfigError(f"Invalid region specified: {name}")
    return region


class ConditionEvaluator:
    """Evaluates the gates declared on units and mappings."""

    def __init__(self, conditions: dict[str, bool] | None, effective_region: str):
        self.conditions = conditions
        self.effective_region = parse_region(effective_region)

    def should_execute(self, condition: str | None) -> bool:
        """Look up a named condition; no name means execute.

        Raises:
            ConfigError: If a name is given but there is no condition table,
                or the name is not in it.
        """
        if condition is None:
            return True
        if self.conditions is None:
            raise ConfigError("The condition map is missing even though a condition is referenced.")
        if condition not in self.conditions:
            raise ConfigError(f"Condition not found in condition map: {condition}")
        return self.conditions[condition]

    def check_value(self, check: ValueCheck | None, outputs: dict[str, str]) -> bool:
        """Compare a prior output against the expected value.

        Raises:
            ConfigError: If the referenced output has not been produced.
        """
        if check is None:
            return True
        if check.parameter_name not in outputs:
            raise ConfigError(f"Check condition parameter doesn't exist: {check.parameter_name}")
        return outputs[check.parameter_name].strip() == check.check_value.strip()

    def region_gate(self, gate: RegionGate) -> bool:
        """Decide whether the effective region passes a region gate."""
        if gate.require is None and gate.exclude is None:
            return True
        if gate.require is not None and gate.exclude is not None:
            raise ConfigError("Region gate cannot both require and exclude a region")
        if gate.require is not None:
            return parse_region(gate.require) == self.effective_region
        return parse_region(gate.exclude) != self.effective_region
