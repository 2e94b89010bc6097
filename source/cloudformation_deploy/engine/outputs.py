# ABOUTME: Applies output mappings to raw stack outputs
# ABOUTME: Renames values, persists them to the parameter store and copies unmapped outputs

"""Output parameter mapping."""

import logging
from collections.abc import Callable, Iterable

from ..audit import AuditLog
from ..capabilities import ParameterStore
from ..models import OutputMapping, ParameterType
from .conditions import ConditionEvaluator

logger = logging.getLogger(__name__)


class OutputParameterMapper:
    """Maps raw output values into the run's output parameter set."""

    def __init__(
        self,
        conditions: ConditionEvaluator,
        parameter_store: ParameterStore,
        audit: AuditLog,
        store_for_role: Callable[[str], ParameterStore] | None = None,
    ):
        self.conditions = conditions
        self.parameter_store = parameter_store
        self.audit = audit
        self.store_for_role = store_for_role

    def apply_mapping(self, name: str, value: str, mapping: OutputMapping, outputs: dict[str, str]) -> bool:
        """Apply one mapping to a raw value.

        Returns:
            False when the mapping's condition gated it out, True otherwise.
        """
        if not self.conditions.should_execute(mapping.condition):
            logger.debug(f"Mapping for {name} skipped by condition {mapping.condition}")
            return False

        if mapping.parameter_store_field_name is not None:
            self._store(name, value, mapping)

        target = mapping.map_parameter_name or name
        outputs[target] = value.strip()

        shown = "********" if mapping.parameter_store_field_type == ParameterType.SECURE_STRING else value
        logger.debug(f"Output parameter {name} = {shown} ({mapping.description})")
        if target != name:
            logger.debug(f"  mapped to {target}")
        return True

    def process(self, name: str, value: str, mappings: Iterable[OutputMapping], outputs: dict[str, str]) -> bool:
        """Apply every mapping declared for ``name``, copying the value through if none applied.

        Returns:
            Whether any mapping for the name was processed.
        """
        mapped = False
        for mapping in mappings:
            if mapping.parameter_name == name:
                mapped = self.apply_mapping(name, value, mapping, outputs) or mapped

        if not mapped:
            outputs[name] = value.strip()
            logger.debug(f"Output parameter {name} = {value}")
        return mapped

    def process_all(
        self, raw_outputs: dict[str, str], mappings: Iterable[OutputMapping], outputs: dict[str, str]
    ) -> None:
        """Run every raw output of a stack through the declared mappings."""
        mappings = list(mappings)
        for name, value in raw_outputs.items():
            self.process(name, value, mappings, outputs)

    def _store(self, name: str, value: str, mapping: OutputMapping) -> None:
        """Write the value to the parameter store unless it already holds it."""
        store = self.parameter_store
        if mapping.role_arn is not None and self.store_for_role is not None:
            store = self.store_for_role(mapping.role_arn)

        field_name = mapping.parameter_store_field_name
        current = store.get(field_name, decrypt=True)
        if current is not None and current.strip() == value.strip():
            logger.debug(f"Parameter store field {field_name} already up to date")
            return

        store.put(
            field_name,
            value,
            type=mapping.parameter_store_field_type,
            description=mapping.description,
            overwrite=True,
        )
        self.audit.write(f"Stored {name} in parameter store field {field_name}.")
