# ABOUTME: Tests for output parameter mapping
# ABOUTME: Renaming, condition gating, parameter store writes and copy-through

"""Tests for the output parameter mapper."""

import pytest

from cloudformation_deploy.engine.outputs import OutputParameterMapper
from cloudformation_deploy.models import OutputMapping, ParameterType


@pytest.fixture
def mapper(conditions, parameter_store, audit):
    return OutputParameterMapper(conditions, parameter_store, audit)


class TestApplyMapping:
    def test_rename(self, mapper):
        outputs = {}
        mapping = OutputMapping(parameter_name="Foo", description="Foo output", map_parameter_name="Baz")

        mapper.process("Foo", "bar", [mapping], outputs)

        assert outputs == {"Baz": "bar"}

    def test_value_is_trimmed(self, mapper):
        outputs = {}
        mapper.apply_mapping("Foo", "  bar\n", OutputMapping(parameter_name="Foo", description="d"), outputs)
        assert outputs == {"Foo": "bar"}

    def test_gated_mapping_is_skipped(self, mapper, parameter_store):
        outputs = {}
        mapping = OutputMapping(
            parameter_name="Foo",
            description="d",
            condition="deployProd",
            map_parameter_name="Baz",
            parameter_store_field_name="/app/foo",
        )

        assert mapper.apply_mapping("Foo", "bar", mapping, outputs) is False
        assert outputs == {}
        assert parameter_store.writes == []

    def test_store_write_when_missing(self, mapper, parameter_store, audit):
        mapping = OutputMapping(parameter_name="Foo", description="Foo output", parameter_store_field_name="/app/foo")

        mapper.apply_mapping("Foo", "bar", mapping, {})

        assert parameter_store.writes == [("/app/foo", "bar", ParameterType.STRING, "Foo output")]
        assert "Stored Foo in parameter store field /app/foo." in audit.lines

    def test_store_skips_identical_value(self, mapper, parameter_store):
        parameter_store.values["/app/foo"] = "bar "
        mapping = OutputMapping(parameter_name="Foo", description="d", parameter_store_field_name="/app/foo")

        mapper.apply_mapping("Foo", "bar", mapping, {})

        assert parameter_store.reads == ["/app/foo"]
        assert parameter_store.writes == []

    def test_store_overwrites_different_value(self, mapper, parameter_store):
        parameter_store.values["/app/foo"] = "old"
        mapping = OutputMapping(
            parameter_name="Foo",
            description="d",
            parameter_store_field_name="/app/foo",
            parameter_store_field_type=ParameterType.SECURE_STRING,
        )

        mapper.apply_mapping("Foo", "new", mapping, {})

        assert parameter_store.writes == [("/app/foo", "new", ParameterType.SECURE_STRING, "d")]

    def test_store_for_role(self, conditions, parameter_store, audit, role_parameter_store):
        roles = []

        def store_for_role(role_arn):
            roles.append(role_arn)
            return role_parameter_store

        mapper = OutputParameterMapper(conditions, parameter_store, audit, store_for_role=store_for_role)
        mapping = OutputMapping(
            parameter_name="Foo",
            description="d",
            parameter_store_field_name="/shared/foo",
            role_arn="arn:aws:iam::210987654321:role/writer",
        )

        mapper.apply_mapping("Foo", "bar", mapping, {})

        assert roles == ["arn:aws:iam::210987654321:role/writer"]
        assert role_parameter_store.values == {"/shared/foo": "bar"}
        assert parameter_store.writes == []


class TestProcess:
    def test_unmapped_value_is_copied(self, mapper):
        outputs = {}
        assert mapper.process("HELLO", "World", [], outputs) is False
        assert outputs == {"HELLO": "World"}

    def test_all_mappings_gated_copies_through(self, mapper):
        outputs = {}
        mapping = OutputMapping(parameter_name="Foo", description="d", condition="deployProd", map_parameter_name="Baz")

        assert mapper.process("Foo", "bar", [mapping], outputs) is False
        assert outputs == {"Foo": "bar"}

    def test_multiple_mappings_for_one_name(self, mapper):
        outputs = {}
        mappings = [
            OutputMapping(parameter_name="Foo", description="d", map_parameter_name="Baz"),
            OutputMapping(parameter_name="Foo", description="d", map_parameter_name="Qux"),
            OutputMapping(parameter_name="Other", description="d", map_parameter_name="Nope"),
        ]

        assert mapper.process("Foo", "bar", mappings, outputs) is True
        assert outputs == {"Baz": "bar", "Qux": "bar"}

    def test_process_all(self, mapper):
        outputs = {"Existing": "keep"}
        mappings = [OutputMapping(parameter_name="Foo", description="d", map_parameter_name="Baz")]

        mapper.process_all({"Foo": "bar", "HELLO": "World"}, mappings, outputs)

        assert outputs == {"Existing": "keep", "Baz": "bar", "HELLO": "World"}

    def test_later_writes_win(self, mapper):
        outputs = {"HELLO": "old"}
        mapper.process("HELLO", "World", [], outputs)
        assert outputs["HELLO"] == "World"
