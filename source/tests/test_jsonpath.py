# ABOUTME: Tests for restricted JSON path extraction
# ABOUTME: Covers keys, indices, filters, defaults and every error kind

"""Tests for the JSON path extractor."""

import pytest

from cloudformation_deploy.engine.jsonpath import JsonPathExtractor, split_path
from cloudformation_deploy.errors import PathError, PathErrorKind

DOCUMENT = {"a": [{"k": "x", "v": "1"}, {"k": "y", "v": "2"}]}


@pytest.fixture
def extractor():
    return JsonPathExtractor()


class TestExtract:
    def test_filter(self, extractor):
        assert extractor.extract(DOCUMENT, "/a[k=y]/v") == "2"

    def test_index(self, extractor):
        assert extractor.extract(DOCUMENT, "/a[0]/v") == "1"

    def test_index_out_of_range(self, extractor):
        with pytest.raises(PathError) as exc_info:
            extractor.extract(DOCUMENT, "/a[2]/v")
        assert exc_info.value.kind == PathErrorKind.NOT_FOUND

    def test_index_out_of_range_uses_default(self, extractor):
        assert extractor.extract(DOCUMENT, "/a[2]/v", default="none") == "none"

    def test_filter_without_match_uses_default(self, extractor):
        assert extractor.extract(DOCUMENT, "/a[k=z]/v", default="none") == "none"

    def test_nested_keys(self, extractor):
        document = {"Vpcs": {"Main": {"VpcId": "vpc-123"}}}
        assert extractor.extract(document, "/Vpcs/Main/VpcId") == "vpc-123"

    def test_terminal_string_array_index(self, extractor):
        document = {"Reservations": {"Addresses": ["10.0.0.1", "10.0.0.2"]}}
        assert extractor.extract(document, "/Reservations/Addresses[1]") == "10.0.0.2"

    def test_filter_value_with_spaces(self, extractor):
        document = {"Tags": [{"Key": "Name", "Value": "web server"}, {"Key": "Team", "Value": "core"}]}
        assert extractor.extract(document, "/Tags[Key=Name]/Value") == "web server"

    def test_missing_key_uses_default(self, extractor):
        assert extractor.extract({"a": {}}, "/a/b", default="fallback") == "fallback"

    def test_non_string_terminal_without_default(self, extractor):
        with pytest.raises(PathError) as exc_info:
            extractor.extract({"a": {"b": 5}}, "/a/b")
        assert exc_info.value.kind == PathErrorKind.NOT_FOUND

    def test_too_many_matches(self, extractor):
        document = {"a": [{"k": "x", "v": "1"}, {"k": "x", "v": "2"}]}
        with pytest.raises(PathError) as exc_info:
            extractor.extract(document, "/a[k=x]/v")
        assert exc_info.value.kind == PathErrorKind.TOO_MANY_MATCHES

    def test_selector_on_non_array(self, extractor):
        with pytest.raises(PathError) as exc_info:
            extractor.extract({"a": {"k": "x"}}, "/a[0]/k")
        assert exc_info.value.kind == PathErrorKind.TYPE_MISMATCH

    def test_key_on_non_dictionary(self, extractor):
        with pytest.raises(PathError) as exc_info:
            extractor.extract({"a": "text"}, "/a/b")
        assert exc_info.value.kind == PathErrorKind.TYPE_MISMATCH


class TestSplitPath:
    def test_slash_inside_filter_is_not_a_delimiter(self):
        assert split_path("/Items[Path=a/b]/Id") == ["Items[Path=a/b]", "Id"]

    @pytest.mark.parametrize("path", ["", "a/b", "/a b", "/a[]", "/a[0"])
    def test_invalid_syntax(self, path):
        with pytest.raises(PathError) as exc_info:
            split_path(path)
        assert exc_info.value.kind == PathErrorKind.INVALID_SYNTAX
