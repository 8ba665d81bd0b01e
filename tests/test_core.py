"""Tests for query map building and endpoint resolution."""

import pytest

from harvest_bridge_mcp.core import (
    ENDPOINT_RULES,
    OperationMode,
    Structure,
    build_query_map,
    build_url,
    parse_structure,
    path_parameters,
    resolve_endpoint,
)
from harvest_bridge_mcp.errors import (
    DuplicateParameterError,
    InvalidStructureError,
    MissingRequiredParameterError,
)


SEARCH = OperationMode.SEARCH
RETRIEVE = OperationMode.RETRIEVE


class TestBuildQueryMap:

    def test_simple_pairs(self):
        assert build_query_map("a=1&b=2") == {"a": "1", "b": "2"}

    def test_preserves_order(self):
        assert list(build_query_map("z=1&a=2&m=3")) == ["z", "a", "m"]

    def test_duplicate_key_raises(self):
        with pytest.raises(DuplicateParameterError) as exc_info:
            build_query_map("a=1&a=2")
        assert "a" in exc_info.value.message

    def test_pair_without_equals_is_empty_value(self):
        assert build_query_map("a") == {"a": ""}

    def test_splits_on_first_equals(self):
        assert build_query_map("updated_since=a=b") == {"updated_since": "a=b"}

    def test_trims_keys_and_values(self):
        assert build_query_map(" a = 1 & b=2 ") == {"a": "1", "b": "2"}

    def test_empty_query(self):
        assert build_query_map("") == {}

    def test_skips_empty_segments(self):
        assert build_query_map("a=1&&b=2&") == {"a": "1", "b": "2"}


class TestParseStructure:

    @pytest.mark.parametrize("name", [s.value for s in Structure])
    def test_valid_names(self, name):
        assert parse_structure(name).value == name

    @pytest.mark.parametrize("name", ["clients", "TaskAssignments", "Task  Assignments", "Invoices", ""])
    def test_invalid_names(self, name):
        with pytest.raises(InvalidStructureError):
            parse_structure(name)


class TestResolveEndpoint:

    @pytest.mark.parametrize(
        "structure,mode,query_map,expected",
        [
            (Structure.CLIENTS, SEARCH, {}, "/clients"),
            (Structure.PROJECTS, SEARCH, {}, "/projects"),
            (Structure.TASKS, SEARCH, {}, "/tasks"),
            (Structure.TASK_ASSIGNMENTS, SEARCH, {"project_id": "9"}, "/projects/9/task_assignments"),
            (Structure.USERS, SEARCH, {}, "/people"),
            (Structure.USER_ASSIGNMENTS, SEARCH, {"project_id": "9"}, "/projects/9/user_assignments"),
            (Structure.CLIENTS, RETRIEVE, {"client_id": "5"}, "/clients/5"),
            (Structure.PROJECTS, RETRIEVE, {"project_id": "9"}, "/projects/9"),
            (Structure.TASKS, RETRIEVE, {"task_id": "7"}, "/tasks/7"),
            (
                Structure.TASK_ASSIGNMENTS,
                RETRIEVE,
                {"project_id": "9", "task_assignment_id": "3"},
                "/projects/9/task_assignments/3",
            ),
            (Structure.USERS, RETRIEVE, {"user_id": "4"}, "/people/4"),
            (
                Structure.USER_ASSIGNMENTS,
                RETRIEVE,
                {"project_id": "9", "user_assignment_id": "8"},
                "/projects/9/user_assignments/8",
            ),
        ],
    )
    def test_paths(self, structure, mode, query_map, expected):
        path, remaining = resolve_endpoint(structure, query_map, mode)
        assert path == expected
        assert remaining == {}

    @pytest.mark.parametrize(
        "structure,mode",
        [(s, m) for s in Structure for m in OperationMode],
    )
    def test_each_missing_path_parameter_is_named(self, structure, mode):
        required = path_parameters(ENDPOINT_RULES[structure][mode])
        full = {name: "1" for name in required}
        for name in required:
            query_map = {k: v for k, v in full.items() if k != name}
            with pytest.raises(MissingRequiredParameterError) as exc_info:
                resolve_endpoint(structure, query_map, mode)
            assert name in exc_info.value.details["missing"]
            assert exc_info.value.details["structure"] == structure.value
            assert name in exc_info.value.message

    def test_unconsumed_entries_remain(self):
        query_map = {"project_id": "9", "updated_since": "2024-01-01"}
        path, remaining = resolve_endpoint("Task Assignments", query_map, SEARCH)
        assert path == "/projects/9/task_assignments"
        assert remaining == {"updated_since": "2024-01-01"}

    def test_input_map_not_mutated(self):
        query_map = {"client_id": "5"}
        resolve_endpoint(Structure.CLIENTS, query_map, RETRIEVE)
        assert query_map == {"client_id": "5"}

    def test_accepts_structure_name(self):
        path, _ = resolve_endpoint("User Assignments", {"project_id": "2"}, SEARCH)
        assert path == "/projects/2/user_assignments"

    def test_invalid_structure(self):
        with pytest.raises(InvalidStructureError):
            resolve_endpoint("Invoices", {}, SEARCH)


class TestBuildUrl:

    def test_no_remaining_query(self):
        assert build_url("https://acme.harvestapp.com", "/clients", {}) == "https://acme.harvestapp.com/clients"

    def test_remaining_query_is_encoded(self):
        url = build_url(
            "https://acme.harvestapp.com",
            "/clients",
            {"name": "Acme & Sons", "updated_since": "2024-01-01 10:00"},
        )
        assert url == (
            "https://acme.harvestapp.com/clients"
            "?name=Acme+%26+Sons&updated_since=2024-01-01+10%3A00"
        )
