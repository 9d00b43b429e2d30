"""
Parameter path parsing, reading and writing
"""

import pytest

from matrix_engine.paths import (
    get_available_parameter_paths,
    get_value_at_path,
    parse_parameter_path,
    set_value_at_path,
    validate_parameter_path,
)


class TestParsePath:

    @pytest.mark.parametrize("path,expected", [
        ("character.name", ["character", "name"]),
        ("character.style.all[0]", ["character", "style", "all", 0]),
        ("run[1].input", ["run", 1, "input"]),
        ("matrix[0][2]", ["matrix", 0, 2]),
        ("simple", ["simple"]),
    ])
    def test_valid_paths(self, path, expected):
        assert parse_parameter_path(path) == expected

    @pytest.mark.parametrize("path", ["", "a..b", ".a", "a.", "a[x]", "a[", "a[1"])
    def test_malformed_paths_raise(self, path):
        with pytest.raises(ValueError):
            parse_parameter_path(path)


class TestReadPath:

    def test_reads_nested_values(self, character_scenario):
        assert get_value_at_path(character_scenario, "character.style.all[0]") == "Warm and welcoming"
        assert get_value_at_path(character_scenario, "run[1].name") == "moderation"

    def test_missing_returns_default(self, character_scenario):
        assert get_value_at_path(character_scenario, "character.missing") is None
        assert get_value_at_path(character_scenario, "run[9].name", "absent") == "absent"
        assert get_value_at_path(character_scenario, "character.name[0]") is None

    def test_validate_parameter_path(self, character_scenario):
        assert validate_parameter_path(character_scenario, "character.topics[1]")
        assert not validate_parameter_path(character_scenario, "character.topics[5]")
        assert not validate_parameter_path(character_scenario, "bad..path")


class TestWritePath:

    def test_replaces_list_element(self, character_scenario):
        set_value_at_path(character_scenario, "character.style.all[0]", "Formal")
        assert character_scenario["character"]["style"]["all"] == ["Formal"]

    def test_creates_missing_containers(self):
        document = {}
        set_value_at_path(document, "a.b[2].c", 5)
        assert document == {"a": {"b": [None, None, {"c": 5}]}}

    def test_falsy_values_are_written(self):
        document = {"flag": True}
        set_value_at_path(document, "flag", False)
        set_value_at_path(document, "count", 0)
        assert document == {"flag": False, "count": 0}

    def test_descending_into_scalar_raises(self):
        document = {"character": {"name": "Agent"}}
        with pytest.raises(TypeError):
            set_value_at_path(document, "character.name.first", "A")

    def test_index_on_mapping_raises(self):
        document = {"character": {"name": "Agent"}}
        with pytest.raises(TypeError):
            set_value_at_path(document, "character[0]", "A")


def test_available_paths_lists_parents_before_children():
    document = {"character": {"style": {"all": ["warm"]}}, "run": [{"name": "t"}]}
    assert get_available_parameter_paths(document) == [
        "character",
        "character.style",
        "character.style.all",
        "character.style.all[0]",
        "run",
        "run[0]",
        "run[0].name",
    ]
