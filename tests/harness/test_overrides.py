"""
Matrix expansion and override application
"""

import pytest
from pydantic import ValidationError

from models.matrix import ParameterAxis
from matrix_engine.overrides import (
    apply_matrix_to_scenario,
    apply_parameter_override,
    apply_parameter_overrides,
    combination_at,
    count_combinations,
    expand_matrix,
)

MATRIX = [
    {"path": "a", "values": [1, 2]},
    {"path": "b", "values": ["x", "y", "z"]},
]


def assignments(combinations):
    return [[(o.path, o.value) for o in combination] for combination in combinations]


class TestExpandMatrix:

    def test_empty_matrix_yields_one_empty_combination(self):
        assert expand_matrix([]) == [[]]
        assert count_combinations([]) == 1

    @pytest.mark.parametrize("cardinalities", [[1], [3], [2, 2], [2, 3, 4], [1, 5, 1]])
    def test_length_is_product_of_cardinalities(self, cardinalities):
        matrix = [{"path": f"p{i}", "values": list(range(c))} for i, c in enumerate(cardinalities)]
        expected = 1
        for c in cardinalities:
            expected *= c
        assert len(expand_matrix(matrix)) == expected
        assert count_combinations(matrix) == expected

    def test_last_axis_varies_fastest(self):
        assert assignments(expand_matrix(MATRIX)) == [
            [("a", 1), ("b", "x")],
            [("a", 1), ("b", "y")],
            [("a", 1), ("b", "z")],
            [("a", 2), ("b", "x")],
            [("a", 2), ("b", "y")],
            [("a", 2), ("b", "z")],
        ]

    def test_ordering_is_stable(self):
        assert assignments(expand_matrix(MATRIX)) == assignments(expand_matrix(MATRIX))

    def test_accepts_legacy_parameter_key(self):
        axes = [{"parameter": "character.personality", "values": ["a", "b"]}]
        assert assignments(expand_matrix(axes)) == [
            [("character.personality", "a")],
            [("character.personality", "b")],
        ]

    def test_empty_values_rejected(self):
        with pytest.raises(ValidationError):
            expand_matrix([{"path": "a", "values": []}])

    def test_duplicate_paths_rejected(self):
        with pytest.raises(ValueError):
            expand_matrix([{"path": "a", "values": [1]}, {"path": "a", "values": [2]}])

    def test_combination_at_matches_expansion(self):
        expanded = expand_matrix(MATRIX)
        for index, combination in enumerate(expanded):
            assert combination_at(MATRIX, index) == combination

    def test_combination_at_out_of_range(self):
        with pytest.raises(IndexError):
            combination_at(MATRIX, 6)


class TestApplyOverrides:

    def test_base_is_not_mutated(self, character_scenario):
        snapshot = repr(character_scenario)
        apply_parameter_override(character_scenario, "character.style.all[0]", "Formal")
        apply_parameter_override(character_scenario, "character.new_field.deep", [1, 2])
        assert repr(character_scenario) == snapshot

    def test_results_share_no_nested_structure(self, character_scenario):
        matrix = [ParameterAxis(path="character.personality", values=["friendly", "strict"])]
        scenarios = [scenario for _, scenario in apply_matrix_to_scenario(character_scenario, matrix)]
        first, second = scenarios

        first["character"]["style"]["all"].append("mutated")
        first["run"][0]["input"] = "changed"

        assert second["character"]["style"]["all"] == ["Warm and welcoming"]
        assert second["run"][0]["input"] == "Hello, I am new here"
        assert character_scenario["character"]["style"]["all"] == ["Warm and welcoming"]

    def test_override_values_are_copied(self, character_scenario):
        shared = {"all": ["Direct"]}
        matrix = [{"path": "character.style", "values": [shared]}, {"path": "x", "values": [1, 2]}]
        scenarios = [scenario for _, scenario in apply_matrix_to_scenario(character_scenario, matrix)]

        scenarios[0]["character"]["style"]["all"].append("mutated")
        assert scenarios[1]["character"]["style"] == {"all": ["Direct"]}
        assert shared == {"all": ["Direct"]}

    def test_overrides_apply_in_order(self):
        base = {"a": {"b": 1}}
        combination = expand_matrix([{"path": "a", "values": [{"b": 2}]}, {"path": "a.b", "values": [3]}])[0]
        assert apply_parameter_overrides(base, combination) == {"a": {"b": 3}}
