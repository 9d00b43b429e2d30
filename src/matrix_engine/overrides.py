"""
Parameter matrix expansion and override application
"""

import copy
import itertools
import logging
from typing import Any, Dict, Iterable, List, Sequence, Tuple, Union

from models.matrix import ParameterAxis, ParameterOverride
from matrix_engine.paths import set_value_at_path

logger = logging.getLogger(__name__)

Combination = List[ParameterOverride]
MatrixSpec = Sequence[Union[ParameterAxis, Dict[str, Any]]]


def coerce_matrix(matrix: MatrixSpec) -> List[ParameterAxis]:
    """Validate raw axis dicts into ParameterAxis models, rejecting duplicate paths"""
    axes = [axis if isinstance(axis, ParameterAxis) else ParameterAxis.model_validate(axis) for axis in matrix]

    seen = set()
    for axis in axes:
        if axis.path in seen:
            raise ValueError(f"Duplicate matrix parameter path: {axis.path}")
        if not axis.values:
            raise ValueError(f"Matrix parameter '{axis.path}' has no values")
        seen.add(axis.path)
    return axes


def count_combinations(matrix: MatrixSpec) -> int:
    """Product of axis cardinalities (1 for an empty matrix)"""
    total = 1
    for axis in coerce_matrix(matrix):
        total *= len(axis.values)
    return total


def expand_matrix(matrix: MatrixSpec) -> List[Combination]:
    """
    Full cartesian product of the matrix axes

    Ordered like an odometer: the last axis varies fastest. An empty matrix
    yields a single empty combination.
    """
    axes = coerce_matrix(matrix)
    combinations = [
        [ParameterOverride(path=axis.path, value=value) for axis, value in zip(axes, values)]
        for values in itertools.product(*(axis.values for axis in axes))
    ]
    logger.debug(f"Expanded {len(axes)} parameters into {len(combinations)} combinations")
    return combinations


def combination_at(matrix: MatrixSpec, index: int) -> Combination:
    """
    Decode one combination directly from its position in the expansion

    The index is read as mixed-radix digits whose radices are the axis
    cardinalities, most significant digit first.
    """
    axes = coerce_matrix(matrix)
    total = count_combinations(axes)
    if not 0 <= index < total:
        raise IndexError(f"Combination index {index} out of range for {total} combinations")

    digits: List[int] = []
    remainder = index
    for axis in reversed(axes):
        remainder, digit = divmod(remainder, len(axis.values))
        digits.append(digit)
    digits.reverse()

    return [ParameterOverride(path=axis.path, value=axis.values[digit]) for axis, digit in zip(axes, digits)]


def apply_parameter_override(base: Dict[str, Any], path: str, value: Any) -> Dict[str, Any]:
    """Deep copy of base with a single override applied"""
    return apply_parameter_overrides(base, [ParameterOverride(path=path, value=value)])


def apply_parameter_overrides(base: Dict[str, Any], combination: Iterable[ParameterOverride]) -> Dict[str, Any]:
    """
    Deep copy of base with every override of the combination applied in order

    Override values are copied as well, so the result shares no mutable
    structure with base, the combination, or any other result.
    """
    scenario = copy.deepcopy(base)
    for override in combination:
        set_value_at_path(scenario, override.path, copy.deepcopy(override.value))
    return scenario


def apply_matrix_to_scenario(base: Dict[str, Any], matrix: MatrixSpec) -> List[Tuple[Combination, Dict[str, Any]]]:
    """Expand the matrix and build one independent scenario per combination"""
    return [(combination, apply_parameter_overrides(base, combination)) for combination in expand_matrix(matrix)]
