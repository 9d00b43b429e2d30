"""
Matrix testing models: parameter axes, sub-tests and run configuration
"""

from typing import Any, Callable, Dict, List, Optional
from dataclasses import dataclass
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from models.testing import IntegrationTestConfig, LoadTestConfig

class ParameterAxis(BaseModel):
    """One dimension of the test matrix"""
    model_config = ConfigDict(populate_by_name=True)

    # Older matrix files name the path "parameter"
    path: str = Field(min_length=1, validation_alias=AliasChoices("path", "parameter"))
    values: List[Any] = Field(min_length=1)

@dataclass
class ParameterOverride:
    """One {path, value} assignment inside a combination"""
    path: str
    value: Any

class SubTest(BaseModel):
    """A scenario test case, replayed once per run of each combination"""
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    name: str
    input: str
    expected_actions: List[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("expected_actions", "expectedActions")
    )
    expected_tone: Optional[str] = Field(None, validation_alias=AliasChoices("expected_tone", "expectedTone"))
    expected_approach: Optional[str] = Field(None, validation_alias=AliasChoices("expected_approach", "expectedApproach"))
    expected_style: Optional[str] = Field(None, validation_alias=AliasChoices("expected_style", "expectedStyle"))
    expected_expertise: Optional[str] = Field(None, validation_alias=AliasChoices("expected_expertise", "expectedExpertise"))

@dataclass
class ValidationRule:
    """
    Pure predicate over (TestResult, scenario).

    A rule whose condition returns False appends error_message to the
    result's errors and marks it failed.
    """
    name: str
    condition: Callable[[Any, Dict[str, Any]], bool]
    error_message: str

class MatrixTestConfig(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True, populate_by_name=True)

    base_scenario: Dict[str, Any]
    matrix: List[ParameterAxis] = Field(default_factory=list)
    runs_per_combination: int = Field(1, ge=1)
    validation_rules: List[ValidationRule] = Field(default_factory=list)

    @field_validator("matrix")
    @classmethod
    def paths_must_be_unique(cls, matrix: List[ParameterAxis]) -> List[ParameterAxis]:
        seen = set()
        for axis in matrix:
            if axis.path in seen:
                raise ValueError(f"Duplicate matrix parameter path: {axis.path}")
            seen.add(axis.path)
        return matrix

class EnhancedMatrixTestConfig(MatrixTestConfig):
    load_test_config: LoadTestConfig
    integration_test_config: IntegrationTestConfig
    enable_performance_testing: bool = True
    enable_load_testing: bool = True
    enable_integration_testing: bool = True
    enable_coverage_analysis: bool = True
