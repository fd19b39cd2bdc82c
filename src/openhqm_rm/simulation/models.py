"""Data models for saved simulation cases."""

from typing import Any

from pydantic import BaseModel, Field

from openhqm_rm.routing.evaluator import strict_equals
from openhqm_rm.routing.models import ExecutionContext, SimulationResult


class ExpectedOutput(BaseModel):
    """What a simulation case expects the engine to produce.

    Only the fields that are given are compared, except the rule name which
    is always checked.
    """

    rule_name: str | None = Field(
        default=None, description="Expected matched rule name (None = expect no match)"
    )
    destination: str | None = Field(default=None, description="Expected destination")
    transformed_payload: Any = Field(
        default=None, description="Expected transform output, compared only when given"
    )

    def mismatches(self, result: SimulationResult) -> list[str]:
        """List human-readable differences between this expectation and a result."""
        problems = []
        if result.matched_rule_name != self.rule_name:
            problems.append(
                f"expected rule {self.rule_name!r}, got {result.matched_rule_name!r}"
            )
        if self.destination is not None and result.destination != self.destination:
            problems.append(
                f"expected destination {self.destination!r}, got {result.destination!r}"
            )
        if "transformed_payload" in self.model_fields_set:
            if not result.transform_applied:
                problems.append("expected a transformed payload, but no transform was applied")
            elif not strict_equals(result.transformed_payload, self.transformed_payload):
                problems.append(
                    f"expected payload {self.transformed_payload!r}, "
                    f"got {result.transformed_payload!r}"
                )
        return problems


class SimulationCase(BaseModel):
    """A named, replayable input with an optional expectation."""

    name: str = Field(..., min_length=1, description="Case name")
    description: str = Field(default="", description="Case description")
    input: ExecutionContext = Field(default_factory=ExecutionContext, description="Message")
    expected: ExpectedOutput | None = Field(default=None, description="Expected outcome")


class CaseOutcome(BaseModel):
    """Result of replaying a simulation case."""

    case_name: str
    passed: bool
    mismatches: list[str] = Field(default_factory=list)
    result: SimulationResult
