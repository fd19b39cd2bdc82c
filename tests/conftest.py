"""Test configuration and fixtures."""

import copy
from collections.abc import Callable
from typing import Any

import pytest

from openhqm_rm.expressions import TransformResult, ValidationResult
from openhqm_rm.routing import ConditionEvaluator, RoutingEngine


class FakeExpressionEvaluator:
    """Expression evaluator backed by Python callables keyed by expression.

    Unknown expressions fail like a jq syntax error.
    """

    def __init__(self, programs: dict[str, Callable[[Any], Any]] | None = None):
        self.programs = dict(programs or {})
        self.calls: list[tuple[str, Any]] = []

    def evaluate(self, expression: str, data: Any) -> TransformResult:
        self.calls.append((expression, data))
        program = self.programs.get(expression)
        if program is None:
            return TransformResult(
                success=False,
                error=f"syntax error, unexpected IDENT: {expression}",
                suggestions=["Check for unmatched quotes or brackets"],
            )
        try:
            return TransformResult(success=True, output=program(copy.deepcopy(data)))
        except Exception as e:
            return TransformResult(success=False, error=f"Cannot index: {e}")

    def validate(self, expression: str) -> ValidationResult:
        if expression in self.programs:
            return ValidationResult(valid=True)
        return ValidationResult(
            valid=False,
            error=f"syntax error: {expression}",
            suggestions=["Check for unmatched quotes or brackets"],
        )


@pytest.fixture
def expressions() -> FakeExpressionEvaluator:
    """Fake JQ capability with a few well-known programs."""
    return FakeExpressionEvaluator(
        {
            ".": lambda data: data,
            "{ id: .order.id }": lambda data: {"id": data["order"]["id"]},
            ".order.urgent": lambda data: (data.get("order") or {}).get("urgent"),
            ".count": lambda data: data.get("count"),
            ".name": lambda data: data.get("name"),
            "null": lambda data: None,
            "false": lambda data: False,
            "explode": lambda data: data["missing"],
        }
    )


@pytest.fixture
def evaluator(expressions) -> ConditionEvaluator:
    return ConditionEvaluator(expressions)


@pytest.fixture
def engine(expressions) -> RoutingEngine:
    return RoutingEngine(expression_evaluator=expressions)
