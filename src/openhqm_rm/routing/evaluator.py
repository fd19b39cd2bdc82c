"""Condition evaluator for routing rules."""

import re
from typing import Any

import structlog

from openhqm_rm.expressions import ExpressionEvaluator
from openhqm_rm.routing.models import (
    ConditionOperator,
    ConditionOutcome,
    ConditionType,
    ExecutionContext,
    IssueSeverity,
    SimulationIssue,
    VALUE_OPERATORS,
)
from openhqm_rm.utils.helpers import ABSENT, get_nested_value, stringify

logger = structlog.get_logger(__name__)

ISSUE_CONTEXT = "Condition Evaluation"


def is_truthy(value: Any) -> bool:
    """Apply JQ truthiness: only ``false`` and ``null`` are falsy."""
    return value is not None and value is not False


def strict_equals(actual: Any, expected: Any) -> bool:
    """Type-sensitive JSON equality.

    ``"1"`` never equals ``1`` and ``true`` never equals ``1``; integers and
    floats compare numerically. Objects and arrays compare member-wise under
    the same rules.
    """
    if isinstance(actual, bool) or isinstance(expected, bool):
        return isinstance(actual, bool) and isinstance(expected, bool) and actual == expected
    if isinstance(actual, (int, float)) and isinstance(expected, (int, float)):
        return actual == expected
    if isinstance(actual, dict) and isinstance(expected, dict):
        return actual.keys() == expected.keys() and all(
            strict_equals(actual[key], expected[key]) for key in actual
        )
    if isinstance(actual, list) and isinstance(expected, list):
        return len(actual) == len(expected) and all(
            strict_equals(a, e) for a, e in zip(actual, expected)
        )
    if type(actual) is not type(expected):
        return False
    return actual == expected


def _warning(message: str, suggestion: str | None = None) -> SimulationIssue:
    return SimulationIssue(
        severity=IssueSeverity.WARNING,
        message=message,
        context=ISSUE_CONTEXT,
        suggestion=suggestion,
    )


class ConditionEvaluator:
    """Evaluates a single routing condition against an execution context.

    Evaluation is total: it never raises. Faults turn into a ``False`` result
    with an attached warning that the caller can surface.

    Supported conditions:
    - payload / metadata: dotted path walked through nested objects
    - header: literal key lookup
    - jq: expression evaluated against the payload, JQ truthiness applied
    """

    def __init__(self, expressions: ExpressionEvaluator):
        """Initialize the evaluator.

        Args:
            expressions: Capability used for `jq` conditions
        """
        self._expressions = expressions

    def evaluate(self, condition: Any, context: ExecutionContext) -> ConditionOutcome:
        """Evaluate a condition.

        Args:
            condition: One of the condition models
            context: Payload, headers and metadata of the message

        Returns:
            ConditionOutcome with the boolean result and an optional warning
        """
        condition_type = getattr(condition, "type", None)
        try:
            if condition_type == ConditionType.JQ:
                return self._evaluate_jq(condition, context)
            if condition_type == ConditionType.PAYLOAD:
                return self._evaluate_field(condition, context.payload, walk=True)
            if condition_type == ConditionType.METADATA:
                return self._evaluate_field(condition, context.metadata, walk=True)
            if condition_type == ConditionType.HEADER:
                return self._evaluate_field(condition, context.headers, walk=False)
        except Exception as e:
            logger.error(
                "Condition evaluation failed", condition_type=condition_type, error=str(e)
            )
            return ConditionOutcome(
                matched=False, issue=_warning(f"Condition evaluation failed: {e}")
            )

        logger.warning("Unknown condition type", condition_type=condition_type)
        return ConditionOutcome(
            matched=False, issue=_warning(f"Unknown condition type '{condition_type}'")
        )

    def _evaluate_jq(self, condition: Any, context: ExecutionContext) -> ConditionOutcome:
        expression = getattr(condition, "jq_expression", None)
        if not expression:
            return ConditionOutcome(
                matched=False, issue=_warning("JQ condition has no expression")
            )

        result = self._expressions.evaluate(expression, context.payload)
        if not result.success:
            suggestion = result.suggestions[0] if result.suggestions else None
            return ConditionOutcome(
                matched=False,
                issue=_warning(
                    f"JQ condition '{expression}' failed: {result.error}", suggestion
                ),
            )
        return ConditionOutcome(matched=is_truthy(result.output))

    def _evaluate_field(
        self, condition: Any, namespace: Any, walk: bool
    ) -> ConditionOutcome:
        field = getattr(condition, "field", None)
        if not field:
            # Unset field never matches and is not reported
            return ConditionOutcome(matched=False)

        if walk:
            actual = get_nested_value(namespace, field)
        else:
            actual = namespace.get(field, ABSENT)

        return self._compare(
            actual, getattr(condition, "operator", None), getattr(condition, "value", None)
        )

    def _compare(self, actual: Any, operator: Any, expected: Any) -> ConditionOutcome:
        if operator == ConditionOperator.EXISTS:
            return ConditionOutcome(matched=actual is not ABSENT and actual is not None)

        if operator == ConditionOperator.EQUALS:
            return ConditionOutcome(
                matched=actual is not ABSENT and strict_equals(actual, expected)
            )

        if operator in VALUE_OPERATORS and expected is None:
            return ConditionOutcome(
                matched=False,
                issue=_warning(f"Condition operator '{operator}' requires a value"),
            )

        if operator == ConditionOperator.CONTAINS:
            return ConditionOutcome(
                matched=actual is not ABSENT and stringify(expected) in stringify(actual)
            )

        if operator == ConditionOperator.REGEX:
            pattern = stringify(expected)
            try:
                compiled = re.compile(pattern)
            except re.error as e:
                return ConditionOutcome(
                    matched=False,
                    issue=_warning(
                        f"Invalid regex pattern '{pattern}': {e}",
                        "Check the pattern syntax; it is not implicitly anchored",
                    ),
                )
            return ConditionOutcome(
                matched=actual is not ABSENT and compiled.search(stringify(actual)) is not None
            )

        logger.warning("Unknown condition operator", operator=operator)
        return ConditionOutcome(
            matched=False, issue=_warning(f"Unknown condition operator '{operator}'")
        )
