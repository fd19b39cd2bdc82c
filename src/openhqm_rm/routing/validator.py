"""Static validation of rule collections before they are used for routing."""

import re
from collections.abc import Sequence

import structlog

from openhqm_rm.config.settings import ValidationSettings, settings
from openhqm_rm.expressions import ExpressionEvaluator
from openhqm_rm.routing.models import (
    ConditionOperator,
    IssueSeverity,
    JQCondition,
    Rule,
    SimulationIssue,
    VALUE_OPERATORS,
)
from openhqm_rm.utils.helpers import stringify

logger = structlog.get_logger(__name__)


class RuleValidator:
    """Validates a rule collection.

    It checks:
    - Duplicate and overlong rule names
    - Condition count and priority range limits
    - Regex operands and JQ expression syntax
    - Conditions that can never match
    - Priority ties and rules shadowed by a catch-all rule
    """

    def __init__(
        self,
        expressions: ExpressionEvaluator | None = None,
        limits: ValidationSettings | None = None,
    ):
        """Initialize the validator.

        Args:
            expressions: Capability used to check JQ syntax; JQ checks are
                skipped when omitted
            limits: Validation limits, defaults to application settings
        """
        self._expressions = expressions
        self._limits = limits or settings.validation
        self.errors: list[SimulationIssue] = []
        self.warnings: list[SimulationIssue] = []

    @property
    def issues(self) -> list[SimulationIssue]:
        return self.errors + self.warnings

    def _error(self, rule_id: str, message: str, suggestion: str | None = None) -> None:
        self.errors.append(
            SimulationIssue(
                severity=IssueSeverity.ERROR,
                message=message,
                context=rule_id,
                suggestion=suggestion,
            )
        )

    def _warn(self, rule_id: str, message: str, suggestion: str | None = None) -> None:
        self.warnings.append(
            SimulationIssue(
                severity=IssueSeverity.WARNING,
                message=message,
                context=rule_id,
                suggestion=suggestion,
            )
        )

    def validate(self, rules: Sequence[Rule]) -> bool:
        """Run all validation checks.

        Args:
            rules: Rule collection in its original order

        Returns:
            True if no errors were found (warnings are allowed)
        """
        self.errors = []
        self.warnings = []

        if len(rules) > self._limits.max_rules:
            self._error(
                "rules",
                f"{len(rules)} rules defined, the maximum is {self._limits.max_rules}",
            )

        names: set[str] = set()
        priorities: dict[int, str] = {}
        catch_all: Rule | None = None

        for idx, rule in enumerate(rules):
            rule_id = f"rules[{idx}] '{rule.name}'"

            if rule.name in names:
                self._error(rule_id, f"Duplicate rule name '{rule.name}'")
            names.add(rule.name)

            self._validate_rule(rule, rule_id)

            if not rule.enabled:
                continue

            if rule.priority in priorities:
                self._warn(
                    rule_id,
                    f"Rule has same priority {rule.priority} as '{priorities[rule.priority]}'",
                    "Rules with equal priority are tried in list order",
                )
            else:
                priorities[rule.priority] = rule.name

        for rule in sorted(
            [r for r in rules if r.enabled], key=lambda r: r.priority, reverse=True
        ):
            if catch_all is not None:
                self._warn(
                    f"'{rule.name}'",
                    f"Rule is unreachable: '{catch_all.name}' has no conditions "
                    f"and is evaluated first",
                )
            elif not rule.conditions:
                catch_all = rule

        logger.info(
            "Rule validation finished",
            rule_count=len(rules),
            errors=len(self.errors),
            warnings=len(self.warnings),
        )
        return not self.errors

    def _validate_rule(self, rule: Rule, rule_id: str) -> None:
        if len(rule.name) > self._limits.max_rule_name_length:
            self._error(
                rule_id,
                f"Rule name exceeds {self._limits.max_rule_name_length} characters",
            )

        if len(rule.conditions) > self._limits.max_conditions:
            self._error(
                rule_id,
                f"{len(rule.conditions)} conditions defined, "
                f"the maximum is {self._limits.max_conditions}",
            )

        if not self._limits.min_priority <= rule.priority <= self._limits.max_priority:
            self._warn(
                rule_id,
                f"Priority {rule.priority} is outside "
                f"[{self._limits.min_priority}, {self._limits.max_priority}]",
            )

        for index, condition in enumerate(rule.conditions):
            condition_id = f"{rule_id} conditions[{index}]"
            if isinstance(condition, JQCondition):
                self._validate_jq_expression(condition.jq_expression, condition_id)
                continue

            if not condition.field:
                self._warn(
                    condition_id,
                    f"{condition.type} condition has no field and never matches",
                )

            if condition.operator in VALUE_OPERATORS and condition.value is None:
                self._error(condition_id, f"'{condition.operator}' condition has no value")
            elif condition.operator == ConditionOperator.REGEX:
                try:
                    re.compile(stringify(condition.value))
                except re.error as e:
                    self._error(condition_id, f"Invalid regex pattern: {e}")

        if rule.transform is not None and rule.transform.enabled:
            self._validate_jq_expression(rule.transform.jq_expression, f"{rule_id} transform")

    def _validate_jq_expression(self, expression: str, location: str) -> None:
        if self._expressions is None:
            return
        result = self._expressions.validate(expression)
        if not result.valid:
            self._error(
                location,
                f"Invalid JQ expression: {result.error}",
                result.suggestions[0] if result.suggestions else None,
            )
