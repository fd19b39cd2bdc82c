"""Routing engine for rule selection, payload transformation and tracing."""

import asyncio
import copy
import time
from collections.abc import Sequence
from datetime import datetime, timezone
from typing import Any

import structlog

from openhqm_rm.expressions import ExpressionEvaluator, JQEngine, TransformResult
from openhqm_rm.routing.evaluator import ConditionEvaluator
from openhqm_rm.routing.models import (
    ConditionTrace,
    ExecutionContext,
    IssueSeverity,
    LogicalOperator,
    Rule,
    SimulationIssue,
    SimulationMetrics,
    SimulationResult,
    TraceStep,
    TraceStepType,
)
from openhqm_rm.utils.metrics import metrics

logger = structlog.get_logger(__name__)

NO_MATCH_MESSAGE = "No matching route found for the given input"


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000


class _Trace:
    """Accumulates trace steps with sequential step numbers."""

    def __init__(self):
        self.steps: list[TraceStep] = []

    def add(self, step_type: TraceStepType, **fields: Any) -> None:
        self.steps.append(TraceStep(step=len(self.steps) + 1, type=step_type, **fields))


class RoutingEngine:
    """Engine for selecting the route of a message and transforming its payload.

    The engine holds no per-run state: rules and context are passed to every
    :meth:`run` call, so one instance can serve concurrent callers.
    """

    def __init__(
        self,
        expression_evaluator: ExpressionEvaluator | None = None,
        condition_evaluator: ConditionEvaluator | None = None,
    ):
        """Initialize routing engine.

        Args:
            expression_evaluator: JQ capability for transforms and `jq` conditions,
                defaults to a JQEngine built from settings
            condition_evaluator: Condition evaluator, defaults to one sharing
                the expression evaluator
        """
        self._expressions = expression_evaluator or JQEngine.from_settings()
        self._conditions = condition_evaluator or ConditionEvaluator(self._expressions)

    @staticmethod
    def order_candidates(rules: Sequence[Rule]) -> list[Rule]:
        """Drop disabled rules and order the rest by priority, highest first.

        The sort is stable, so rules sharing a priority keep their input order.
        """
        return sorted(
            [r for r in rules if r.enabled],
            key=lambda r: r.priority,
            reverse=True,
        )

    def _evaluate_rule(
        self, rule: Rule, context: ExecutionContext
    ) -> tuple[bool, list[ConditionTrace], list[SimulationIssue]]:
        """Evaluate every condition of a rule and combine the results.

        Args:
            rule: Candidate rule
            context: Message being routed

        Returns:
            Combined result, per-condition trace entries and warnings raised
        """
        results: list[bool] = []
        details: list[ConditionTrace] = []
        issues: list[SimulationIssue] = []

        for index, condition in enumerate(rule.conditions):
            outcome = self._conditions.evaluate(condition, context)
            condition_type = str(getattr(condition, "type", "unknown"))
            metrics.record_condition(condition_type, outcome.matched)

            results.append(outcome.matched)
            if outcome.issue is not None:
                issues.append(outcome.issue)

            operator = getattr(condition, "operator", None)
            details.append(
                ConditionTrace(
                    index=index,
                    type=condition_type,
                    target=getattr(condition, "jq_expression", None)
                    or getattr(condition, "field", None),
                    operator=str(operator) if operator is not None else None,
                    matched=outcome.matched,
                    issue=outcome.issue.message if outcome.issue else None,
                )
            )

        if not results:
            return True, details, issues
        if rule.condition_operator == LogicalOperator.OR:
            return any(results), details, issues
        return all(results), details, issues

    def _apply_transform(self, expression: str, payload: Any) -> TransformResult:
        try:
            return self._expressions.evaluate(expression, payload)
        except Exception as e:
            logger.error("Expression evaluator raised", expression=expression, error=str(e))
            return TransformResult(success=False, error=str(e) or e.__class__.__name__)

    def run(self, rules: Sequence[Rule], context: ExecutionContext) -> SimulationResult:
        """Route a message and record how the decision was reached.

        Args:
            rules: Rule collection in its original order
            context: Payload, headers and metadata of the message

        Returns:
            SimulationResult with the selected rule, transformed payload,
            trace, errors and timings. Never raises for well-typed input.
        """
        started = time.perf_counter()
        timestamp = datetime.now(timezone.utc)
        trace = _Trace()
        errors: list[SimulationIssue] = []
        matched: Rule | None = None

        logger.debug("Routing run started", rule_count=len(rules))

        matching_started = time.perf_counter()
        try:
            for rule in self.order_candidates(rules):
                check_started = time.perf_counter()
                result, details, issues = self._evaluate_rule(rule, context)
                errors.extend(issues)
                trace.add(
                    TraceStepType.CONDITION,
                    description=(
                        f"Evaluated {len(details)} condition(s) of rule '{rule.name}' "
                        f"({rule.condition_operator}): {'matched' if result else 'not matched'}"
                    ),
                    rule_name=rule.name,
                    output=result,
                    condition_results=details,
                    duration_ms=_elapsed_ms(check_started),
                    success=result,
                )
                if result:
                    matched = rule
                    break
        except Exception as e:
            logger.error("Route matching failed", error=str(e))
            errors.append(
                SimulationIssue(
                    severity=IssueSeverity.ERROR,
                    message=f"Route matching failed: {e}",
                    context="Route Matching",
                )
            )
        matching_ms = _elapsed_ms(matching_started)
        # trace steps hold a snapshot of the payload
        payload = copy.deepcopy(context.payload)

        if matched is not None:
            logger.info("Route matched", rule_name=matched.name, destination=matched.destination)
            trace.add(
                TraceStepType.ROUTE,
                description=f"Matched route: {matched.name}",
                rule_name=matched.name,
                input=payload,
                output=matched.destination,
                duration_ms=matching_ms,
                success=True,
            )
        else:
            logger.info("No route matched", rule_count=len(rules))
            trace.add(
                TraceStepType.ROUTE,
                description="No matching route found",
                input=payload,
                duration_ms=matching_ms,
                success=False,
            )
            errors.append(
                SimulationIssue(
                    severity=IssueSeverity.WARNING,
                    message=NO_MATCH_MESSAGE,
                    context="Route Matching",
                )
            )

        transform_ms = 0.0
        transformed: Any = None
        transform_applied = False
        if matched is not None and matched.transform is not None and matched.transform.enabled:
            transform_started = time.perf_counter()
            outcome = self._apply_transform(matched.transform.jq_expression, context.payload)
            transform_ms = _elapsed_ms(transform_started)
            metrics.record_transform(outcome.success)

            trace.add(
                TraceStepType.TRANSFORM,
                description="Applied JQ transformation",
                rule_name=matched.name,
                input=payload,
                output=outcome.output,
                duration_ms=transform_ms,
                success=outcome.success,
                error=outcome.error,
            )

            if outcome.success:
                transformed = outcome.output
                transform_applied = True
            else:
                logger.warning("Transform failed", rule_name=matched.name, error=outcome.error)
                errors.append(
                    SimulationIssue(
                        severity=IssueSeverity.ERROR,
                        message=outcome.error or "Transform failed",
                        context="JQ Transformation",
                        suggestion=outcome.suggestions[0] if outcome.suggestions else None,
                    )
                )

        total_ms = _elapsed_ms(started)
        metrics.record_simulation(matched is not None, total_ms / 1000)
        logger.info(
            "Routing run completed",
            matched_rule=matched.name if matched else None,
            error_count=len(errors),
            duration_ms=round(total_ms, 3),
        )

        return SimulationResult(
            timestamp=timestamp,
            matched_rule_name=matched.name if matched else None,
            destination=matched.destination if matched else None,
            transformed_payload=transformed,
            transform_applied=transform_applied,
            trace=trace.steps,
            errors=errors,
            metrics=SimulationMetrics(
                total_duration_ms=max(total_ms, matching_ms + transform_ms),
                matching_duration_ms=matching_ms,
                transform_duration_ms=transform_ms,
            ),
        )

    async def arun(self, rules: Sequence[Rule], context: ExecutionContext) -> SimulationResult:
        """Run :meth:`run` on a worker thread for async callers."""
        return await asyncio.to_thread(self.run, rules, context)
