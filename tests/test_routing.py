"""Tests for routing engine."""

import pytest

from openhqm_rm.routing import (
    ExecutionContext,
    HeaderCondition,
    IssueSeverity,
    JQCondition,
    LogicalOperator,
    MetadataCondition,
    PayloadCondition,
    Rule,
    RoutingEngine,
    TraceStepType,
    Transform,
)
from openhqm_rm.routing.engine import NO_MATCH_MESSAGE


def high_priority_rule(**overrides) -> Rule:
    fields = {
        "name": "high",
        "priority": 100,
        "conditions": [
            PayloadCondition(field="order.priority", operator="equals", value="high")
        ],
        "condition_operator": LogicalOperator.AND,
        "destination": "svc-high",
    }
    fields.update(overrides)
    return Rule(**fields)


def test_payload_condition_match(engine):
    """Test a matching payload condition selects the rule."""
    context = ExecutionContext(payload={"order": {"priority": "high"}})

    result = engine.run([high_priority_rule()], context)

    assert result.matched_rule_name == "high"
    assert result.destination == "svc-high"
    assert result.errors == []
    assert result.transform_applied is False
    assert result.transformed_payload is None


def test_no_match_records_warning(engine):
    """Test an unmatched message produces the no-match warning."""
    context = ExecutionContext(payload={"order": {"priority": "low"}})

    result = engine.run([high_priority_rule()], context)

    assert result.matched_rule_name is None
    assert result.destination is None
    assert len(result.errors) == 1
    assert result.errors[0].severity == IssueSeverity.WARNING
    assert result.errors[0].message == NO_MATCH_MESSAGE
    assert result.trace[-1].type == TraceStepType.ROUTE
    assert result.trace[-1].success is False


def test_missing_header_falls_through_to_default(engine):
    """Test canary rule with absent header falls through to the catch-all rule."""
    rules = [
        Rule(
            name="canary",
            priority=100,
            conditions=[HeaderCondition(field="X-Canary", operator="exists")],
            destination="v2",
        ),
        Rule(name="default", priority=10, destination="v1"),
    ]

    result = engine.run(rules, ExecutionContext(headers={}))

    assert result.matched_rule_name == "default"
    assert result.destination == "v1"
    assert result.errors == []


def test_transform_success(engine):
    """Test the transform output of the matched rule is returned."""
    rule = Rule(
        name="extract",
        transform=Transform(jq_expression="{ id: .order.id }"),
        destination="svc",
    )

    result = engine.run([rule], ExecutionContext(payload={"order": {"id": 42}}))

    assert result.matched_rule_name == "extract"
    assert result.transformed_payload == {"id": 42}
    assert result.transform_applied is True
    assert result.trace[-1].type == TraceStepType.TRANSFORM
    assert result.trace[-1].success is True


def test_transform_failure_keeps_match(engine):
    """Test a failing transform records an error but the match stands."""
    rule = Rule(
        name="broken",
        transform=Transform(jq_expression="{ id: .order.id"),
        destination="svc",
    )

    result = engine.run([rule], ExecutionContext(payload={"order": {"id": 42}}))

    assert result.matched_rule_name == "broken"
    assert result.destination == "svc"
    assert result.transformed_payload is None
    assert result.transform_applied is False
    errors = [e for e in result.errors if e.severity == IssueSeverity.ERROR]
    assert len(errors) == 1
    assert "syntax error" in errors[0].message
    assert errors[0].context == "JQ Transformation"
    assert errors[0].suggestion == "Check for unmatched quotes or brackets"
    assert result.trace[-1].success is False
    assert result.trace[-1].error is not None


def test_disabled_transform_passes_through(engine, expressions):
    """Test a disabled transform is not run."""
    rule = Rule(
        name="passthrough",
        transform=Transform(enabled=False, jq_expression="{ id: .order.id }"),
        destination="svc",
    )

    result = engine.run([rule], ExecutionContext(payload={"order": {"id": 1}}))

    assert result.matched_rule_name == "passthrough"
    assert result.transform_applied is False
    assert expressions.calls == []
    assert all(step.type != TraceStepType.TRANSFORM for step in result.trace)


def test_equal_priority_prefers_first_listed(engine):
    """Test ties are broken by input order."""
    rules = [
        Rule(name="first", priority=50, destination="a"),
        Rule(name="second", priority=50, destination="b"),
    ]

    result = engine.run(rules, ExecutionContext())

    assert result.matched_rule_name == "first"


def test_priority_based_routing(engine):
    """Test higher priority rules are tried first regardless of position."""
    rules = [
        Rule(name="low-priority", priority=1, destination="low-service"),
        Rule(name="high-priority", priority=10, destination="high-service"),
        Rule(name="medium-priority", priority=5, destination="medium-service"),
    ]

    result = engine.run(rules, ExecutionContext())

    assert result.destination == "high-service"


def test_disabled_rule_never_traced(engine):
    """Test disabled rules are excluded before matching."""
    rules = [
        Rule(name="disabled", priority=1000, enabled=False, destination="x"),
        Rule(name="enabled", priority=1, destination="y"),
    ]

    result = engine.run(rules, ExecutionContext())

    assert result.matched_rule_name == "enabled"
    assert all(step.rule_name != "disabled" for step in result.trace)


def test_and_or_semantics(engine):
    """Test AND requires all conditions while OR needs one."""
    conditions = [
        PayloadCondition(field="kind", operator="equals", value="order"),
        PayloadCondition(field="kind", operator="equals", value="invoice"),
    ]
    context = ExecutionContext(payload={"kind": "order"})

    and_rule = Rule(name="and", conditions=conditions, destination="d")
    or_rule = Rule(
        name="or", conditions=conditions, condition_operator="OR", destination="d"
    )

    assert engine.run([and_rule], context).matched_rule_name is None
    assert engine.run([or_rule], context).matched_rule_name == "or"


def test_trace_records_each_examined_rule(engine):
    """Test one condition step per examined rule and a final route step."""
    rules = [
        Rule(
            name="a",
            priority=30,
            conditions=[
                PayloadCondition(field="x", operator="equals", value=1),
                MetadataCondition(field="source", operator="exists"),
            ],
            condition_operator="OR",
            destination="da",
        ),
        Rule(name="b", priority=20, destination="db"),
        Rule(name="c", priority=10, destination="dc"),
    ]
    context = ExecutionContext(payload={"x": 2}, metadata={})

    result = engine.run(rules, context)

    assert [step.step for step in result.trace] == [1, 2, 3]
    assert [step.type for step in result.trace] == [
        TraceStepType.CONDITION,
        TraceStepType.CONDITION,
        TraceStepType.ROUTE,
    ]
    first = result.trace[0]
    assert first.rule_name == "a"
    assert first.success is False
    assert [c.matched for c in first.condition_results] == [False, False]
    assert first.condition_results[0].target == "x"
    assert first.condition_results[0].operator == "equals"
    assert result.trace[1].rule_name == "b"
    assert result.trace[2].output == "db"


def test_jq_condition_failure_is_warning(engine):
    """Test a failing jq condition is false and recorded as a warning."""
    rules = [
        Rule(name="jq", priority=10, conditions=[JQCondition(jq_expression="explode")],
             destination="a"),
        Rule(name="fallback", priority=1, destination="b"),
    ]

    result = engine.run(rules, ExecutionContext(payload={}))

    assert result.matched_rule_name == "fallback"
    warnings = [e for e in result.errors if e.severity == IssueSeverity.WARNING]
    assert len(warnings) == 1
    assert "explode" in warnings[0].message
    assert warnings[0].context == "Condition Evaluation"
    assert result.trace[0].condition_results[0].issue is not None


def test_empty_rules(engine):
    """Test an empty collection yields no match."""
    result = engine.run([], ExecutionContext())

    assert result.matched is False
    assert len(result.trace) == 1
    assert result.errors[0].message == NO_MATCH_MESSAGE


def test_metrics_are_consistent(engine):
    """Test durations are non-negative and total covers its parts."""
    rule = Rule(name="t", transform=Transform(jq_expression="."), destination="d")

    result = engine.run([rule], ExecutionContext(payload={"a": 1}))

    metrics = result.metrics
    assert metrics.matching_duration_ms >= 0
    assert metrics.transform_duration_ms >= 0
    assert metrics.total_duration_ms >= (
        metrics.matching_duration_ms + metrics.transform_duration_ms
    )


def test_no_transform_has_zero_transform_duration(engine):
    result = engine.run([Rule(name="t", destination="d")], ExecutionContext())

    assert result.metrics.transform_duration_ms == 0


def test_context_is_not_mutated(engine):
    """Test the engine leaves the input payload untouched."""
    payload = {"order": {"id": 7, "priority": "high"}}
    rule = high_priority_rule(transform=Transform(jq_expression="{ id: .order.id }"))

    engine.run([rule], ExecutionContext(payload=payload))

    assert payload == {"order": {"id": 7, "priority": "high"}}


def test_trace_keeps_payload_snapshot(engine):
    """Test later changes to the caller's payload do not alter the recorded trace."""
    payload = {"order": {"id": 7, "priority": "high"}}
    rule = high_priority_rule(transform=Transform(jq_expression="{ id: .order.id }"))

    result = engine.run([rule], ExecutionContext(payload=payload))
    payload["order"]["priority"] = "low"

    route_step, transform_step = result.trace[-2], result.trace[-1]
    assert route_step.input == {"order": {"id": 7, "priority": "high"}}
    assert transform_step.input == {"order": {"id": 7, "priority": "high"}}


def test_raising_expression_evaluator_is_contained():
    """Test a capability that raises still yields a result."""

    class Exploding:
        def evaluate(self, expression, data):
            raise RuntimeError("wasm trap")

        def validate(self, expression):
            raise RuntimeError("wasm trap")

    engine = RoutingEngine(expression_evaluator=Exploding())
    rules = [
        Rule(name="jq", priority=10, conditions=[JQCondition(jq_expression=".a")],
             destination="a"),
        Rule(name="t", priority=1, transform=Transform(jq_expression="."), destination="b"),
    ]

    result = engine.run(rules, ExecutionContext())

    assert result.matched_rule_name == "t"
    assert result.transform_applied is False
    severities = [e.severity for e in result.errors]
    assert severities == [IssueSeverity.WARNING, IssueSeverity.ERROR]
    assert "wasm trap" in result.errors[1].message


def test_order_candidates():
    """Test filtering and stable descending sort."""
    rules = [
        Rule(name="a", priority=1, destination="d"),
        Rule(name="b", priority=5, destination="d"),
        Rule(name="c", priority=5, enabled=False, destination="d"),
        Rule(name="d", priority=5, destination="d"),
    ]

    ordered = RoutingEngine.order_candidates(rules)

    assert [r.name for r in ordered] == ["b", "d", "a"]


@pytest.mark.asyncio
async def test_arun(engine):
    """Test the async entry point returns the same decision."""
    context = ExecutionContext(payload={"order": {"priority": "high"}})

    result = await engine.arun([high_priority_rule()], context)

    assert result.matched_rule_name == "high"
