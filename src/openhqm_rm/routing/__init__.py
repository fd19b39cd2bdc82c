"""Routing module for matching messages against rules and transforming them."""

from openhqm_rm.routing.engine import RoutingEngine
from openhqm_rm.routing.evaluator import ConditionEvaluator
from openhqm_rm.routing.models import (
    Condition,
    ConditionOperator,
    ConditionType,
    ExecutionContext,
    HeaderCondition,
    IssueSeverity,
    JQCondition,
    LogicalOperator,
    MetadataCondition,
    PayloadCondition,
    Rule,
    RuleSet,
    SimulationIssue,
    SimulationResult,
    TraceStep,
    TraceStepType,
    Transform,
)
from openhqm_rm.routing.validator import RuleValidator

__all__ = [
    "RoutingEngine",
    "ConditionEvaluator",
    "RuleValidator",
    "Condition",
    "ConditionOperator",
    "ConditionType",
    "ExecutionContext",
    "HeaderCondition",
    "IssueSeverity",
    "JQCondition",
    "LogicalOperator",
    "MetadataCondition",
    "PayloadCondition",
    "Rule",
    "RuleSet",
    "SimulationIssue",
    "SimulationResult",
    "TraceStep",
    "TraceStepType",
    "Transform",
]
