"""Data models for routing rules and simulation results."""

import json
import uuid
from datetime import datetime, timezone
from enum import StrEnum
from pathlib import Path
from typing import Annotated, Any, Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from openhqm_rm.exceptions import ConfigurationError


class ConditionType(StrEnum):
    """Namespace a condition is evaluated against."""

    PAYLOAD = "payload"
    HEADER = "header"
    METADATA = "metadata"
    JQ = "jq"


class ConditionOperator(StrEnum):
    """Comparison applied by field-based conditions."""

    EQUALS = "equals"
    CONTAINS = "contains"
    REGEX = "regex"
    EXISTS = "exists"


class LogicalOperator(StrEnum):
    """How a rule combines its conditions."""

    AND = "AND"
    OR = "OR"


class TraceStepType(StrEnum):
    """Kind of work recorded in a simulation trace."""

    CONDITION = "condition"
    ROUTE = "route"
    TRANSFORM = "transform"


class IssueSeverity(StrEnum):
    """Severity of a simulation issue."""

    ERROR = "error"
    WARNING = "warning"


# Operators that require a non-null operand
VALUE_OPERATORS = (ConditionOperator.CONTAINS, ConditionOperator.REGEX)


class _FieldCondition(BaseModel):
    """Predicate over a field of the payload, headers or metadata."""

    model_config = ConfigDict(frozen=True)

    field: str | None = Field(
        default=None, description="Dot-separated path (e.g., 'order.priority')"
    )
    operator: ConditionOperator = Field(
        default=ConditionOperator.EQUALS, description="Comparison operator"
    )
    value: Any = Field(default=None, description="Operand for equals/contains/regex")

    @model_validator(mode="after")
    def _require_operand(self) -> "_FieldCondition":
        if self.operator in VALUE_OPERATORS and self.value is None:
            raise ValueError(f"'{self.operator}' condition requires a value")
        return self


class PayloadCondition(_FieldCondition):
    """Condition on a field of the message body."""

    type: Literal["payload"] = "payload"


class HeaderCondition(_FieldCondition):
    """Condition on a message header (looked up as a single literal key)."""

    type: Literal["header"] = "header"


class MetadataCondition(_FieldCondition):
    """Condition on a field of the message metadata."""

    type: Literal["metadata"] = "metadata"


class JQCondition(BaseModel):
    """Condition expressed as a JQ filter over the whole payload."""

    model_config = ConfigDict(frozen=True)

    type: Literal["jq"] = "jq"
    jq_expression: str = Field(..., min_length=1, description="JQ expression, truthy-checked")


Condition = Annotated[
    PayloadCondition | HeaderCondition | MetadataCondition | JQCondition,
    Field(discriminator="type"),
]


class Transform(BaseModel):
    """Optional JQ rewrite of a matched message's payload."""

    model_config = ConfigDict(frozen=True)

    enabled: bool = Field(default=True, description="Apply the transform when the rule matches")
    jq_expression: str = Field(..., min_length=1, description="JQ transformation expression")


class Rule(BaseModel):
    """A named routing directive.

    Enabled rules are tried in descending priority order; the first one whose
    conditions hold selects the destination and, optionally, transforms the payload.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1, description="Unique rule name")
    description: str | None = Field(default=None, description="Rule description")
    enabled: bool = Field(default=True, description="Enable/disable this rule")
    priority: int = Field(default=100, description="Rule priority (higher = first)")
    conditions: list[Condition] = Field(
        default_factory=list, description="Conditions; empty means always match"
    )
    condition_operator: LogicalOperator = Field(
        default=LogicalOperator.AND, description="Combination applied across conditions"
    )
    transform: Transform | None = Field(default=None, description="Optional payload transform")
    destination: str = Field(..., min_length=1, description="Target identifier")


class RuleSet(BaseModel):
    """Versioned collection of rules with unique names."""

    version: str = Field(default="1.0", description="Configuration version")
    rules: list[Rule] = Field(default_factory=list, description="List of rules")

    @field_validator("rules")
    @classmethod
    def _unique_names(cls, rules: list[Rule]) -> list[Rule]:
        seen: set[str] = set()
        for rule in rules:
            if rule.name in seen:
                raise ValueError(f"Duplicate rule name '{rule.name}'")
            seen.add(rule.name)
        return rules

    @classmethod
    def from_file(cls, file_path: str | Path) -> "RuleSet":
        """Load a rule set from a YAML or JSON file.

        Args:
            file_path: Path to the rule set file

        Returns:
            RuleSet instance

        Raises:
            FileNotFoundError: If the file does not exist
            ConfigurationError: If the file format or content is invalid
        """
        path = Path(file_path)
        if not path.exists():
            raise FileNotFoundError(f"Rule set file not found: {file_path}")

        try:
            content = path.read_text(encoding="utf-8")
            if path.suffix in [".yaml", ".yml"]:
                data = yaml.safe_load(content)
            elif path.suffix == ".json":
                data = json.loads(content)
            else:
                raise ConfigurationError(f"Unsupported rule set format: {path.suffix}")
        except (UnicodeDecodeError, yaml.YAMLError, json.JSONDecodeError) as e:
            raise ConfigurationError(f"Failed to parse {path}: {e}") from e

        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: Any) -> "RuleSet":
        """Create a rule set from parsed data.

        A bare list is accepted as the list of rules.
        """
        if isinstance(data, list):
            data = {"rules": data}
        if not isinstance(data, dict):
            raise ConfigurationError("Rule set must be a mapping or a list of rules")
        try:
            return cls.model_validate(data)
        except ValueError as e:
            raise ConfigurationError(f"Invalid rule set: {e}") from e


class ExecutionContext(BaseModel):
    """Input of a single matching attempt."""

    model_config = ConfigDict(frozen=True)

    payload: Any = Field(default_factory=dict, description="Message body (any JSON value)")
    headers: dict[str, str] = Field(default_factory=dict, description="Message headers")
    metadata: dict[str, Any] = Field(default_factory=dict, description="Message metadata")


class SimulationIssue(BaseModel):
    """Error or warning surfaced by a routing run."""

    severity: IssueSeverity = Field(..., description="error or warning")
    message: str = Field(..., description="What went wrong")
    context: str | None = Field(default=None, description="Where it happened")
    suggestion: str | None = Field(default=None, description="Remediation hint")


class ConditionOutcome(BaseModel):
    """Result of evaluating one condition."""

    matched: bool
    issue: SimulationIssue | None = None


class ConditionTrace(BaseModel):
    """Per-condition detail recorded inside a condition trace step."""

    index: int = Field(..., description="Position of the condition in the rule")
    type: str = Field(..., description="Condition type")
    target: str | None = Field(default=None, description="Field path or JQ expression")
    operator: str | None = Field(default=None, description="Operator for field conditions")
    matched: bool = Field(..., description="Condition result")
    issue: str | None = Field(default=None, description="Warning raised while evaluating")


class TraceStep(BaseModel):
    """One recorded unit of work in a routing run."""

    step: int = Field(..., description="1-based position in the trace", ge=1)
    type: TraceStepType = Field(..., description="condition, route or transform")
    description: str = Field(..., description="Human-readable summary")
    rule_name: str | None = Field(default=None, description="Rule the step concerns")
    input: Any = Field(default=None, description="Step input")
    output: Any = Field(default=None, description="Step output")
    condition_results: list[ConditionTrace] = Field(
        default_factory=list, description="Per-condition results for condition steps"
    )
    duration_ms: float = Field(..., description="Elapsed time", ge=0)
    success: bool = Field(..., description="Whether the step succeeded or matched")
    error: str | None = Field(default=None, description="Error message, if any")


class SimulationMetrics(BaseModel):
    """Wall-clock timings of a routing run in milliseconds."""

    total_duration_ms: float = Field(default=0.0, ge=0)
    matching_duration_ms: float = Field(default=0.0, ge=0)
    transform_duration_ms: float = Field(default=0.0, ge=0)


class SimulationResult(BaseModel):
    """Output of one routing run."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), description="Run identifier")
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc), description="Run start time"
    )
    matched_rule_name: str | None = Field(default=None, description="Matched rule name")
    destination: str | None = Field(default=None, description="Destination of matched rule")
    transformed_payload: Any = Field(default=None, description="Transform output")
    transform_applied: bool = Field(
        default=False, description="True when a transform ran successfully"
    )
    trace: list[TraceStep] = Field(default_factory=list, description="Steps in evaluation order")
    errors: list[SimulationIssue] = Field(default_factory=list, description="Errors and warnings")
    metrics: SimulationMetrics = Field(default_factory=SimulationMetrics)

    @property
    def matched(self) -> bool:
        return self.matched_rule_name is not None
