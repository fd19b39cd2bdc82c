"""JQ expression evaluation used by conditions and transforms."""

from openhqm_rm.expressions.engine import (
    ExpressionEvaluator,
    JQEngine,
    TransformResult,
    ValidationResult,
)

__all__ = ["ExpressionEvaluator", "JQEngine", "TransformResult", "ValidationResult"]
