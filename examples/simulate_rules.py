#!/usr/bin/env python3
"""
Route a sample message through a rule set and print the trace.

Usage:
    python simulate_rules.py rules.yaml message.json

The message file holds either a bare payload or an object with
"payload", "headers" and "metadata" keys.
"""

import json
import sys
from pathlib import Path

from openhqm_rm.config import settings
from openhqm_rm.routing import ExecutionContext, RoutingEngine, RuleSet
from openhqm_rm.utils import setup_logging


def load_context(path: Path) -> ExecutionContext:
    data = json.loads(path.read_text())
    if isinstance(data, dict) and "payload" in data:
        return ExecutionContext.model_validate(data)
    return ExecutionContext(payload=data)


def main():
    """Main entry point."""
    if len(sys.argv) != 3:
        print("Usage: python simulate_rules.py <rules-file> <message-file>")
        sys.exit(2)

    setup_logging(settings.monitoring.log_level, "text")

    rule_set = RuleSet.from_file(sys.argv[1])
    context = load_context(Path(sys.argv[2]))

    result = RoutingEngine().run(rule_set.rules, context)

    for step in result.trace:
        status = "ok" if step.success else "--"
        print(
            f"{step.step:>3} {status} {step.type:<9} "
            f"{step.description} ({step.duration_ms:.2f}ms)"
        )

    print()
    print(f"Matched rule: {result.matched_rule_name or '(none)'}")
    print(f"Destination:  {result.destination or '(none)'}")
    if result.transform_applied:
        print("Payload:")
        print(json.dumps(result.transformed_payload, indent=2))
    for issue in result.errors:
        print(f"[{issue.severity}] {issue.context}: {issue.message}")
    print(
        f"Timing: total {result.metrics.total_duration_ms:.2f}ms, "
        f"matching {result.metrics.matching_duration_ms:.2f}ms, "
        f"transform {result.metrics.transform_duration_ms:.2f}ms"
    )


if __name__ == "__main__":
    main()
