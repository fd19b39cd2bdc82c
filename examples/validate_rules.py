#!/usr/bin/env python3
"""
Validate an OpenHQM rule set file.

It checks rule names, limits, regex patterns, JQ syntax, priority ties and
unreachable rules.

Usage:
    python validate_rules.py rules.yaml

Exit codes:
    0 - Rule set is valid
    1 - Validation errors found
    2 - File not found or not a valid rule set
"""

import sys
from pathlib import Path

from openhqm_rm.exceptions import ConfigurationError
from openhqm_rm.expressions import JQEngine
from openhqm_rm.routing import RuleSet, RuleValidator


def main():
    """Main entry point."""
    if len(sys.argv) != 2:
        print("Usage: python validate_rules.py <rules-file>")
        sys.exit(2)

    file_path = Path(sys.argv[1])
    print(f"Validating: {file_path}")

    try:
        rule_set = RuleSet.from_file(file_path)
    except (FileNotFoundError, ConfigurationError) as e:
        print(f"Error: {e}")
        sys.exit(2)

    validator = RuleValidator(expressions=JQEngine.from_settings())
    is_valid = validator.validate(rule_set.rules)

    for issue in validator.issues:
        line = f"  [{issue.severity}] {issue.context}: {issue.message}"
        if issue.suggestion:
            line += f" (hint: {issue.suggestion})"
        print(line)

    if is_valid:
        print(f"Rule set is valid ({len(validator.warnings)} warnings)")
    else:
        print(f"Validation failed with {len(validator.errors)} errors")

    sys.exit(0 if is_valid else 1)


if __name__ == "__main__":
    main()
