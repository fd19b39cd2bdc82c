"""JSON file rule storage."""

import json
from pathlib import Path

import structlog
from pydantic import TypeAdapter, ValidationError

from openhqm_rm.exceptions import StorageError
from openhqm_rm.routing.models import Rule
from openhqm_rm.storage.interface import RuleStorageInterface

logger = structlog.get_logger(__name__)

_rules_adapter = TypeAdapter(list[Rule])


class FileRuleStorage(RuleStorageInterface):
    """Store rules as a JSON array in a local file."""

    def __init__(self, path: str | Path):
        """
        Initialize file storage.

        Args:
            path: JSON file location (parent directories are created on save)
        """
        self.path = Path(path)

    def save_rules(self, rules: list[Rule]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
            tmp_path.write_bytes(_rules_adapter.dump_json(rules, indent=2))
            tmp_path.replace(self.path)
        except OSError as e:
            logger.error("Failed to save rules", path=str(self.path), error=str(e))
            raise StorageError(f"Failed to save rules to {self.path}") from e

        logger.debug("Rules saved", path=str(self.path), rule_count=len(rules))

    def load_rules(self) -> list[Rule]:
        if not self.path.exists():
            return []

        try:
            return _rules_adapter.validate_json(self.path.read_bytes())
        except (OSError, ValidationError, json.JSONDecodeError) as e:
            logger.error("Failed to load rules", path=str(self.path), error=str(e))
            return []

    def clear(self) -> None:
        try:
            self.path.unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to clear {self.path}") from e
