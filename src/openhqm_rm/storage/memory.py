"""In-memory rule storage."""

from openhqm_rm.routing.models import Rule
from openhqm_rm.storage.interface import RuleStorageInterface


class MemoryRuleStorage(RuleStorageInterface):
    """Keep rules in process memory (tests and throwaway sessions)."""

    def __init__(self):
        self._rules: list[Rule] = []

    def save_rules(self, rules: list[Rule]) -> None:
        self._rules = list(rules)

    def load_rules(self) -> list[Rule]:
        return list(self._rules)

    def clear(self) -> None:
        self._rules = []
