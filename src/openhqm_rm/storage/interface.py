"""Rule storage interface definition."""

from abc import ABC, abstractmethod

from openhqm_rm.routing.models import Rule


class RuleStorageInterface(ABC):
    """Abstract interface for rule persistence.

    Storage is an explicitly invoked collaborator; the routing engine never
    reads from it on its own.
    """

    @abstractmethod
    def save_rules(self, rules: list[Rule]) -> None:
        """
        Persist a rule collection, replacing what was stored.

        Args:
            rules: Rules in their original order

        Raises:
            StorageError: If the rules cannot be written
        """
        pass

    @abstractmethod
    def load_rules(self) -> list[Rule]:
        """
        Load the stored rule collection.

        Returns:
            Stored rules, or an empty list if nothing usable is stored
        """
        pass

    @abstractmethod
    def clear(self) -> None:
        """Remove all stored rules."""
        pass
