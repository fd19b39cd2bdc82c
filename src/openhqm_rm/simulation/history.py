"""Bounded history of routing runs."""

from collections import deque
from collections.abc import Iterator

from openhqm_rm.config import settings
from openhqm_rm.routing.models import SimulationResult


class SimulationHistory:
    """Keeps the most recent simulation results, newest first."""

    def __init__(self, max_size: int | None = None):
        if max_size is None:
            max_size = settings.simulation.history_size
        if max_size < 1:
            raise ValueError(f"History size must be at least 1, got {max_size}")
        self.max_size = max_size
        self._results: deque[SimulationResult] = deque(maxlen=self.max_size)
        self._current: SimulationResult | None = None

    def record(self, result: SimulationResult) -> None:
        """Add a result and make it the current one."""
        self._results.appendleft(result)
        self._current = result

    def get(self, simulation_id: str) -> SimulationResult | None:
        for result in self._results:
            if result.id == simulation_id:
                return result
        return None

    def select(self, simulation_id: str) -> SimulationResult | None:
        """Make a recorded result current.

        Returns:
            The selected result, or None if the id is unknown (selection unchanged)
        """
        result = self.get(simulation_id)
        if result is not None:
            self._current = result
        return result

    @property
    def current(self) -> SimulationResult | None:
        return self._current

    def clear(self) -> None:
        self._results.clear()
        self._current = None

    def __len__(self) -> int:
        return len(self._results)

    def __iter__(self) -> Iterator[SimulationResult]:
        return iter(self._results)
