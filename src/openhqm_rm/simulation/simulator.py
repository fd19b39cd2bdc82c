"""Simulator tying the routing engine to a history and saved cases."""

from collections.abc import Sequence

import structlog

from openhqm_rm.routing.engine import RoutingEngine
from openhqm_rm.routing.models import ExecutionContext, Rule, SimulationResult
from openhqm_rm.simulation.history import SimulationHistory
from openhqm_rm.simulation.models import CaseOutcome, SimulationCase

logger = structlog.get_logger(__name__)


class Simulator:
    """Run rules against sample messages and keep the results."""

    def __init__(self, engine: RoutingEngine, history: SimulationHistory | None = None):
        """Initialize the simulator.

        Args:
            engine: Routing engine used for every run
            history: Where results are recorded, a new bounded history by default
        """
        self.engine = engine
        self.history = history if history is not None else SimulationHistory()

    def simulate(self, rules: Sequence[Rule], context: ExecutionContext) -> SimulationResult:
        """Run the engine and record the result."""
        result = self.engine.run(rules, context)
        self.history.record(result)
        return result

    async def asimulate(
        self, rules: Sequence[Rule], context: ExecutionContext
    ) -> SimulationResult:
        """Async variant of :meth:`simulate`."""
        result = await self.engine.arun(rules, context)
        self.history.record(result)
        return result

    def run_case(self, rules: Sequence[Rule], case: SimulationCase) -> CaseOutcome:
        """Replay a saved case and compare the result with its expectation.

        A case without an expectation passes whenever the run completes.
        """
        result = self.simulate(rules, case.input)
        mismatches = case.expected.mismatches(result) if case.expected else []

        if mismatches:
            logger.info("Simulation case failed", case=case.name, mismatches=mismatches)
        return CaseOutcome(
            case_name=case.name,
            passed=not mismatches,
            mismatches=mismatches,
            result=result,
        )

    def run_cases(
        self, rules: Sequence[Rule], cases: Sequence[SimulationCase]
    ) -> list[CaseOutcome]:
        return [self.run_case(rules, case) for case in cases]
