"""Simulation of routing rules against sample messages."""

from openhqm_rm.simulation.history import SimulationHistory
from openhqm_rm.simulation.models import CaseOutcome, ExpectedOutput, SimulationCase
from openhqm_rm.simulation.simulator import Simulator

__all__ = ["CaseOutcome", "ExpectedOutput", "SimulationCase", "SimulationHistory", "Simulator"]
