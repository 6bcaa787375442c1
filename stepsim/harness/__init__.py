"""
stepsim Harness Package

Scripted drivers and state assertions for the step simulator.
"""
from .assertions import AssertionHarness
from .scenario import Command, Expectation, LedgerExpectation, Scenario, reference_scenario
from .transport import SimulatorTransport, InProcessTransport, SimulatorClient
from .verdict import HarnessVerdict, Mismatch, VerdictStatus

__all__ = [
    "AssertionHarness",
    "Command",
    "Expectation",
    "LedgerExpectation",
    "Scenario",
    "reference_scenario",
    "SimulatorTransport",
    "InProcessTransport",
    "SimulatorClient",
    "HarnessVerdict",
    "Mismatch",
    "VerdictStatus",
]
