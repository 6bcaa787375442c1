"""
stepsim: Error Taxonomy

Every simulator failure is terminal for the current run and carries enough
context (step, participant, variable, expected vs. actual) to diagnose it
without re-running.
"""
from typing import Any, Optional

class SimulatorError(Exception):
    """Base class for all simulator failures."""

    def __init__(
        self,
        message: str,
        *,
        step: Optional[int] = None,
        participant: Optional[int] = None,
        variable: Optional[str] = None,
        expected: Any = None,
        actual: Any = None,
    ):
        super().__init__(message)
        self.message = message
        self.step = step
        self.participant = participant
        self.variable = variable
        self.expected = expected
        self.actual = actual

    def context(self) -> dict:
        fields = {
            "step": self.step,
            "participant": self.participant,
            "variable": self.variable,
            "expected": self.expected,
            "actual": self.actual,
        }
        return {k: v for k, v in fields.items() if v is not None}

    def __str__(self) -> str:
        ctx = self.context()
        if not ctx:
            return self.message
        rendered = ", ".join(f"{k}={v}" for k, v in ctx.items())
        return f"{self.message} [{rendered}]"

class SequenceError(SimulatorError):
    """Step submitted out of order, or while the run cannot advance."""

class ActionError(SimulatorError):
    """Arguments do not match the action the schedule expects."""

class IntegrityError(SimulatorError):
    """A revealed value does not hash to the earlier commitment."""

class OutOfRangeError(SimulatorError):
    """Query for a step that was never reached."""

class DecodeError(SimulatorError):
    """Malformed externally supplied value."""

class LoadError(SimulatorError):
    """Program loaded while the simulator is not Uninitialized."""

class TransportUnavailable(SimulatorError):
    """The simulator could not be reached."""

class HarnessAssertionError(AssertionError):
    """Raised by HarnessVerdict.raise_for_status() for a non-passing run."""
