"""
stepsim Harness: Run Verdict

Defines the result structure for a scripted harness run.
"""
from dataclasses import dataclass
from typing import Any, Optional
from enum import Enum
from ..core.errors import HarnessAssertionError, SimulatorError

class VerdictStatus(str, Enum):
    PASS = "PASS"
    FAIL = "FAIL"
    ERROR = "ERROR"

@dataclass
class Mismatch:
    """
    The first violated expectation. Later state is not inspected.
    """
    step: int
    participant: Optional[int]
    variable: str
    expected: Any
    actual: Any

    def describe(self) -> str:
        who = "global" if self.participant is None else f"participant {self.participant}"
        return (f"step {self.step}, {who}, '{self.variable}': "
                f"expected {self.expected}, got {self.actual}")

@dataclass
class HarnessVerdict:
    """
    Final verdict of a harness run.
    """
    status: VerdictStatus
    scenario: str
    steps_reached: int
    checks_passed: int
    checks_total: int
    mismatch: Optional[Mismatch] = None
    error: Optional[SimulatorError] = None

    def is_pass(self) -> bool:
        return self.status == VerdictStatus.PASS

    def summary(self) -> str:
        if self.status == VerdictStatus.PASS:
            return (f"PASS: {self.scenario} reached step {self.steps_reached}, "
                    f"{self.checks_passed}/{self.checks_total} checks passed")
        elif self.status == VerdictStatus.FAIL:
            return f"FAIL: {self.mismatch.describe()}"
        else:
            return f"ERROR: {type(self.error).__name__}: {self.error}"

    def raise_for_status(self):
        if self.status == VerdictStatus.PASS:
            return
        raise HarnessAssertionError(self.summary()) from self.error
