"""
stepsim Harness: Assertion Harness

Drives a simulator through a scenario ONE command at a time and checks the
expected state at each checkpoint step. The first mismatch ends the run.
"""
from collections import defaultdict
from typing import Dict, List, Optional
from .scenario import Command, Expectation, LedgerExpectation, Scenario
from .transport import SimulatorClient
from .verdict import HarnessVerdict, Mismatch, VerdictStatus
from ..core.errors import SimulatorError
from ..core.logger import bind_run_context, clear_run_context, get_logger
from ..simulator import codec

logger = get_logger("AssertionHarness")

class AssertionHarness:
    """
    Invariant: command in -> checkpoints at the new head checked -> next command.
    """
    def __init__(self, client: SimulatorClient):
        self.client = client
        self.head = -1
        self.checks_passed = 0

    def run(self, scenario: Scenario) -> HarnessVerdict:
        """
        Execute the scenario.
        Returns a PASS, FAIL (first mismatch) or ERROR (simulator error) verdict.
        """
        self.head = -1
        self.checks_passed = 0
        locals_by_step: Dict[int, List[Expectation]] = defaultdict(list)
        for exp in scenario.expectations:
            locals_by_step[exp.step].append(exp)
        ledger_by_step: Dict[int, List[LedgerExpectation]] = defaultdict(list)
        for exp in scenario.ledger:
            ledger_by_step[exp.step].append(exp)

        bind_run_context(scenario=scenario.name)
        try:
            try:
                self.client.wait_for_port()
                self.client.reset_server()
                self.client.ping()
                self.client.load()
                for command in scenario.commands:
                    self.head = self._dispatch(command)
                    mismatch = (
                        self._check_locals(locals_by_step.pop(self.head, []))
                        or self._check_ledger(ledger_by_step.pop(self.head, []))
                    )
                    if mismatch:
                        return self._fail(scenario, mismatch)

                mismatch = self._unreached(locals_by_step, ledger_by_step)
                if mismatch is None and scenario.final_status is not None:
                    mismatch = self._check_status(scenario.final_status.value)
                if mismatch:
                    return self._fail(scenario, mismatch)
            except SimulatorError as e:
                logger.error("harness_error", step=self.head, error=type(e).__name__, detail=str(e))
                return self._verdict(scenario, VerdictStatus.ERROR, error=e)

            logger.info("harness_passed", steps_reached=self.head, checks=self.checks_passed)
            return self._verdict(scenario, VerdictStatus.PASS)
        finally:
            clear_run_context()

    def _dispatch(self, command: Command) -> int:
        if command.op == "init":
            return self.client.init()
        if command.op == "initFor":
            return self.client.init_for(*command.args)
        if command.op == "respondWithVal":
            return self.client.respond_with_val(*command.args)
        raise ValueError(f"unknown command: {command.op}")

    def _check_locals(self, expectations: List[Expectation]) -> Optional[Mismatch]:
        for exp in expectations:
            entry = self.client.get_var(exp.variable, exp.step, exp.participant)
            expected = f"{exp.tag} {exp.contents}"
            if entry is None:
                return Mismatch(exp.step, exp.participant, exp.variable, expected, "<absent>")
            tagged = entry[1]
            if tagged.get("tag") != exp.tag:
                return Mismatch(exp.step, exp.participant, exp.variable, expected,
                                f"{tagged.get('tag')} {tagged.get('contents')}")
            want = codec.from_wire({"tag": exp.tag, "contents": exp.contents})
            got = codec.from_wire(tagged)
            if not codec.equals(want, got):
                return Mismatch(exp.step, exp.participant, exp.variable,
                                codec.format_value(want), codec.format_value(got))
            self._passed(exp.step, exp.participant, exp.variable)
        return None

    def _check_ledger(self, expectations: List[LedgerExpectation]) -> Optional[Mismatch]:
        for exp in expectations:
            ledger = self.client.get_state_globals(exp.step)["e_ledger"]
            actual = ledger.get(str(exp.participant), {}).get(str(exp.offset))
            variable = f"e_ledger[{exp.offset}]"
            if actual != exp.amount:
                return Mismatch(exp.step, exp.participant, variable, exp.amount, actual)
            self._passed(exp.step, exp.participant, variable)
        return None

    def _check_status(self, expected: str) -> Optional[Mismatch]:
        actual = self.client.get_status()
        if actual != expected:
            return Mismatch(self.head, None, "status", expected, actual)
        self._passed(self.head, None, "status")
        return None

    def _unreached(self, *pending: Dict[int, list]) -> Optional[Mismatch]:
        steps = sorted(step for table in pending for step, exps in table.items() if exps)
        if not steps:
            return None
        return Mismatch(steps[0], None, "checkpoint", f"step {steps[0]} reached", f"head is {self.head}")

    def _passed(self, step: int, participant: Optional[int], variable: str):
        self.checks_passed += 1
        logger.debug("checkpoint_passed", step=step, participant=participant, variable=variable)

    def _fail(self, scenario: Scenario, mismatch: Mismatch) -> HarnessVerdict:
        logger.error("assertion_mismatch", step=mismatch.step, participant=mismatch.participant,
                     variable=mismatch.variable, expected=str(mismatch.expected), actual=str(mismatch.actual))
        return self._verdict(scenario, VerdictStatus.FAIL, mismatch=mismatch)

    def _verdict(self, scenario: Scenario, status: VerdictStatus, mismatch: Optional[Mismatch] = None,
                 error: Optional[SimulatorError] = None) -> HarnessVerdict:
        return HarnessVerdict(
            status=status,
            scenario=scenario.name,
            steps_reached=self.head,
            checks_passed=self.checks_passed,
            checks_total=scenario.checks_total,
            mismatch=mismatch,
            error=error,
        )
