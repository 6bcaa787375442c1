"""
stepsim Harness: Scenarios

A scenario is a literal driver script plus the state expected at
checkpoint steps. The reference scenario replays the two-party wager
trace: Alice wagers 10 with hand 0 and salt 4444, Bob plays hand 1.
"""
from dataclasses import dataclass
from typing import Any, List, Optional, Tuple
from pydantic import BaseModel, ConfigDict
from ..core.types import CONSENSUS, NO_VALUE, SETTLEMENT_OFFSET, SimulatorStatus

class Command(BaseModel):
    """One driver call: init, initFor or respondWithVal with its arguments."""
    model_config = ConfigDict(frozen=True)

    op: str
    args: Tuple[int, ...] = ()

class Expectation(BaseModel):
    """Expected (tag, contents) of a participant's variable at a step."""
    model_config = ConfigDict(frozen=True)

    step: int
    participant: int
    variable: str
    tag: str
    contents: Any

class LedgerExpectation(BaseModel):
    model_config = ConfigDict(frozen=True)

    step: int
    participant: int
    offset: int = SETTLEMENT_OFFSET
    amount: int

@dataclass(frozen=True)
class Scenario:
    name: str
    commands: Tuple[Command, ...]
    expectations: Tuple[Expectation, ...] = ()
    ledger: Tuple[LedgerExpectation, ...] = ()
    final_status: Optional[SimulatorStatus] = None

    @property
    def checks_total(self) -> int:
        return len(self.expectations) + len(self.ledger) + (1 if self.final_status else 0)

def init() -> Command:
    return Command(op="init")

def init_for(participant: int, seed: int) -> Command:
    return Command(op="initFor", args=(participant, seed))

def respond(step: int, *args: int) -> Command:
    """respondWithVal(step, step, *args)."""
    return Command(op="respondWithVal", args=(step, step) + tuple(args))

def uint(n: int) -> dict:
    return {"tag": "V_UInt", "contents": n}

def expect(step: int, participant: int, variable: str, tagged: dict) -> Expectation:
    return Expectation(step=step, participant=participant, variable=variable,
                       tag=tagged["tag"], contents=tagged["contents"])

REFERENCE_WAGER = 10
REFERENCE_HAND_ALICE = 0
REFERENCE_SALT_ALICE = 4444
REFERENCE_HAND_BOB = 1

# Digest contents print as the tuple it commits to: (salt, hand)
REFERENCE_COMMITMENT = {
    "tag": "V_Digest",
    "contents": {
        "tag": "V_Tuple",
        "contents": [uint(REFERENCE_SALT_ALICE), uint(REFERENCE_HAND_ALICE)],
    },
}

def reference_commands() -> List[Command]:
    return [
        init(),
        init_for(0, 0),
        init_for(1, 1),
        respond(2, REFERENCE_WAGER, 0),
        respond(3, REFERENCE_HAND_ALICE),
        respond(4, REFERENCE_SALT_ALICE),
        respond(5, 0, CONSENSUS),
        respond(6, NO_VALUE, 0),
        respond(7, NO_VALUE, 1),
        respond(8, NO_VALUE),
        respond(9, REFERENCE_HAND_BOB),
        respond(10, 1, CONSENSUS),
        respond(11, NO_VALUE, 0),
        respond(12, NO_VALUE, 1),
        respond(13, 0, CONSENSUS),
        respond(14, NO_VALUE, 0),
        respond(15, NO_VALUE, 1),
        respond(16, NO_VALUE, 1),
    ]

def reference_scenario() -> Scenario:
    expectations = (
        # Alice sees her own publish
        expect(7, 0, "commitAlice", REFERENCE_COMMITMENT),
        expect(7, 0, "wager", uint(REFERENCE_WAGER)),
        # Bob sees Alice's publish
        expect(9, 0, "commitAlice", REFERENCE_COMMITMENT),
        expect(9, 0, "wager", uint(REFERENCE_WAGER)),
        expect(9, 1, "commitAlice", REFERENCE_COMMITMENT),
        expect(9, 1, "wager", uint(REFERENCE_WAGER)),
        # Alice sees Bob's publish
        expect(12, 0, "handBob", uint(REFERENCE_HAND_BOB)),
        # Bob sees his own publish
        expect(13, 1, "handBob", uint(REFERENCE_HAND_BOB)),
        # Alice sees her reveal
        expect(15, 0, "saltAlice", uint(REFERENCE_SALT_ALICE)),
        expect(15, 0, "handAlice", uint(REFERENCE_HAND_ALICE)),
        # Bob sees Alice's reveal
        expect(16, 1, "saltAlice", uint(REFERENCE_SALT_ALICE)),
        expect(16, 1, "handAlice", uint(REFERENCE_HAND_ALICE)),
    )
    ledger = (
        # Bob wins
        LedgerExpectation(step=17, participant=1, amount=REFERENCE_WAGER),
        LedgerExpectation(step=17, participant=0, amount=-REFERENCE_WAGER),
    )
    return Scenario(
        name="reference-wager",
        commands=tuple(reference_commands()),
        expectations=expectations,
        ledger=ledger,
        final_status=SimulatorStatus.DONE,
    )
