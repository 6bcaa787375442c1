"""
stepsim Protocol: Commit-Reveal Wager

Rock-paper-scissors wager between Alice and Bob.
Alice commits to Digest(salt, hand), Bob plays in the clear,
Alice reveals, and the settle step pays the winner.
"""
from enum import IntEnum
from typing import Dict, Mapping
from ..core.errors import IntegrityError
from ..simulator.codec import Digest, Tup, UInt, Value, digest_of, equals, format_value
from ..simulator.program import ProgramSpec, ScheduledAction

ALICE = 0
BOB = 1

ROCK = 0
PAPER = 1
SCISSORS = 2
HANDS = (ROCK, PAPER, SCISSORS)

SALT_BITS = 64

class Outcome(IntEnum):
    B_WINS = 0
    DRAW = 1
    A_WINS = 2

def is_hand(value: int) -> bool:
    return value in HANDS

def is_wager(value: int) -> bool:
    return value > 0

def resolve(hand_a: int, hand_b: int) -> Outcome:
    """
    Total over HANDS x HANDS. Rock beats scissors, paper beats rock,
    scissors beats paper.
    """
    if hand_a not in HANDS or hand_b not in HANDS:
        raise ValueError(f"hands must be in {HANDS}, got ({hand_a}, {hand_b})")
    return Outcome((hand_a + (4 - hand_b)) % 3)

def settlement(outcome: Outcome, wager: int) -> Dict[int, int]:
    """Signed amounts per participant. A draw settles at zero for both."""
    if outcome == Outcome.A_WINS:
        return {ALICE: wager, BOB: -wager}
    if outcome == Outcome.B_WINS:
        return {ALICE: -wager, BOB: wager}
    return {ALICE: 0, BOB: 0}

def make_commitment(salt: int, hand: int) -> Digest:
    return digest_of(Tup((UInt(salt), UInt(hand))))

def verify_reveal(commitment: Value, salt: Value, hand: Value):
    """
    Recomputes Digest(salt, hand) and checks it against the commitment.
    Raises IntegrityError on mismatch.
    """
    recomputed = digest_of(Tup((salt, hand)))
    if not isinstance(commitment, Digest) or not equals(commitment, recomputed):
        raise IntegrityError(
            "revealed values do not match the commitment",
            variable="commitAlice",
            expected=format_value(commitment),
            actual=format_value(recomputed),
        )

def _derive_commitment(store: Mapping[str, Value]) -> Digest:
    return digest_of(Tup((store["saltAlice"], store["handAlice"])))

def _verify_alice_reveal(consensus: Mapping[str, Value], revealed: Mapping[str, Value]):
    verify_reveal(consensus["commitAlice"], revealed["saltAlice"], revealed["handAlice"])

def _settle(consensus: Mapping[str, Value]) -> Dict[int, int]:
    outcome = resolve(consensus["handAlice"].value, consensus["handBob"].value)
    return settlement(outcome, consensus["wager"].value)

class WagerProtocol:
    """
    Builds the wager program the simulator runs.

    Schedule (first action is applied from the snapshot after both
    participants have been initialized):
      Alice picks wager, hand and salt; consensus accepts her commitment;
      both observe; Bob accepts the wager and picks a hand; consensus accepts
      it; both observe; consensus accepts Alice's reveal; both observe; Bob
      settles.
    """
    NAME = "rps-commit-reveal"
    PARTICIPANTS = ("Alice", "Bob")

    def __init__(self, salt_bits: int = SALT_BITS):
        self.salt_bits = salt_bits

    def actions(self):
        return (
            ScheduledAction.interact(ALICE, "wager", label="Alice.getWager", domain=is_wager),
            ScheduledAction.interact(ALICE, "handAlice", label="Alice.getHand", domain=is_hand),
            ScheduledAction.interact(ALICE, "saltAlice", label="Alice.random", random_bits=self.salt_bits),
            ScheduledAction.publish(
                ALICE, ("wager", "commitAlice"), label="Alice.publish(wager, commitAlice)",
                derives=(("commitAlice", _derive_commitment),),
            ),
            ScheduledAction.observe(ALICE),
            ScheduledAction.observe(BOB),
            ScheduledAction.acknowledge(BOB, "Bob.acceptWager"),
            ScheduledAction.interact(BOB, "handBob", label="Bob.getHand", domain=is_hand),
            ScheduledAction.publish(BOB, ("handBob",), label="Bob.publish(handBob)"),
            ScheduledAction.observe(ALICE),
            ScheduledAction.observe(BOB),
            ScheduledAction.publish(
                ALICE, ("saltAlice", "handAlice"), label="Alice.publish(saltAlice, handAlice)",
                verify=_verify_alice_reveal,
            ),
            ScheduledAction.observe(ALICE),
            ScheduledAction.observe(BOB),
            ScheduledAction.finalize(BOB, _settle, label="settle"),
        )

    def program(self) -> ProgramSpec:
        return ProgramSpec(name=self.NAME, participants=self.PARTICIPANTS, actions=self.actions())
