from .wager import (
    ALICE,
    BOB,
    HANDS,
    Outcome,
    WagerProtocol,
    make_commitment,
    resolve,
    settlement,
    verify_reveal,
)

__all__ = [
    "ALICE",
    "BOB",
    "HANDS",
    "Outcome",
    "WagerProtocol",
    "make_commitment",
    "resolve",
    "settlement",
    "verify_reveal",
]
