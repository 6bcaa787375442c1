"""
stepsim Simulator Package

Step-indexed state machine for two-party consensus programs.
"""
from .codec import UInt, Digest, Tup, Value
from .context import SimulatorConfig, DeterministicRNG
from .engine import StepSimulator, Snapshot
from .program import ProgramSpec, ScheduledAction
from .state_store import StepStore, LedgerState
from .state_hasher import StateHasher

__all__ = [
    "UInt",
    "Digest",
    "Tup",
    "Value",
    "SimulatorConfig",
    "DeterministicRNG",
    "StepSimulator",
    "Snapshot",
    "ProgramSpec",
    "ScheduledAction",
    "StepStore",
    "LedgerState",
    "StateHasher",
]
