"""
stepsim Simulator: Run Configuration

Immutable configuration for a simulator run plus the seeded RNG
every participant's randomness flows through.
"""
import hashlib
import random
from dataclasses import dataclass, field

@dataclass(frozen=True)
class SimulatorConfig:
    """
    Immutable configuration for a simulation run.
    """
    rng_seed: int = 42                 # Base seed for participant RNGs
    connect_attempts: int = 10         # wait_for_port() pings before giving up
    connect_delay_s: float = 0.1       # Pause between pings
    config_hash: str = field(default="auto")

    def __post_init__(self):
        if self.config_hash == "auto":
            object.__setattr__(self, "config_hash", self._compute_hash())

    def verify_hash(self) -> bool:
        """
        Recomputes config hash and verifies integrity.
        """
        return self._compute_hash() == self.config_hash

    def _compute_hash(self) -> str:
        data = f"{self.rng_seed}:{self.connect_attempts}:{self.connect_delay_s}"
        return hashlib.sha256(data.encode()).hexdigest()[:16]

    def participant_seed(self, participant: int, seed: int) -> int:
        """Derives a participant's RNG seed from the run seed."""
        data = f"{self.rng_seed}:{participant}:{seed}"
        return int.from_bytes(hashlib.sha256(data.encode()).digest()[:8], "big")

class DeterministicRNG:
    """
    Wrapper around random.Random with explicit seed.
    Provides reproducible randomness.
    """
    def __init__(self, seed: int):
        self._rng = random.Random(seed)

    def getrandbits(self, k: int) -> int:
        return self._rng.getrandbits(k)
