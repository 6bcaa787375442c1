"""
stepsim Simulator: State Hasher

Computes deterministic hashes of simulator snapshots.
Two runs of the same command sequence must produce the same hash log.
"""
import hashlib
import json
from typing import Dict, Any

class StateHasher:
    """
    Computes deterministic SHA-256 hashes of snapshot state.
    """

    @staticmethod
    def hash_state(state: Dict[str, Any]) -> str:
        """
        Computes a deterministic hash of the given state dictionary.
        Keys are sorted for determinism.
        """
        serialized = json.dumps(state, sort_keys=True, separators=(",", ":"))
        return hashlib.sha256(serialized.encode('utf-8')).hexdigest()

    @staticmethod
    def hash_snapshot(
        step: int,
        status: str,
        action: str,
        ledger: Dict[str, Dict[str, int]],
        published: list,
        stores: Dict[str, list]
    ) -> str:
        """
        Hash one complete snapshot.
        """
        state = {
            "step": step,
            "status": status,
            "action": action,
            "ledger": ledger,
            "published": published,
            "stores": stores
        }
        return StateHasher.hash_state(state)
