"""
stepsim Simulator: Step Store and Ledger State

In-memory, step-indexed storage for the simulator.
Frames are append-only: once a step is sealed it never changes.
"""
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Tuple
from .codec import Value, to_tagged
from ..core.errors import OutOfRangeError, SequenceError
from ..core.types import SETTLEMENT_OFFSET

Frame = Dict[int, Dict[str, Value]]

class StepStore:
    """
    Per-participant name -> Value stores, one frame per step.
    A variable set at step N stays visible at later steps unless redefined.
    """
    def __init__(self, participants: Iterable[int]):
        self.participants: Tuple[int, ...] = tuple(participants)
        self._frames: List[Mapping[int, Mapping[str, Value]]] = []
        self._open: Optional[Frame] = None

    def __len__(self) -> int:
        return len(self._frames)

    def begin(self, step: int):
        """Opens the frame for `step`, seeded from the previous frame."""
        if self._open is not None:
            raise SequenceError("a frame is already open", step=len(self._frames))
        if step != len(self._frames):
            raise SequenceError("frames must be opened in order", expected=len(self._frames), actual=step)
        if self._frames:
            previous = self._frames[-1]
            self._open = {p: dict(previous[p]) for p in self.participants}
        else:
            self._open = {p: {} for p in self.participants}

    def set(self, step: int, participant: int, name: str, value: Value):
        if self._open is None or step != len(self._frames):
            raise SequenceError("step is sealed or not open", step=step, participant=participant, variable=name)
        if participant not in self._open:
            raise OutOfRangeError("unknown participant", step=step, participant=participant)
        # dict keeps the original insertion position on overwrite
        self._open[participant][name] = value

    def open_view(self, participant: int) -> Mapping[str, Value]:
        """Read-only view of a participant's store in the open frame."""
        if self._open is None:
            raise SequenceError("no frame is open")
        return MappingProxyType(self._open[participant])

    def seal(self, step: int):
        if self._open is None or step != len(self._frames):
            raise SequenceError("step is not open", step=step)
        self._frames.append(MappingProxyType({
            p: MappingProxyType(dict(store)) for p, store in self._open.items()
        }))
        self._open = None

    def discard(self, step: int):
        """Drops an open frame; the store is left as it was before begin()."""
        if self._open is not None and step == len(self._frames):
            self._open = None

    def _frame(self, step: int, participant: int) -> Mapping[str, Value]:
        if not 0 <= step < len(self._frames):
            raise OutOfRangeError("step was never reached", step=step)
        frame = self._frames[step]
        if participant not in frame:
            raise OutOfRangeError("unknown participant", step=step, participant=participant)
        return frame[participant]

    def get(self, step: int, participant: int, name: str) -> Optional[Value]:
        return self._frame(step, participant).get(name)

    def items(self, step: int, participant: int) -> List[Tuple[str, Value]]:
        """Ordered (name, value) pairs, in insertion order."""
        return list(self._frame(step, participant).items())

    def wire_items(self, step: int, participant: int) -> List[Tuple[str, object]]:
        return [(name, to_tagged(value)) for name, value in self.items(step, participant)]

class LedgerState:
    """
    Immutable balance table: participant -> {time offset -> signed amount}.
    """
    def __init__(self, entries: Optional[Mapping[int, Mapping[int, int]]] = None):
        self._entries: Dict[int, Dict[int, int]] = {
            p: dict(offsets) for p, offsets in (entries or {}).items()
        }

    def settle(self, amounts: Mapping[int, int], offset: int = SETTLEMENT_OFFSET) -> "LedgerState":
        """Returns a new ledger with `amounts` written at `offset`."""
        entries = {p: dict(offsets) for p, offsets in self._entries.items()}
        for participant, amount in amounts.items():
            entries.setdefault(participant, {})[offset] = amount
        return LedgerState(entries)

    def amount(self, participant: int, offset: int = SETTLEMENT_OFFSET) -> Optional[int]:
        return self._entries.get(participant, {}).get(offset)

    @property
    def is_empty(self) -> bool:
        return not self._entries

    def to_wire(self) -> Dict[str, Dict[str, int]]:
        return {
            str(p): {str(o): amt for o, amt in sorted(offsets.items())}
            for p, offsets in sorted(self._entries.items())
        }

    def __eq__(self, other) -> bool:
        if not isinstance(other, LedgerState):
            return NotImplemented
        return self._entries == other._entries

    def __repr__(self) -> str:
        return f"LedgerState({self.to_wire()})"
