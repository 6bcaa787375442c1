"""
stepsim Simulator: Step Engine

The core step-indexed state machine.
Applies ONE scheduled action per step, synchronously.
Callers must not submit steps for the same run concurrently.
"""
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, List, Optional, Tuple
from .codec import UINT_MAX, UInt, Value, to_tagged
from .context import DeterministicRNG, SimulatorConfig
from .program import ProgramSpec, ScheduledAction
from .state_hasher import StateHasher
from .state_store import LedgerState, StepStore
from ..core.errors import ActionError, IntegrityError, LoadError, OutOfRangeError, SequenceError
from ..core.logger import get_logger
from ..core.types import (
    ActionKind,
    GlobalsView,
    LocalsView,
    NO_VALUE,
    ParticipantLocals,
    SimulatorStatus,
)

logger = get_logger("StepSimulator")

@dataclass(frozen=True)
class Snapshot:
    """
    Global state produced by one step. Never mutated after creation.
    Local stores live in the StepStore frame with the same index.
    """
    index: int
    status: SimulatorStatus
    action: str
    ledger: LedgerState
    published: Tuple[Tuple[str, Value], ...]
    state_hash: str

class StepSimulator:
    """
    Step-indexed simulator.

    Invariant: snapshot N is fully determined by steps 0..N and is
    immutable once computed.
    """
    def __init__(self, config: Optional[SimulatorConfig] = None):
        self.config = config or SimulatorConfig()
        self.reset()

    def reset(self):
        """Clears all state. Safe to call repeatedly."""
        self.program: Optional[ProgramSpec] = None
        self.status = SimulatorStatus.UNINITIALIZED
        self.store: Optional[StepStore] = None
        self.hash_log: Dict[int, str] = {}
        self._snapshots: List[Snapshot] = []
        self._rngs: Dict[int, DeterministicRNG] = {}
        self._cursor = 0

    # --- Lifecycle ---

    def load(self, program: ProgramSpec):
        if self.status != SimulatorStatus.UNINITIALIZED:
            raise LoadError(f"load() requires an uninitialized simulator, status is {self.status.value}")
        self.program = program
        self.store = StepStore(program.participant_ids)
        self.status = SimulatorStatus.READY
        logger.info("simulator_loaded", program=program.name,
                    participants=list(program.participants), actions=len(program.actions))

    def init(self) -> int:
        if self.status != SimulatorStatus.READY:
            raise SequenceError(f"init() requires a loaded program, status is {self.status.value}")
        self.status = SimulatorStatus.STEPPING
        self._record(0, "init", LedgerState(), ())
        return 0

    def init_for(self, participant: int, seed: int) -> int:
        self._require_stepping()
        if participant not in self.program.participant_ids:
            raise ActionError("unknown participant", participant=participant)
        if participant in self._rngs:
            raise ActionError("participant already initialized", participant=participant)
        if self._cursor > 0:
            raise ActionError("participants must be initialized before the schedule starts",
                              participant=participant)
        self._rngs[participant] = DeterministicRNG(self.config.participant_seed(participant, seed))
        prev = self._snapshots[-1]
        new_index = self.head + 1
        self._record(new_index, f"{self.program.who(participant)}.init", prev.ledger, prev.published)
        return new_index

    # --- Stepping ---

    @property
    def head(self) -> int:
        """Index of the latest snapshot, -1 before init()."""
        return len(self._snapshots) - 1

    def pending_action(self) -> Optional[ScheduledAction]:
        if self.program is None or self._cursor >= len(self.program.actions):
            return None
        return self.program.actions[self._cursor]

    def step(self, step_index: int, participant: Optional[int] = None, value: int = NO_VALUE) -> int:
        """
        Applies the next scheduled action from snapshot `step_index`.
        Returns the index of the new snapshot (always head + 1).
        """
        self._require_stepping()
        if step_index != self.head:
            raise SequenceError("step must advance the current head",
                                step=step_index, expected=self.head, actual=step_index)
        action = self.pending_action()
        if action is None:
            raise SequenceError("schedule exhausted", step=step_index)

        new_index = step_index + 1
        self.store.begin(new_index)
        try:
            if len(self._rngs) != len(self.program.participants):
                raise ActionError("all participants must be initialized before stepping",
                                  expected=len(self.program.participants), actual=len(self._rngs))
            actor = self._resolve_actor(action, participant)
            ledger, published, status = self._apply(action, actor, value, new_index)
        except (ActionError, IntegrityError) as err:
            self.store.discard(new_index)
            if err.step is None:
                err.step = step_index
            self.status = SimulatorStatus.FAULTED
            logger.error("run_faulted", step=step_index, action=action.label,
                         error=type(err).__name__, detail=str(err))
            raise
        except Exception:
            self.store.discard(new_index)
            raise

        self._cursor += 1
        self.status = status
        self._seal(new_index, action.label, ledger, published, status)
        logger.info("step_applied", step=new_index, action=action.label,
                    actor=self.program.who(actor), value=value, state_hash=self.hash_log[new_index][:16])
        return new_index

    def _resolve_actor(self, action: ScheduledAction, participant: Optional[int]) -> int:
        if participant is None or participant == action.actor:
            return action.actor
        raise ActionError(f"'{action.label}' is scheduled for {self.program.who(action.actor)}",
                          participant=participant, expected=action.actor, actual=participant)

    def _apply(self, action: ScheduledAction, actor: int, value: int, n: int):
        prev = self._snapshots[-1]
        ledger, published = prev.ledger, prev.published
        status = SimulatorStatus.STEPPING

        if not action.takes_value and value != NO_VALUE:
            raise ActionError(f"'{action.label}' takes no value", participant=actor,
                              expected=NO_VALUE, actual=value)

        if action.kind == ActionKind.INTERACT:
            if action.takes_value:
                self.store.set(n, actor, action.variable, self._interact_value(action, actor, value))

        elif action.kind == ActionKind.PUBLISH:
            published = self._publish(action, value, n, published)

        elif action.kind == ActionKind.OBSERVE:
            for name, v in published:
                self.store.set(n, actor, name, v)

        elif action.kind == ActionKind.SETTLE:
            amounts = action.settle(MappingProxyType(dict(published)))
            ledger = ledger.settle(amounts)
            status = SimulatorStatus.DONE
            logger.info("ledger_settled", step=n, ledger=ledger.to_wire())

        else:
            raise ActionError(f"unknown action kind {action.kind!r}", participant=actor)

        return ledger, published, status

    def _interact_value(self, action: ScheduledAction, actor: int, value: int) -> UInt:
        if value == NO_VALUE:
            if not action.random_bits:
                raise ActionError(f"'{action.label}' requires a value", participant=actor,
                                  variable=action.variable)
            value = self._rngs[actor].getrandbits(action.random_bits)
        if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= UINT_MAX:
            raise ActionError("value must be an unsigned integer", participant=actor,
                              variable=action.variable, actual=value)
        if action.domain is not None and not action.domain(value):
            raise ActionError(f"value outside the domain of '{action.label}'", participant=actor,
                              variable=action.variable, actual=value)
        return UInt(value)

    def _publish(self, action: ScheduledAction, value: int, n: int,
                 published: Tuple[Tuple[str, Value], ...]) -> Tuple[Tuple[str, Value], ...]:
        publisher = action.publisher
        if isinstance(value, bool) or value != publisher:
            raise ActionError(f"consensus must accept {self.program.who(publisher)}'s publish",
                              expected=publisher, actual=value)
        view = self.store.open_view(publisher)
        for name, derive in action.derives:
            try:
                derived = derive(view)
            except KeyError as e:
                raise ActionError("derived value depends on an unset variable",
                                  participant=publisher, variable=str(e.args[0])) from e
            self.store.set(n, publisher, name, derived)

        values: Dict[str, Value] = {}
        for name in action.publishes:
            v = view.get(name)
            if v is None:
                raise ActionError("published variable was never set", participant=publisher, variable=name)
            values[name] = v

        consensus = dict(published)
        if action.verify is not None:
            try:
                action.verify(MappingProxyType(consensus), MappingProxyType(values))
            except IntegrityError as err:
                if err.participant is None:
                    err.participant = publisher
                raise
        consensus.update(values)
        return tuple(consensus.items())

    # --- Snapshots ---

    def _record(self, n: int, action: str, ledger: LedgerState, published):
        self.store.begin(n)
        self._seal(n, action, ledger, published, self.status)

    def _seal(self, n: int, action: str, ledger: LedgerState, published, status: SimulatorStatus):
        self.store.seal(n)
        state_hash = StateHasher.hash_snapshot(
            step=n,
            status=status.value,
            action=action,
            ledger=ledger.to_wire(),
            published=[[name, to_tagged(v).model_dump(mode="json")] for name, v in published],
            stores={
                str(p): [[name, to_tagged(v).model_dump(mode="json")] for name, v in self.store.items(n, p)]
                for p in self.program.participant_ids
            },
        )
        self._snapshots.append(Snapshot(n, status, action, ledger, tuple(published), state_hash))
        self.hash_log[n] = state_hash

    def _require_stepping(self):
        if self.status != SimulatorStatus.STEPPING:
            raise SequenceError(f"run cannot advance, status is {self.status.value}")

    def _snapshot(self, step: int) -> Snapshot:
        if not 0 <= step < len(self._snapshots):
            raise OutOfRangeError("step was never reached", step=step, expected=f"0..{self.head}")
        return self._snapshots[step]

    # --- Queries ---

    def get_status(self) -> SimulatorStatus:
        return self.status

    def get_state_globals(self, step: int) -> GlobalsView:
        snap = self._snapshot(step)
        return GlobalsView(
            e_step=snap.index,
            e_status=snap.status,
            e_action=snap.action,
            e_ledger=snap.ledger.to_wire(),
            e_published=[(name, to_tagged(v)) for name, v in snap.published],
            e_hash=snap.state_hash,
        )

    def get_state_locals(self, step: int) -> LocalsView:
        snap = self._snapshot(step)
        return LocalsView(
            l_step=snap.index,
            l_locals={
                str(p): ParticipantLocals(l_who=self.program.who(p), l_store=self.store.wire_items(step, p))
                for p in self.program.participant_ids
            },
        )

    def get_var(self, step: int, participant: int, name: str) -> Optional[Value]:
        self._snapshot(step)
        return self.store.get(step, participant, name)

    def ledger_at(self, step: int) -> LedgerState:
        return self._snapshot(step).ledger
