"""
stepsim Simulator: Program Schedule

A program binds the participant names and the fixed action schedule the
simulator walks through. Protocol logic (commitments, verification,
settlement) is attached to the schedule as plain callables.
"""
from dataclasses import dataclass
from typing import Callable, Dict, Mapping, Optional, Tuple
from .codec import Value
from ..core.types import ActionKind, CONSENSUS

# publisher's store -> derived value
Deriver = Callable[[Mapping[str, Value]], Value]
# (consensus variables so far, variables being published) -> None, raises IntegrityError
Verifier = Callable[[Mapping[str, Value], Mapping[str, Value]], None]
# consensus variables -> {participant: signed amount}
Settler = Callable[[Mapping[str, Value]], Dict[int, int]]

@dataclass(frozen=True)
class ScheduledAction:
    """
    One entry of the schedule: who acts and what argument shape is expected.
    """
    kind: ActionKind
    actor: int
    label: str
    variable: Optional[str] = None
    takes_value: bool = True
    random_bits: int = 0                    # draw from the actor's RNG when no value is given
    domain: Optional[Callable[[int], bool]] = None
    publisher: Optional[int] = None
    publishes: Tuple[str, ...] = ()
    derives: Tuple[Tuple[str, Deriver], ...] = ()
    verify: Optional[Verifier] = None
    settle: Optional[Settler] = None

    @classmethod
    def interact(cls, actor: int, variable: str, label: Optional[str] = None,
                 domain: Optional[Callable[[int], bool]] = None, random_bits: int = 0) -> "ScheduledAction":
        return cls(
            kind=ActionKind.INTERACT,
            actor=actor,
            label=label or f"interact:{variable}",
            variable=variable,
            domain=domain,
            random_bits=random_bits,
        )

    @classmethod
    def acknowledge(cls, actor: int, label: str) -> "ScheduledAction":
        """Frontend call that returns nothing."""
        return cls(kind=ActionKind.INTERACT, actor=actor, label=label, takes_value=False)

    @classmethod
    def publish(cls, publisher: int, publishes: Tuple[str, ...], label: Optional[str] = None,
                derives: Tuple[Tuple[str, Deriver], ...] = (),
                verify: Optional[Verifier] = None) -> "ScheduledAction":
        return cls(
            kind=ActionKind.PUBLISH,
            actor=CONSENSUS,
            label=label or "publish:" + ",".join(publishes),
            publisher=publisher,
            publishes=tuple(publishes),
            derives=tuple(derives),
            verify=verify,
        )

    @classmethod
    def observe(cls, actor: int) -> "ScheduledAction":
        return cls(kind=ActionKind.OBSERVE, actor=actor, label="observe", takes_value=False)

    @classmethod
    def finalize(cls, actor: int, settle: Settler, label: str = "settle") -> "ScheduledAction":
        return cls(kind=ActionKind.SETTLE, actor=actor, label=label, takes_value=False, settle=settle)

@dataclass(frozen=True)
class ProgramSpec:
    name: str
    participants: Tuple[str, ...]
    actions: Tuple[ScheduledAction, ...]

    def __post_init__(self):
        object.__setattr__(self, "participants", tuple(self.participants))
        object.__setattr__(self, "actions", tuple(self.actions))
        if not self.participants:
            raise ValueError("a program needs at least one participant")
        ids = set(self.participant_ids)
        for i, action in enumerate(self.actions):
            if action.kind == ActionKind.PUBLISH:
                if action.publisher not in ids:
                    raise ValueError(f"action {i} publishes for unknown participant {action.publisher}")
            elif action.actor not in ids:
                raise ValueError(f"action {i} has unknown actor {action.actor}")
            if action.kind == ActionKind.INTERACT and action.takes_value and not action.variable:
                raise ValueError(f"action {i} interacts without a variable")
            if action.kind == ActionKind.SETTLE and action.settle is None:
                raise ValueError(f"action {i} settles without a settlement function")
        settles = [i for i, a in enumerate(self.actions) if a.kind == ActionKind.SETTLE]
        if settles != [len(self.actions) - 1]:
            raise ValueError("a program must end with exactly one settle action")

    @property
    def participant_ids(self) -> Tuple[int, ...]:
        return tuple(range(len(self.participants)))

    def who(self, participant: int) -> str:
        if participant == CONSENSUS:
            return "consensus"
        return self.participants[participant]

    def insert(self, index: int, action: ScheduledAction) -> "ProgramSpec":
        """Returns a copy of the program with `action` inserted before `index`."""
        actions = self.actions[:index] + (action,) + self.actions[index:]
        return ProgramSpec(name=self.name, participants=self.participants, actions=actions)
