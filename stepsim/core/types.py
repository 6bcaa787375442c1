from enum import Enum
from typing import Dict, List, Literal, Tuple, Union
from pydantic import BaseModel, ConfigDict, StrictInt

# Participant id used by the reference trace to address consensus steps
CONSENSUS = -1

# Marker for "no value supplied" in a respond step
NO_VALUE = -99

# Ledger offset for final consensus settlement
SETTLEMENT_OFFSET = -1

class SimulatorStatus(str, Enum):
    UNINITIALIZED = "Uninitialized"
    READY = "Ready"
    STEPPING = "Stepping"
    DONE = "Done"
    FAULTED = "Faulted"

class ActionKind(str, Enum):
    INTERACT = "INTERACT"
    PUBLISH = "PUBLISH"
    OBSERVE = "OBSERVE"
    SETTLE = "SETTLE"

class TaggedValue(BaseModel):
    """
    Wire shape of a Value.
    V_UInt carries an int, V_Digest the tagged tuple it commits to,
    V_Tuple a list of tagged values.
    """
    model_config = ConfigDict(frozen=True, extra="forbid")

    tag: Literal["V_UInt", "V_Digest", "V_Tuple"]
    contents: Union[StrictInt, "TaggedValue", List["TaggedValue"]]

TaggedValue.model_rebuild()

class ParticipantLocals(BaseModel):
    """
    One participant's store at one step.
    """
    l_who: str
    l_store: List[Tuple[str, TaggedValue]]

class LocalsView(BaseModel):
    l_step: int
    l_locals: Dict[str, ParticipantLocals]

class GlobalsView(BaseModel):
    """
    Global state at one step: ledger plus run metadata.
    """
    e_step: int
    e_status: SimulatorStatus
    e_action: str
    e_ledger: Dict[str, Dict[str, int]]
    e_published: List[Tuple[str, TaggedValue]]
    e_hash: str
