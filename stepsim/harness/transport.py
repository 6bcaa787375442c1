"""
stepsim Harness: Simulator Transport and Client

The harness talks to the simulator through a transport that performs one
request/response per call. Results are JSON-like objects, exactly what a
remote simulator would send back.
"""
import time
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Optional, Tuple
from ..core.errors import ActionError, OutOfRangeError, SequenceError, TransportUnavailable
from ..core.logger import get_logger
from ..core.types import NO_VALUE
from ..simulator.context import SimulatorConfig
from ..simulator.engine import StepSimulator
from ..simulator.program import ProgramSpec

logger = get_logger("SimulatorClient")

class SimulatorTransport(ABC):
    """
    Abstract request/response channel to a simulator.
    """

    @abstractmethod
    def request(self, op: str, **params) -> Any:
        """
        Perform one operation and return its JSON-like result.
        Raises TransportUnavailable if the simulator cannot be reached.
        """
        pass

class InProcessTransport(SimulatorTransport):
    """
    Serves requests from a StepSimulator owned by this transport.
    """
    def __init__(self, program_factory: Callable[[], ProgramSpec], config: Optional[SimulatorConfig] = None):
        self.program_factory = program_factory
        self.simulator = StepSimulator(config)
        self._ops: Dict[str, Callable[..., Any]] = {
            "resetServer": self._reset_server,
            "ping": self._ping,
            "load": self._load,
            "init": self._init,
            "initFor": self._init_for,
            "respondWithVal": self._respond_with_val,
            "getStatus": self._get_status,
            "getStateGlobals": self._get_state_globals,
            "getStateLocals": self._get_state_locals,
        }

    def request(self, op: str, **params) -> Any:
        handler = self._ops.get(op)
        if handler is None:
            raise ValueError(f"unknown simulator operation: {op}")
        return handler(**params)

    def _reset_server(self):
        self.simulator.reset()
        return "OK"

    def _ping(self):
        return "pong"

    def _load(self):
        self.simulator.load(self.program_factory())
        return "OK"

    def _init(self):
        return self.simulator.init()

    def _init_for(self, participant: int, seed: int):
        return self.simulator.init_for(participant, seed)

    def _respond_with_val(self, step: int, value: int, participant: Optional[int]):
        return self.simulator.step(step, participant, value)

    def _get_status(self):
        return self.simulator.get_status().value

    def _get_state_globals(self, step: int):
        return self.simulator.get_state_globals(step).model_dump(mode="json")

    def _get_state_locals(self, step: int):
        return self.simulator.get_state_locals(step).model_dump(mode="json")

class SimulatorClient:
    """
    Typed facade over a transport. One client drives one run.
    """
    def __init__(self, transport: SimulatorTransport, config: Optional[SimulatorConfig] = None):
        self.transport = transport
        self.config = config or SimulatorConfig()

    def wait_for_port(self, attempts: Optional[int] = None, delay_s: Optional[float] = None) -> str:
        """
        Pings until the simulator answers.
        """
        attempts = attempts if attempts is not None else self.config.connect_attempts
        delay_s = delay_s if delay_s is not None else self.config.connect_delay_s
        for attempt in range(1, attempts + 1):
            try:
                return self.ping()
            except TransportUnavailable as e:
                logger.info("waiting_for_simulator", attempt=attempt, attempts=attempts, error=str(e))
                if attempt < attempts:
                    time.sleep(delay_s)
        raise TransportUnavailable(f"simulator unreachable after {attempts} attempts")

    def reset_server(self):
        return self.transport.request("resetServer")

    def ping(self) -> str:
        return self.transport.request("ping")

    def load(self):
        return self.transport.request("load")

    def init(self) -> int:
        return self.transport.request("init")

    def init_for(self, participant: int, seed: int) -> int:
        return self.transport.request("initFor", participant=participant, seed=seed)

    def respond_with_val(self, step_index: int, expected_step_index: int,
                         value: int = NO_VALUE, participant: Optional[int] = None,
                         timeout: Optional[int] = None) -> int:
        """
        Responds to the action pending at `step_index`.
        `expected_step_index` is the caller's view of the head; both must agree.
        No action in a schedule has a deadline, so a timeout marker is rejected.
        """
        if timeout is not None:
            raise ActionError("timeouts are not scheduled", step=step_index, participant=participant,
                              actual=timeout)
        if expected_step_index != step_index:
            raise SequenceError("respond targets a different step than expected",
                                step=step_index, expected=expected_step_index, actual=step_index)
        return self.transport.request("respondWithVal", step=step_index, value=value, participant=participant)

    def get_status(self) -> str:
        return self.transport.request("getStatus")

    def get_state_globals(self, step: int) -> dict:
        return self.transport.request("getStateGlobals", step=step)

    def get_state_locals(self, step: int) -> dict:
        return self.transport.request("getStateLocals", step=step)

    def get_var(self, variable: str, step: int, participant: int) -> Optional[Tuple[str, dict]]:
        """
        Returns the [name, TaggedValue] entry of `variable` in a participant's
        store at `step`, or None if it was never set.
        """
        locals_ = self.get_state_locals(step)
        entry = locals_["l_locals"].get(str(participant))
        if entry is None:
            raise OutOfRangeError("unknown participant", step=step, participant=participant)
        for name, tagged in entry["l_store"]:
            if name == variable:
                return name, tagged
        return None
