"""
Simulation session: one design's working copy advancing through time steps.

A session deep-copies the design's components and connections when it is
created. Property edits made through ``update_component`` are visible to the
session's later steps and never reach the stored design.

Lifecycle:
    CREATED --start()--> RUNNING --stop()--> STOPPED

Batch runs drive a session in the CREATED state with explicit simulated
times; streaming runs start it and let simulated time follow a monotonic
clock from the moment of ``start()``.
"""

import copy
import time
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from engine.errors import SessionStateError
from engine.noise import NoiseSource, default_noise
from engine.snapshot import simulate_step


class SessionState(str, Enum):
    CREATED = "created"
    RUNNING = "running"
    STOPPED = "stopped"


class SimulationSession:
    """Stateful simulation instance bound to one design."""

    def __init__(
        self,
        design_id: str,
        components: Iterable[Mapping[str, Any]],
        connections: Iterable[Mapping[str, Any]],
        rng: Optional[NoiseSource] = None,
        clock: Callable[[], float] = time.time,
        monotonic: Callable[[], float] = time.monotonic,
    ):
        self.design_id = design_id
        self.components: List[Dict[str, Any]] = copy.deepcopy(list(components or []))
        self.connections: List[Dict[str, Any]] = copy.deepcopy(list(connections or []))
        self.rng = rng if rng is not None else default_noise()
        self.state = SessionState.CREATED
        self.step_index = 0
        self._clock = clock
        self._monotonic = monotonic
        self._started_at: Optional[float] = None

    @property
    def running(self) -> bool:
        return self.state == SessionState.RUNNING

    def start(self) -> None:
        if self.state == SessionState.STOPPED:
            raise SessionStateError(f"Session for design {self.design_id} is stopped")
        if self.state == SessionState.CREATED:
            self.state = SessionState.RUNNING
            self._started_at = self._monotonic()

    def stop(self) -> None:
        self.state = SessionState.STOPPED

    def elapsed_ms(self) -> float:
        """Milliseconds of simulated time since start(), 0 if never started."""
        if self._started_at is None:
            return 0.0
        return (self._monotonic() - self._started_at) * 1000

    def simulate(self, simulated_time_ms: Optional[float] = None) -> Dict:
        """
        Produce the next snapshot and advance the step counter.

        Args:
            simulated_time_ms: Time at which to evaluate the models. Defaults
                to the elapsed time since start().

        Raises:
            SessionStateError: if the session has been stopped.
        """
        if self.state == SessionState.STOPPED:
            raise SessionStateError(f"Session for design {self.design_id} is stopped")
        if simulated_time_ms is None:
            simulated_time_ms = self.elapsed_ms()

        snapshot = simulate_step(
            self.components,
            len(self.connections),
            simulated_time_ms,
            time_step=self.step_index,
            timestamp=int(self._clock() * 1000),
            rng=self.rng,
        )
        self.step_index += 1
        return snapshot

    def find_component(self, component_id) -> Optional[Dict[str, Any]]:
        key = str(component_id)
        for comp in self.components:
            if isinstance(comp, dict) and str(comp.get('id')) == key:
                return comp
        return None

    def update_component(self, component_id, properties: Mapping[str, Any]) -> bool:
        """Merge properties into a working-copy component. Returns False if not found."""
        comp = self.find_component(component_id)
        if comp is None:
            return False
        if not isinstance(comp.get('properties'), dict):
            comp['properties'] = {}
        comp['properties'].update(copy.deepcopy(dict(properties)))
        return True
