"""
Session registry and streaming scheduler.

Maps each observer (one WebSocket connection) to at most one active
simulation and drives it on a fixed-period asyncio task. A second task stops
the session once its configured duration has elapsed.

Every observer has its own asyncio.Lock serializing start/stop/update for
that observer; operations on different observers never wait on each other.
Tick tasks do not take the lock. They check the session state before each
step, and stop() flips that state before cancelling anything, so no
snapshot is produced for an observer once stop() has begun.
"""

import asyncio
import math
import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional, Protocol

from backend.simulation.messages import (
    SimulationCommand,
    SimulationConfig,
    data_event,
    error_event,
    parse_inbound,
    started_event,
    stopped_event,
    updated_event,
)
from engine.errors import DesignNotFoundError, MalformedRequestError, SessionStateError
from engine.noise import NoiseSource, default_noise
from engine.simulation import SimulationSession

logger = logging.getLogger(__name__)


class Observer(Protocol):
    async def send_json(self, data: Any) -> None:
        ...


class DesignSource(Protocol):
    async def get_design(self, design_id: str):
        ...


@dataclass
class ActiveSimulation:
    session: SimulationSession
    config: SimulationConfig
    tick_task: Optional[asyncio.Task] = None
    expiry_task: Optional[asyncio.Task] = None
    ticks_delivered: int = 0


class SessionRegistry:
    def __init__(
        self,
        design_store: DesignSource,
        rng_factory: Callable[[], NoiseSource] = default_noise,
        default_config: Optional[SimulationConfig] = None,
    ):
        self._design_store = design_store
        self._rng_factory = rng_factory
        self._default_config = default_config or SimulationConfig()
        self._observers: dict[str, Observer] = {}
        self._sessions: dict[str, ActiveSimulation] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    # --- Introspection ---

    @property
    def active_count(self) -> int:
        return len(self._sessions)

    @property
    def observer_count(self) -> int:
        return len(self._observers)

    def has_session(self, observer_id: str) -> bool:
        return observer_id in self._sessions

    def get_session(self, observer_id: str) -> Optional[SimulationSession]:
        active = self._sessions.get(observer_id)
        return active.session if active else None

    # --- Observer lifecycle ---

    def attach(self, observer_id: str, observer: Observer) -> None:
        self._observers[observer_id] = observer
        logger.info("Client %s connected", observer_id)

    async def detach(self, observer_id: str) -> None:
        """Forget an observer and tear down its session, if any."""
        self._observers.pop(observer_id, None)
        await self.stop(observer_id)
        self._locks.pop(observer_id, None)
        logger.info("Client %s disconnected", observer_id)

    # --- Commands ---

    async def start(
        self,
        observer_id: str,
        design_id: str,
        sim_config: Optional[SimulationConfig] = None,
    ) -> SimulationConfig:
        """
        Start streaming a design to an observer, replacing any running session.

        Raises:
            DesignNotFoundError: if the design store has no such design.
        """
        sim_config = sim_config or self._default_config.model_copy()
        async with self._lock_for(observer_id):
            design = await self._design_store.get_design(design_id)
            if design is None:
                raise DesignNotFoundError(design_id)
            await self._stop_locked(observer_id, notify=False)
            design_data = design.to_engine() if hasattr(design, "to_engine") else dict(design)

            session = SimulationSession(
                design_id,
                design_data.get("components", []),
                design_data.get("connections", []),
                rng=self._rng_factory(),
            )
            session.start()
            active = ActiveSimulation(session=session, config=sim_config)
            self._sessions[observer_id] = active
            active.tick_task = asyncio.create_task(self._run_ticks(observer_id, active))
            active.expiry_task = asyncio.create_task(self._expire_after(observer_id, active))

            logger.info(
                "Started simulation of design %s for client %s (tick=%sms, duration=%sms)",
                design_id, observer_id, sim_config.tick_interval_ms, sim_config.duration_ms,
            )
            await self._deliver(observer_id, started_event(design_id, sim_config))
        return sim_config

    async def stop(self, observer_id: str) -> None:
        """Stop an observer's session. Unknown observers are ignored."""
        if observer_id not in self._sessions:
            return
        async with self._lock_for(observer_id):
            await self._stop_locked(observer_id, notify=True)

    async def update_component(self, observer_id: str, component_id, properties: dict) -> bool:
        """Merge properties into the session's working copy of a component."""
        active = self._sessions.get(observer_id)
        if active is None:
            return False
        async with self._lock_for(observer_id):
            if self._sessions.get(observer_id) is not active:
                return False
            if not active.session.update_component(component_id, properties):
                return False
            await self._deliver(observer_id, updated_event(component_id, properties))
        return True

    async def handle_message(self, observer_id: str, raw: str) -> None:
        """Decode and dispatch one inbound message, reporting failures to the observer."""
        try:
            command, message = parse_inbound(raw)
        except MalformedRequestError as e:
            await self._deliver(observer_id, error_event(str(e)))
            return

        if command == SimulationCommand.START:
            try:
                await self.start(observer_id, message.design_id, message.config)
            except DesignNotFoundError:
                await self._deliver(observer_id, error_event("Design not found"))
        elif command == SimulationCommand.STOP:
            await self.stop(observer_id)
        elif command == SimulationCommand.UPDATE:
            await self.update_component(observer_id, message.component_id, message.properties)

    async def shutdown(self) -> None:
        """Stop every session; used at process exit."""
        for observer_id in list(self._sessions):
            await self.stop(observer_id)

    # --- Internals ---

    def _lock_for(self, observer_id: str) -> asyncio.Lock:
        lock = self._locks.get(observer_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[observer_id] = lock
        return lock

    async def _stop_locked(self, observer_id: str, notify: bool) -> None:
        active = self._sessions.pop(observer_id, None)
        if active is None:
            return
        active.session.stop()
        current = asyncio.current_task()
        for task in (active.tick_task, active.expiry_task):
            if task is not None and task is not current and not task.done():
                task.cancel()
        logger.info(
            "Stopped simulation of design %s for client %s after %d snapshots",
            active.session.design_id, observer_id, active.ticks_delivered,
        )
        if notify:
            await self._deliver(observer_id, stopped_event())

    async def _run_ticks(self, observer_id: str, active: ActiveSimulation) -> None:
        interval = active.config.tick_interval_ms / 1000
        session = active.session
        loop = asyncio.get_running_loop()
        # Fixed-period schedule: simulate and send time do not stretch the period
        next_tick = loop.time() + interval
        while session.running:
            await asyncio.sleep(max(0.0, next_tick - loop.time()))
            if not session.running:
                break
            next_tick += interval
            now = loop.time()
            if next_tick <= now:
                # Missed deadlines are skipped, not replayed in a burst
                next_tick += math.ceil((now - next_tick) / interval) * interval
                if next_tick <= now:
                    next_tick += interval
            try:
                snapshot = session.simulate()
            except SessionStateError:
                break
            if await self._deliver(observer_id, data_event(snapshot)):
                active.ticks_delivered += 1

    async def _expire_after(self, observer_id: str, active: ActiveSimulation) -> None:
        await asyncio.sleep(active.config.duration_ms / 1000)
        async with self._lock_for(observer_id):
            # A restart may have replaced the session while we slept
            if self._sessions.get(observer_id) is active:
                logger.info("Simulation for client %s reached its duration", observer_id)
                await self._stop_locked(observer_id, notify=True)

    async def _deliver(self, observer_id: str, message: dict) -> bool:
        observer = self._observers.get(observer_id)
        if observer is None:
            return False
        try:
            await observer.send_json(message)
        except Exception:
            logger.warning("Failed to deliver %s to client %s", message.get("type", "error"), observer_id, exc_info=True)
            return False
        return True
