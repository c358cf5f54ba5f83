"""Synchronous fixed-step simulation runs for one-shot requests."""

import time
from typing import Callable, Dict, List, Mapping, Optional

from engine.noise import NoiseSource
from engine.simulation import SimulationSession


def run_batch(
    design: Mapping,
    steps: int,
    step_size: float,
    rng: Optional[NoiseSource] = None,
    clock: Callable[[], float] = time.time,
) -> List[Dict]:
    """
    Run a design for a fixed number of steps without any timer.

    The i-th snapshot is evaluated at simulated time ``i * step_size`` seconds,
    so results depend only on the design, the step size and the noise source.

    Args:
        design: Design dict with components and connections.
        steps: Number of snapshots to produce (>= 0).
        step_size: Simulated seconds between snapshots (> 0).
        rng: Noise source. A fresh unseeded generator when omitted.
        clock: Wall clock used for snapshot timestamps.

    Returns:
        List of ``steps`` snapshots ordered by timeStep.
    """
    if steps < 0:
        raise ValueError(f"steps must be >= 0, got {steps}")
    if not step_size > 0:
        raise ValueError(f"step_size must be > 0, got {step_size}")

    session = SimulationSession(
        design.get('id', ''),
        design.get('components') or [],
        design.get('connections') or [],
        rng=rng,
        clock=clock,
    )
    return [session.simulate(simulated_time_ms=i * step_size * 1000) for i in range(steps)]
