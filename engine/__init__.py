"""
VelocityChip Simulation Engine

Per-component electrical models, snapshot aggregation, simulation sessions
and fixed-step batch runs for real-time circuit visualization.

No I/O happens here. Noise enters only through an injectable source, so
runs are reproducible given a seeded generator.
"""

from engine.components import ComponentType, COMPONENT_LIBRARY, get_component_library, numeric_property
from engine.component_models import compute_electrical_state, analyze_component, evaluate_component
from engine.snapshot import build_snapshot, performance_metrics, simulate_step
from engine.simulation import SessionState, SimulationSession
from engine.batch import run_batch
from engine.noise import NoiseSource, default_noise
from engine.errors import (
    SimulationError,
    DesignNotFoundError,
    ComponentEvaluationError,
    SessionStateError,
    MalformedRequestError,
)

__version__ = "0.1.0"
