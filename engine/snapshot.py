"""
Snapshot assembly and aggregate performance metrics.

A snapshot bundles, for one time step, the node record and analysis of
every component together with derived metrics. All metrics are defined for
an empty component set and never divide by zero.
"""

import logging
from typing import Dict, Iterable, List, Mapping, Tuple

from engine.component_models import FAILED_NODE, evaluate_component, failed_analysis
from engine.errors import ComponentEvaluationError
from engine.noise import NoiseSource

logger = logging.getLogger(__name__)

COMPONENT_DELAY_PS = 10  # per component
WIRE_DELAY_PS = 5  # per connection

PERFORMANCE_FIELDS = (
    'totalPower',
    'maxVoltage',
    'maxCurrent',
    'efficiency',
    'propagationDelay',
    'bandwidth',
)


def calculate_efficiency(nodes: Mapping[str, Dict]) -> float:
    """Power delivered by negative-power nodes as a percentage of power absorbed."""
    power_in = sum(n['power'] for n in nodes.values() if n['power'] > 0)
    power_out = sum(abs(n['power']) for n in nodes.values() if n['power'] < 0)
    return (power_out / power_in) * 100 if power_in > 0 else 0.0


def calculate_propagation_delay(component_count: int, connection_count: int) -> float:
    """Propagation delay estimate in picoseconds."""
    return float(component_count * COMPONENT_DELAY_PS + connection_count * WIRE_DELAY_PS)


def performance_metrics(nodes: Mapping[str, Dict], connection_count: int) -> Dict[str, float]:
    values = list(nodes.values())
    if not values:
        # Dangling connections without components contribute no delay
        return {key: 0.0 for key in PERFORMANCE_FIELDS}
    return {
        'totalPower': float(sum(n['power'] for n in values)),
        'maxVoltage': max((n['voltage'] for n in values), default=0.0),
        'maxCurrent': max((n['current'] for n in values), default=0.0),
        'efficiency': calculate_efficiency(nodes),
        'propagationDelay': calculate_propagation_delay(len(values), connection_count),
        'bandwidth': max((n['frequency'] for n in values), default=0.0),
    }


def build_snapshot(
    time_step: int,
    timestamp: int,
    nodes: Dict[str, Dict],
    analyses: Dict[str, Dict],
    connection_count: int,
) -> Dict:
    """Combine per-component results into one snapshot."""
    return {
        'timestamp': timestamp,
        'timeStep': time_step,
        'nodes': nodes,
        'components': analyses,
        'performance': performance_metrics(nodes, connection_count),
    }


def evaluate_components(
    components: Iterable[Mapping],
    simulated_time_ms: float,
    rng: NoiseSource,
) -> Tuple[Dict[str, Dict], Dict[str, Dict]]:
    """
    Evaluate every component, degrading failures to an error record.

    Returns:
        (nodes, analyses), both keyed by the string form of the component id.
    """
    nodes: Dict[str, Dict] = {}
    analyses: Dict[str, Dict] = {}
    for index, comp in enumerate(components):
        key = _component_key(comp, index)
        try:
            nodes[key], analyses[key] = evaluate_component(comp, simulated_time_ms, rng)
        except ComponentEvaluationError as e:
            logger.warning("Error simulating component %s: %s", key, e.reason)
            nodes[key] = dict(FAILED_NODE)
            analyses[key] = failed_analysis()
    return nodes, analyses


def _component_key(component, index: int) -> str:
    if isinstance(component, Mapping) and component.get('id') is not None:
        return str(component['id'])
    return f"#{index}"


def simulate_step(
    components: List[Mapping],
    connection_count: int,
    simulated_time_ms: float,
    time_step: int,
    timestamp: int,
    rng: NoiseSource,
) -> Dict:
    """Evaluate all components at one point in time and build the snapshot."""
    nodes, analyses = evaluate_components(components, simulated_time_ms, rng)
    return build_snapshot(time_step, timestamp, nodes, analyses, connection_count)
