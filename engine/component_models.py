"""
Per-component electrical models.

Each component type has a closed-form, time-parameterized approximation for
its terminal voltage, current, junction temperature and characteristic
frequency. These are not derived from a circuit solve: components are
evaluated independently of one another and of the connection graph.

Voltage laws (V_ref = 3.3):
    transistor:  V_ref·(1 + 0.2·sin(t/1000)) + U[-0.05, 0.05)
    resistor:    V_ref·(1 - R/10k) + √(4kT·1kΩ)·U[0, 1)         (Johnson noise, T = 300 K)
    capacitor:   V_ref·(1 - exp(-φ/(1kΩ·C))),  φ = (t mod 2000)/2000
    inductor:    V_ref + 0.5·sin(t/500)·exp(-t/5000)
    diode:       Vf - 2 mV/°C·(Tj - 25) + U[0, 0.01),  Tj = U[25, 35)

Time t is simulated time in milliseconds. All noise is drawn from the
``rng`` argument, see ``engine.noise``.
"""

import math
from typing import Any, Dict, Mapping

import numpy as np

from engine.components import ComponentType, component_type, numeric_property, property_default
from engine.errors import ComponentEvaluationError
from engine.noise import NoiseSource


V_REF = 3.3
BOLTZMANN = 1.380649e-23  # J/K
AMBIENT_TEMP = 25.0  # °C
THERMAL_RESISTANCE = 100.0  # °C/W
PROBE_FREQUENCY = 1000.0  # Hz, AC impedance probe for C and L
RC_RESISTANCE = 1000.0  # Ω, assumed series resistance for the capacitor charge curve

# MOSFET square-law constants
GATE_OXIDE_CAPACITANCE = 3.9 * 8.854e-14 / 3e-9
CHANNEL_LENGTH_MODULATION = 0.1
VDS_RATIO = 0.8

# Analysis thresholds
TRANSISTOR_MAX_VOLTAGE = 5.0
TRANSISTOR_MAX_CURRENT = 0.1
TRANSISTOR_GAIN_BANDWIDTH = 1e9

# Node record used in place of a component whose model failed
FAILED_NODE = {
    'voltage': 0.0,
    'current': 0.0,
    'power': 0.0,
    'temperature': AMBIENT_TEMP,
    'frequency': 1000.0,
}


def _prop(component: Mapping[str, Any], comp_type: ComponentType, name: str) -> float:
    return numeric_property(component, name, property_default(comp_type, name))


def node_voltage(component: Mapping[str, Any], t_ms: float, rng: NoiseSource) -> float:
    """Instantaneous terminal voltage of a component at simulated time t_ms."""
    comp_type = component_type(component)

    if comp_type == ComponentType.TRANSISTOR:
        noise = rng.uniform(-0.05, 0.05)
        return V_REF * (1 + np.sin(t_ms / 1000) * 0.2) + noise

    if comp_type == ComponentType.RESISTOR:
        resistance = _prop(component, comp_type, 'resistance')
        johnson_noise = np.sqrt(4 * BOLTZMANN * 300 * 1000) * rng.uniform(0.0, 1.0)
        return V_REF * (1 - resistance / 10000) + johnson_noise

    if comp_type == ComponentType.CAPACITOR:
        capacitance = _prop(component, comp_type, 'capacitance')
        phase = (t_ms % 2000) / 2000
        return V_REF * (1 - np.exp(-phase / (RC_RESISTANCE * capacitance)))

    if comp_type == ComponentType.INDUCTOR:
        return V_REF + 0.5 * np.sin(t_ms / 500) * np.exp(-t_ms / 5000)

    if comp_type == ComponentType.DIODE:
        vf = _prop(component, comp_type, 'forwardVoltage')
        junction_temp = rng.uniform(25.0, 35.0)
        return vf - 0.002 * (junction_temp - AMBIENT_TEMP) + rng.uniform(0.0, 0.01)

    return V_REF + rng.uniform(0.0, 0.1)


def _transistor_current(component: Mapping[str, Any], voltage: float, rng: NoiseSource) -> float:
    """Square-law MOSFET drain current in µA, or leakage below threshold."""
    comp_type = ComponentType.TRANSISTOR
    width = _prop(component, comp_type, 'width')
    length = _prop(component, comp_type, 'length')
    vth = _prop(component, comp_type, 'threshold')
    mobility = _prop(component, comp_type, 'mobility') * 1e-4  # cm²/V·s → m²/V·s

    vgs = voltage
    vds = voltage * VDS_RATIO
    if vgs > vth:
        i_d = (
            0.5 * mobility * GATE_OXIDE_CAPACITANCE * (width / length)
            * (vgs - vth) ** 2 * (1 + CHANNEL_LENGTH_MODULATION * vds)
        )
        return i_d * 1e6
    return 0.001 + rng.uniform(0.0, 0.0001)


def node_current(component: Mapping[str, Any], voltage: float, rng: NoiseSource) -> float:
    """Current through a component given its terminal voltage."""
    comp_type = component_type(component)

    if comp_type == ComponentType.TRANSISTOR:
        return _transistor_current(component, voltage, rng)

    if comp_type == ComponentType.RESISTOR:
        return voltage / _prop(component, comp_type, 'resistance')

    if comp_type == ComponentType.CAPACITOR:
        capacitance = _prop(component, comp_type, 'capacitance')
        impedance = 1 / (2 * np.pi * PROBE_FREQUENCY * capacitance)
        return voltage / impedance

    if comp_type == ComponentType.INDUCTOR:
        inductance = _prop(component, comp_type, 'inductance')
        return voltage / (2 * np.pi * PROBE_FREQUENCY * inductance)

    return voltage / 1000


def junction_temperature(power: float, rng: NoiseSource) -> float:
    return AMBIENT_TEMP + power * THERMAL_RESISTANCE + rng.uniform(0.0, 2.0)


def characteristic_frequency(component: Mapping[str, Any], rng: NoiseSource) -> float:
    comp_type = component_type(component)
    if comp_type == ComponentType.TRANSISTOR:
        return 10000 + rng.uniform(0.0, 1000.0)
    if comp_type == ComponentType.CAPACITOR:
        capacitance = _prop(component, comp_type, 'capacitance')
        return 1 / (2 * np.pi * PROBE_FREQUENCY * capacitance)
    return 1000 + rng.uniform(0.0, 500.0)


def compute_electrical_state(
    component: Mapping[str, Any],
    simulated_time_ms: float,
    rng: NoiseSource,
) -> Dict[str, float]:
    """
    Evaluate a component at a point in simulated time.

    Args:
        component: Descriptor with keys id, type, name, properties.
        simulated_time_ms: Simulated time in milliseconds.
        rng: Noise source for the stochastic terms.

    Returns:
        Dict with voltage, current, power, temperature, frequency.
    """
    voltage = float(node_voltage(component, simulated_time_ms, rng))
    current = float(node_current(component, voltage, rng))
    power = voltage * current
    return {
        'voltage': voltage,
        'current': current,
        'power': power,
        'temperature': float(junction_temperature(power, rng)),
        'frequency': float(characteristic_frequency(component, rng)),
    }


def analyze_component(component: Mapping[str, Any], voltage: float, current: float) -> Dict:
    """
    Derive type-specific characteristics and a status flag.

    Status checks are applied in order and the last one that trips wins, so a
    transistor that is both over voltage and over current reports overcurrent.
    """
    power = voltage * current
    analysis = {
        'operatingPoint': {'voltage': voltage, 'current': current, 'power': power},
        'characteristics': {},
        'status': 'normal',
    }
    comp_type = component_type(component)

    if comp_type == ComponentType.TRANSISTOR:
        vth = _prop(component, comp_type, 'threshold')
        overdrive = voltage - vth
        analysis['characteristics'] = {
            'region': 'saturation' if voltage > vth else 'cutoff',
            'transconductance': 2 * current / overdrive if overdrive != 0 else 0.0,
            'outputResistance': voltage / current if current != 0 else 0.0,
            'gainBandwidth': TRANSISTOR_GAIN_BANDWIDTH,
        }
        if voltage > TRANSISTOR_MAX_VOLTAGE:
            analysis['status'] = 'overvoltage'
        if current > TRANSISTOR_MAX_CURRENT:
            analysis['status'] = 'overcurrent'

    elif comp_type == ComponentType.RESISTOR:
        resistance = _prop(component, comp_type, 'resistance')
        rating = _prop(component, comp_type, 'power')
        analysis['characteristics'] = {
            'resistance': resistance,
            'powerDissipation': power,
            'powerRating': rating,
            'efficiency': (power / rating) * 100,
        }
        if power > rating:
            analysis['status'] = 'overpower'

    elif comp_type == ComponentType.CAPACITOR:
        capacitance = _prop(component, comp_type, 'capacitance')
        rated_voltage = _prop(component, comp_type, 'voltage')
        analysis['characteristics'] = {
            'capacitance': capacitance,
            'chargeStored': capacitance * voltage,
            'energy': 0.5 * capacitance * voltage ** 2,
            'impedance': float(1 / (2 * np.pi * PROBE_FREQUENCY * capacitance)),
        }
        if voltage > rated_voltage:
            analysis['status'] = 'overvoltage'

    elif comp_type == ComponentType.INDUCTOR:
        inductance = _prop(component, comp_type, 'inductance')
        analysis['characteristics'] = {
            'inductance': inductance,
            'reactance': float(2 * np.pi * PROBE_FREQUENCY * inductance),
            'storedEnergy': 0.5 * inductance * current ** 2,
        }

    elif comp_type == ComponentType.DIODE:
        vf = _prop(component, comp_type, 'forwardVoltage')
        analysis['characteristics'] = {
            'forwardVoltage': vf,
            'conducting': 'yes' if voltage >= 0.5 * vf else 'no',
        }

    return analysis


def failed_analysis() -> Dict:
    return {
        'operatingPoint': {'voltage': 0.0, 'current': 0.0, 'power': 0.0},
        'characteristics': {},
        'status': 'error',
    }


def _check_finite(component_id, values: Mapping[str, Any]) -> None:
    for key, value in values.items():
        if isinstance(value, float) and not math.isfinite(value):
            raise ComponentEvaluationError(component_id, f"non-finite {key}")


def evaluate_component(
    component: Mapping[str, Any],
    simulated_time_ms: float,
    rng: NoiseSource,
):
    """
    Compute the node record and analysis for one component.

    Raises:
        ComponentEvaluationError: if the model raises or yields a non-finite value.
    """
    component_id = component.get('id') if isinstance(component, Mapping) else None
    try:
        node = compute_electrical_state(component, simulated_time_ms, rng)
        analysis = analyze_component(component, node['voltage'], node['current'])
    except ComponentEvaluationError:
        raise
    except Exception as e:
        raise ComponentEvaluationError(component_id, str(e)) from e

    _check_finite(component_id, node)
    _check_finite(component_id, analysis['operatingPoint'])
    _check_finite(component_id, analysis['characteristics'])
    return node, analysis
