"""
Tests for the per-component electrical models.

Validates:
1. Voltage, current, temperature and frequency laws per component type
2. Fallback to defaults for missing or unparseable properties
3. Status thresholds in component analysis
4. Failure isolation for components whose model raises or overflows
"""

import math

import numpy as np
import pytest
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(__file__))))

from engine.component_models import (
    BOLTZMANN,
    GATE_OXIDE_CAPACITANCE,
    analyze_component,
    compute_electrical_state,
    evaluate_component,
)
from engine.components import PROPERTY_DEFAULTS, ComponentType
from engine.errors import ComponentEvaluationError
from engine.snapshot import evaluate_components


class LowNoise:
    """Returns the low end of every range, which zeroes the unsigned noise terms."""

    def uniform(self, low=0.0, high=1.0):
        return low


class BrokenNoise:
    def uniform(self, low=0.0, high=1.0):
        raise RuntimeError("noise source unavailable")


def comp(comp_type, comp_id=1, **properties):
    return {'id': comp_id, 'type': comp_type, 'name': f'{comp_type}{comp_id}', 'properties': properties}


class TestResistor:
    """Resistor: divider voltage plus Johnson noise, Ohm's law current."""

    def test_ohms_law_exact(self):
        """Current equals voltage / resistance with noise stubbed to zero."""
        state = compute_electrical_state(comp('resistor', resistance=1000), 0.0, LowNoise())
        assert state['voltage'] == pytest.approx(3.3 * 0.9)
        assert state['current'] == state['voltage'] / 1000

    def test_ohms_law_with_real_noise(self):
        rng = np.random.default_rng(7)
        state = compute_electrical_state(comp('resistor', resistance='4700'), 123.0, rng)
        assert state['current'] == state['voltage'] / 4700

    def test_johnson_noise_bounded(self):
        """Noise term is at most sqrt(4kT·1kΩ), a few nanovolts."""
        bound = math.sqrt(4 * BOLTZMANN * 300 * 1000)
        rng = np.random.default_rng(0)
        for _ in range(50):
            v = compute_electrical_state(comp('resistor', resistance=1000), 0.0, rng)['voltage']
            assert 2.97 - 1e-12 <= v < 2.97 + bound + 1e-12

    def test_power_and_temperature(self):
        state = compute_electrical_state(comp('resistor', resistance=1000), 0.0, LowNoise())
        assert state['power'] == pytest.approx(state['voltage'] * state['current'])
        assert state['temperature'] == pytest.approx(25 + state['power'] * 100)
        assert state['frequency'] == pytest.approx(1000.0)

    def test_overpower_status(self):
        analysis = analyze_component(comp('resistor', resistance=10, power=0.25), 3.0, 0.3)
        assert analysis['status'] == 'overpower'
        assert analysis['characteristics']['powerDissipation'] == pytest.approx(0.9)
        assert analysis['characteristics']['efficiency'] == pytest.approx(360.0)

    def test_within_rating(self):
        analysis = analyze_component(comp('resistor', resistance=1000, power=0.25), 2.97, 0.00297)
        assert analysis['status'] == 'normal'
        assert analysis['characteristics']['powerRating'] == 0.25


class TestTransistor:
    """MOSFET square-law model with leakage below threshold."""

    def test_voltage_law(self):
        t = 1570.0
        state = compute_electrical_state(comp('transistor'), t, LowNoise())
        expected = 3.3 * (1 + math.sin(t / 1000) * 0.2) - 0.05
        assert state['voltage'] == pytest.approx(expected)

    def test_square_law_current(self):
        state = compute_electrical_state(comp('transistor'), 0.0, LowNoise())
        v = state['voltage']
        expected = (
            0.5 * 400e-4 * GATE_OXIDE_CAPACITANCE * (10e-6 / 0.5e-6)
            * (v - 0.7) ** 2 * (1 + 0.1 * 0.8 * v) * 1e6
        )
        assert state['current'] == pytest.approx(expected)

    def test_leakage_below_threshold(self):
        """Raising the threshold above the gate voltage leaves only leakage, never zero."""
        state = compute_electrical_state(comp('transistor', threshold=4.5), 0.0, LowNoise())
        assert state['current'] == pytest.approx(0.001)
        rng = np.random.default_rng(3)
        leak = compute_electrical_state(comp('transistor', threshold=4.5), 0.0, rng)['current']
        assert 0.001 <= leak < 0.0011

    def test_frequency_range(self):
        rng = np.random.default_rng(11)
        f = compute_electrical_state(comp('transistor'), 0.0, rng)['frequency']
        assert 10000 <= f < 11000

    def test_overvoltage(self):
        analysis = analyze_component(comp('transistor'), 6.0, 0.05)
        assert analysis['status'] == 'overvoltage'

    def test_overcurrent_wins_when_both_trip(self):
        analysis = analyze_component(comp('transistor'), 6.0, 0.5)
        assert analysis['status'] == 'overcurrent'

    def test_cutoff_region(self):
        analysis = analyze_component(comp('transistor'), 0.5, 0.001)
        assert analysis['characteristics']['region'] == 'cutoff'
        assert analysis['status'] == 'normal'

    def test_transconductance_at_threshold_is_zero(self):
        analysis = analyze_component(comp('transistor'), 0.7, 0.001)
        assert analysis['characteristics']['transconductance'] == 0.0

    def test_output_resistance_zero_current(self):
        analysis = analyze_component(comp('transistor'), 1.0, 0.0)
        assert analysis['characteristics']['outputResistance'] == 0.0


class TestCapacitor:
    def test_discharged_at_cycle_start(self):
        state = compute_electrical_state(comp('capacitor'), 4000.0, LowNoise())
        assert state['voltage'] == 0.0
        assert state['current'] == 0.0

    def test_charging_curve(self):
        c = 1e-3
        state = compute_electrical_state(comp('capacitor', capacitance=c), 1000.0, LowNoise())
        expected_v = 3.3 * (1 - math.exp(-0.5 / (1000 * c)))
        assert state['voltage'] == pytest.approx(expected_v)
        assert state['current'] == pytest.approx(expected_v * 2 * math.pi * 1000 * c)

    def test_frequency(self):
        state = compute_electrical_state(comp('capacitor', capacitance=1e-9), 10.0, LowNoise())
        assert state['frequency'] == pytest.approx(1 / (2 * math.pi * 1000 * 1e-9))

    def test_rated_voltage(self):
        assert analyze_component(comp('capacitor', voltage=3), 3.3, 0.0)['status'] == 'overvoltage'
        assert analyze_component(comp('capacitor'), 3.3, 0.0)['status'] == 'normal'

    def test_characteristics(self):
        analysis = analyze_component(comp('capacitor', capacitance=2e-6), 3.0, 0.01)
        chars = analysis['characteristics']
        assert chars['chargeStored'] == pytest.approx(6e-6)
        assert chars['energy'] == pytest.approx(9e-6)


class TestInductor:
    def test_damped_oscillation(self):
        for t in (0.0, 250.0, 785.0, 6000.0):
            state = compute_electrical_state(comp('inductor'), t, LowNoise())
            expected = 3.3 + 0.5 * math.sin(t / 500) * math.exp(-t / 5000)
            assert state['voltage'] == pytest.approx(expected)

    def test_reactive_current(self):
        state = compute_electrical_state(comp('inductor', inductance=1e-3), 0.0, LowNoise())
        assert state['current'] == pytest.approx(3.3 / (2 * math.pi * 1000 * 1e-3))

    def test_status_always_normal(self):
        analysis = analyze_component(comp('inductor'), 100.0, 100.0)
        assert analysis['status'] == 'normal'
        assert analysis['characteristics']['reactance'] == pytest.approx(2 * math.pi * 1000 * 1e-6)


class TestDiode:
    def test_forward_voltage_at_25c(self):
        state = compute_electrical_state(comp('diode'), 0.0, LowNoise())
        assert state['voltage'] == pytest.approx(0.7)
        assert state['current'] == pytest.approx(0.0007)

    def test_temperature_coefficient_range(self):
        rng = np.random.default_rng(5)
        for _ in range(50):
            v = compute_electrical_state(comp('diode', forwardVoltage='0.3'), 0.0, rng)['voltage']
            # -2 mV/°C over 0..10°C, plus up to 10 mV jitter
            assert 0.3 - 0.02 < v < 0.3 + 0.01


class TestUnknownType:
    def test_default_law(self):
        state = compute_electrical_state(comp('opamp'), 0.0, LowNoise())
        assert state['voltage'] == pytest.approx(3.3)
        assert state['current'] == pytest.approx(0.0033)
        assert analyze_component(comp('opamp'), 3.3, 0.0033)['status'] == 'normal'


BAD_VALUES = ['abc', '', None, 'NaN', 'inf', '-inf', [], {}, True, '0', 0]


class TestPropertyFallback:
    """Unparseable properties must fall back to defaults and never raise."""

    @pytest.mark.parametrize('comp_type', sorted(t.value for t in PROPERTY_DEFAULTS))
    @pytest.mark.parametrize('bad', BAD_VALUES)
    def test_every_property_falls_back(self, comp_type, bad):
        defaults = PROPERTY_DEFAULTS[ComponentType(comp_type)]
        reference = compute_electrical_state(comp(comp_type), 500.0, LowNoise())
        for name in defaults:
            broken = comp(comp_type, **{name: bad})
            state = compute_electrical_state(broken, 500.0, LowNoise())
            assert state == reference, f"{comp_type}.{name}={bad!r}"
            analysis = analyze_component(broken, state['voltage'], state['current'])
            assert analysis == analyze_component(comp(comp_type), state['voltage'], state['current'])

    def test_missing_properties_mapping(self):
        component = {'id': 1, 'type': 'resistor', 'name': 'R1'}
        state = compute_electrical_state(component, 0.0, LowNoise())
        assert state['current'] == state['voltage'] / 1000

    def test_non_mapping_properties(self):
        component = {'id': 1, 'type': 'resistor', 'properties': 'oops'}
        state = compute_electrical_state(component, 0.0, LowNoise())
        assert state['current'] == state['voltage'] / 1000

    def test_numeric_strings_parse(self):
        state = compute_electrical_state(comp('resistor', resistance=' 2000 '), 0.0, LowNoise())
        assert state['current'] == state['voltage'] / 2000


class TestFailureIsolation:
    def test_raising_model_becomes_evaluation_error(self):
        with pytest.raises(ComponentEvaluationError):
            evaluate_component(comp('resistor'), 0.0, BrokenNoise())

    def test_overflow_becomes_evaluation_error(self):
        """W/L overflowing to infinity is reported rather than emitted."""
        huge = comp('transistor', width=1e308, length=1e-300)
        with pytest.raises(ComponentEvaluationError):
            evaluate_component(huge, 0.0, LowNoise())

    def test_failed_component_degrades_in_place(self):
        components = [
            comp('resistor', comp_id=1),
            comp('transistor', comp_id=2, width=1e308, length=1e-300),
        ]
        nodes, analyses = evaluate_components(components, 0.0, LowNoise())
        assert nodes['2'] == {
            'voltage': 0.0, 'current': 0.0, 'power': 0.0, 'temperature': 25.0, 'frequency': 1000.0,
        }
        assert analyses['2']['status'] == 'error'
        assert analyses['2']['operatingPoint'] == {'voltage': 0.0, 'current': 0.0, 'power': 0.0}
        assert analyses['1']['status'] == 'normal'

    def test_malformed_descriptor_degrades(self):
        nodes, analyses = evaluate_components([None, comp('diode', comp_id=9)], 0.0, LowNoise())
        assert analyses['#0']['status'] == 'error'
        assert analyses['9']['status'] == 'normal'

    def test_failure_is_logged(self, caplog):
        with caplog.at_level('WARNING', logger='engine.snapshot'):
            evaluate_components([comp('resistor', comp_id=4)], 0.0, BrokenNoise())
        assert any('component 4' in r.getMessage() for r in caplog.records)
