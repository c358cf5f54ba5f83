"""
Component type catalog and property parsing.

The catalog is static data describing each supported component type: display
name, category, editable property schema (unit, default, bounds or select
options) and pin names. It is served unchanged to clients that populate
property editors.

Property values arrive from the editor as strings or numbers. The models read
them through ``numeric_property`` which never raises: anything that does not
parse to a finite, non-zero float falls back to the type's default.
"""

import copy
import math
from enum import Enum
from typing import Any, Dict, Mapping


class ComponentType(str, Enum):
    TRANSISTOR = "transistor"
    RESISTOR = "resistor"
    CAPACITOR = "capacitor"
    INDUCTOR = "inductor"
    DIODE = "diode"


# Model defaults, in the units the models consume (SI unless noted)
PROPERTY_DEFAULTS = {
    ComponentType.TRANSISTOR: {
        'width': 10e-6,
        'length': 0.5e-6,
        'threshold': 0.7,
        'mobility': 400.0,  # cm²/V·s
    },
    ComponentType.RESISTOR: {
        'resistance': 1000.0,
        'power': 0.25,
    },
    ComponentType.CAPACITOR: {
        'capacitance': 1e-12,
        'voltage': 5.0,
    },
    ComponentType.INDUCTOR: {
        'inductance': 1e-6,
    },
    ComponentType.DIODE: {
        'forwardVoltage': 0.7,
    },
}


COMPONENT_LIBRARY = {
    'transistor': {
        'name': 'MOSFET Transistor',
        'category': 'Active',
        'properties': {
            'width': {'type': 'number', 'unit': 'μm', 'default': 10, 'min': 0.1, 'max': 1000},
            'length': {'type': 'number', 'unit': 'μm', 'default': 0.5, 'min': 0.1, 'max': 100},
            'threshold': {'type': 'number', 'unit': 'V', 'default': 0.7, 'min': 0.1, 'max': 5},
            'mobility': {'type': 'number', 'unit': 'cm²/V·s', 'default': 400, 'min': 100, 'max': 1000},
        },
        'pins': ['gate', 'source', 'drain', 'bulk'],
    },
    'resistor': {
        'name': 'Resistor',
        'category': 'Passive',
        'properties': {
            'resistance': {'type': 'number', 'unit': 'Ω', 'default': 1000, 'min': 1, 'max': 1e9},
            'power': {'type': 'number', 'unit': 'W', 'default': 0.25, 'min': 0.1, 'max': 100},
            'tolerance': {'type': 'number', 'unit': '%', 'default': 5, 'min': 1, 'max': 20},
        },
        'pins': ['pin1', 'pin2'],
    },
    'capacitor': {
        'name': 'Capacitor',
        'category': 'Passive',
        'properties': {
            'capacitance': {'type': 'number', 'unit': 'F', 'default': 1e-12, 'min': 1e-15, 'max': 1e-3},
            'voltage': {'type': 'number', 'unit': 'V', 'default': 5, 'min': 1, 'max': 1000},
            'type': {'type': 'select', 'options': ['ceramic', 'electrolytic', 'tantalum'], 'default': 'ceramic'},
        },
        'pins': ['positive', 'negative'],
    },
    'inductor': {
        'name': 'Inductor',
        'category': 'Passive',
        'properties': {
            'inductance': {'type': 'number', 'unit': 'H', 'default': 1e-6, 'min': 1e-9, 'max': 1e-3},
            'current': {'type': 'number', 'unit': 'A', 'default': 1, 'min': 0.1, 'max': 100},
            'core': {'type': 'select', 'options': ['air', 'iron', 'ferrite'], 'default': 'air'},
        },
        'pins': ['pin1', 'pin2'],
    },
    'diode': {
        'name': 'Diode',
        'category': 'Active',
        'properties': {
            'forwardVoltage': {'type': 'number', 'unit': 'V', 'default': 0.7, 'min': 0.1, 'max': 5},
            'current': {'type': 'number', 'unit': 'A', 'default': 1, 'min': 0.001, 'max': 100},
            'type': {'type': 'select', 'options': ['silicon', 'germanium', 'schottky'], 'default': 'silicon'},
        },
        'pins': ['anode', 'cathode'],
    },
}


def get_component_library() -> Dict[str, Dict]:
    """Return a copy of the component catalog."""
    return copy.deepcopy(COMPONENT_LIBRARY)


def component_type(component: Mapping[str, Any]) -> Any:
    """Resolve a descriptor's type to a ComponentType, or the raw value if unknown."""
    raw = component.get('type')
    try:
        return ComponentType(raw)
    except ValueError:
        return raw


def parse_number(value: Any, default: float) -> float:
    """
    Parse a property value as a float.

    Missing, unparseable, non-finite and zero values all yield ``default``.
    Booleans are rejected rather than read as 0/1.
    """
    if value is None or isinstance(value, bool):
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if not math.isfinite(number) or number == 0:
        return default
    return number


def numeric_property(component: Mapping[str, Any], name: str, default: float) -> float:
    """Read a numeric property from a component descriptor with a fallback default."""
    properties = component.get('properties') or {}
    if not isinstance(properties, Mapping):
        return default
    return parse_number(properties.get(name), default)


def property_default(comp_type: ComponentType, name: str) -> float:
    """Look up the model default for a property of a known component type."""
    return PROPERTY_DEFAULTS[comp_type][name]
