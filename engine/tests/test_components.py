"""
Tests for the component catalog and property parsing.

Validates:
1. Catalog contents served to the editor
2. Catalog copies are independent of module state
3. Numeric property parsing and fallback
"""

import math

import pytest
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(__file__))))

from engine.components import (
    COMPONENT_LIBRARY,
    PROPERTY_DEFAULTS,
    ComponentType,
    component_type,
    get_component_library,
    numeric_property,
    parse_number,
    property_default,
)


class TestCatalog:
    def test_five_types(self):
        assert set(get_component_library()) == {t.value for t in ComponentType}

    def test_entry_shape(self):
        for name, entry in get_component_library().items():
            assert set(entry) == {'name', 'category', 'properties', 'pins'}, name
            assert entry['category'] in ('Active', 'Passive')
            assert entry['pins']

    def test_transistor_entry(self):
        transistor = get_component_library()['transistor']
        assert transistor['name'] == 'MOSFET Transistor'
        assert transistor['pins'] == ['gate', 'source', 'drain', 'bulk']
        assert transistor['properties']['mobility']['unit'] == 'cm²/V·s'

    def test_select_properties(self):
        capacitor = get_component_library()['capacitor']['properties']['type']
        assert capacitor == {
            'type': 'select',
            'options': ['ceramic', 'electrolytic', 'tantalum'],
            'default': 'ceramic',
        }

    def test_numeric_bounds(self):
        for entry in get_component_library().values():
            for prop in entry['properties'].values():
                if prop['type'] == 'number':
                    assert prop['min'] <= prop['default'] <= prop['max']

    def test_copy_is_independent(self):
        library = get_component_library()
        library['resistor']['name'] = 'Changed'
        library['diode']['pins'].append('extra')
        assert COMPONENT_LIBRARY['resistor']['name'] == 'Resistor'
        assert get_component_library()['diode']['pins'] == ['anode', 'cathode']

    def test_model_defaults_cover_editable_numbers(self):
        """Every property the models read has a model default."""
        for comp_type, defaults in PROPERTY_DEFAULTS.items():
            schema = COMPONENT_LIBRARY[comp_type.value]['properties']
            assert set(defaults) <= set(schema)


class TestComponentType:
    def test_known(self):
        assert component_type({'type': 'diode'}) is ComponentType.DIODE

    def test_unknown_passthrough(self):
        assert component_type({'type': 'opamp'}) == 'opamp'
        assert component_type({}) is None


class TestParseNumber:
    @pytest.mark.parametrize('value, expected', [
        (5, 5.0),
        ('2.2', 2.2),
        ('1e-12', 1e-12),
        (' 47 ', 47.0),
        (-3, -3.0),
    ])
    def test_parses(self, value, expected):
        assert parse_number(value, 1.0) == pytest.approx(expected)

    @pytest.mark.parametrize('value', [None, '', 'abc', 'nan', 'inf', '-inf', 0, '0', True, False, [], {}])
    def test_falls_back(self, value):
        assert parse_number(value, 7.5) == 7.5

    def test_result_is_finite(self):
        assert math.isfinite(parse_number(float('nan'), 1.0))


class TestNumericProperty:
    def test_reads_property(self):
        assert numeric_property({'properties': {'resistance': '330'}}, 'resistance', 1000.0) == 330.0

    def test_missing(self):
        assert numeric_property({'properties': {}}, 'resistance', 1000.0) == 1000.0
        assert numeric_property({}, 'resistance', 1000.0) == 1000.0
        assert numeric_property({'properties': None}, 'resistance', 1000.0) == 1000.0

    def test_non_mapping(self):
        assert numeric_property({'properties': [1, 2]}, 'resistance', 1000.0) == 1000.0

    def test_property_default(self):
        assert property_default(ComponentType.TRANSISTOR, 'threshold') == 0.7
        assert property_default(ComponentType.CAPACITOR, 'capacitance') == 1e-12
