"""
Tests for component synthesis, E-series snapping and engineering notation.

Validates:
1. Reactance/susceptance → L or C, and None for ≈ 0
2. Series/shunt delta components
3. Display scaling of component values
4. Snapping to E12, E24, E48, E96 series
5. Engineering notation formatting
"""

import numpy as np
import pytest
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(__file__))))

from smith_engine.components import (
    E12_BASE,
    E24_BASE,
    E_SERIES,
    ComponentKind,
    ComponentValue,
    calculate_from_impedance,
    calculate_series_component,
    calculate_shunt_component,
    capacitor_reactance,
    component_from_reactance,
    component_from_susceptance,
    engineering_notation,
    format_component,
    inductor_reactance,
    snap_to_e_series,
)
from smith_engine.config import HIGH_IMPEDANCE

F = 1e9
W = 2 * np.pi * F


class TestReactanceToComponent:
    """Test reactance/susceptance classification."""

    def test_positive_reactance_is_inductor(self):
        """X > 0 → L = X/(2πf)."""
        comp = component_from_reactance(50.0, F)
        assert comp.kind == ComponentKind.INDUCTOR
        assert comp.value == pytest.approx(50.0 / W)

    def test_negative_reactance_is_capacitor(self):
        """X < 0 → C = −1/(2πf·X)."""
        comp = component_from_reactance(-50.0, F)
        assert comp.kind == ComponentKind.CAPACITOR
        assert comp.value == pytest.approx(1.0 / (W * 50.0))

    def test_positive_susceptance_is_capacitor(self):
        """B > 0 → C = B/(2πf)."""
        comp = component_from_susceptance(0.01, F)
        assert comp.kind == ComponentKind.CAPACITOR
        assert comp.value == pytest.approx(0.01 / W)

    def test_negative_susceptance_is_inductor(self):
        """B < 0 → L = −1/(2πf·B)."""
        comp = component_from_susceptance(-0.02, F)
        assert comp.kind == ComponentKind.INDUCTOR
        assert comp.value == pytest.approx(1.0 / (W * 0.02))

    def test_zero_is_none(self):
        assert component_from_reactance(0.0, F).is_none
        assert component_from_susceptance(1e-15, F).is_none

    def test_bad_frequency_is_none(self):
        """Non-positive frequency yields None, not an error."""
        comp = component_from_reactance(50.0, 0.0)
        assert comp.is_none
        assert comp.value == 0.0
        assert component_from_susceptance(0.01, -1.0).is_none

    def test_reactance_round_trip(self):
        """The synthesized part presents the requested reactance."""
        for x in (-200.0, -1.0, 3.0, 75.0):
            assert component_from_reactance(x, F).reactance() == pytest.approx(x)
        for b in (-0.05, 0.002):
            assert component_from_susceptance(b, F).susceptance() == pytest.approx(b)

    def test_vanishing_capacitor(self):
        """A vanishing capacitor is an open: sentinel reactance."""
        assert capacitor_reactance(0.0, F) == -HIGH_IMPEDANCE
        assert inductor_reactance(1e-9, F) == pytest.approx(W * 1e-9)


class TestDeltaComponents:
    """Test series/shunt components between two immittances."""

    def test_identical_series_is_none(self):
        """No series element is needed to go from Z to Z."""
        for z in (50 + 0j, 75 + 50j, 10 - 300j, 0j):
            for f in (1e6, 1e9, 0.0):
                assert calculate_series_component(z, z, f).is_none

    def test_identical_shunt_is_none(self):
        y = 0.01 - 0.02j
        assert calculate_shunt_component(y, y, F).is_none

    def test_series_delta(self):
        """Only the reactance difference counts."""
        comp = calculate_series_component(50 - 20j, 80 + 30j, F)
        assert comp.kind == ComponentKind.INDUCTOR
        assert comp.value == pytest.approx(50.0 / W)

    def test_shunt_delta(self):
        comp = calculate_shunt_component(0.02 + 0.01j, 0.02 - 0.01j, F)
        assert comp.kind == ComponentKind.INDUCTOR
        assert comp.susceptance() == pytest.approx(-0.02)

    def test_equivalent_of_impedance(self):
        """75 + j50 at f is equivalent to L = 50/(2πf); 75 + j0 to a resistor."""
        comp = calculate_from_impedance(75 + 50j, F)
        assert comp.kind == ComponentKind.INDUCTOR
        assert comp.value == pytest.approx(50.0 / W)

        comp = calculate_from_impedance(75 + 0j, F)
        assert comp.kind == ComponentKind.RESISTOR
        assert comp.value == 75.0


class TestComponentDisplay:
    """Test unit scaling of component values."""

    def test_inductor_nano(self):
        comp = ComponentValue(ComponentKind.INDUCTOR, 7.9577e-9)
        assert comp.unit_prefix == 'n'
        assert comp.value_with_unit() == '7.958 nH'

    def test_capacitor_pico(self):
        comp = ComponentValue(ComponentKind.CAPACITOR, 3.1831e-12)
        assert comp.value_with_unit(2) == '3.18 pF'

    def test_resistor(self):
        assert ComponentValue(ComponentKind.RESISTOR, 10.0).value_with_unit() == '10.000 Ω'
        assert ComponentValue(ComponentKind.RESISTOR, 4700.0).value_with_unit(1) == '4.7 kΩ'

    def test_kind_symbols(self):
        assert ComponentKind.INDUCTOR.symbol == 'L'
        assert ComponentKind.OPEN_STUB.is_line
        assert not ComponentKind.TRANSMISSION_LINE.is_lumped

    def test_format_component(self):
        assert format_component(ComponentValue(ComponentKind.CAPACITOR, 100e-12)) == '100pF'
        assert format_component(ComponentValue()) == 'none'


class TestSnapToESeries:
    """Test E-series value snapping."""

    def test_exact_e24_value(self):
        """Exact E24 value should snap to itself with 0% error."""
        snapped, error = snap_to_e_series(4700.0, 'E24')
        assert snapped == pytest.approx(4700.0)
        assert error == pytest.approx(0.0, abs=0.01)

    def test_e12_snap(self):
        snapped, _ = snap_to_e_series(5000.0, 'E12')
        assert snapped == pytest.approx(4700.0)

    def test_e24_snap(self):
        snapped, error = snap_to_e_series(5000.0, 'E24')
        assert snapped == pytest.approx(5100.0)
        assert error > 0

    def test_e96_snap(self):
        """E96 should provide tighter snapping."""
        snapped, error = snap_to_e_series(5000.0, 'E96')
        assert snapped == pytest.approx(4990.0)
        assert abs(error) < 1.0

    def test_picofarads(self):
        """Works for RF-sized capacitors."""
        snapped, _ = snap_to_e_series(3.1831e-12, 'E24')
        assert snapped == pytest.approx(3.3e-12, rel=1e-6)

    def test_snaps_across_decade(self):
        """9.7 is closer to 10 than to 9.1."""
        snapped, _ = snap_to_e_series(9.7, 'E24')
        assert snapped == pytest.approx(10.0)

    def test_invalid_values_raise(self):
        with pytest.raises(ValueError):
            snap_to_e_series(0.0)
        with pytest.raises(ValueError):
            snap_to_e_series(-100.0)
        with pytest.raises(ValueError):
            snap_to_e_series(100.0, 'E6')

    def test_all_e12_values_snap_to_self(self):
        """Every E12 base value (scaled) should snap to itself."""
        for base in E12_BASE:
            for decade in [1e-12, 1e-9, 1, 1000]:
                val = base * decade
                snapped, _ = snap_to_e_series(val, 'E12')
                assert snapped == pytest.approx(val, rel=0.001), (
                    f"{val} snapped to {snapped} instead of itself"
                )

    def test_series_completeness(self):
        assert len(E_SERIES['E12']) == 12
        assert len(E_SERIES['E24']) == 24
        assert len(E_SERIES['E48']) == 48
        assert len(E_SERIES['E96']) == 96
        assert E24_BASE == sorted(E24_BASE)


class TestEngineeringNotation:
    """Test engineering notation formatting."""

    def test_kilo(self):
        assert engineering_notation(1000, 'Ω') == '1kΩ'

    def test_fractional_kilo(self):
        assert engineering_notation(4700, 'Ω') == '4.7kΩ'

    def test_nano(self):
        assert engineering_notation(7.958e-9, 'H') == '7.96nH'

    def test_pico(self):
        assert engineering_notation(100e-12, 'F') == '100pF'

    def test_femto(self):
        assert engineering_notation(500e-15, 'F') == '500fF'

    def test_zero(self):
        assert engineering_notation(0, 'Ω') == '0Ω'

    def test_negative(self):
        assert engineering_notation(-1000, 'Ω') == '-1kΩ'


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
