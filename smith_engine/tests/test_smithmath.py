"""
Tests for Smith chart coordinate math.

Validates:
1. Γ ↔ Z and Γ ↔ Y round trips, and the open/short sentinels
2. VSWR and return loss behave monotonically for passive loads
3. Screen transform is invertible and flips the vertical axis
4. Grid circles pass through the points they describe
5. Q circles
"""

import numpy as np
import pytest
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(__file__))))

from smith_engine.config import HIGH_IMPEDANCE, RETURN_LOSS_FLOOR, VSWR_LIMIT
from smith_engine.smithmath import (
    QCircle,
    admittance_to_gamma,
    constant_b_arc,
    constant_g_circle,
    constant_r_circle,
    constant_x_arc,
    gamma_phase_degrees,
    gamma_to_admittance,
    gamma_to_impedance,
    gamma_to_mismatch_loss,
    gamma_to_normalized_z,
    gamma_to_return_loss,
    gamma_to_screen,
    gamma_to_vswr,
    impedance_to_gamma,
    invert,
    is_inside_unit_circle,
    normalized_z_to_gamma,
    q_circles,
    screen_to_gamma,
    vswr_circle,
    vswr_to_gamma,
)


def _on_circle(circle, gamma, tol=1e-9):
    return abs(abs(gamma - circle.center) - circle.radius) < tol


class TestGammaConversions:
    """Test Γ ↔ impedance/admittance conversions."""

    def test_matched_load(self):
        """Z = Z0 maps to the chart center."""
        assert impedance_to_gamma(50.0, 50.0) == pytest.approx(0.0)

    def test_known_load(self):
        """75 + j50 against 50 Ω."""
        gamma = impedance_to_gamma(75 + 50j, 50.0)
        assert gamma == pytest.approx(complex(5625, 5000) / 18125)
        assert abs(gamma) == pytest.approx(0.41523, rel=1e-4)

    def test_short_and_open(self):
        """Short circuit is Γ = −1, a huge impedance approaches Γ = 1."""
        assert impedance_to_gamma(0.0, 50.0) == pytest.approx(-1.0)
        assert impedance_to_gamma(1e15, 50.0).real == pytest.approx(1.0)

    def test_round_trip(self):
        """gamma_to_impedance undoes impedance_to_gamma for passive loads."""
        for z0 in (25.0, 50.0, 75.0, 300.0):
            for z in (1 + 0j, 50 + 0j, 75 + 50j, 10 - 200j, 1000 + 1j, 0.5 + 0.5j):
                back = gamma_to_impedance(impedance_to_gamma(z, z0), z0)
                assert back == pytest.approx(z, rel=1e-9), f"z={z}, z0={z0}"

    def test_open_circuit_sentinel(self):
        """Γ = 1 gives the large sentinel instead of dividing by zero."""
        assert gamma_to_impedance(1.0, 50.0) == complex(HIGH_IMPEDANCE, 0.0)

    def test_admittance_round_trip(self):
        """Y → Γ → Y recovers the admittance."""
        y0 = 1 / 50.0
        for y in (0.02 + 0j, 0.01 - 0.005j, 0.1 + 0.3j):
            back = gamma_to_admittance(admittance_to_gamma(y, y0), y0)
            assert back == pytest.approx(y, rel=1e-9)

    def test_admittance_agrees_with_impedance(self):
        """Y = 1/Z lands on the same Γ."""
        z = 75 + 50j
        assert admittance_to_gamma(1 / z, 1 / 50.0) == pytest.approx(impedance_to_gamma(z, 50.0))

    def test_short_circuit_sentinel(self):
        """Γ = −1 gives the sentinel admittance."""
        assert gamma_to_admittance(-1.0, 0.02) == complex(HIGH_IMPEDANCE, 0.0)

    def test_normalized(self):
        """Normalized conversions match the reference-impedance form."""
        assert normalized_z_to_gamma(1.5 + 1j) == pytest.approx(impedance_to_gamma(75 + 50j, 50.0))
        assert gamma_to_normalized_z(0.0) == pytest.approx(1.0)
        assert gamma_to_normalized_z(1.0) == complex(HIGH_IMPEDANCE, 0.0)

    def test_invert(self):
        """invert guards zero."""
        assert invert(2 + 0j) == pytest.approx(0.5)
        assert invert(0j) == complex(HIGH_IMPEDANCE, 0.0)


class TestMismatchMetrics:
    """Test VSWR, return loss and mismatch loss."""

    def test_vswr_known(self):
        """|Γ| = 1/3 gives VSWR 2."""
        assert gamma_to_vswr(1 / 3) == pytest.approx(2.0)
        assert vswr_to_gamma(2.0) == pytest.approx(1 / 3)

    def test_vswr_monotonic(self):
        """VSWR strictly increases with |Γ| on [0, 1)."""
        mags = np.linspace(0.0, 0.99, 200)
        vswr = [gamma_to_vswr(m) for m in mags]
        assert vswr[0] == pytest.approx(1.0)
        assert all(b > a for a, b in zip(vswr, vswr[1:]))

    def test_vswr_clamped(self):
        """Total reflection clamps to the sentinel."""
        assert gamma_to_vswr(1.0) == VSWR_LIMIT
        assert gamma_to_vswr(1.5) == VSWR_LIMIT

    def test_return_loss_non_positive(self):
        """Return loss is ≤ 0 for passive loads."""
        for mag in np.linspace(0.01, 1.0, 50):
            assert gamma_to_return_loss(complex(mag, 0.0)) <= 0.0

    def test_return_loss_known(self):
        """The 75 + j50 load has RL ≈ −7.63 dB."""
        gamma = impedance_to_gamma(75 + 50j, 50.0)
        assert gamma_to_return_loss(gamma) == pytest.approx(-7.634, abs=0.01)
        assert gamma_to_vswr(abs(gamma)) == pytest.approx(2.420, abs=0.005)

    def test_return_loss_floor(self):
        """A perfect match hits the floor instead of −inf."""
        assert gamma_to_return_loss(0j) == RETURN_LOSS_FLOOR

    def test_mismatch_loss(self):
        """10·log10(1 − |Γ|²)."""
        assert gamma_to_mismatch_loss(0.5 + 0j) == pytest.approx(10 * np.log10(0.75))
        assert gamma_to_mismatch_loss(0j) == pytest.approx(0.0)

    def test_passivity(self):
        assert is_inside_unit_circle(0.6 + 0.8j)
        assert not is_inside_unit_circle(0.9 + 0.9j)

    def test_phase(self):
        assert gamma_phase_degrees(1j) == pytest.approx(90.0)
        assert gamma_phase_degrees(-1 + 0j) == pytest.approx(180.0)


class TestScreenTransform:
    """Test Γ ↔ screen mapping."""

    def test_center(self):
        assert gamma_to_screen(0j, (200.0, 150.0), 100.0) == pytest.approx((200.0, 150.0))

    def test_vertical_axis_inverted(self):
        """Positive reactance (Im Γ > 0) is drawn above the center."""
        x, y = gamma_to_screen(0.5 + 0.5j, (200.0, 200.0), 100.0)
        assert x == pytest.approx(250.0)
        assert y == pytest.approx(150.0)

    def test_round_trip(self):
        for gamma in (0.3 - 0.2j, -0.9 + 0.1j, 0.0 + 1.0j):
            point = gamma_to_screen(gamma, (320.0, 240.0), 180.0)
            assert screen_to_gamma(point, (320.0, 240.0), 180.0) == pytest.approx(gamma)


class TestGridGeometry:
    """Test constant-R/X/G/B circles."""

    def test_r_circle_values(self):
        circle = constant_r_circle(1.0)
        assert circle.center == pytest.approx(0.5)
        assert circle.radius == pytest.approx(0.5)

    def test_r_zero_is_unit_circle(self):
        circle = constant_r_circle(0.0)
        assert circle.center == pytest.approx(0.0)
        assert circle.radius == pytest.approx(1.0)

    def test_points_on_r_circle(self):
        """Every z = r + jx lies on the r circle."""
        for r in (0.2, 1.0, 3.0):
            circle = constant_r_circle(r)
            for x in (-5.0, -0.5, 0.0, 0.7, 10.0):
                assert _on_circle(circle, normalized_z_to_gamma(complex(r, x)))

    def test_points_on_x_arc(self):
        """Every z = r + jx lies on the x arc."""
        for x in (-2.0, 0.5, 1.0):
            arc = constant_x_arc(x)
            for r in (0.0, 0.3, 1.0, 4.0):
                assert _on_circle(arc, normalized_z_to_gamma(complex(r, x)))

    def test_x_zero_degenerates(self):
        """x = 0 is drawn as a huge circle centered far off-axis."""
        arc = constant_x_arc(0.0)
        assert arc.radius == HIGH_IMPEDANCE
        assert arc.center.imag == HIGH_IMPEDANCE

    def test_points_on_g_circle(self):
        """Every y = g + jb lies on the g circle."""
        for g in (0.5, 1.0, 2.0):
            circle = constant_g_circle(g)
            for b in (-3.0, 0.0, 1.0):
                y = complex(g, b)
                assert _on_circle(circle, admittance_to_gamma(y, 1.0))

    def test_points_on_b_arc(self):
        """Every y = g + jb lies on the b arc."""
        for b in (-1.0, 0.5, 2.0):
            arc = constant_b_arc(b)
            for g in (0.2, 1.0, 5.0):
                assert _on_circle(arc, admittance_to_gamma(complex(g, b), 1.0))

    def test_vswr_circle(self):
        circle = vswr_circle(2.0)
        assert circle.center == 0j
        assert circle.radius == pytest.approx(1 / 3)
        assert circle.contains(0.3 + 0j)
        assert not circle.contains(0.4 + 0j)


class TestQCircles:
    """Test constant-Q contours."""

    def test_geometry(self):
        qc = QCircle.from_q(1.0)
        assert qc.upper.radius == pytest.approx(np.sqrt(2.0))
        assert qc.lower.center == pytest.approx(1j)

    def test_passes_through_open_and_short(self):
        """Both arcs meet at Γ = ±1."""
        qc = QCircle.from_q(3.0)
        for circle in (qc.upper, qc.lower):
            assert _on_circle(circle, 1 + 0j)
            assert _on_circle(circle, -1 + 0j)

    def test_points_with_q(self):
        """Impedances with |X|/R = Q lie on the matching arc."""
        qc = QCircle.from_q(2.0)
        for r in (0.1, 1.0, 5.0):
            assert _on_circle(qc.upper, normalized_z_to_gamma(complex(r, 2 * r)))
            assert _on_circle(qc.lower, normalized_z_to_gamma(complex(r, -2 * r)))

    def test_invalid_q_raises(self):
        with pytest.raises(ValueError):
            QCircle.from_q(0.0)

    def test_overlay_list(self):
        circles = q_circles([1.0, 2.0, 5.0])
        assert [c.q for c in circles] == [1.0, 2.0, 5.0]


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
