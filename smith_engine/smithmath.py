"""
Smith chart coordinate math.

Pure conversions between the reflection-coefficient plane and impedance,
admittance, normalized and screen coordinates, plus the circle geometry a
renderer needs for the chart grid.

    Γ = (Z − Z0) / (Z + Z0)          Z = Z0 · (1 + Γ) / (1 − Γ)
    Γ = (Y0 − Y) / (Y0 + Y)          Y = Y0 · (1 − Γ) / (1 + Γ)

Every function is total: the open/short-circuit poles return the large
sentinels from ``smith_engine.config`` rather than raising.
"""

from dataclasses import dataclass
from typing import Iterable, List, Tuple

import numpy as np

from smith_engine.config import (
    DEFAULT_Z0,
    EPSILON,
    HIGH_IMPEDANCE,
    MISMATCH_LOSS_FLOOR,
    RETURN_LOSS_FLOOR,
    VSWR_LIMIT,
)

_SENTINEL = complex(HIGH_IMPEDANCE, 0.0)


@dataclass(frozen=True)
class Circle:
    """A circle in the Γ-plane."""
    center: complex
    radius: float

    def contains(self, gamma: complex) -> bool:
        return abs(gamma - self.center) <= self.radius


@dataclass(frozen=True)
class QCircle:
    """
    Constant-Q contour, Q = |X| / R.

    In the Γ-plane it is a pair of arcs through ±1 with radius √(1 + 1/Q²).
    The upper arc (X > 0) lies on the circle centered at (0, −1/Q), the
    lower arc (X < 0) on the one centered at (0, +1/Q).
    """
    q: float
    upper: Circle
    lower: Circle

    @classmethod
    def from_q(cls, q: float) -> 'QCircle':
        if q <= 0:
            raise ValueError(f"Q must be positive, got {q}")
        inv_q = 1.0 / q
        radius = float(np.sqrt(1.0 + inv_q ** 2))
        return cls(
            q=q,
            upper=Circle(complex(0.0, -inv_q), radius),
            lower=Circle(complex(0.0, inv_q), radius),
        )


# --- Γ ↔ immittance ---

def impedance_to_gamma(z: complex, z0: float = DEFAULT_Z0) -> complex:
    return (z - z0) / (z + z0)


def gamma_to_impedance(gamma: complex, z0: float = DEFAULT_Z0) -> complex:
    """Inverse of impedance_to_gamma; Γ → 1 (open circuit) gives the sentinel."""
    if abs(1.0 - gamma) < EPSILON:
        return _SENTINEL
    return z0 * (1.0 + gamma) / (1.0 - gamma)


def admittance_to_gamma(y: complex, y0: float = 1.0 / DEFAULT_Z0) -> complex:
    return (y0 - y) / (y0 + y)


def gamma_to_admittance(gamma: complex, y0: float = 1.0 / DEFAULT_Z0) -> complex:
    """Inverse of admittance_to_gamma; Γ → −1 (short circuit) gives the sentinel."""
    if abs(1.0 + gamma) < EPSILON:
        return _SENTINEL
    return y0 * (1.0 - gamma) / (1.0 + gamma)


def normalized_z_to_gamma(zn: complex) -> complex:
    return (zn - 1.0) / (zn + 1.0)


def gamma_to_normalized_z(gamma: complex) -> complex:
    if abs(1.0 - gamma) < EPSILON:
        return _SENTINEL
    return (1.0 + gamma) / (1.0 - gamma)


def invert(value: complex) -> complex:
    """1/value, with the sentinel for a (near) zero input."""
    if abs(value) < EPSILON:
        return _SENTINEL
    return 1.0 / value


# --- Screen ↔ Γ ---

def gamma_to_screen(
    gamma: complex,
    center: Tuple[float, float],
    radius: float,
) -> Tuple[float, float]:
    """
    Map Γ to screen pixels.

    The screen y axis grows downward while positive reactance is drawn
    upward, so the imaginary part is negated.
    """
    cx, cy = center
    return cx + gamma.real * radius, cy - gamma.imag * radius


def screen_to_gamma(
    point: Tuple[float, float],
    center: Tuple[float, float],
    radius: float,
) -> complex:
    px, py = point
    cx, cy = center
    return complex((px - cx) / radius, -(py - cy) / radius)


# --- Grid geometry ---

def constant_r_circle_center(r: float) -> complex:
    return complex(r / (r + 1.0), 0.0)


def constant_r_circle_radius(r: float) -> float:
    return 1.0 / (r + 1.0)


def constant_x_arc_center(x: float) -> complex:
    # x = 0 is the real axis: model it as a huge circle far off-axis
    if abs(x) < EPSILON:
        return complex(0.0, HIGH_IMPEDANCE)
    return complex(1.0, 1.0 / x)


def constant_x_arc_radius(x: float) -> float:
    if abs(x) < EPSILON:
        return HIGH_IMPEDANCE
    return 1.0 / abs(x)


def constant_r_circle(r: float) -> Circle:
    """Constant normalized-resistance circle."""
    return Circle(constant_r_circle_center(r), constant_r_circle_radius(r))


def constant_x_arc(x: float) -> Circle:
    """Constant normalized-reactance arc (the circle it is clipped from)."""
    return Circle(constant_x_arc_center(x), constant_x_arc_radius(x))


def constant_g_circle(g: float) -> Circle:
    """Constant normalized-conductance circle (admittance chart)."""
    c = constant_r_circle_center(g)
    return Circle(complex(-c.real, 0.0), constant_r_circle_radius(g))


def constant_b_arc(b: float) -> Circle:
    """Constant normalized-susceptance arc (admittance chart)."""
    if abs(b) < EPSILON:
        return Circle(complex(0.0, HIGH_IMPEDANCE), HIGH_IMPEDANCE)
    # Positive susceptance sits in the lower half of the Γ-plane
    return Circle(complex(-1.0, -1.0 / b), 1.0 / abs(b))


def vswr_circle(vswr: float) -> Circle:
    return Circle(0j, vswr_to_gamma(vswr))


def q_circles(values: Iterable[float]) -> List[QCircle]:
    return [QCircle.from_q(q) for q in values]


# --- Scalar mismatch metrics ---

def gamma_to_vswr(gamma_mag: float) -> float:
    if gamma_mag >= 1.0:
        return VSWR_LIMIT
    gamma_mag = max(gamma_mag, 0.0)
    return (1.0 + gamma_mag) / (1.0 - gamma_mag)


def vswr_to_gamma(vswr: float) -> float:
    vswr = max(vswr, 1.0)
    return (vswr - 1.0) / (vswr + 1.0)


def gamma_to_return_loss(gamma: complex) -> float:
    """Return loss in dB (≤ 0 for a passive load)."""
    mag = abs(gamma)
    if mag < EPSILON:
        return RETURN_LOSS_FLOOR
    return float(20.0 * np.log10(mag))


def gamma_to_mismatch_loss(gamma: complex) -> float:
    """Mismatch loss 10·log10(1 − |Γ|²) in dB."""
    mag2 = abs(gamma) ** 2
    if mag2 >= 1.0:
        return MISMATCH_LOSS_FLOOR
    return float(10.0 * np.log10(1.0 - mag2))


def is_inside_unit_circle(gamma: complex) -> bool:
    return abs(gamma) <= 1.0


def gamma_phase_degrees(gamma: complex) -> float:
    return float(np.degrees(np.angle(gamma)))
