"""
Impedance, admittance and reflection-coefficient value types.

Each value carries the reference it was measured against so that
normalized forms and Γ conversions need no extra arguments. Values are
immutable and created per query.
"""

from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from smith_engine import smithmath
from smith_engine.config import DEFAULT_Z0, EPSILON


def _signed_imag(value: float) -> Tuple[str, float]:
    return ('+' if value >= 0 else '-'), abs(value)


@dataclass(frozen=True)
class Impedance:
    """Z = R + jX against reference impedance z0."""
    value: complex
    z0: float = DEFAULT_Z0

    def __post_init__(self):
        if self.z0 <= 0:
            raise ValueError(f"Reference impedance must be positive, got {self.z0}")
        object.__setattr__(self, 'value', complex(self.value))

    @classmethod
    def from_parts(cls, r: float, x: float, z0: float = DEFAULT_Z0) -> 'Impedance':
        return cls(complex(r, x), z0)

    @classmethod
    def from_gamma(cls, gamma: complex, z0: float = DEFAULT_Z0) -> 'Impedance':
        return cls(smithmath.gamma_to_impedance(gamma, z0), z0)

    @property
    def resistance(self) -> float:
        return self.value.real

    @property
    def reactance(self) -> float:
        return self.value.imag

    @property
    def normalized(self) -> complex:
        return self.value / self.z0

    @property
    def normalized_r(self) -> float:
        return self.value.real / self.z0

    @property
    def normalized_x(self) -> float:
        return self.value.imag / self.z0

    @property
    def magnitude(self) -> float:
        return abs(self.value)

    @property
    def phase_radians(self) -> float:
        return float(np.angle(self.value))

    @property
    def phase_degrees(self) -> float:
        return float(np.degrees(np.angle(self.value)))

    @property
    def q(self) -> float:
        """Series quality factor |X|/R (infinite for R ≤ 0)."""
        if self.value.real <= 0:
            return float('inf')
        return abs(self.value.imag) / self.value.real

    def to_admittance(self) -> 'Admittance':
        return Admittance(smithmath.invert(self.value), 1.0 / self.z0)

    def try_admittance(self) -> Optional['Admittance']:
        """Admittance, or None for a short circuit."""
        if abs(self.value) < EPSILON:
            return None
        return Admittance(1.0 / self.value, 1.0 / self.z0)

    def to_gamma(self) -> 'ReflectionCoefficient':
        return ReflectionCoefficient(smithmath.impedance_to_gamma(self.value, self.z0), self.z0)

    def __str__(self) -> str:
        sign, x = _signed_imag(self.value.imag)
        return f"{self.value.real:.2f} {sign} j{x:.2f} Ω"

    def to_normalized_string(self) -> str:
        zn = self.normalized
        sign, x = _signed_imag(zn.imag)
        return f"{zn.real:.3f} {sign} j{x:.3f}"


@dataclass(frozen=True)
class Admittance:
    """Y = G + jB against reference admittance y0."""
    value: complex
    y0: float = 1.0 / DEFAULT_Z0

    def __post_init__(self):
        if self.y0 <= 0:
            raise ValueError(f"Reference admittance must be positive, got {self.y0}")
        object.__setattr__(self, 'value', complex(self.value))

    @classmethod
    def from_parts(cls, g: float, b: float, y0: float = 1.0 / DEFAULT_Z0) -> 'Admittance':
        return cls(complex(g, b), y0)

    @property
    def conductance(self) -> float:
        return self.value.real

    @property
    def susceptance(self) -> float:
        return self.value.imag

    @property
    def normalized(self) -> complex:
        return self.value / self.y0

    @property
    def normalized_g(self) -> float:
        return self.value.real / self.y0

    @property
    def normalized_b(self) -> float:
        return self.value.imag / self.y0

    @property
    def magnitude(self) -> float:
        return abs(self.value)

    @property
    def phase_degrees(self) -> float:
        return float(np.degrees(np.angle(self.value)))

    def to_impedance(self) -> Impedance:
        return Impedance(smithmath.invert(self.value), 1.0 / self.y0)

    def try_impedance(self) -> Optional[Impedance]:
        """Impedance, or None for an open circuit."""
        if abs(self.value) < EPSILON:
            return None
        return Impedance(1.0 / self.value, 1.0 / self.y0)

    def to_gamma(self) -> 'ReflectionCoefficient':
        gamma = smithmath.admittance_to_gamma(self.value, self.y0)
        return ReflectionCoefficient(gamma, 1.0 / self.y0)

    def __str__(self) -> str:
        sign, b = _signed_imag(self.value.imag)
        return f"{self.value.real:.3e} {sign} j{b:.3e} S"


@dataclass(frozen=True)
class ReflectionCoefficient:
    """Γ against reference impedance z0."""
    gamma: complex
    z0: float = DEFAULT_Z0

    def __post_init__(self):
        if self.z0 <= 0:
            raise ValueError(f"Reference impedance must be positive, got {self.z0}")
        object.__setattr__(self, 'gamma', complex(self.gamma))

    @classmethod
    def from_polar(cls, magnitude: float, phase_degrees: float,
                   z0: float = DEFAULT_Z0) -> 'ReflectionCoefficient':
        gamma = magnitude * np.exp(1j * np.radians(phase_degrees))
        return cls(complex(gamma), z0)

    @classmethod
    def from_screen(cls, point: Tuple[float, float], center: Tuple[float, float],
                    radius: float, z0: float = DEFAULT_Z0) -> 'ReflectionCoefficient':
        return cls(smithmath.screen_to_gamma(point, center, radius), z0)

    @property
    def magnitude(self) -> float:
        return abs(self.gamma)

    @property
    def phase_radians(self) -> float:
        return float(np.angle(self.gamma))

    @property
    def phase_degrees(self) -> float:
        return smithmath.gamma_phase_degrees(self.gamma)

    @property
    def vswr(self) -> float:
        return smithmath.gamma_to_vswr(self.magnitude)

    @property
    def return_loss_db(self) -> float:
        return smithmath.gamma_to_return_loss(self.gamma)

    @property
    def mismatch_loss_db(self) -> float:
        return smithmath.gamma_to_mismatch_loss(self.gamma)

    @property
    def is_passive(self) -> bool:
        return smithmath.is_inside_unit_circle(self.gamma)

    def to_impedance(self) -> Impedance:
        return Impedance(smithmath.gamma_to_impedance(self.gamma, self.z0), self.z0)

    def try_impedance(self) -> Optional[Impedance]:
        """Impedance, or None at the open-circuit point Γ = 1."""
        if abs(1.0 - self.gamma) < EPSILON:
            return None
        return self.to_impedance()

    def to_admittance(self) -> Admittance:
        y0 = 1.0 / self.z0
        return Admittance(smithmath.gamma_to_admittance(self.gamma, y0), y0)

    def to_screen(self, center: Tuple[float, float], radius: float) -> Tuple[float, float]:
        return smithmath.gamma_to_screen(self.gamma, center, radius)

    def to_rect_string(self) -> str:
        sign, im = _signed_imag(self.gamma.imag)
        return f"Γ = {self.gamma.real:.4f} {sign} j{im:.4f}"

    def to_polar_string(self) -> str:
        return f"|Γ| = {self.magnitude:.4f}  ∠{self.phase_degrees:.1f}°"
