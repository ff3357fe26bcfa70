"""
Lumped component values for matching networks.

Converts a reactance or susceptance at a given frequency into the R, L or C
that realises it, and back:

    X > 0 → L = X / (2πf)            X < 0 → C = −1 / (2πf·X)
    B > 0 → C = B / (2πf)            B < 0 → L = −1 / (2πf·B)

A (near) zero reactance/susceptance, or a non-positive frequency, gives a
component of kind NONE; callers must check ``is_none`` before using it.

Also provides SI formatting and snapping to E-series preferred values so
synthesized parts can be shown as orderable ones.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Tuple

import numpy as np

from smith_engine.config import DEFAULT_FREQUENCY, EPSILON, HIGH_IMPEDANCE, MIN_LC


class ComponentKind(str, Enum):
    RESISTOR = "resistor"
    INDUCTOR = "inductor"
    CAPACITOR = "capacitor"
    TRANSMISSION_LINE = "transmission_line"
    OPEN_STUB = "open_stub"
    SHORT_STUB = "short_stub"
    NONE = "none"

    @property
    def is_lumped(self) -> bool:
        return self in (ComponentKind.RESISTOR, ComponentKind.INDUCTOR, ComponentKind.CAPACITOR)

    @property
    def is_line(self) -> bool:
        return self in (
            ComponentKind.TRANSMISSION_LINE, ComponentKind.OPEN_STUB, ComponentKind.SHORT_STUB,
        )

    @property
    def symbol(self) -> str:
        return _SYMBOLS[self]


class Connection(str, Enum):
    SERIES = "series"
    SHUNT = "shunt"


_SYMBOLS = {
    ComponentKind.RESISTOR: 'R',
    ComponentKind.INDUCTOR: 'L',
    ComponentKind.CAPACITOR: 'C',
    ComponentKind.TRANSMISSION_LINE: 'TL',
    ComponentKind.OPEN_STUB: 'OS',
    ComponentKind.SHORT_STUB: 'SS',
    ComponentKind.NONE: '?',
}

_UNITS = {
    ComponentKind.RESISTOR: 'Ω',
    ComponentKind.INDUCTOR: 'H',
    ComponentKind.CAPACITOR: 'F',
    ComponentKind.TRANSMISSION_LINE: 'm',
    ComponentKind.OPEN_STUB: 'm',
    ComponentKind.SHORT_STUB: 'm',
}

# (threshold, multiplier, prefix), first match on |value| >= threshold wins
_DISPLAY_SCALES = {
    ComponentKind.RESISTOR: [(1e6, 1e-6, 'M'), (1e3, 1e-3, 'k'), (1.0, 1.0, ''), (0.0, 1e3, 'm')],
    ComponentKind.INDUCTOR: [(1e-3, 1e3, 'm'), (1e-6, 1e6, 'µ'), (1e-9, 1e9, 'n'), (0.0, 1e12, 'p')],
    ComponentKind.CAPACITOR: [(1e-6, 1e6, 'µ'), (1e-9, 1e9, 'n'), (1e-12, 1e12, 'p'), (0.0, 1e15, 'f')],
    ComponentKind.TRANSMISSION_LINE: [(1.0, 1.0, ''), (0.0, 1e3, 'm')],
    ComponentKind.OPEN_STUB: [(1.0, 1.0, ''), (0.0, 1e3, 'm')],
    ComponentKind.SHORT_STUB: [(1.0, 1.0, ''), (0.0, 1e3, 'm')],
}


@dataclass(frozen=True)
class ComponentValue:
    """A component kind with its base-unit value (Ω, H, F) at a frequency."""
    kind: ComponentKind = ComponentKind.NONE
    value: float = 0.0
    frequency: float = DEFAULT_FREQUENCY

    @property
    def is_none(self) -> bool:
        return self.kind == ComponentKind.NONE

    @property
    def unit(self) -> str:
        return _UNITS.get(self.kind, '')

    def _scale(self) -> Tuple[float, str]:
        scales = _DISPLAY_SCALES.get(self.kind)
        if not scales:
            return 1.0, ''
        magnitude = abs(self.value)
        for threshold, multiplier, prefix in scales:
            if magnitude >= threshold:
                return multiplier, prefix
        return scales[-1][1], scales[-1][2]

    @property
    def scaled_value(self) -> float:
        return self.value * self._scale()[0]

    @property
    def unit_prefix(self) -> str:
        return self._scale()[1]

    def value_with_unit(self, decimals: int = 3) -> str:
        """e.g. '7.958 nH', '3.183 pF', '10.000 Ω'."""
        return f"{self.scaled_value:.{decimals}f} {self.unit_prefix}{self.unit}"

    def reactance(self) -> float:
        """Series reactance at the component's frequency."""
        if self.kind == ComponentKind.INDUCTOR:
            return inductor_reactance(self.value, self.frequency)
        if self.kind == ComponentKind.CAPACITOR:
            return capacitor_reactance(self.value, self.frequency)
        return 0.0

    def susceptance(self) -> float:
        """Shunt susceptance at the component's frequency."""
        if self.kind == ComponentKind.INDUCTOR:
            return inductor_susceptance(self.value, self.frequency)
        if self.kind == ComponentKind.CAPACITOR:
            return capacitor_susceptance(self.value, self.frequency)
        return 0.0


# --- Value ↔ reactance/susceptance ---

def inductor_reactance(l_henry: float, freq_hz: float) -> float:
    """X = 2πfL (Ohms, positive)."""
    return 2 * np.pi * freq_hz * l_henry


def capacitor_reactance(c_farad: float, freq_hz: float) -> float:
    """X = −1/(2πfC) (Ohms, negative)."""
    if c_farad < MIN_LC or freq_hz <= 0:
        return -HIGH_IMPEDANCE
    return -1.0 / (2 * np.pi * freq_hz * c_farad)


def inductor_susceptance(l_henry: float, freq_hz: float) -> float:
    """B = −1/(2πfL) (Siemens, negative)."""
    if l_henry < MIN_LC or freq_hz <= 0:
        return -HIGH_IMPEDANCE
    return -1.0 / (2 * np.pi * freq_hz * l_henry)


def capacitor_susceptance(c_farad: float, freq_hz: float) -> float:
    """B = 2πfC (Siemens, positive)."""
    return 2 * np.pi * freq_hz * c_farad


def kind_from_reactance(x: float) -> ComponentKind:
    if abs(x) < EPSILON:
        return ComponentKind.NONE
    return ComponentKind.INDUCTOR if x > 0 else ComponentKind.CAPACITOR


def kind_from_susceptance(b: float) -> ComponentKind:
    if abs(b) < EPSILON:
        return ComponentKind.NONE
    return ComponentKind.CAPACITOR if b > 0 else ComponentKind.INDUCTOR


def component_from_reactance(x: float, freq_hz: float) -> ComponentValue:
    """
    The series L or C that presents reactance x at freq_hz.

    Returns a NONE component for x ≈ 0 or a non-positive frequency.
    """
    kind = kind_from_reactance(x)
    if kind == ComponentKind.NONE or freq_hz <= 0:
        return ComponentValue(ComponentKind.NONE, 0.0, freq_hz)

    w = 2 * np.pi * freq_hz
    if kind == ComponentKind.INDUCTOR:
        return ComponentValue(kind, float(x / w), freq_hz)
    return ComponentValue(kind, float(-1.0 / (w * x)), freq_hz)


def component_from_susceptance(b: float, freq_hz: float) -> ComponentValue:
    """
    The shunt C or L that presents susceptance b at freq_hz.

    Returns a NONE component for b ≈ 0 or a non-positive frequency.
    """
    kind = kind_from_susceptance(b)
    if kind == ComponentKind.NONE or freq_hz <= 0:
        return ComponentValue(ComponentKind.NONE, 0.0, freq_hz)

    w = 2 * np.pi * freq_hz
    if kind == ComponentKind.CAPACITOR:
        return ComponentValue(kind, float(b / w), freq_hz)
    return ComponentValue(kind, float(-1.0 / (w * b)), freq_hz)


def calculate_from_impedance(z: complex, freq_hz: float) -> ComponentValue:
    """
    Equivalent single component of an impedance.

    A purely resistive z gives a resistor of value Re(z); otherwise the
    reactive part decides between inductor and capacitor.
    """
    if abs(z.imag) < EPSILON:
        return ComponentValue(ComponentKind.RESISTOR, z.real, freq_hz)
    return component_from_reactance(z.imag, freq_hz)


def calculate_series_component(
    z_current: complex,
    z_target: complex,
    freq_hz: float,
) -> ComponentValue:
    """Series L/C that moves z_current to the reactance of z_target (ΔX)."""
    return component_from_reactance(z_target.imag - z_current.imag, freq_hz)


def calculate_shunt_component(
    y_current: complex,
    y_target: complex,
    freq_hz: float,
) -> ComponentValue:
    """Shunt C/L that moves y_current to the susceptance of y_target (ΔB)."""
    return component_from_susceptance(y_target.imag - y_current.imag, freq_hz)


# --- Preferred values and formatting ---

E12_BASE = [1.0, 1.2, 1.5, 1.8, 2.2, 2.7, 3.3, 3.9, 4.7, 5.6, 6.8, 8.2]

E24_BASE = [
    1.0, 1.1, 1.2, 1.3, 1.5, 1.6, 1.8, 2.0, 2.2, 2.4, 2.7, 3.0,
    3.3, 3.6, 3.9, 4.3, 4.7, 5.1, 5.6, 6.2, 6.8, 7.5, 8.2, 9.1,
]

E_SERIES = {
    'E12': E12_BASE,
    'E24': E24_BASE,
    'E48': [round(10 ** (i / 48), 2) for i in range(48)],
    'E96': [round(10 ** (i / 96), 2) for i in range(96)],
}

_SI_PREFIXES = [
    (1e-15, 'f'),
    (1e-12, 'p'),
    (1e-9, 'n'),
    (1e-6, 'µ'),
    (1e-3, 'm'),
    (1e0, ''),
    (1e3, 'k'),
    (1e6, 'M'),
    (1e9, 'G'),
]


def snap_to_e_series(value: float, series: str = 'E24') -> Tuple[float, float]:
    """
    Snap a value to the nearest preferred value of an E-series.

    Distance is measured on a log scale, and neighbouring decades are
    considered so that e.g. 9.7 snaps up to 10 rather than down to 9.1.

    Returns:
        (snapped_value, error_percentage); the error is positive when the
        snapped value is higher than the input.
    """
    if value <= 0:
        raise ValueError(f"Value must be positive, got {value}")
    if series not in E_SERIES:
        raise ValueError(f"Unknown series '{series}'. Must be one of: {list(E_SERIES.keys())}")

    decade = math.floor(math.log10(value))
    log_value = math.log10(value)

    candidates = [
        base * 10.0 ** (decade + shift)
        for shift in (-1, 0, 1)
        for base in E_SERIES[series]
    ]
    snapped = min(candidates, key=lambda c: abs(math.log10(c) - log_value))

    error_pct = (snapped - value) / value * 100
    return snapped, round(error_pct, 4)


def engineering_notation(value: float, unit: str = '', precision: int = 3) -> str:
    """
    Format a value with an SI prefix.

        engineering_notation(7.958e-9, 'H')  → '7.96nH'
        engineering_notation(4700, 'Ω')      → '4.7kΩ'
    """
    if value == 0:
        return f"0{unit}"

    abs_value = abs(value)
    sign = '-' if value < 0 else ''

    for scale, prefix in reversed(_SI_PREFIXES):
        if abs_value >= scale:
            scaled = abs_value / scale
            return f"{sign}{scaled:.{precision}g}{prefix}{unit}"

    return f"{value:.{precision}g}{unit}"


def format_component(component: ComponentValue, precision: int = 3) -> str:
    if component.is_none:
        return 'none'
    return engineering_notation(component.value, component.unit, precision)
