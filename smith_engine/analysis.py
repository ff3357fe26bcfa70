"""
Analytical evaluation of synthesized matching networks.

No circuit simulator required: the network is a ladder, so the input
impedance follows from walking the elements from the load towards the
source:

    series lumped element     Z ← Z + Z_elem
    shunt lumped element      Y ← Y + Y_elem
    series line (Zc, βl)      Z ← Zc · (Z + jZc·tan βl) / (Zc + jZ·tan βl)
    open stub                 Y ← Y + j·tan(βl) / Zc
    short stub                Y ← Y − j·cot(βl) / Zc

The match quality is reported against the source impedance with
Γ = (Zin − Zs) / (Zin + Zs*), which is zero exactly when the network
presents Zs and reduces to the usual Γ for a resistive source.
"""

import logging
from typing import Dict, List, Optional, Sequence

import numpy as np

from smith_engine import smithmath
from smith_engine.components import ComponentKind, ComponentValue, Connection
from smith_engine.config import DEFAULT_Z0, EPSILON, HIGH_IMPEDANCE, SPEED_OF_LIGHT
from smith_engine.matching import MatchingElement, MatchingSolution

logger = logging.getLogger(__name__)


def generate_frequencies(
    center: float,
    span_fraction: float = 0.5,
    num_points: int = 201,
) -> np.ndarray:
    """Linearly spaced frequencies (Hz) covering center·(1 ± span_fraction/2)."""
    if center <= 0:
        raise ValueError(f"Center frequency must be positive, got {center}")
    if not 0 < span_fraction < 2:
        raise ValueError(f"Span fraction must be in (0, 2), got {span_fraction}")
    half = center * span_fraction / 2.0
    return np.linspace(center - half, center + half, num_points)


def element_impedance(element: MatchingElement, frequency: float) -> complex:
    """Impedance of a lumped element at frequency."""
    if element.kind == ComponentKind.RESISTOR:
        return complex(element.value, 0.0)
    if element.kind in (ComponentKind.INDUCTOR, ComponentKind.CAPACITOR):
        return complex(0.0, ComponentValue(element.kind, element.value, frequency).reactance())
    raise ValueError(f"No lumped impedance for element kind '{element.kind.value}'")


def element_admittance(
    element: MatchingElement,
    frequency: float,
    propagation_velocity: float = SPEED_OF_LIGHT,
) -> complex:
    """Admittance a shunt element adds at frequency (lumped parts and stubs)."""
    if element.kind == ComponentKind.RESISTOR:
        return smithmath.invert(complex(element.value, 0.0))
    if element.kind in (ComponentKind.INDUCTOR, ComponentKind.CAPACITOR):
        return complex(0.0, ComponentValue(element.kind, element.value, frequency).susceptance())

    if element.kind in (ComponentKind.OPEN_STUB, ComponentKind.SHORT_STUB):
        zc = element.line_impedance or DEFAULT_Z0
        t = np.tan(2 * np.pi * frequency * element.value / propagation_velocity)
        if element.kind == ComponentKind.OPEN_STUB:
            return complex(0.0, t / zc)
        # A zero-length short stub is a short circuit
        if abs(t) < EPSILON:
            return complex(0.0, -HIGH_IMPEDANCE)
        return complex(0.0, -1.0 / (zc * t))

    raise ValueError(f"No shunt admittance for element kind '{element.kind.value}'")


def _through_line(z: complex, zc: float, electrical_length: float) -> complex:
    c = np.cos(electrical_length)
    s = np.sin(electrical_length)
    return complex(zc * (z * c + 1j * zc * s) / (zc * c + 1j * z * s))


def input_impedance(
    elements: Sequence[MatchingElement],
    load_z: complex,
    frequency: float,
    propagation_velocity: float = SPEED_OF_LIGHT,
) -> complex:
    """
    Impedance looking into a network from the source side.

    Args:
        elements: Network elements ordered source side first
        load_z: Terminating impedance (Ohms)
        frequency: Analysis frequency (Hz)
        propagation_velocity: Wave velocity on line elements (m/s)
    """
    z = complex(load_z)
    for element in reversed(elements):
        if element.kind == ComponentKind.TRANSMISSION_LINE:
            if element.connection != Connection.SERIES:
                raise ValueError("Transmission line sections must be series-connected")
            zc = element.line_impedance or DEFAULT_Z0
            beta_l = 2 * np.pi * frequency * element.value / propagation_velocity
            z = _through_line(z, zc, beta_l)
        elif element.connection == Connection.SERIES:
            z = z + element_impedance(element, frequency)
        else:
            y = smithmath.invert(z) + element_admittance(element, frequency, propagation_velocity)
            z = smithmath.invert(y)
    return z


def source_gamma(z_in: complex, source_z: complex) -> complex:
    """Γ = (Zin − Zs) / (Zin + Zs*)."""
    denom = z_in + complex(source_z).conjugate()
    if abs(denom) < EPSILON:
        return complex(1.0, 0.0)
    return (z_in - source_z) / denom


def evaluate_solution(solution: MatchingSolution, frequency: Optional[float] = None) -> Dict:
    """
    Input impedance and match metrics of a solution at one frequency.

    Defaults to the solution's design frequency, where a valid solution has
    |Γ| ≈ 0.
    """
    f = solution.frequency if frequency is None else frequency
    z_in = input_impedance(solution.elements, solution.load_z, f, solution.propagation_velocity)
    gamma = source_gamma(z_in, solution.source_z)
    mag = abs(gamma)
    return {
        'frequency': f,
        'input_impedance': z_in,
        'gamma': gamma,
        'gamma_magnitude': mag,
        'residual': abs(z_in - solution.source_z),
        'vswr': smithmath.gamma_to_vswr(mag),
        'return_loss_db': smithmath.gamma_to_return_loss(gamma),
        'mismatch_loss_db': smithmath.gamma_to_mismatch_loss(gamma),
    }


def sweep_solution(solution: MatchingSolution, frequencies: Sequence[float]) -> Dict:
    """
    Frequency response of a matching network.

    Returns:
        Dict with frequencies, input_impedance, gamma_magnitude, vswr and
        return_loss_db lists.
    """
    points = [evaluate_solution(solution, float(f)) for f in frequencies]
    return {
        'frequencies': [p['frequency'] for p in points],
        'input_impedance': [p['input_impedance'] for p in points],
        'gamma_magnitude': [p['gamma_magnitude'] for p in points],
        'vswr': [p['vswr'] for p in points],
        'return_loss_db': [p['return_loss_db'] for p in points],
        'num_points': len(points),
    }


def bandwidth(
    solution: MatchingSolution,
    vswr_limit: float = 2.0,
    span_fraction: float = 1.0,
    num_points: int = 401,
) -> Optional[Dict]:
    """
    Contiguous band around the design frequency where VSWR ≤ vswr_limit.

    Returns None when the design frequency itself misses the limit. Band
    edges are resolved to the sweep grid; an edge at the sweep boundary
    means the band extends beyond the sweep.
    """
    frequencies = generate_frequencies(solution.frequency, span_fraction, num_points)
    vswr = np.array(sweep_solution(solution, frequencies)['vswr'])

    center = int(np.argmin(np.abs(frequencies - solution.frequency)))
    if vswr[center] > vswr_limit:
        logger.debug("%s misses VSWR %.2f at design frequency", solution.topology.value, vswr_limit)
        return None

    lo = center
    while lo > 0 and vswr[lo - 1] <= vswr_limit:
        lo -= 1
    hi = center
    while hi < len(vswr) - 1 and vswr[hi + 1] <= vswr_limit:
        hi += 1

    f_low = float(frequencies[lo])
    f_high = float(frequencies[hi])
    return {
        'f_low': f_low,
        'f_high': f_high,
        'bandwidth': f_high - f_low,
        'fractional_bandwidth': (f_high - f_low) / solution.frequency,
        'vswr_limit': vswr_limit,
    }


def compare_solutions(
    solutions: Sequence[MatchingSolution],
    vswr_limit: float = 2.0,
) -> List[Dict]:
    """Summary rows (description, design-frequency VSWR, bandwidth) per candidate."""
    rows = []
    for sol in solutions:
        band = bandwidth(sol, vswr_limit)
        rows.append({
            'topology': sol.topology.value,
            'description': sol.description(),
            'vswr': evaluate_solution(sol)['vswr'],
            'bandwidth': band['bandwidth'] if band else 0.0,
        })
    return rows
