"""
Impedance-matching network synthesis.

Closed-form solvers for the canonical matching topologies. Each solver takes
a source impedance Zs, a load impedance Zl and the design frequency, and
returns the candidate networks that present Zs when looking from the source
into the network terminated by Zl:

    L-section        2 reactive elements, up to 2 candidates
    Pi / T network   3 reactive elements, loaded Q set by the caller
    Single stub      line + open/short stub, 4 candidates
    Quarter-wave     λ/4 line (plus a reactance-cancelling element)

Elements in a MatchingSolution are ordered from the source side to the load
side. Solvers never raise on bad inputs: non-physical or unsolvable cases
yield an empty list and the reason is logged at DEBUG level.

References:
- Pozar, "Microwave Engineering" (4th ed.), §5.1-5.2, §5.4
- Bowick, "RF Circuit Design" (2nd ed.), ch. 4
"""

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Tuple

import numpy as np

from smith_engine.components import (
    ComponentKind,
    ComponentValue,
    Connection,
    component_from_reactance,
    component_from_susceptance,
)
from smith_engine.config import (
    DEFAULT_FREQUENCY,
    DEFAULT_TARGET_Q,
    DEFAULT_Z0,
    EPSILON,
    SPEED_OF_LIGHT,
    EngineSettings,
)

logger = logging.getLogger(__name__)

# Tolerance for "already on the unit-conductance circle" style checks
_MATCH_TOL = 1e-10


class TopologyKind(str, Enum):
    L_SECTION = "l_section"
    L_SECTION_REVERSED = "l_section_reversed"
    PI_NETWORK = "pi_network"
    T_NETWORK = "t_network"
    SINGLE_STUB_OPEN = "single_stub_open"
    SINGLE_STUB_SHORT = "single_stub_short"
    QUARTER_WAVE = "quarter_wave"


_TOPOLOGY_TITLES = {
    TopologyKind.L_SECTION: 'L-Section',
    TopologyKind.L_SECTION_REVERSED: 'L-Section (Reversed)',
    TopologyKind.PI_NETWORK: 'Pi-Network',
    TopologyKind.T_NETWORK: 'T-Network',
    TopologyKind.SINGLE_STUB_OPEN: 'Open Stub',
    TopologyKind.SINGLE_STUB_SHORT: 'Short Stub',
    TopologyKind.QUARTER_WAVE: 'Quarter-Wave',
}


@dataclass(frozen=True)
class MatchingElement:
    """One element of a matching network, value in base units (Ω, H, F or m)."""
    kind: ComponentKind
    connection: Connection
    value: float
    line_impedance: Optional[float] = None  # Characteristic impedance, line kinds only

    def value_string(self) -> str:
        if self.kind.is_line:
            return f"{self.value * 1e3:.2f} mm"
        return ComponentValue(self.kind, self.value).value_with_unit(decimals=2)

    @property
    def label(self) -> str:
        text = f"{self.kind.symbol}: {self.value_string()}"
        if self.line_impedance is not None:
            text += f" (Z0={self.line_impedance:.1f}Ω)"
        return text

    def to_netlist_entry(self, ref: str) -> Dict:
        entry = {
            'ref': ref,
            'type': self.kind.value,
            'connection': self.connection.value,
            'value': self.value,
            'unit': ComponentValue(self.kind, self.value).unit,
        }
        if self.line_impedance is not None:
            entry['line_impedance'] = self.line_impedance
        return entry


@dataclass(frozen=True)
class MatchingSolution:
    """A candidate network. Produced only by the solvers in this module."""
    topology: TopologyKind
    elements: Tuple[MatchingElement, ...]
    frequency: float
    source_z: complex
    load_z: complex
    valid: bool = True
    parameters: Mapping[str, float] = field(default_factory=dict)
    propagation_velocity: float = SPEED_OF_LIGHT

    def __post_init__(self):
        object.__setattr__(self, 'elements', tuple(self.elements))
        object.__setattr__(self, 'parameters', MappingProxyType(dict(self.parameters)))

    @property
    def network_q(self) -> float:
        """Q implied by the resistance transformation ratio."""
        rs = self.source_z.real
        rl = self.load_z.real
        if rs <= 0 or rl <= 0:
            return 0.0
        return math.sqrt(max(rs, rl) / min(rs, rl) - 1.0)

    @property
    def is_distributed(self) -> bool:
        return any(e.kind.is_line for e in self.elements)

    @property
    def total_line_length(self) -> float:
        """Summed physical length of all line elements (m)."""
        return sum(e.value for e in self.elements if e.kind.is_line)

    def description(self) -> str:
        if not self.valid:
            return "Invalid solution"
        parts = [
            f"{e.connection.value.capitalize()} {e.value_string()}"
            for e in self.elements
        ]
        return f"{_TOPOLOGY_TITLES[self.topology]}: " + " → ".join(parts)

    def netlist_entries(self) -> List[Dict]:
        """Elements as netlist rows, refs numbered per kind (L1, C1, C2, ...)."""
        counters: Dict[ComponentKind, int] = {}
        entries = []
        for elem in self.elements:
            counters[elem.kind] = counters.get(elem.kind, 0) + 1
            entries.append(elem.to_netlist_entry(f"{elem.kind.symbol}{counters[elem.kind]}"))
        return entries


@dataclass(frozen=True)
class MatchingProblem:
    """Inputs shared by every solver."""
    source_z: complex
    load_z: complex
    frequency: float = DEFAULT_FREQUENCY
    z0: float = DEFAULT_Z0
    target_q: float = DEFAULT_TARGET_Q
    propagation_velocity: float = SPEED_OF_LIGHT

    @classmethod
    def from_settings(cls, settings: EngineSettings, source_z: complex,
                      load_z: complex) -> 'MatchingProblem':
        return cls(
            source_z=complex(source_z),
            load_z=complex(load_z),
            frequency=settings.frequency,
            z0=settings.z0,
            target_q=settings.target_q,
            propagation_velocity=settings.propagation_velocity,
        )


def _series(x: float, frequency: float) -> Optional[MatchingElement]:
    comp = component_from_reactance(x, frequency)
    if comp.is_none:
        return None
    return MatchingElement(comp.kind, Connection.SERIES, comp.value)


def _shunt(b: float, frequency: float) -> Optional[MatchingElement]:
    comp = component_from_susceptance(b, frequency)
    if comp.is_none:
        return None
    return MatchingElement(comp.kind, Connection.SHUNT, comp.value)


def _build(
    topology: TopologyKind,
    elements: Sequence[Optional[MatchingElement]],
    source_z: complex,
    load_z: complex,
    frequency: float,
    propagation_velocity: float = SPEED_OF_LIGHT,
    **parameters: float,
) -> Optional[MatchingSolution]:
    # Elements that need no component (reactance ≈ 0) are left out
    present = [e for e in elements if e is not None]
    if not present:
        return None
    return MatchingSolution(
        topology=topology,
        elements=tuple(present),
        frequency=frequency,
        source_z=source_z,
        load_z=load_z,
        parameters=parameters,
        propagation_velocity=propagation_velocity,
    )


def _check_resistive(source_z: complex, load_z: complex, frequency: float, name: str) -> bool:
    if source_z.real <= 0 or load_z.real <= 0:
        logger.debug("%s: non-positive resistance (Zs=%s, Zl=%s)", name, source_z, load_z)
        return False
    if frequency <= 0:
        logger.debug("%s: non-positive frequency %s", name, frequency)
        return False
    return True


# --- Lumped topologies ---

def calculate_l_section(
    source_z: complex,
    load_z: complex,
    frequency: float,
) -> List[MatchingSolution]:
    """
    Two-element L-section candidates.

    Rs > Rl: shunt element on the source side, series element on the load
    side. With the series element the load is moved onto the circle where
    Re(1/Z) = Re(1/Zs):

        Q = √(Rp/Rl − 1),  Rp = 1/Re(1/Zs)  (= Rs for a resistive source)
        X = ±Q·Rl − Xl
        B = ±Q/Rp + Im(1/Zs)

    Rs < Rl: the mirror image in the admittance domain (series element on
    the source side), with Rp = 1/Re(1/Zl):

        Q = √(Rp/Rs − 1)
        B = ±Q/Rp − Im(1/Zl)
        X = ±Q·Rs + Xs

    Rs = Rl: a single series element cancelling the reactance difference.
    """
    source_z, load_z = complex(source_z), complex(load_z)
    if not _check_resistive(source_z, load_z, frequency, 'L-section'):
        return []

    rs, xs = source_z.real, source_z.imag
    rl, xl = load_z.real, load_z.imag

    if np.isclose(rs, rl, rtol=1e-9, atol=EPSILON):
        single = _build(
            TopologyKind.L_SECTION, [_series(xs - xl, frequency)],
            source_z, load_z, frequency, q=0.0,
        )
        if single is None:
            logger.debug("L-section: load already matched to source")
            return []
        return [single]

    solutions = []
    if rs > rl:
        ys = 1.0 / source_z
        rp = 1.0 / ys.real
        q = math.sqrt(rp / rl - 1.0)
        for sign in (1.0, -1.0):
            x_total = sign * q * rl
            b_shunt = ys.imag - (1.0 / complex(rl, x_total)).imag
            sol = _build(
                TopologyKind.L_SECTION,
                [_shunt(b_shunt, frequency), _series(x_total - xl, frequency)],
                source_z, load_z, frequency, q=q,
            )
            if sol is not None:
                solutions.append(sol)
    else:
        yl = 1.0 / load_z
        rp = 1.0 / yl.real
        q = math.sqrt(rp / rs - 1.0)
        for sign in (1.0, -1.0):
            b_total = sign * q / rp
            x_series = xs - (1.0 / complex(yl.real, b_total)).imag
            sol = _build(
                TopologyKind.L_SECTION_REVERSED,
                [_series(x_series, frequency), _shunt(b_total - yl.imag, frequency)],
                source_z, load_z, frequency, q=q,
            )
            if sol is not None:
                solutions.append(sol)

    return solutions


def _valid_q(target_q: float, name: str) -> bool:
    if not np.isfinite(target_q) or target_q <= 0:
        logger.debug("%s: target Q must be positive, got %s", name, target_q)
        return False
    return True


def calculate_pi_network(
    source_z: complex,
    load_z: complex,
    frequency: float,
    target_q: float = DEFAULT_TARGET_Q,
) -> List[MatchingSolution]:
    """
    Shunt-series-shunt Pi network by the virtual-resistor method.

    Two back-to-back L-sections meet at a virtual resistance below both
    terminations:

        Rv = min(Rs, Rl) / (1 + Q²)
        q1 = √(Rs/Rv − 1),  q2 = √(Rl/Rv − 1)
        B1 = q1/Rs,  B2 = q2/Rl,  X = (q1 + q2)·Rv

    Rs and Rl are the parallel-equivalent resistances 1/Re(1/Z); the
    terminations' own susceptance is absorbed into the end shunt elements.
    Resistive terminations give shunt C / series L / shunt C.
    """
    source_z, load_z = complex(source_z), complex(load_z)
    if not _check_resistive(source_z, load_z, frequency, 'Pi-network'):
        return []
    if not _valid_q(target_q, 'Pi-network'):
        return []

    ys = 1.0 / source_z
    yl = 1.0 / load_z
    rs = 1.0 / ys.real
    rl = 1.0 / yl.real

    r_virtual = min(rs, rl) / (1.0 + target_q ** 2)
    q1 = math.sqrt(rs / r_virtual - 1.0)
    q2 = math.sqrt(rl / r_virtual - 1.0)

    b1 = q1 / rs + ys.imag
    b2 = q2 / rl - yl.imag
    x = (q1 + q2) * r_virtual

    sol = _build(
        TopologyKind.PI_NETWORK,
        [_shunt(b1, frequency), _series(x, frequency), _shunt(b2, frequency)],
        source_z, load_z, frequency,
        target_q=target_q, r_virtual=r_virtual, q1=q1, q2=q2,
    )
    return [sol] if sol is not None else []


def calculate_t_network(
    source_z: complex,
    load_z: complex,
    frequency: float,
    target_q: float = DEFAULT_TARGET_Q,
) -> List[MatchingSolution]:
    """
    Series-shunt-series T network by the virtual-resistor method.

        Rv = max(Rs, Rl) · (1 + Q²)
        q1 = √(Rv/Rs − 1),  q2 = √(Rv/Rl − 1)
        X1 = q1·Rs,  X2 = q2·Rl,  B = (q1 + q2)/Rv

    Source/load reactance is absorbed into the outer series elements.
    Resistive terminations give series L / shunt C / series L.
    """
    source_z, load_z = complex(source_z), complex(load_z)
    if not _check_resistive(source_z, load_z, frequency, 'T-network'):
        return []
    if not _valid_q(target_q, 'T-network'):
        return []

    rs, xs = source_z.real, source_z.imag
    rl, xl = load_z.real, load_z.imag

    r_virtual = max(rs, rl) * (1.0 + target_q ** 2)
    q1 = math.sqrt(r_virtual / rs - 1.0)
    q2 = math.sqrt(r_virtual / rl - 1.0)

    x1 = q1 * rs + xs
    x2 = q2 * rl - xl
    b = (q1 + q2) / r_virtual

    sol = _build(
        TopologyKind.T_NETWORK,
        [_series(x1, frequency), _shunt(b, frequency), _series(x2, frequency)],
        source_z, load_z, frequency,
        target_q=target_q, r_virtual=r_virtual, q1=q1, q2=q2,
    )
    return [sol] if sol is not None else []


# --- Distributed topologies ---

def _wrap_half_wave(length: float, wavelength: float) -> float:
    """Bring a line length into [0, λ/2)."""
    half = wavelength / 2.0
    length = math.fmod(length, half)
    if length < 0:
        length += half
    return length


def _admittance_along_line(y_load: complex, electrical_length: float) -> complex:
    """Normalized admittance seen through a lossless line of βd radians."""
    c = math.cos(electrical_length)
    s = math.sin(electrical_length)
    return (y_load * c + 1j * s) / (c + 1j * y_load * s)


def calculate_single_stub(
    source_z: complex,
    load_z: complex,
    frequency: float,
    z0: float = DEFAULT_Z0,
    propagation_velocity: float = SPEED_OF_LIGHT,
) -> List[MatchingSolution]:
    """
    Shunt single-stub match onto the reference impedance z0.

    The line distance d from the load solves Re(y(d)) = 1. With the
    normalized load z = r + jx and t = tan(βd):

        t = (x ± √(r·((1 − r)² + x²))) / (r − 1)      r ≠ 1
        t = −x/2  and  d = λ/4                          r = 1

    At each distance the stub cancels the remaining susceptance,
    B_stub = −Im(y_in):

        open stub:   l = atan(B_stub) / β
        short stub:  l = −atan(1/B_stub) / β

    Distances and lengths are normalized into [0, λ/2). Every distance
    yields one open-stub and one short-stub candidate; which is shorter
    is left to the caller (see rank_by_stub_length).
    """
    source_z, load_z = complex(source_z), complex(load_z)
    if frequency <= 0 or z0 <= 0:
        logger.debug("Single stub: invalid frequency %s or z0 %s", frequency, z0)
        return []

    zn = load_z / z0
    r, x = zn.real, zn.imag
    if r <= 0:
        logger.debug("Single stub: load resistance must be positive (Zl=%s)", load_z)
        return []

    yl = 1.0 / zn
    if abs(yl.real - 1.0) < _MATCH_TOL and abs(yl.imag) < _MATCH_TOL:
        logger.debug("Single stub: load already matched to z0=%s", z0)
        return []

    wavelength = propagation_velocity / frequency
    beta = 2 * np.pi / wavelength

    if abs(r - 1.0) < _MATCH_TOL:
        distances = [
            _wrap_half_wave(math.atan(-x / 2.0) / beta, wavelength),
            wavelength / 4.0,
        ]
    else:
        root = math.sqrt(r * ((1.0 - r) ** 2 + x ** 2))
        distances = [
            _wrap_half_wave(math.atan((x + sign * root) / (r - 1.0)) / beta, wavelength)
            for sign in (1.0, -1.0)
        ]

    solutions = []
    for d in distances:
        y_in = _admittance_along_line(yl, beta * d)
        b_stub = -y_in.imag

        open_length = _wrap_half_wave(math.atan(b_stub) / beta, wavelength)
        if abs(b_stub) < EPSILON:
            short_length = wavelength / 4.0
        else:
            short_length = _wrap_half_wave(-math.atan(1.0 / b_stub) / beta, wavelength)

        line = MatchingElement(ComponentKind.TRANSMISSION_LINE, Connection.SERIES, d, z0)
        for topology, stub_kind, length in (
            (TopologyKind.SINGLE_STUB_OPEN, ComponentKind.OPEN_STUB, open_length),
            (TopologyKind.SINGLE_STUB_SHORT, ComponentKind.SHORT_STUB, short_length),
        ):
            stub = MatchingElement(stub_kind, Connection.SHUNT, length, z0)
            solutions.append(_build(
                topology, [stub, line], source_z, load_z, frequency,
                propagation_velocity,
                distance=d, stub_length=length, stub_susceptance=b_stub,
                wavelength=wavelength,
            ))

    return solutions


def calculate_quarter_wave(
    source_z: complex,
    load_z: complex,
    frequency: float,
    propagation_velocity: float = SPEED_OF_LIGHT,
) -> List[MatchingSolution]:
    """
    Quarter-wave transformer, Z_qw = √(Rs·Rl), length λ/4.

    A reactive load first gets a series element cancelling Xl, placed
    between the load and the transformer. A reactive source gets a series
    element supplying +jXs on the source side.
    """
    source_z, load_z = complex(source_z), complex(load_z)
    if not _check_resistive(source_z, load_z, frequency, 'Quarter-wave'):
        return []

    rs, xs = source_z.real, source_z.imag
    rl, xl = load_z.real, load_z.imag

    z_qw = math.sqrt(rs * rl)
    wavelength = propagation_velocity / frequency
    transformer = MatchingElement(
        ComponentKind.TRANSMISSION_LINE, Connection.SERIES, wavelength / 4.0, z_qw,
    )

    cancel = None
    if abs(xl) >= _MATCH_TOL:
        cancel = _series(-xl, frequency)

    source_side = None
    if abs(xs) >= _MATCH_TOL:
        source_side = _series(xs, frequency)

    sol = _build(
        TopologyKind.QUARTER_WAVE, [source_side, transformer, cancel],
        source_z, load_z, frequency, propagation_velocity,
        line_impedance=z_qw, wavelength=wavelength,
    )
    return [sol]


def rank_by_stub_length(solutions: Sequence[MatchingSolution]) -> List[MatchingSolution]:
    """Order candidates by total line length, shortest first (stable)."""
    return sorted(solutions, key=lambda s: s.total_line_length)


# --- Topology registry ---

@dataclass
class TopologyDefinition:
    """A family of matching networks and the solver producing it."""
    name: str
    description: str
    kinds: Tuple[TopologyKind, ...]
    calculate: Callable[[MatchingProblem], List[MatchingSolution]]
    category: str = 'lumped'


def _calc_l_section(p: MatchingProblem) -> List[MatchingSolution]:
    return calculate_l_section(p.source_z, p.load_z, p.frequency)


def _calc_pi(p: MatchingProblem) -> List[MatchingSolution]:
    return calculate_pi_network(p.source_z, p.load_z, p.frequency, p.target_q)


def _calc_t(p: MatchingProblem) -> List[MatchingSolution]:
    return calculate_t_network(p.source_z, p.load_z, p.frequency, p.target_q)


def _calc_single_stub(p: MatchingProblem) -> List[MatchingSolution]:
    return calculate_single_stub(p.source_z, p.load_z, p.frequency, p.z0, p.propagation_velocity)


def _calc_quarter_wave(p: MatchingProblem) -> List[MatchingSolution]:
    return calculate_quarter_wave(p.source_z, p.load_z, p.frequency, p.propagation_velocity)


TOPOLOGIES: Dict[str, TopologyDefinition] = {
    'l_section': TopologyDefinition(
        name='l_section',
        description='Two-element L-section (series + shunt reactance)',
        kinds=(TopologyKind.L_SECTION, TopologyKind.L_SECTION_REVERSED),
        calculate=_calc_l_section,
    ),
    'pi_network': TopologyDefinition(
        name='pi_network',
        description='Shunt-series-shunt Pi network with selectable loaded Q',
        kinds=(TopologyKind.PI_NETWORK,),
        calculate=_calc_pi,
    ),
    't_network': TopologyDefinition(
        name='t_network',
        description='Series-shunt-series T network with selectable loaded Q',
        kinds=(TopologyKind.T_NETWORK,),
        calculate=_calc_t,
    ),
    'single_stub': TopologyDefinition(
        name='single_stub',
        description='Shunt open or short stub at a distance from the load',
        kinds=(TopologyKind.SINGLE_STUB_OPEN, TopologyKind.SINGLE_STUB_SHORT),
        calculate=_calc_single_stub,
        category='distributed',
    ),
    'quarter_wave': TopologyDefinition(
        name='quarter_wave',
        description='Quarter-wave transformer with optional reactance cancellation',
        kinds=(TopologyKind.QUARTER_WAVE,),
        calculate=_calc_quarter_wave,
        category='distributed',
    ),
}


def get_topology(name: str) -> TopologyDefinition:
    """Get a topology definition by name."""
    if name not in TOPOLOGIES:
        raise ValueError(f"Unknown topology '{name}'. Available: {list(TOPOLOGIES.keys())}")
    return TOPOLOGIES[name]


def list_topologies(category: Optional[str] = None) -> List[Dict]:
    """List the available topology families, optionally filtered by category."""
    return [
        {
            'name': topo.name,
            'description': topo.description,
            'category': topo.category,
            'kinds': [k.value for k in topo.kinds],
        }
        for topo in TOPOLOGIES.values()
        if not category or topo.category == category
    ]


def calculate_topology(name: str, problem: MatchingProblem) -> List[MatchingSolution]:
    """Run one topology family's solver."""
    return get_topology(name).calculate(problem)


def calculate_all(
    problem: MatchingProblem,
    category: Optional[str] = None,
) -> List[MatchingSolution]:
    """
    Every candidate from every topology family, in registry order.

    Families that cannot match the problem simply contribute nothing.
    """
    solutions: List[MatchingSolution] = []
    for topo in TOPOLOGIES.values():
        if category and topo.category != category:
            continue
        found = topo.calculate(problem)
        logger.debug("%s: %d candidate(s)", topo.name, len(found))
        solutions.extend(found)
    return solutions
