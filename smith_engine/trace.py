"""
Matching trajectory on the Smith chart.

A MatchingTrace starts at the load impedance and grows one element at a
time. Every added element contributes a segment: a sampled arc from the
impedance before the element to the impedance after it.

    series L/C   constant-R arc, X varies by ΔX
    series R     constant-X arc, R varies by ΔR
    shunt L/C    constant-G arc, B varies by ΔB
    shunt R      constant-B arc, G varies by 1/R

Segment i always starts where segment i − 1 ends, and segment 0 starts at
the load. Editing a segment's value regenerates it and every segment after
it, so the chain stays continuous.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, Tuple

import numpy as np

from smith_engine import smithmath
from smith_engine.components import ComponentKind, ComponentValue, Connection
from smith_engine.config import (
    DEFAULT_ARC_POINTS,
    DEFAULT_FREQUENCY,
    DEFAULT_Z0,
    MIN_ARC_CONDUCTANCE,
    MIN_ARC_RESISTANCE,
    MIN_LC,
    EngineSettings,
)
from smith_engine.matching import MatchingElement, MatchingSolution

logger = logging.getLogger(__name__)

PALETTE: Tuple[Tuple[int, int, int], ...] = (
    (0, 100, 200),
    (200, 50, 50),
    (50, 150, 50),
    (180, 100, 0),
    (128, 0, 128),
    (0, 150, 150),
    (200, 150, 0),
    (100, 100, 100),
)


class ArcKind(str, Enum):
    CONSTANT_R = "constant_r"
    CONSTANT_X = "constant_x"
    CONSTANT_G = "constant_g"
    CONSTANT_B = "constant_b"


@dataclass(frozen=True)
class TracePoint:
    gamma: complex
    impedance: complex
    frequency: float


@dataclass(frozen=True)
class TraceSegment:
    """One element's arc, plus what a renderer needs to draw and label it."""
    points: Tuple[TracePoint, ...]
    arc_kind: ArcKind
    component: ComponentValue
    connection: Connection
    label: str
    color: Tuple[int, int, int]

    @property
    def start_impedance(self) -> complex:
        return self.points[0].impedance

    @property
    def end_impedance(self) -> complex:
        return self.points[-1].impedance

    @property
    def end_gamma(self) -> complex:
        return self.points[-1].gamma

    def to_element(self) -> MatchingElement:
        return MatchingElement(self.component.kind, self.connection, self.component.value)


def color_for(index: int) -> Tuple[int, int, int]:
    """Round-robin palette color for the segment at position index."""
    return PALETTE[index % len(PALETTE)]


def segment_label(component: ComponentValue, connection: Connection) -> str:
    if component.kind == ComponentKind.INDUCTOR:
        text = f"L = {component.value * 1e9:.2f} nH"
    elif component.kind == ComponentKind.CAPACITOR:
        text = f"C = {component.value * 1e12:.2f} pF"
    else:
        text = f"R = {component.value:.1f} Ω"
    if connection == Connection.SHUNT:
        text += " (shunt)"
    return text


def _check_component(kind: ComponentKind, value: float):
    if not kind.is_lumped:
        raise ValueError(f"Trace elements must be R, L or C, got '{kind.value}'")
    if value <= 0:
        raise ValueError(f"{kind.value.capitalize()} value must be positive, got {value}")


def _series_delta(component: ComponentValue) -> float:
    """ΔX of a series L or C; a vanishing part adds nothing."""
    if component.value < MIN_LC:
        return 0.0
    return component.reactance()


def _shunt_delta(component: ComponentValue) -> float:
    """ΔB of a shunt C or L; a vanishing part adds nothing."""
    if component.value < MIN_LC:
        return 0.0
    return component.susceptance()


def generate_arc(
    start_z: complex,
    component: ComponentValue,
    connection: Connection,
    z0: float = DEFAULT_Z0,
    num_points: int = DEFAULT_ARC_POINTS,
) -> Tuple[ArcKind, List[TracePoint]]:
    """
    Sample the arc an element traces from start_z.

    The varying coordinate is interpolated linearly over num_points steps;
    resistance on lossy series arcs is floored at MIN_ARC_RESISTANCE and
    conductance on lossy shunt arcs at MIN_ARC_CONDUCTANCE.
    """
    steps = np.linspace(0.0, 1.0, num_points)

    if connection == Connection.SERIES:
        r, x = start_z.real, start_z.imag
        if component.kind == ComponentKind.RESISTOR:
            arc = ArcKind.CONSTANT_X
            zs = [complex(max(r + t * component.value, MIN_ARC_RESISTANCE), x) for t in steps]
        else:
            arc = ArcKind.CONSTANT_R
            dx = _series_delta(component)
            zs = [complex(r, x + t * dx) for t in steps]
    else:
        y = smithmath.invert(start_z)
        g, b = y.real, y.imag
        if component.kind == ComponentKind.RESISTOR:
            arc = ArcKind.CONSTANT_B
            dg = 1.0 / component.value
            ys = [complex(max(g + t * dg, MIN_ARC_CONDUCTANCE), b) for t in steps]
        else:
            arc = ArcKind.CONSTANT_G
            db = _shunt_delta(component)
            ys = [complex(g, b + t * db) for t in steps]
        zs = [smithmath.invert(yi) for yi in ys]

    # The arc starts exactly where its predecessor ended
    zs[0] = complex(start_z)

    points = [
        TracePoint(smithmath.impedance_to_gamma(z, z0), z, component.frequency)
        for z in zs
    ]
    return arc, points


class MatchingTrace:
    """
    The chain of segments built while the user designs a network.

    Segments are stored load first. The trace is the only mutable object
    in the engine; edits go through the add/update/remove/clear methods.
    """

    def __init__(
        self,
        load_z: complex = complex(DEFAULT_Z0, 0.0),
        source_z: complex = complex(DEFAULT_Z0, 0.0),
        z0: float = DEFAULT_Z0,
        frequency: float = DEFAULT_FREQUENCY,
        arc_points: int = DEFAULT_ARC_POINTS,
    ):
        if z0 <= 0:
            raise ValueError(f"Reference impedance must be positive, got {z0}")
        if frequency <= 0:
            raise ValueError(f"Frequency must be positive, got {frequency}")
        if arc_points < 2:
            raise ValueError(f"Arcs need at least 2 points, got {arc_points}")

        self._load_z = complex(load_z)
        self._source_z = complex(source_z)
        self._z0 = z0
        self._frequency = frequency
        self._arc_points = arc_points
        self._segments: List[TraceSegment] = []

    @classmethod
    def from_settings(
        cls,
        settings: EngineSettings,
        load_z: complex,
        source_z: Optional[complex] = None,
    ) -> 'MatchingTrace':
        return cls(
            load_z=load_z,
            source_z=complex(settings.z0, 0.0) if source_z is None else source_z,
            z0=settings.z0,
            frequency=settings.frequency,
            arc_points=settings.arc_points,
        )

    # --- Parameters ---

    @property
    def load_z(self) -> complex:
        return self._load_z

    @property
    def source_z(self) -> complex:
        return self._source_z

    @property
    def z0(self) -> float:
        return self._z0

    @property
    def frequency(self) -> float:
        return self._frequency

    @property
    def arc_points(self) -> int:
        return self._arc_points

    def set_load_impedance(self, load_z: complex):
        self._load_z = complex(load_z)
        self._regenerate_from(0)

    def set_source_impedance(self, source_z: complex):
        self._source_z = complex(source_z)

    def set_frequency(self, frequency: float):
        if frequency <= 0:
            raise ValueError(f"Frequency must be positive, got {frequency}")
        self._frequency = frequency
        self._regenerate_from(0)

    def set_z0(self, z0: float):
        """Change the reference; impedances stay, Γ of every point is recomputed."""
        if z0 <= 0:
            raise ValueError(f"Reference impedance must be positive, got {z0}")
        self._z0 = z0
        self._segments = [
            TraceSegment(
                points=tuple(
                    TracePoint(smithmath.impedance_to_gamma(p.impedance, z0), p.impedance, p.frequency)
                    for p in seg.points
                ),
                arc_kind=seg.arc_kind,
                component=seg.component,
                connection=seg.connection,
                label=seg.label,
                color=seg.color,
            )
            for seg in self._segments
        ]

    # --- State ---

    @property
    def segments(self) -> Tuple[TraceSegment, ...]:
        return tuple(self._segments)

    @property
    def num_segments(self) -> int:
        return len(self._segments)

    def segment(self, index: int) -> TraceSegment:
        self._check_index(index)
        return self._segments[index]

    @property
    def current_impedance(self) -> complex:
        """Impedance after the last element (the load when the trace is empty)."""
        if not self._segments:
            return self._load_z
        return self._segments[-1].end_impedance

    @property
    def current_gamma(self) -> complex:
        return smithmath.impedance_to_gamma(self.current_impedance, self._z0)

    def match_error(self) -> float:
        """|Z_current − Z_source| in Ohms."""
        return abs(self.current_impedance - self._source_z)

    def is_matched(self, tolerance: float = 1e-3) -> bool:
        return self.match_error() <= tolerance

    def elements(self) -> List[MatchingElement]:
        """The trace as a network, ordered source side first."""
        return [seg.to_element() for seg in reversed(self._segments)]

    # --- Edits ---

    def add_series_element(self, kind: ComponentKind, value: float) -> TraceSegment:
        return self.add_element(kind, Connection.SERIES, value)

    def add_shunt_element(self, kind: ComponentKind, value: float) -> TraceSegment:
        return self.add_element(kind, Connection.SHUNT, value)

    def add_element(self, kind: ComponentKind, connection: Connection, value: float) -> TraceSegment:
        _check_component(kind, value)
        component = ComponentValue(kind, value, self._frequency)
        segment = self._build_segment(self.current_impedance, component, connection, len(self._segments))
        self._segments.append(segment)
        logger.debug("Added %s (segment %d)", segment.label, len(self._segments) - 1)
        return segment

    def update_segment_value(self, index: int, value: float) -> TraceSegment:
        """
        Change the value of segment index and regenerate the chain after it.

        Raises:
            IndexError: index is not an existing segment.
            ValueError: value is not positive.
        """
        self._check_index(index)
        old = self._segments[index]
        _check_component(old.component.kind, value)

        component = ComponentValue(old.component.kind, value, self._frequency)
        self._segments[index] = self._build_segment(
            self._start_of(index), component, old.connection, index,
        )
        logger.debug("Segment %d updated: %s → %s", index, old.label, self._segments[index].label)
        self._regenerate_from(index + 1)
        return self._segments[index]

    def remove_last_segment(self) -> Optional[TraceSegment]:
        if not self._segments:
            return None
        removed = self._segments.pop()
        logger.debug("Removed %s", removed.label)
        return removed

    def clear(self):
        self._segments = []

    def apply_solution(self, solution: MatchingSolution):
        """
        Replace the trace with a synthesized lumped network.

        The trace adopts the solution's source, load and frequency, then adds
        its elements from the load side.
        """
        if solution.is_distributed:
            raise ValueError(
                f"Cannot trace distributed topology '{solution.topology.value}' with lumped arcs"
            )
        self._segments = []
        self._source_z = solution.source_z
        self._load_z = solution.load_z
        self._frequency = solution.frequency
        for element in reversed(solution.elements):
            self.add_element(element.kind, element.connection, element.value)

    # --- Internals ---

    def _check_index(self, index: int):
        if not 0 <= index < len(self._segments):
            raise IndexError(f"Segment index {index} out of range (trace has {len(self._segments)})")

    def _start_of(self, index: int) -> complex:
        if index == 0:
            return self._load_z
        return self._segments[index - 1].end_impedance

    def _build_segment(
        self,
        start_z: complex,
        component: ComponentValue,
        connection: Connection,
        index: int,
    ) -> TraceSegment:
        arc, points = generate_arc(start_z, component, connection, self._z0, self._arc_points)
        return TraceSegment(
            points=tuple(points),
            arc_kind=arc,
            component=component,
            connection=connection,
            label=segment_label(component, connection),
            color=color_for(index),
        )

    def _regenerate_from(self, start: int):
        """Rebuild segments start.. from their predecessors' new end points."""
        for i in range(start, len(self._segments)):
            seg = self._segments[i]
            component = ComponentValue(seg.component.kind, seg.component.value, self._frequency)
            self._segments[i] = self._build_segment(self._start_of(i), component, seg.connection, i)
        if start < len(self._segments):
            logger.debug("Regenerated segments %d..%d", start, len(self._segments) - 1)

    @staticmethod
    def palette() -> Sequence[Tuple[int, int, int]]:
        return PALETTE
