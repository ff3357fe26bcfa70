"""
Smith Engine

Core computation library for Smith-chart impedance matching: coordinate
conversions, immittance values, component synthesis, matching-network
synthesis and interactive matching trajectories.

All math is closed-form and deterministic; nothing here draws or does I/O.
"""

from smith_engine.config import EngineSettings, load_settings
from smith_engine.smithmath import impedance_to_gamma, gamma_to_impedance, QCircle, q_circles
from smith_engine.immittance import Impedance, Admittance, ReflectionCoefficient
from smith_engine.components import (
    ComponentKind, ComponentValue, Connection,
    calculate_series_component, calculate_shunt_component,
    snap_to_e_series, engineering_notation,
)
from smith_engine.matching import (
    TopologyKind, MatchingElement, MatchingSolution, MatchingProblem,
    calculate_l_section, calculate_pi_network, calculate_t_network,
    calculate_single_stub, calculate_quarter_wave, calculate_all,
    get_topology, list_topologies, rank_by_stub_length,
)
from smith_engine.analysis import evaluate_solution, sweep_solution, bandwidth
from smith_engine.trace import ArcKind, TracePoint, TraceSegment, MatchingTrace

__version__ = "0.1.0"
