"""
Engine-wide constants and settings.

Defaults (reference impedance, design frequency, arc resolution) are carried
in an explicit ``EngineSettings`` value that callers hand to constructors.
Overrides can be supplied through the environment or a ``.env`` file:

    SMITH_Z0=75
    SMITH_FREQUENCY=2.4e9
    SMITH_ARC_POINTS=100
    SMITH_TARGET_Q=3
    SMITH_PROPAGATION_VELOCITY=2e8
"""

import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

DEFAULT_Z0 = 50.0               # Ohms
DEFAULT_FREQUENCY = 1e9         # Hz
DEFAULT_ARC_POINTS = 50
DEFAULT_TARGET_Q = 2.0
SPEED_OF_LIGHT = 3e8            # m/s, TEM propagation

# Sentinels returned instead of dividing by zero
HIGH_IMPEDANCE = 1e12
VSWR_LIMIT = 1e6
RETURN_LOSS_FLOOR = -200.0      # dB
MISMATCH_LOSS_FLOOR = -100.0    # dB

EPSILON = 1e-12

# Floors for the varying coordinate of a lossy trace arc
MIN_ARC_RESISTANCE = 0.001      # Ohms
MIN_ARC_CONDUCTANCE = 1e-12     # Siemens

# Smaller L or C values count as absent
MIN_LC = 1e-18

_ENV_FIELDS = {
    'z0': 'SMITH_Z0',
    'frequency': 'SMITH_FREQUENCY',
    'arc_points': 'SMITH_ARC_POINTS',
    'target_q': 'SMITH_TARGET_Q',
    'propagation_velocity': 'SMITH_PROPAGATION_VELOCITY',
}


class EngineSettings(BaseModel):
    """Design defaults shared by the synthesizer and the trace engine."""
    z0: float = Field(DEFAULT_Z0, gt=0, description="Reference impedance (Ohms)")
    frequency: float = Field(DEFAULT_FREQUENCY, gt=0, description="Design frequency (Hz)")
    arc_points: int = Field(DEFAULT_ARC_POINTS, ge=2, description="Samples per trace arc")
    target_q: float = Field(DEFAULT_TARGET_Q, gt=0, description="Loaded Q for Pi/T networks")
    propagation_velocity: float = Field(
        SPEED_OF_LIGHT, gt=0, description="Wave velocity on transmission lines (m/s)",
    )

    @property
    def y0(self) -> float:
        """Reference admittance (S)."""
        return 1.0 / self.z0

    @property
    def wavelength(self) -> float:
        """Wavelength at the design frequency (m)."""
        return self.propagation_velocity / self.frequency


def load_settings(env_file: Optional[str] = None) -> EngineSettings:
    """
    Build settings from the environment, after loading an optional .env file.

    Unset variables fall back to the model defaults. Malformed or
    out-of-range values raise pydantic.ValidationError.
    """
    load_dotenv(env_file)

    overrides = {}
    for field_name, env_name in _ENV_FIELDS.items():
        raw = os.getenv(env_name)
        if raw is not None and raw.strip():
            overrides[field_name] = raw.strip()

    return EngineSettings(**overrides)
