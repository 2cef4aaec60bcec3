"""Value types for the sequential belief-updating model.

Beliefs are immutable: every update produces a new BeliefState which becomes
the prior of the next step. Numeric configuration lives in pydantic models so
bad coefficients are rejected before any step runs.
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from typing import Any, Optional

from pydantic import ConfigDict, Field

from identity_threat.config import DEFAULT_OBSERVATIONS, SIMULATION_SEED
from identity_threat.exceptions import InvalidConfiguration, ValidatedModel

BELIEF_MIN = 0.0
BELIEF_MAX = 100.0
# Keeps 1 / uncertainty**2 and the blended numerator far from float overflow
UNCERTAINTY_MIN = 1e-100


def clamp(value: float, lo: float = BELIEF_MIN, hi: float = BELIEF_MAX) -> float:
    return max(lo, min(hi, value))


@dataclass(frozen=True)
class BeliefState:
    """Belief about credibility: a mean on [0, 100] and its standard deviation."""

    mean: float = 50.0
    uncertainty: float = 20.0

    def __post_init__(self) -> None:
        if not (math.isfinite(self.mean) and BELIEF_MIN <= self.mean <= BELIEF_MAX):
            raise InvalidConfiguration(f"Belief mean must be in [0, 100], got {self.mean}")
        if not (math.isfinite(self.uncertainty) and self.uncertainty >= UNCERTAINTY_MIN):
            raise InvalidConfiguration(
                f"Belief uncertainty must be finite and >= {UNCERTAINTY_MIN}, got {self.uncertainty}"
            )

    @property
    def precision(self) -> float:
        return 1.0 / (self.uncertainty * self.uncertainty)


@dataclass(frozen=True)
class ObservationContext:
    """Exogenous inputs observed at one time step."""

    evidence_strength: float
    identity_threat_level: float
    institutional_signal: float


@dataclass(frozen=True)
class UpdateResult:
    """Posterior of a single update plus the diagnostics that produced it."""

    posterior: BeliefState
    belief_shift: float
    adjusted_evidence_weight: float
    adjusted_institution_weight: float
    evidence_pull: float
    institution_pull: float
    evidence_dominance: bool


@dataclass(frozen=True)
class StepRecord:
    """One row of a simulated belief trajectory."""

    time: int
    prior_mean: float
    posterior_mean: float
    posterior_sd: float
    evidence_strength: float
    identity_threat: float
    institutional_signal: float
    belief_shift: float
    evidence_weight_used: float
    institution_weight_used: float
    evidence_dominance: bool

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


STEP_COLUMNS = [
    "time",
    "prior_mean",
    "posterior_mean",
    "posterior_sd",
    "evidence_strength",
    "identity_threat",
    "institutional_signal",
    "belief_shift",
    "evidence_weight_used",
    "institution_weight_used",
    "evidence_dominance",
]


# ---------------------------------------------------------------------------
# Configuration models
# ---------------------------------------------------------------------------


class UpdateCoefficients(ValidatedModel):
    """Weights of the threat-modulated belief update.

    Identity threat pulls weight away from evidence (``threat_modulation``)
    and towards institutional signalling (``institution_threat_gain``). The
    floor keeps the evidence weight positive; the ceiling bounds institutional
    dominance.
    """

    model_config = ConfigDict(frozen=True)

    evidence_weight: float = Field(default=0.15, allow_inf_nan=False)
    institution_weight: float = Field(default=0.50, ge=0.0, allow_inf_nan=False)
    threat_modulation: float = Field(default=-0.01, allow_inf_nan=False)
    institution_threat_gain: float = Field(default=0.005, ge=0.0, allow_inf_nan=False)
    evidence_weight_floor: float = Field(default=0.01, gt=0.0, allow_inf_nan=False)
    institution_weight_ceiling: float = Field(default=0.80, gt=0.0, allow_inf_nan=False)


class SimulationSettings(ValidatedModel):
    """Run parameters for one belief-evolution simulation."""

    model_config = ConfigDict(frozen=True)

    observation_count: int = Field(default=DEFAULT_OBSERVATIONS, gt=0)
    initial_mean: float = Field(default=50.0, ge=BELIEF_MIN, le=BELIEF_MAX, allow_inf_nan=False)
    initial_uncertainty: float = Field(default=20.0, ge=UNCERTAINTY_MIN, allow_inf_nan=False)
    evidence_quality: float = Field(default=60.0, allow_inf_nan=False)
    evidence_variability: float = Field(default=15.0, ge=0.0, allow_inf_nan=False)
    seed: Optional[int] = SIMULATION_SEED

    @property
    def initial_belief(self) -> BeliefState:
        return BeliefState(mean=self.initial_mean, uncertainty=self.initial_uncertainty)
