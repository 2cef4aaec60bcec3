"""Exogenous drivers of the belief simulation.

A trajectory maps a 1-based time step to a level on [0, 100]. Threat
trajectories describe perceived identity threat; institutional trajectories
describe the strength of institutional signalling, and may be derived from a
threat trajectory by wrapping it.

Any callable ``f(t) -> float`` is accepted where a trajectory is expected;
the classes here are the named scenarios.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable

from identity_threat.exceptions import InvalidConfiguration

TrajectoryFn = Callable[[int], float]

LEVEL_MIN = 0.0
LEVEL_MAX = 100.0


def _check_level(name: str, value: float) -> None:
    if not (math.isfinite(value) and LEVEL_MIN <= value <= LEVEL_MAX):
        raise InvalidConfiguration(f"{name} must be in [0, 100], got {value}")


def _check_positive(name: str, value: float) -> None:
    if not (math.isfinite(value) and value > 0):
        raise InvalidConfiguration(f"{name} must be positive and finite, got {value}")


class Trajectory:
    """Base for named trajectories: ``traj(t)`` is ``traj.evaluate(t)``."""

    def evaluate(self, t: int) -> float:
        raise NotImplementedError

    def __call__(self, t: int) -> float:
        return self.evaluate(t)


# ---------------------------------------------------------------------------
# Threat trajectories
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Constant(Trajectory):
    """Fixed level regardless of time."""

    value: float

    def __post_init__(self) -> None:
        _check_level("value", self.value)

    def evaluate(self, t: int) -> float:
        return self.value


@dataclass(frozen=True)
class ShockEvent(Trajectory):
    """Sudden threat spike at ``shock_time`` decaying exponentially to baseline."""

    shock_time: int = 10
    intensity: float = 80.0
    decay_rate: float = 5.0
    baseline: float = 20.0

    def __post_init__(self) -> None:
        _check_level("baseline", self.baseline)
        if not (math.isfinite(self.intensity) and self.intensity >= 0):
            raise InvalidConfiguration(f"intensity must be >= 0, got {self.intensity}")
        if self.baseline + self.intensity > LEVEL_MAX:
            raise InvalidConfiguration(
                f"baseline + intensity must not exceed 100, got "
                f"{self.baseline + self.intensity}"
            )
        _check_positive("decay_rate", self.decay_rate)

    def evaluate(self, t: int) -> float:
        if t < self.shock_time:
            return self.baseline
        since_shock = t - self.shock_time
        return self.baseline + self.intensity * math.exp(-since_shock / self.decay_rate)


@dataclass(frozen=True)
class Escalating(Trajectory):
    """Gradual saturating rise from baseline towards ``max_threat``."""

    max_threat: float = 90.0
    rate: float = 0.5
    baseline: float = 20.0

    def __post_init__(self) -> None:
        _check_level("baseline", self.baseline)
        _check_level("max_threat", self.max_threat)
        if self.max_threat < self.baseline:
            raise InvalidConfiguration(
                f"max_threat ({self.max_threat}) must be >= baseline ({self.baseline})"
            )
        _check_positive("rate", self.rate)

    def evaluate(self, t: int) -> float:
        span = self.max_threat - self.baseline
        return self.baseline + span * (1.0 - math.exp(-self.rate * t / 10.0))


LOW_THREAT = Constant(20.0)
HIGH_THREAT = Constant(80.0)


# ---------------------------------------------------------------------------
# Institutional trajectories
# ---------------------------------------------------------------------------

INSTITUTION_OFFSET = 30.0
INSTITUTION_GAIN = 0.6


def _institution_response(threat: float) -> float:
    return min(LEVEL_MAX, INSTITUTION_OFFSET + INSTITUTION_GAIN * threat)


@dataclass(frozen=True)
class ResponsiveInstitution(Trajectory):
    """Signal tracks the current threat level."""

    threat: TrajectoryFn

    def evaluate(self, t: int) -> float:
        return _institution_response(self.threat(t))


@dataclass(frozen=True)
class DelayedInstitution(Trajectory):
    """Signal reacts to the threat ``delay`` steps earlier; flat 40 until then."""

    threat: TrajectoryFn
    delay: int = 14
    baseline: float = 40.0

    def __post_init__(self) -> None:
        if self.delay < 0:
            raise InvalidConfiguration(f"delay must be >= 0, got {self.delay}")
        _check_level("baseline", self.baseline)

    def evaluate(self, t: int) -> float:
        if t <= self.delay:
            return self.baseline
        return _institution_response(self.threat(t - self.delay))


@dataclass(frozen=True)
class AbsentInstitution(Trajectory):
    """No institutional response beyond a flat background signal."""

    value: float = 30.0

    def __post_init__(self) -> None:
        _check_level("value", self.value)

    def evaluate(self, t: int) -> float:
        return self.value
