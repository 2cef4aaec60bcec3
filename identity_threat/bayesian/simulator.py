"""Sequential belief evolution under time-varying threat and institutions.

Each step samples an evidence strength, evaluates both trajectories, and
updates the current belief. The posterior of step t is the prior of step
t + 1, so steps run strictly in order and a run cannot be resumed without
replaying it from the initial belief.
"""

from __future__ import annotations

import copy
import logging
from typing import Iterator, Optional

import numpy as np
import pandas as pd

from .state import (
    STEP_COLUMNS,
    ObservationContext,
    SimulationSettings,
    StepRecord,
    UpdateCoefficients,
    clamp,
)
from .trajectories import Constant, TrajectoryFn
from .updater import BeliefUpdater

logger = logging.getLogger(__name__)


class BeliefEvolutionSimulator:
    """Drives BeliefUpdater across ``settings.observation_count`` steps.

    Parameters
    ----------
    settings : SimulationSettings, optional
        Run length, initial belief, evidence distribution and seed.
    threat_trajectory : callable, optional
        Identity threat level as a function of t. Defaults to constant 50.
    institutional_trajectory : callable, optional
        Institutional signal as a function of t. Defaults to constant 50.
    coefficients : UpdateCoefficients, optional
        Weights for the update rule.
    rng : numpy.random.Generator, optional
        Source of evidence draws. Built from ``settings.seed`` when omitted.
        Each run draws from a copy taken at construction, so repeated runs
        replay the same evidence and the caller's generator is not advanced.
    """

    def __init__(
        self,
        settings: Optional[SimulationSettings] = None,
        threat_trajectory: Optional[TrajectoryFn] = None,
        institutional_trajectory: Optional[TrajectoryFn] = None,
        coefficients: Optional[UpdateCoefficients] = None,
        rng: Optional[np.random.Generator] = None,
    ) -> None:
        self.settings = settings or SimulationSettings()
        self.threat_trajectory = threat_trajectory or Constant(50.0)
        self.institutional_trajectory = institutional_trajectory or Constant(50.0)
        self.updater = BeliefUpdater(coefficients)
        self._rng = copy.deepcopy(rng)

    def _new_rng(self) -> np.random.Generator:
        if self._rng is not None:
            return copy.deepcopy(self._rng)
        return np.random.default_rng(self.settings.seed)

    def steps(self) -> Iterator[StepRecord]:
        """Yield one StepRecord per time step, t = 1..observation_count."""
        s = self.settings
        rng = self._new_rng()
        belief = s.initial_belief

        for t in range(1, s.observation_count + 1):
            evidence = clamp(float(rng.normal(s.evidence_quality, s.evidence_variability)))
            context = ObservationContext(
                evidence_strength=evidence,
                identity_threat_level=float(self.threat_trajectory(t)),
                institutional_signal=float(self.institutional_trajectory(t)),
            )
            result = self.updater.update(belief, context)

            yield StepRecord(
                time=t,
                prior_mean=belief.mean,
                posterior_mean=result.posterior.mean,
                posterior_sd=result.posterior.uncertainty,
                evidence_strength=evidence,
                identity_threat=context.identity_threat_level,
                institutional_signal=context.institutional_signal,
                belief_shift=result.belief_shift,
                evidence_weight_used=result.adjusted_evidence_weight,
                institution_weight_used=result.adjusted_institution_weight,
                evidence_dominance=result.evidence_dominance,
            )
            belief = result.posterior

    def run(self) -> pd.DataFrame:
        """Run the full simulation and return the trajectory table."""
        records = [r.to_dict() for r in self.steps()]
        frame = pd.DataFrame.from_records(records, columns=STEP_COLUMNS)
        if records:
            logger.debug(
                "simulation_complete",
                extra={
                    "steps": len(records),
                    "final_belief": round(records[-1]["posterior_mean"], 4),
                    "final_sd": round(records[-1]["posterior_sd"], 4),
                },
            )
        return frame


def simulate_belief_evolution(
    n_observations: int,
    initial_belief: float = 50.0,
    initial_uncertainty: float = 20.0,
    evidence_quality: float = 60.0,
    evidence_variability: float = 15.0,
    threat_trajectory: Optional[TrajectoryFn] = None,
    institutional_trajectory: Optional[TrajectoryFn] = None,
    seed: Optional[int] = None,
    coefficients: Optional[UpdateCoefficients] = None,
) -> pd.DataFrame:
    """Functional entry point with the classic defaults.

    Raises InvalidConfiguration for a non-positive ``n_observations`` or
    out-of-range initial belief.
    """
    settings = SimulationSettings(
        observation_count=n_observations,
        initial_mean=initial_belief,
        initial_uncertainty=initial_uncertainty,
        evidence_quality=evidence_quality,
        evidence_variability=evidence_variability,
        **({"seed": seed} if seed is not None else {}),
    )
    return BeliefEvolutionSimulator(
        settings,
        threat_trajectory=threat_trajectory,
        institutional_trajectory=institutional_trajectory,
        coefficients=coefficients,
    ).run()
