"""Threat-modulated precision-weighted belief update.

Combines a prior credibility belief with one observation of evidence and
institutional signalling. Identity threat shifts weight from evidence to
institutions (evidence-credibility decoupling).

The blend is a heuristic precision weighting, not a conjugate Gaussian
update: the likelihood precision is the total weight / 100 and the
likelihood "mean" is the raw combined pull.
"""

from __future__ import annotations

import logging
import math
from typing import Optional

from .state import (
    UNCERTAINTY_MIN,
    BeliefState,
    ObservationContext,
    UpdateCoefficients,
    UpdateResult,
    clamp,
)

logger = logging.getLogger(__name__)


class BeliefUpdater:
    """Applies the belief update rule with a fixed set of coefficients.

    Steps:
      1. Threat lowers the evidence weight (floored)
      2. Threat raises the institution weight (capped)
      3. Pulls = weight * signal, summed into a total pull
      4. Precision blend of prior and total pull
      5. Clamp posterior mean to [0, 100] and floor the posterior SD
    """

    def __init__(self, coefficients: Optional[UpdateCoefficients] = None) -> None:
        self.coefficients = coefficients or UpdateCoefficients()

    def adjusted_weights(self, identity_threat_level: float) -> tuple[float, float]:
        """Evidence and institution weights after threat modulation."""
        c = self.coefficients
        evidence_weight = max(
            c.evidence_weight_floor,
            c.evidence_weight + c.threat_modulation * identity_threat_level,
        )
        institution_weight = min(
            c.institution_weight_ceiling,
            c.institution_weight + c.institution_threat_gain * identity_threat_level,
        )
        return evidence_weight, institution_weight

    def update(self, prior: BeliefState, context: ObservationContext) -> UpdateResult:
        evidence_weight, institution_weight = self.adjusted_weights(
            context.identity_threat_level
        )

        evidence_pull = evidence_weight * context.evidence_strength
        institution_pull = institution_weight * context.institutional_signal
        total_pull = evidence_pull + institution_pull
        total_weight = evidence_weight + institution_weight

        precision_prior = prior.precision
        precision_likelihood = total_weight / 100.0
        posterior_precision = precision_prior + precision_likelihood

        posterior_sd = max(UNCERTAINTY_MIN, math.sqrt(1.0 / posterior_precision))
        posterior_mean = (
            precision_prior * prior.mean + precision_likelihood * total_pull
        ) / posterior_precision
        posterior_mean = clamp(posterior_mean)

        return UpdateResult(
            posterior=BeliefState(mean=posterior_mean, uncertainty=posterior_sd),
            belief_shift=posterior_mean - prior.mean,
            adjusted_evidence_weight=evidence_weight,
            adjusted_institution_weight=institution_weight,
            evidence_pull=evidence_pull,
            institution_pull=institution_pull,
            evidence_dominance=evidence_pull > institution_pull,
        )


def bayesian_update(
    prior: BeliefState,
    context: ObservationContext,
    coefficients: Optional[UpdateCoefficients] = None,
) -> UpdateResult:
    """Single belief update with the default (or given) coefficients."""
    return BeliefUpdater(coefficients).update(prior, context)
