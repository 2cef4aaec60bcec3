"""Tests for the threat-modulated belief update.

Tests cover:
  - Posterior bounds and positive uncertainty
  - Evidence weight floor and institution weight ceiling
  - Monotone decoupling as threat rises
  - Precision blending limits (uninformative / confident prior)
  - Clamping, diagnostics, evidence dominance
  - Configuration validation
"""

import math

import numpy as np
import pytest

from pydantic import ValidationError

from identity_threat.bayesian.state import (
    UNCERTAINTY_MIN,
    BeliefState,
    ObservationContext,
    SimulationSettings,
    UpdateCoefficients,
)
from identity_threat.bayesian.updater import BeliefUpdater, bayesian_update
from identity_threat.exceptions import InvalidConfiguration


def ctx(evidence=60.0, threat=20.0, institution=42.0):
    return ObservationContext(
        evidence_strength=evidence,
        identity_threat_level=threat,
        institutional_signal=institution,
    )


# ============================================================
# Bounds
# ============================================================

class TestBounds:

    def test_posterior_in_range_over_grid(self):
        rng = np.random.default_rng(7)
        updater = BeliefUpdater()
        for _ in range(2000):
            prior = BeliefState(
                mean=float(rng.uniform(0, 100)),
                uncertainty=float(rng.uniform(0.01, 200)),
            )
            result = updater.update(prior, ctx(*rng.uniform(0, 100, size=3)))
            assert 0.0 <= result.posterior.mean <= 100.0
            assert result.posterior.uncertainty > 0.0

    def test_extreme_corners(self):
        updater = BeliefUpdater()
        for mean in (0.0, 100.0):
            for value in (0.0, 100.0):
                result = updater.update(
                    BeliefState(mean, 1e-3), ctx(value, value, value)
                )
                assert 0.0 <= result.posterior.mean <= 100.0
                assert result.posterior.uncertainty > 0.0

    def test_uncertainty_always_shrinks(self):
        prior = BeliefState(50.0, 20.0)
        result = bayesian_update(prior, ctx())
        assert result.posterior.uncertainty < prior.uncertainty

    def test_clamped_to_upper_bound(self):
        # Large weights push the combined pull past 100
        coefficients = UpdateCoefficients(evidence_weight=2.0, threat_modulation=0.0)
        result = bayesian_update(
            BeliefState(90.0, 1e6), ctx(100.0, 0.0, 100.0), coefficients
        )
        assert result.posterior.mean == 100.0
        assert result.belief_shift == pytest.approx(10.0)


# ============================================================
# Weight adjustment
# ============================================================

class TestWeights:

    def setup_method(self):
        self.updater = BeliefUpdater()

    def test_floor_and_ceiling_at_max_threat(self):
        evidence_w, institution_w = self.updater.adjusted_weights(100.0)
        assert evidence_w >= 0.01
        assert evidence_w == pytest.approx(0.01)
        assert institution_w <= 0.80
        assert institution_w == pytest.approx(0.80)

    def test_no_threat_uses_base_weights(self):
        evidence_w, institution_w = self.updater.adjusted_weights(0.0)
        assert evidence_w == pytest.approx(0.15)
        assert institution_w == pytest.approx(0.50)

    def test_decoupling_is_monotone(self):
        prior = BeliefState(50.0, 20.0)
        results = [self.updater.update(prior, ctx(threat=float(t))) for t in range(101)]

        for prev, nxt in zip(results, results[1:]):
            if prev.adjusted_evidence_weight > 0.01:
                assert nxt.adjusted_evidence_weight < prev.adjusted_evidence_weight
            else:
                assert nxt.adjusted_evidence_weight == prev.adjusted_evidence_weight
            if prev.adjusted_institution_weight < 0.80:
                assert nxt.adjusted_institution_weight > prev.adjusted_institution_weight
            else:
                assert nxt.adjusted_institution_weight == prev.adjusted_institution_weight

    def test_floor_and_ceiling_hold_past_saturation(self):
        evidence_w, _ = self.updater.adjusted_weights(20.0)
        assert evidence_w == 0.01
        _, institution_w = self.updater.adjusted_weights(70.0)
        assert institution_w == 0.80

    def test_custom_floor_and_ceiling(self):
        updater = BeliefUpdater(UpdateCoefficients(
            evidence_weight_floor=0.05, institution_weight_ceiling=0.6
        ))
        evidence_w, institution_w = updater.adjusted_weights(100.0)
        assert evidence_w == 0.05
        assert institution_w == 0.6


# ============================================================
# Precision blending
# ============================================================

class TestPrecisionBlending:

    def test_uninformative_prior_follows_combined_pull(self):
        result = bayesian_update(BeliefState(50.0, 1e6), ctx())
        total_pull = result.evidence_pull + result.institution_pull
        # 0.01 * 60 + 0.6 * 42
        assert total_pull == pytest.approx(25.8)
        assert result.posterior.mean == pytest.approx(total_pull, abs=1e-6)

    def test_confident_prior_keeps_mean(self):
        result = bayesian_update(BeliefState(73.0, 1e-6), ctx(evidence=0.0, threat=90.0, institution=0.0))
        assert result.posterior.mean == pytest.approx(73.0, abs=1e-9)
        assert result.belief_shift == pytest.approx(0.0, abs=1e-9)

    def test_single_step_values(self):
        result = bayesian_update(BeliefState(50.0, 20.0), ctx(62.0, 20.0, 42.0))
        # precision 1/400 + 0.61/100
        assert result.posterior.uncertainty == pytest.approx(math.sqrt(1 / 0.0086))
        assert result.posterior.mean == pytest.approx(32.849069767442, rel=1e-10)
        assert result.belief_shift == pytest.approx(32.849069767442 - 50.0, rel=1e-10)


# ============================================================
# Diagnostics
# ============================================================

class TestDiagnostics:

    def test_pulls(self):
        result = bayesian_update(BeliefState(), ctx(evidence=80.0, threat=0.0, institution=40.0))
        assert result.evidence_pull == pytest.approx(12.0)
        assert result.institution_pull == pytest.approx(20.0)
        assert result.evidence_dominance is False

    def test_evidence_dominates_with_absent_institution(self):
        result = bayesian_update(BeliefState(), ctx(evidence=100.0, threat=0.0, institution=0.0))
        assert result.evidence_dominance is True

    def test_prior_not_mutated(self):
        prior = BeliefState(50.0, 20.0)
        bayesian_update(prior, ctx())
        assert prior == BeliefState(50.0, 20.0)


# ============================================================
# Validation
# ============================================================

class TestValidation:

    @pytest.mark.parametrize("field", [
        "evidence_weight",
        "institution_weight",
        "threat_modulation",
        "evidence_weight_floor",
        "institution_weight_ceiling",
    ])
    @pytest.mark.parametrize("bad", [float("nan"), float("inf")])
    def test_non_finite_coefficients_rejected(self, field, bad):
        with pytest.raises(InvalidConfiguration):
            UpdateCoefficients(**{field: bad})

    def test_non_positive_floor_rejected(self):
        with pytest.raises(InvalidConfiguration):
            UpdateCoefficients(evidence_weight_floor=0.0)

    def test_invalid_configuration_is_value_error(self):
        with pytest.raises(ValueError):
            UpdateCoefficients(institution_weight=-1.0)

    @pytest.mark.parametrize("mean,sd", [(-1.0, 10.0), (100.5, 10.0), (50.0, 0.0), (50.0, float("nan"))])
    def test_belief_state_domain(self, mean, sd):
        with pytest.raises(InvalidConfiguration):
            BeliefState(mean, sd)

    def test_pydantic_error_chained(self):
        with pytest.raises(InvalidConfiguration) as excinfo:
            UpdateCoefficients(evidence_weight=float("nan"))
        assert isinstance(excinfo.value.__cause__, ValidationError)

    @pytest.mark.parametrize("kwargs", [
        {"observation_count": 0},
        {"initial_mean": 101.0},
        {"initial_uncertainty": 1e-170},
        {"evidence_variability": -0.5},
    ])
    def test_settings_rejected_on_direct_construction(self, kwargs):
        with pytest.raises(InvalidConfiguration):
            SimulationSettings(**kwargs)

    @pytest.mark.parametrize("sd", [1e-170, 1e-160, 1e-101])
    def test_uncertainty_below_floor_rejected(self, sd):
        with pytest.raises(InvalidConfiguration):
            BeliefState(73.0, sd)


# ============================================================
# Near-certain priors
# ============================================================

class TestConfidentPriorAtFloor:

    def test_update_at_floor_keeps_mean(self):
        result = bayesian_update(BeliefState(73.0, UNCERTAINTY_MIN), ctx())
        assert result.posterior.mean == pytest.approx(73.0)
        assert result.posterior.uncertainty >= UNCERTAINTY_MIN
        assert result.posterior.uncertainty == pytest.approx(UNCERTAINTY_MIN)
        assert math.isfinite(result.posterior.precision)

    def test_repeated_updates_stay_valid(self):
        belief = BeliefState(73.0, UNCERTAINTY_MIN * 10)
        updater = BeliefUpdater()
        for threat in (0.0, 50.0, 100.0) * 5:
            belief = updater.update(belief, ctx(threat=threat)).posterior
            assert UNCERTAINTY_MIN <= belief.uncertainty
            assert 0.0 <= belief.mean <= 100.0
        assert belief.mean == pytest.approx(73.0)
