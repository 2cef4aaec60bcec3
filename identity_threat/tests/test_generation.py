"""Tests for the synthetic identity threat dataset."""

import numpy as np
import pandas as pd
import pytest

from identity_threat.data.generation import (
    OUTPUT_COLUMNS,
    SCORE_COLUMNS,
    GenerationConfig,
    generate_ar1,
    generate_cyclical,
    generate_events,
    generate_identity_threat_data,
)
from identity_threat.exceptions import InvalidConfiguration


@pytest.fixture(scope="module")
def data():
    return generate_identity_threat_data()


# ============================================================
# Building blocks
# ============================================================

class TestBuildingBlocks:

    def setup_method(self):
        self.rng = np.random.default_rng(0)

    def test_cyclical_without_noise(self):
        series = generate_cyclical(self.rng, 180, period=90.0, amplitude=20.0, noise_sd=0.0)
        t = np.arange(1, 181)
        np.testing.assert_allclose(series, 50.0 + 20.0 * np.sin(2 * np.pi * t / 90.0))

    def test_cyclical_bounded(self):
        series = generate_cyclical(self.rng, 500, amplitude=60.0, noise_sd=30.0)
        assert series.min() >= 0.0
        assert series.max() <= 100.0

    def test_events(self):
        markers, effect = generate_events(self.rng, 300, n_events=5, intensity=20.0, decay_rate=7.0)
        event_days = np.flatnonzero(markers)
        assert len(event_days) == 5
        assert event_days.min() >= 49
        assert event_days.max() <= 249
        assert effect.max() <= 20.0 * np.exp(-1.0 / 7.0) + 1e-12
        for idx in event_days:
            assert effect[idx + 1] > 0

    def test_no_events(self):
        markers, effect = generate_events(self.rng, 200, n_events=0)
        assert markers.sum() == 0
        assert not effect.any()

    def test_ar1_starts_at_baseline(self):
        series = generate_ar1(self.rng, 50, baseline=55.0, noise_sd=12.0)
        assert series[0] == 55.0

    def test_ar1_without_noise_is_flat(self):
        series = generate_ar1(self.rng, 50, phi=0.8, baseline=55.0, noise_sd=0.0)
        np.testing.assert_allclose(series, 55.0)


# ============================================================
# Full dataset
# ============================================================

class TestDataset:

    def test_shape_and_columns(self, data):
        assert len(data) == 1460
        assert list(data.columns) == OUTPUT_COLUMNS

    def test_date_range(self, data):
        assert data["date"].min() == pd.Timestamp("2024-03-01")
        assert data["date"].max() == pd.Timestamp("2026-02-28")
        assert data["date"].is_monotonic_increasing

    def test_two_rows_per_day(self, data):
        per_day = data.groupby("date")["group"].apply(list)
        assert len(per_day) == 730
        assert all(groups == ["Group_A", "Group_B"] for groups in per_day)

    def test_scores_bounded(self, data):
        for col in SCORE_COLUMNS:
            values = data[col].dropna()
            assert values.between(0.0, 100.0).all(), col

    def test_evidence_range(self, data):
        assert data["evidence_strength"].between(20.0, 80.0).all()

    def test_events_shared_by_groups(self, data):
        per_group = data.groupby("group")["event_marker"].sum()
        assert per_group.tolist() == [12, 12]
        a = data[data["group"] == "Group_A"]["event_marker"].to_numpy()
        b = data[data["group"] == "Group_B"]["event_marker"].to_numpy()
        np.testing.assert_array_equal(a, b)

    def test_media_shared_by_groups(self, data):
        a = data[data["group"] == "Group_A"]["media_intensity_index"].to_numpy()
        b = data[data["group"] == "Group_B"]["media_intensity_index"].to_numpy()
        np.testing.assert_array_equal(a, b)

    def test_lagged_columns_start_missing(self, data):
        for _, frame in data.groupby("group"):
            rationalization = frame["rationalization_score"]
            institutional = frame["institutional_response_speed"]
            assert rationalization.iloc[:7].isna().all()
            assert rationalization.iloc[7:].notna().all()
            assert institutional.iloc[:14].isna().all()
            assert institutional.iloc[14:].notna().all()

    def test_credibility_tracks_institutions_more_than_evidence(self, data):
        complete = data.dropna()
        corr_inst = complete["perceived_credibility_score"].corr(complete["institutional_response_speed"])
        corr_evid = complete["perceived_credibility_score"].corr(complete["evidence_strength"])
        assert corr_inst > corr_evid

    def test_deterministic(self, data):
        pd.testing.assert_frame_equal(data, generate_identity_threat_data())

    def test_seed_changes_data(self, data):
        other = generate_identity_threat_data(GenerationConfig(seed=7))
        assert not other["identity_threat_index"].equals(data["identity_threat_index"])


class TestConfigValidation:

    def test_too_short(self):
        with pytest.raises(InvalidConfiguration):
            generate_identity_threat_data(GenerationConfig(n_days=100))

    def test_too_many_events(self):
        with pytest.raises(InvalidConfiguration):
            generate_identity_threat_data(GenerationConfig(n_days=200, n_shock_events=500))

    def test_three_groups(self):
        with pytest.raises(InvalidConfiguration):
            generate_identity_threat_data(GenerationConfig(groups=("A", "B", "C")))

    def test_configured_group_order_kept(self):
        df = generate_identity_threat_data(GenerationConfig(groups=("Z", "A"), seed=3))
        assert df["group"].iloc[:2].tolist() == ["Z", "A"]
        # first coefficient pair entries (threat baseline 40) belong to "Z"
        means = df.groupby("group")["identity_threat_index"].mean()
        assert means["Z"] < means["A"]

    def test_short_custom_dataset(self):
        df = generate_identity_threat_data(GenerationConfig(n_days=200, n_shock_events=3, seed=1))
        assert len(df) == 400
        assert df["event_marker"].sum() == 6
