"""Synthetic longitudinal dataset of identity threat dynamics.

Two groups observed daily. The key relationships built into the data:

  - identity threat follows media intensity plus decaying shock events
  - emotional rhetoric follows threat and media, with noise that shrinks
    over time (groups converge)
  - rationalization follows rhetoric with a 7-day lag
  - institutional response is an AR(1) process plus threat with a 14-day lag
  - perceived credibility weights institutional response 0.50 against
    evidence 0.15, i.e. it is largely decoupled from evidence
  - narrative stability falls with 7-day rhetoric volatility

All score columns are bounded to [0, 100]. Lagged columns start with NaN.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np
import pandas as pd

from identity_threat.config import (
    DATA_AR1_BASELINE,
    DATA_AR1_NOISE_SD,
    DATA_AR1_PHI,
    DATA_GROUPS,
    DATA_N_DAYS,
    DATA_N_SHOCK_EVENTS,
    DATA_SHOCK_DECAY_RATE,
    DATA_SHOCK_INTENSITY,
    DATA_START_DATE,
)
from identity_threat.exceptions import InvalidConfiguration

logger = logging.getLogger(__name__)

EVENT_WINDOW_DAYS = 14
EVENT_MARGIN_DAYS = 50

SCORE_COLUMNS = [
    "identity_threat_index",
    "emotional_rhetoric_score",
    "rationalization_score",
    "institutional_response_speed",
    "perceived_credibility_score",
    "narrative_stability_index",
    "media_intensity_index",
]

OUTPUT_COLUMNS = [
    "date",
    "group",
    "media_intensity_index",
    "event_marker",
    "identity_threat_index",
    "emotional_rhetoric_score",
    "rationalization_score",
    "institutional_response_speed",
    "evidence_strength",
    "perceived_credibility_score",
    "narrative_stability_index",
]


@dataclass
class GenerationConfig:
    """Parameters of the synthetic dataset."""

    n_days: int = DATA_N_DAYS
    start_date: str = DATA_START_DATE
    groups: tuple[str, str] = DATA_GROUPS
    seed: int = 42

    # Media cycle
    media_period: float = 90.0
    media_amplitude: float = 25.0
    media_baseline: float = 50.0
    media_noise_sd: float = 12.0

    # Shock events
    n_shock_events: int = DATA_N_SHOCK_EVENTS
    shock_intensity: float = DATA_SHOCK_INTENSITY
    shock_decay_rate: float = DATA_SHOCK_DECAY_RATE

    # AR(1) institutional base
    ar1_phi: float = DATA_AR1_PHI
    ar1_baseline: float = DATA_AR1_BASELINE
    ar1_noise_sd: float = DATA_AR1_NOISE_SD

    # Per-group coefficients: (first group, second group)
    threat_baseline: tuple[float, float] = (40.0, 48.0)
    threat_media_slope: tuple[float, float] = (0.30, 0.35)
    rhetoric_baseline: tuple[float, float] = (30.0, 35.0)
    rhetoric_threat_slope: tuple[float, float] = (0.45, 0.40)
    rhetoric_media_slope: tuple[float, float] = (0.25, 0.20)
    credibility_bias: tuple[float, float] = (5.0, -3.0)

    rhetoric_lag_days: int = 7
    threat_lag_days: int = 14
    volatility_window: int = 7

    def validate(self) -> None:
        if len(self.groups) != 2:
            raise InvalidConfiguration(f"Exactly two groups required, got {self.groups}")
        if self.n_days <= 2 * EVENT_MARGIN_DAYS + EVENT_WINDOW_DAYS:
            raise InvalidConfiguration(
                f"n_days must exceed {2 * EVENT_MARGIN_DAYS + EVENT_WINDOW_DAYS}, got {self.n_days}"
            )
        available = self.n_days - 2 * EVENT_MARGIN_DAYS + 1
        if not 0 <= self.n_shock_events <= available:
            raise InvalidConfiguration(
                f"n_shock_events must be in [0, {available}], got {self.n_shock_events}"
            )
        if self.shock_decay_rate <= 0:
            raise InvalidConfiguration("shock_decay_rate must be positive")


# ======================================================================
# Building blocks
# ======================================================================

def generate_cyclical(
    rng: np.random.Generator,
    n: int,
    period: float = 90.0,
    amplitude: float = 20.0,
    baseline: float = 50.0,
    noise_sd: float = 10.0,
) -> np.ndarray:
    """Sinusoidal cycle (e.g. media attention) plus Gaussian noise, bounded [0, 100]."""
    t = np.arange(1, n + 1)
    cycle = baseline + amplitude * np.sin(2 * np.pi * t / period)
    noise = rng.normal(0.0, noise_sd, size=n)
    return np.clip(cycle + noise, 0.0, 100.0)


def generate_events(
    rng: np.random.Generator,
    n: int,
    n_events: int = 12,
    intensity: float = 20.0,
    decay_rate: float = 7.0,
) -> tuple[np.ndarray, np.ndarray]:
    """Random shock events with a two-week exponentially decaying effect.

    Event days are drawn without replacement from days 50..n-50 (1-based).
    The effect covers the 14 days after each event and is only applied when
    the whole window fits; later events overwrite earlier ones.

    Returns
    -------
    (markers, effect)
        Binary event indicators and the decaying impact, both length n.
    """
    markers = np.zeros(n, dtype=int)
    effect = np.zeros(n)

    # 0-based indices of days EVENT_MARGIN_DAYS..n-EVENT_MARGIN_DAYS
    candidates = np.arange(EVENT_MARGIN_DAYS - 1, n - EVENT_MARGIN_DAYS)
    event_idx = rng.choice(candidates, size=n_events, replace=False)
    markers[event_idx] = 1

    window = np.arange(1, EVENT_WINDOW_DAYS + 1)
    decay = intensity * np.exp(-window / decay_rate)
    for idx in event_idx:
        if idx + EVENT_WINDOW_DAYS < n:
            effect[idx + window] = decay

    return markers, effect


def generate_ar1(
    rng: np.random.Generator,
    n: int,
    phi: float = 0.8,
    baseline: float = 50.0,
    noise_sd: float = 15.0,
) -> np.ndarray:
    """Mean-reverting AR(1) series starting at ``baseline``, bounded [0, 100].

    x_t = baseline * (1 - phi) + phi * x_{t-1} + e_t,  e_t ~ N(0, noise_sd)
    """
    x = np.empty(n)
    x[0] = baseline
    innovations = rng.normal(0.0, noise_sd, size=max(n - 1, 0))
    for i in range(1, n):
        x[i] = baseline * (1.0 - phi) + phi * x[i - 1] + innovations[i - 1]
    return np.clip(x, 0.0, 100.0)


# ======================================================================
# Full dataset
# ======================================================================

def generate_identity_threat_data(config: Optional[GenerationConfig] = None) -> pd.DataFrame:
    """Generate the two-group daily identity threat dataset.

    Rows are ordered by date, then by group in the configured order, so the
    first entry of each per-group coefficient pair applies to
    ``config.groups[0]``. Deterministic for a given seed.
    """
    cfg = config or GenerationConfig()
    cfg.validate()
    rng = np.random.default_rng(cfg.seed)
    n = cfg.n_days

    media = generate_cyclical(
        rng, n,
        period=cfg.media_period,
        amplitude=cfg.media_amplitude,
        baseline=cfg.media_baseline,
        noise_sd=cfg.media_noise_sd,
    )
    event_markers, event_effect = generate_events(
        rng, n,
        n_events=cfg.n_shock_events,
        intensity=cfg.shock_intensity,
        decay_rate=cfg.shock_decay_rate,
    )
    institutional_base = generate_ar1(
        rng, n,
        phi=cfg.ar1_phi,
        baseline=cfg.ar1_baseline,
        noise_sd=cfg.ar1_noise_sd,
    )

    dates = pd.date_range(cfg.start_date, periods=n, freq="D")
    groups = list(cfg.groups)
    n_rows = 2 * n

    df = pd.DataFrame({
        "date": np.repeat(dates, 2),
        "group": np.tile(groups, n),
        "media_intensity_index": np.repeat(media, 2),
        "event_marker": np.repeat(event_markers, 2),
    })
    first = (df["group"] == groups[0]).to_numpy()

    def by_group(pair: tuple[float, float]) -> np.ndarray:
        return np.where(first, pair[0], pair[1])

    # Identity threat: baseline + slope * media + event effect + noise
    threat = (
        by_group(cfg.threat_baseline)
        + by_group(cfg.threat_media_slope) * df["media_intensity_index"].to_numpy()
        + np.repeat(event_effect, 2)
        + rng.normal(0.0, 8.0, size=n_rows)
    )
    df["identity_threat_index"] = threat

    # Rhetoric noise shrinks by 40% over the observation window
    elapsed = (df["date"] - df["date"].min()).dt.days.to_numpy(dtype=float)
    convergence = 1.0 - 0.4 * (elapsed / elapsed.max())
    df["emotional_rhetoric_score"] = (
        by_group(cfg.rhetoric_baseline)
        + by_group(cfg.rhetoric_threat_slope) * threat
        + by_group(cfg.rhetoric_media_slope) * df["media_intensity_index"].to_numpy()
        + convergence * rng.normal(0.0, 10.0, size=n_rows)
    )

    # ------------------------------------------------------------------
    # Lagged variables and derived metrics (within group)
    # ------------------------------------------------------------------
    grouped = df.groupby("group", sort=False)
    rhetoric_lagged = grouped["emotional_rhetoric_score"].shift(cfg.rhetoric_lag_days)
    threat_lagged = grouped["identity_threat_index"].shift(cfg.threat_lag_days)

    df["rationalization_score"] = 0.7 * rhetoric_lagged + rng.normal(0.0, 8.0, size=n_rows)
    institutional = (
        np.repeat(institutional_base, 2)
        + 0.2 * threat_lagged
        + rng.normal(0.0, 8.0, size=n_rows)
    )
    df["institutional_response_speed"] = institutional

    # Evidence is orthogonal to threat
    evidence = rng.uniform(20.0, 80.0, size=n_rows)
    df["evidence_strength"] = evidence

    # Institutional response weighted ~3.3x more than evidence
    df["perceived_credibility_score"] = (
        35.0
        + 0.15 * evidence
        + 0.50 * institutional
        + by_group(cfg.credibility_bias)
        + rng.normal(0.0, 10.0, size=n_rows)
    )

    volatility = grouped["emotional_rhetoric_score"].transform(
        lambda s: s.rolling(cfg.volatility_window, min_periods=1).std()
    )
    df["narrative_stability_index"] = (
        70.0
        - 0.3 * volatility
        + 0.3 * institutional
        + rng.normal(0.0, 8.0, size=n_rows)
    )

    df[SCORE_COLUMNS] = df[SCORE_COLUMNS].clip(lower=0.0, upper=100.0)
    df = df[OUTPUT_COLUMNS]

    logger.info(
        "dataset_generated",
        extra={
            "rows": len(df),
            "start": str(dates[0].date()),
            "end": str(dates[-1].date()),
            "events": int(event_markers.sum()),
        },
    )
    return df
