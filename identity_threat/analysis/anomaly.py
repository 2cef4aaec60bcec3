"""Anomaly detection for identity threat time series.

Two detectors and their combination:

1. **Rolling z-score**: flags points more than ``threshold`` standard
   deviations from the mean of a trailing window (univariate).
2. **Isolation forest**: scikit-learn ``IsolationForest`` over several
   features at once; scores are the standard anomaly score in (0, 1],
   higher meaning more anomalous (~0.5 is unremarkable).
3. **Ensemble**: a row is anomalous if either method flags it.

Detectors return copies of the input with result columns appended.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np
import pandas as pd
from sklearn.ensemble import IsolationForest

from identity_threat.config import (
    ISO_CONTAMINATION,
    ISO_N_TREES,
    ISO_SAMPLE_SIZE,
    ISO_THRESHOLD,
    ZSCORE_THRESHOLD,
    ZSCORE_WINDOW,
)
from identity_threat.exceptions import InvalidConfiguration

logger = logging.getLogger(__name__)

IDENTITY_FEATURES = [
    "identity_threat_index",
    "emotional_rhetoric_score",
    "media_intensity_index",
    "rationalization_score",
    "perceived_credibility_score",
]


@dataclass
class IsolationForestResult:
    """Isolation forest output.

    Attributes:
        data: Input rows with ``iso_anomaly_score`` and ``is_anomaly_iso``.
        model: The fitted IsolationForest.
        n_anomalies: Rows scoring above the threshold.
        pct_anomalies: ``n_anomalies`` as a percentage of complete rows.
    """

    data: pd.DataFrame
    model: IsolationForest
    n_anomalies: int
    pct_anomalies: float


@dataclass
class EnsembleResult:
    data: pd.DataFrame
    iso_model: IsolationForest

    def summary(self) -> dict[str, int]:
        d = self.data
        return {
            "zscore": int(d["is_anomaly_zscore"].sum()),
            "isolation_forest": int(d["is_anomaly_iso"].sum()),
            "both": int((d["anomaly_method"] == "Both").sum()),
            "either": int(d["is_anomaly_ensemble"].sum()),
        }


# ---------------------------------------------------------------------------
# Rolling z-score
# ---------------------------------------------------------------------------


def _rolling_zscore(values: pd.Series, window: int) -> pd.DataFrame:
    # Current point plus the previous ``window`` points; partial windows allowed
    roll = values.rolling(window + 1, min_periods=1)
    mean = roll.mean()
    sd = roll.std()
    return pd.DataFrame({"rolling_mean": mean, "rolling_sd": sd, "z_score": (values - mean) / sd})


def detect_zscore_anomalies(
    data: pd.DataFrame,
    value_col: str,
    window: int = ZSCORE_WINDOW,
    threshold: float = ZSCORE_THRESHOLD,
    group_col: Optional[str] = None,
    date_col: str = "date",
) -> pd.DataFrame:
    """Flag observations more than ``threshold`` SDs from the trailing mean.

    Parameters
    ----------
    data : pd.DataFrame
        Table with a date column and ``value_col``.
    value_col : str
        Column to analyse.
    window : int
        Number of preceding observations in the rolling window.
    threshold : float
        Absolute z-score above which a point is anomalous.
    group_col : str, optional
        Compute rolling statistics separately within each group.
    date_col : str
        Column used to order observations.

    Returns
    -------
    pd.DataFrame
        Sorted copy of ``data`` with ``rolling_mean``, ``rolling_sd``,
        ``z_score`` and ``is_anomaly_zscore``. Undefined z-scores (a single
        point, or zero spread) are never flagged.
    """
    if window < 1:
        raise InvalidConfiguration(f"window must be >= 1, got {window}")
    if not threshold > 0:
        raise InvalidConfiguration(f"threshold must be positive, got {threshold}")

    sort_cols = [date_col] + ([group_col] if group_col else [])
    result = data.sort_values(sort_cols, kind="stable").reset_index(drop=True)

    values = result[value_col].astype(float)
    if group_col:
        stats = pd.concat(
            [_rolling_zscore(s, window) for _, s in values.groupby(result[group_col], sort=False)]
        ).sort_index()
    else:
        stats = _rolling_zscore(values, window)

    z = stats["z_score"].replace([np.inf, -np.inf], np.nan)
    result["rolling_mean"] = stats["rolling_mean"]
    result["rolling_sd"] = stats["rolling_sd"]
    result["z_score"] = z
    result["is_anomaly_zscore"] = (z.abs() > threshold) & z.notna()

    n_anomalies = int(result["is_anomaly_zscore"].sum())
    logger.info(
        "zscore_detection_complete",
        extra={
            "variable": value_col,
            "window": window,
            "threshold": threshold,
            "anomalies": n_anomalies,
            "pct": round(100.0 * n_anomalies / max(len(result), 1), 2),
        },
    )
    return result


# ---------------------------------------------------------------------------
# Isolation forest
# ---------------------------------------------------------------------------


def detect_isolation_forest_anomalies(
    data: pd.DataFrame,
    feature_cols: Sequence[str],
    contamination: float = ISO_CONTAMINATION,
    n_trees: int = ISO_N_TREES,
    sample_size: int = ISO_SAMPLE_SIZE,
    threshold: float = ISO_THRESHOLD,
    seed: int = 42,
) -> IsolationForestResult:
    """Multivariate anomaly scoring with an isolation forest.

    Only rows with every feature present are scored; the rest get a NaN
    score and are not flagged.
    """
    feature_cols = list(feature_cols)
    if not feature_cols:
        raise InvalidConfiguration("feature_cols must name at least one column")
    if not 0 < threshold < 1:
        raise InvalidConfiguration(f"threshold must be in (0, 1), got {threshold}")
    if not 0 < contamination <= 0.5:
        raise InvalidConfiguration(f"contamination must be in (0, 0.5], got {contamination}")

    complete = data[feature_cols].notna().all(axis=1).to_numpy()
    n_complete = int(complete.sum())
    if n_complete < 2:
        raise InvalidConfiguration(
            f"Need at least 2 complete rows for {feature_cols}, got {n_complete}"
        )
    features = data.loc[complete, feature_cols].to_numpy(dtype=float)

    model = IsolationForest(
        n_estimators=n_trees,
        max_samples=min(sample_size, n_complete),
        contamination=contamination,
        random_state=seed,
    )
    model.fit(features)
    scores = -model.score_samples(features)

    result = data.copy()
    result["iso_anomaly_score"] = np.nan
    result.loc[complete, "iso_anomaly_score"] = scores
    result["is_anomaly_iso"] = result["iso_anomaly_score"] > threshold

    n_anomalies = int(result["is_anomaly_iso"].sum())
    pct_anomalies = 100.0 * n_anomalies / n_complete
    logger.info(
        "isolation_forest_complete",
        extra={
            "features": feature_cols,
            "complete_rows": n_complete,
            "total_rows": len(data),
            "mean_score": round(float(np.mean(scores)), 3),
            "median_score": round(float(np.median(scores)), 3),
            "threshold": threshold,
            "anomalies": n_anomalies,
        },
    )
    return IsolationForestResult(
        data=result,
        model=model,
        n_anomalies=n_anomalies,
        pct_anomalies=pct_anomalies,
    )


def detect_identity_threat_anomalies(
    data: pd.DataFrame,
    threshold: float = ISO_THRESHOLD,
) -> IsolationForestResult:
    """Isolation forest over the standard identity threat feature set."""
    return detect_isolation_forest_anomalies(data, IDENTITY_FEATURES, threshold=threshold)


# ---------------------------------------------------------------------------
# Ensemble
# ---------------------------------------------------------------------------


def _method_label(zscore: bool, iso: bool) -> str:
    if zscore and iso:
        return "Both"
    if zscore:
        return "Z-Score Only"
    if iso:
        return "Isolation Forest Only"
    return "None"


def detect_ensemble_anomalies(
    data: pd.DataFrame,
    value_col: str,
    feature_cols: Sequence[str],
    zscore_threshold: float = ZSCORE_THRESHOLD,
    iso_threshold: float = ISO_THRESHOLD,
    group_col: Optional[str] = None,
    window: int = ZSCORE_WINDOW,
    date_col: str = "date",
) -> EnsembleResult:
    """Z-score on ``value_col`` then isolation forest on ``feature_cols``.

    Adds ``is_anomaly_ensemble`` (either method) and ``anomaly_method``.
    """
    scored = detect_zscore_anomalies(
        data,
        value_col,
        window=window,
        threshold=zscore_threshold,
        group_col=group_col,
        date_col=date_col,
    )
    iso = detect_isolation_forest_anomalies(scored, feature_cols, threshold=iso_threshold)

    final = iso.data
    final["is_anomaly_ensemble"] = final["is_anomaly_zscore"] | final["is_anomaly_iso"]
    final["anomaly_method"] = [
        _method_label(z, i)
        for z, i in zip(final["is_anomaly_zscore"], final["is_anomaly_iso"])
    ]

    result = EnsembleResult(data=final, iso_model=iso.model)
    logger.info("ensemble_detection_complete", extra=result.summary())
    return result
