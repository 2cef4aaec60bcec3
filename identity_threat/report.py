"""Dashboard summary: runs every analysis and collects plain-dict results.

Flow:
  1. Generate the synthetic two-group dataset
  2. Ensemble anomaly detection on emotional rhetoric (per group)
  3. Belief evolution across the default threat scenarios
  4. Optionally, forecast backtests for the standard variables

The summary holds only JSON-serialisable values so a rendering layer can
consume it read-only.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from typing import Any

import numpy as np
import pandas as pd

from identity_threat.analysis.anomaly import IDENTITY_FEATURES, detect_ensemble_anomalies
from identity_threat.analysis.forecasting import evaluate_forecast
from identity_threat.bayesian.scenarios import ScenarioComparator, summarize_scenarios
from identity_threat.config import (
    DEFAULT_OBSERVATIONS,
    FORECAST_VARIABLES,
    SIMULATION_SEED,
)
from identity_threat.data.generation import GenerationConfig, generate_identity_threat_data

logger = logging.getLogger(__name__)


@dataclass
class DashboardSummary:
    dataset: dict[str, Any] = field(default_factory=dict)
    anomalies: dict[str, Any] = field(default_factory=dict)
    scenarios: list[dict[str, Any]] = field(default_factory=list)
    forecasts: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _plain(value: Any) -> Any:
    if isinstance(value, (np.floating, float)):
        return None if np.isnan(value) else round(float(value), 4)
    if isinstance(value, np.integer):
        return int(value)
    if isinstance(value, np.bool_):
        return bool(value)
    return value


def frame_records(frame: pd.DataFrame) -> list[dict[str, Any]]:
    return [{k: _plain(v) for k, v in row.items()} for row in frame.to_dict(orient="records")]


def dataset_summary(data: pd.DataFrame) -> dict[str, Any]:
    numeric = data.select_dtypes("number")
    return {
        "rows": len(data),
        "start": str(data["date"].min().date()),
        "end": str(data["date"].max().date()),
        "groups": sorted(data["group"].unique().tolist()),
        "events": int(data["event_marker"].sum() // data["group"].nunique()),
        "means_by_group": {
            str(g): {k: _plain(v) for k, v in row.items()}
            for g, row in numeric.groupby(data["group"]).mean().iterrows()
        },
    }


def build_dashboard(
    seed: int = SIMULATION_SEED,
    observations: int = DEFAULT_OBSERVATIONS,
    include_forecasts: bool = False,
    forecast_method: str = "structural",
) -> DashboardSummary:
    """Run the full analysis suite and summarise it."""
    summary = DashboardSummary()

    data = generate_identity_threat_data(GenerationConfig(seed=seed))
    summary.dataset = dataset_summary(data)

    ensemble = detect_ensemble_anomalies(
        data,
        value_col="emotional_rhetoric_score",
        feature_cols=IDENTITY_FEATURES,
        group_col="group",
    )
    flagged = ensemble.data[ensemble.data["is_anomaly_ensemble"]]
    summary.anomalies = {
        "counts": ensemble.summary(),
        "by_method": {
            k: int(v) for k, v in ensemble.data["anomaly_method"].value_counts().items()
        },
        "flagged_dates": sorted({str(d.date()) for d in flagged["date"]}),
    }

    comparison = ScenarioComparator(seed=seed).run(observations)
    summary.scenarios = frame_records(summarize_scenarios(comparison))

    if include_forecasts:
        for var in FORECAST_VARIABLES:
            ev = evaluate_forecast(data, var, group_filter="Group_A", method=forecast_method)
            summary.forecasts[var] = {
                "method": ev.method,
                "mae": _plain(ev.mae),
                "rmse": _plain(ev.rmse),
                "mape": _plain(ev.mape),
            }

    logger.info(
        "dashboard_built",
        extra={
            "rows": summary.dataset["rows"],
            "anomalies": summary.anomalies["counts"]["either"],
            "scenarios": len(summary.scenarios),
            "forecasts": len(summary.forecasts),
        },
    )
    return summary
