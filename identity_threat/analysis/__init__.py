"""Statistical analysis of the identity threat dataset.

Modules:
    anomaly      -- rolling z-score, isolation forest and ensemble flags
    forecasting  -- structural time series and ARIMA forecasts, backtests
"""

from identity_threat.analysis.anomaly import (
    EnsembleResult,
    IsolationForestResult,
    detect_ensemble_anomalies,
    detect_identity_threat_anomalies,
    detect_isolation_forest_anomalies,
    detect_zscore_anomalies,
)
from identity_threat.analysis.forecasting import (
    ArimaForecast,
    ForecastEvaluation,
    StructuralForecast,
    evaluate_forecast,
    forecast_all,
    forecast_arima,
    forecast_structural,
)

__all__ = [
    "EnsembleResult",
    "IsolationForestResult",
    "detect_ensemble_anomalies",
    "detect_identity_threat_anomalies",
    "detect_isolation_forest_anomalies",
    "detect_zscore_anomalies",
    "ArimaForecast",
    "ForecastEvaluation",
    "StructuralForecast",
    "evaluate_forecast",
    "forecast_all",
    "forecast_arima",
    "forecast_structural",
]
