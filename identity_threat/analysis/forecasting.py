"""Time-series forecasting of identity threat indicators.

Two statsmodels model families:

- **Structural** (``UnobservedComponents``): local linear trend plus an
  optional yearly seasonal component in frequency form. Produces
  ``yhat`` with lower/upper interval bounds on a daily date axis.
- **ARIMA** (``SARIMAX``): exhaustive AIC search over (p, d, q) and a small
  seasonal grid, then an h-step forecast with 80% and 95% intervals.

``evaluate_forecast`` backtests either method on a chronological split.
"""

from __future__ import annotations

import itertools
import logging
import warnings
from dataclasses import dataclass
from typing import Any, Optional, Sequence

import numpy as np
import pandas as pd
from statsmodels.tsa.statespace.sarimax import SARIMAX
from statsmodels.tsa.statespace.structural import UnobservedComponents

from identity_threat.config import (
    ARIMA_FREQUENCY,
    FORECAST_DAYS,
    FORECAST_TRAIN_PCT,
    FORECAST_VARIABLES,
)
from identity_threat.exceptions import InvalidConfiguration

logger = logging.getLogger(__name__)

METHODS = ("structural", "arima")
DAYS_PER_YEAR = 365.25


@dataclass
class StructuralForecast:
    """Structural model fit and its out-of-sample predictions.

    ``future_predictions`` has columns ``ds``, ``yhat``, ``yhat_lower``,
    ``yhat_upper``.
    """

    model: Any
    future_predictions: pd.DataFrame
    history_start: pd.Timestamp
    history_end: pd.Timestamp
    n_observations: int


@dataclass
class ArimaForecast:
    """Selected SARIMAX model and its forecast table.

    ``forecast_values`` has columns ``point_forecast``, ``lower_80``,
    ``upper_80``, ``lower_95``, ``upper_95``.
    """

    model: Any
    order: tuple[int, int, int]
    seasonal_order: tuple[int, int, int, int]
    aic: float
    forecast_values: pd.DataFrame
    n_observations: int


@dataclass
class ForecastEvaluation:
    method: str
    mae: float
    rmse: float
    mape: float
    comparison: pd.DataFrame


def _select_group(data: pd.DataFrame, group_filter: Optional[str], date_col: str = "date") -> pd.DataFrame:
    if group_filter is not None:
        data = data[data["group"] == group_filter]
    if date_col in data.columns:
        data = data.sort_values(date_col, kind="stable")
    return data.reset_index(drop=True)


def _check_horizon(forecast_days: int) -> None:
    if forecast_days < 1:
        raise InvalidConfiguration(f"forecast_days must be >= 1, got {forecast_days}")


# ---------------------------------------------------------------------------
# Structural time series
# ---------------------------------------------------------------------------


def forecast_structural(
    data: pd.DataFrame,
    value_col: str,
    date_col: str = "date",
    group_filter: Optional[str] = None,
    forecast_days: int = FORECAST_DAYS,
    yearly_seasonality: bool = True,
    interval_width: float = 0.95,
    harmonics: int = 3,
) -> StructuralForecast:
    """Trend plus yearly seasonality forecast on daily data.

    The seasonal component is only added when the history covers more than
    one full year.
    """
    _check_horizon(forecast_days)
    if not 0 < interval_width < 1:
        raise InvalidConfiguration(f"interval_width must be in (0, 1), got {interval_width}")

    frame = _select_group(data, group_filter, date_col)[[date_col, value_col]].dropna()
    if len(frame) < 3:
        raise InvalidConfiguration(f"Need at least 3 observations of {value_col}, got {len(frame)}")
    y = frame[value_col].to_numpy(dtype=float)
    ds = pd.to_datetime(frame[date_col])

    kwargs: dict[str, Any] = {"level": "local linear trend"}
    if yearly_seasonality and len(y) > DAYS_PER_YEAR:
        kwargs["freq_seasonal"] = [{"period": DAYS_PER_YEAR, "harmonics": harmonics}]

    logger.info(
        "structural_fit_start",
        extra={
            "variable": value_col,
            "observations": len(y),
            "start": str(ds.iloc[0].date()),
            "end": str(ds.iloc[-1].date()),
            "seasonal": "freq_seasonal" in kwargs,
        },
    )
    with warnings.catch_warnings():
        warnings.simplefilter("ignore")
        model = UnobservedComponents(y, **kwargs).fit(disp=False)

    fc = model.get_forecast(steps=forecast_days)
    mean = np.asarray(fc.predicted_mean)
    ci = np.asarray(fc.conf_int(alpha=1.0 - interval_width))
    future_dates = pd.date_range(ds.iloc[-1] + pd.Timedelta(days=1), periods=forecast_days, freq="D")

    future = pd.DataFrame({
        "ds": future_dates,
        "yhat": mean,
        "yhat_lower": ci[:, 0],
        "yhat_upper": ci[:, 1],
    })
    return StructuralForecast(
        model=model,
        future_predictions=future,
        history_start=ds.iloc[0],
        history_end=ds.iloc[-1],
        n_observations=len(y),
    )


# ---------------------------------------------------------------------------
# ARIMA
# ---------------------------------------------------------------------------


def _candidate_orders(
    max_p: int, max_d: int, max_q: int, seasonal: bool, frequency: int
) -> list[tuple[tuple[int, int, int], tuple[int, int, int, int]]]:
    orders = list(itertools.product(range(max_p + 1), range(max_d + 1), range(max_q + 1)))
    if seasonal and frequency > 1:
        seasonal_orders = [(0, 0, 0, 0), (1, 0, 0, frequency), (0, 0, 1, frequency)]
    else:
        seasonal_orders = [(0, 0, 0, 0)]
    return list(itertools.product(orders, seasonal_orders))


def forecast_arima(
    data: pd.DataFrame,
    value_col: str,
    group_filter: Optional[str] = None,
    forecast_days: int = FORECAST_DAYS,
    seasonal: bool = True,
    frequency: int = ARIMA_FREQUENCY,
    max_p: int = 2,
    max_d: int = 1,
    max_q: int = 2,
) -> ArimaForecast:
    """Fit the lowest-AIC SARIMAX model and forecast ``forecast_days`` ahead."""
    _check_horizon(forecast_days)
    if min(max_p, max_d, max_q) < 0:
        raise InvalidConfiguration("max_p, max_d and max_q must be >= 0")

    y = _select_group(data, group_filter)[value_col].dropna().to_numpy(dtype=float)
    if len(y) < 10:
        raise InvalidConfiguration(f"Need at least 10 observations of {value_col}, got {len(y)}")

    best = None
    best_aic = np.inf
    best_orders = None
    candidates = _candidate_orders(max_p, max_d, max_q, seasonal, frequency)
    for order, seasonal_order in candidates:
        trend = "c" if order[1] == 0 else "n"
        try:
            with warnings.catch_warnings():
                warnings.simplefilter("ignore")
                res = SARIMAX(
                    y,
                    order=order,
                    seasonal_order=seasonal_order,
                    trend=trend,
                ).fit(disp=False)
        except (ValueError, np.linalg.LinAlgError) as e:
            logger.debug("arima_order_failed", extra={"order": order, "error": str(e)})
            continue
        if np.isfinite(res.aic) and res.aic < best_aic:
            best, best_aic, best_orders = res, float(res.aic), (order, seasonal_order)

    if best is None:
        raise RuntimeError(f"No ARIMA order could be fitted for {value_col}")

    order, seasonal_order = best_orders
    logger.info(
        "arima_selected",
        extra={
            "variable": value_col,
            "observations": len(y),
            "candidates": len(candidates),
            "order": list(order),
            "seasonal_order": list(seasonal_order),
            "aic": round(best_aic, 3),
        },
    )

    fc = best.get_forecast(steps=forecast_days)
    ci80 = np.asarray(fc.conf_int(alpha=0.20))
    ci95 = np.asarray(fc.conf_int(alpha=0.05))
    values = pd.DataFrame({
        "point_forecast": np.asarray(fc.predicted_mean),
        "lower_80": ci80[:, 0],
        "upper_80": ci80[:, 1],
        "lower_95": ci95[:, 0],
        "upper_95": ci95[:, 1],
    })
    return ArimaForecast(
        model=best,
        order=order,
        seasonal_order=seasonal_order,
        aic=best_aic,
        forecast_values=values,
        n_observations=len(y),
    )


# ---------------------------------------------------------------------------
# Batch and evaluation
# ---------------------------------------------------------------------------


def forecast_all(
    data: pd.DataFrame,
    method: str = "structural",
    group_filter: Optional[str] = "Group_A",
    forecast_days: int = FORECAST_DAYS,
    variables: Sequence[str] = FORECAST_VARIABLES,
) -> dict[str, StructuralForecast | ArimaForecast]:
    """Forecast each of ``variables`` with one method."""
    if method not in METHODS:
        raise InvalidConfiguration(f"Unknown method: {method}. Options: {list(METHODS)}")

    results: dict[str, StructuralForecast | ArimaForecast] = {}
    for var in variables:
        if method == "structural":
            results[var] = forecast_structural(
                data, var, group_filter=group_filter, forecast_days=forecast_days
            )
        else:
            results[var] = forecast_arima(
                data, var, group_filter=group_filter, forecast_days=forecast_days
            )
    return results


def evaluate_forecast(
    data: pd.DataFrame,
    value_col: str,
    group_filter: Optional[str] = None,
    train_pct: float = FORECAST_TRAIN_PCT,
    method: str = "structural",
    date_col: str = "date",
    **method_kwargs: Any,
) -> ForecastEvaluation:
    """Backtest on a chronological train/test split.

    MAPE skips test points whose actual value is zero.
    """
    if method not in METHODS:
        raise InvalidConfiguration(f"Unknown method: {method}. Options: {list(METHODS)}")
    if not 0 < train_pct < 1:
        raise InvalidConfiguration(f"train_pct must be in (0, 1), got {train_pct}")

    frame = _select_group(data, group_filter, date_col)
    train_size = int(np.floor(len(frame) * train_pct))
    train = frame.iloc[:train_size]
    test = frame.iloc[train_size:]
    if len(test) == 0:
        raise InvalidConfiguration("Test split is empty; lower train_pct")

    logger.info(
        "forecast_evaluation_start",
        extra={"variable": value_col, "method": method, "train": len(train), "test": len(test)},
    )
    if method == "structural":
        result = forecast_structural(
            train, value_col, date_col=date_col, forecast_days=len(test), **method_kwargs
        )
        predictions = result.future_predictions["yhat"].to_numpy()
    else:
        result = forecast_arima(train, value_col, forecast_days=len(test), **method_kwargs)
        predictions = result.forecast_values["point_forecast"].to_numpy()

    actuals = test[value_col].to_numpy(dtype=float)
    errors = predictions - actuals
    nonzero = np.isfinite(actuals) & (actuals != 0)

    mae = float(np.nanmean(np.abs(errors)))
    rmse = float(np.sqrt(np.nanmean(errors ** 2)))
    mape = float(np.mean(np.abs(errors[nonzero] / actuals[nonzero])) * 100) if nonzero.any() else float("nan")

    comparison = pd.DataFrame({
        "date": test[date_col].to_numpy(),
        "actual": actuals,
        "predicted": predictions,
    })
    logger.info(
        "forecast_evaluation_complete",
        extra={"variable": value_col, "method": method, "mae": round(mae, 3), "rmse": round(rmse, 3), "mape": round(mape, 3)},
    )
    return ForecastEvaluation(method=method, mae=mae, rmse=rmse, mape=mape, comparison=comparison)
