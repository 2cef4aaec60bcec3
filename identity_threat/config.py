"""Toolkit configuration loaded from environment variables."""

import logging
import os
import sys
from typing import TextIO

from dotenv import load_dotenv
from pythonjsonlogger import jsonlogger

load_dotenv()

# ---------------------------------------------------------------------------
# Reproducibility
# ---------------------------------------------------------------------------
SIMULATION_SEED = int(os.environ.get("IDENTITY_THREAT_SEED", "42"))
DEFAULT_OBSERVATIONS = int(os.environ.get("IDENTITY_THREAT_OBSERVATIONS", "50"))

# ---------------------------------------------------------------------------
# Synthetic dataset
# ---------------------------------------------------------------------------
DATA_N_DAYS = 730
DATA_START_DATE = "2024-03-01"
DATA_GROUPS = ("Group_A", "Group_B")
DATA_N_SHOCK_EVENTS = 12
DATA_SHOCK_INTENSITY = 20.0
DATA_SHOCK_DECAY_RATE = 7.0      # days
DATA_AR1_PHI = 0.8
DATA_AR1_BASELINE = 55.0
DATA_AR1_NOISE_SD = 12.0

# ---------------------------------------------------------------------------
# Anomaly detection
# ---------------------------------------------------------------------------
ZSCORE_WINDOW = 30               # days before the current point
ZSCORE_THRESHOLD = 3.0           # standard deviations
ISO_N_TREES = 100
ISO_SAMPLE_SIZE = 256
ISO_THRESHOLD = 0.6              # anomaly score in (0, 1]
ISO_CONTAMINATION = 0.05

# ---------------------------------------------------------------------------
# Forecasting
# ---------------------------------------------------------------------------
FORECAST_DAYS = 90
ARIMA_FREQUENCY = 7              # weekly seasonality on daily data
FORECAST_TRAIN_PCT = 0.8
FORECAST_VARIABLES = (
    "identity_threat_index",
    "emotional_rhetoric_score",
    "perceived_credibility_score",
    "narrative_stability_index",
)

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()


def setup_logging(stream: TextIO = sys.stdout) -> None:
    """Configure structured JSON logging."""
    handler = logging.StreamHandler(stream)
    formatter = jsonlogger.JsonFormatter(
        fmt="%(asctime)s %(name)s %(levelname)s %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
    )
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(LOG_LEVEL)

    # Quiet noisy libraries
    logging.getLogger("statsmodels").setLevel(logging.WARNING)
