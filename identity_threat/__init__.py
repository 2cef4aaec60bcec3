"""Identity threat dynamics: synthetic data, forecasting, anomaly flags and
sequential Bayesian belief simulation."""
