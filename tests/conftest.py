"""Shared synthetic wind data for the test suite."""
import matplotlib

matplotlib.use("Agg")

import numpy as np
import pandas as pd
import pytest
from scipy.stats import weibull_min

from wind_feasibility.config import ANALYSIS_END, ANALYSIS_START
from wind_feasibility.sarima import freeze_model
from wind_feasibility.stats import aggregate_hourly, label_seasons

# (shape, scale) used to generate each season's synthetic speeds
SEASON_PARAMS = {
    "Summer": (2.2, 8.0),
    "Autumn": (1.9, 6.5),
    "Winter": (1.6, 5.0),
    "Spring": (2.0, 7.0),
}


@pytest.fixture
def year_observations():
    """One synthetic reading per hour across the full analysis window."""
    rng = np.random.default_rng(7)
    index = pd.date_range(ANALYSIS_START, ANALYSIS_END, freq="h", inclusive="left")
    seasons = label_seasons(index).astype(str).to_numpy()

    speeds = np.empty(len(index))
    for season, (k, A) in SEASON_PARAMS.items():
        mask = seasons == season
        speeds[mask] = weibull_min.rvs(k, scale=A, size=int(mask.sum()), random_state=rng)

    # Readings land a few minutes after the hour
    return pd.DataFrame({"timestamp": index + pd.Timedelta(minutes=7), "wind_speed": speeds})


@pytest.fixture
def year_hourly(year_observations):
    return aggregate_hourly(year_observations)


def make_hourly_series(days=21, start="2023-06-01", seed=0):
    """Positive hourly series with a daily cycle and AR(1) noise."""
    rng = np.random.default_rng(seed)
    n = 24 * days
    index = pd.date_range(start, periods=n, freq="h", name="hour_start")
    noise = np.zeros(n)
    for i in range(1, n):
        noise[i] = 0.6 * noise[i - 1] + rng.normal(0.0, 0.5)
    t = np.arange(n)
    values = 6.0 + 1.5 * np.sin(2 * np.pi * t / 24) + noise
    return pd.Series(values, index=index, name="wind_speed")


@pytest.fixture(scope="module")
def hourly_series():
    return make_hourly_series()


@pytest.fixture(scope="module")
def frozen_model(hourly_series):
    return freeze_model(hourly_series, order=(1, 0, 0), seasonal_order=(1, 0, 0))
