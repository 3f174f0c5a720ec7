# config.py
# ------------------------------------------------------------
# Analysis constants:
#   - analysis window and input column names
#   - season mapping (southern hemisphere)
#   - Weibull / SARIMA / forecast settings
#   - frozen SARIMA orders from the order search
# ------------------------------------------------------------

from __future__ import annotations

import pandas as pd

# Half-open analysis window [ANALYSIS_START, ANALYSIS_END)
ANALYSIS_START = pd.Timestamp("2023-04-01 00:00:00")
ANALYSIS_END = pd.Timestamp("2024-04-01 00:00:00")

# Input CSV columns (location description / lat / lon are ignored)
TIME_COLUMN = "timestamp"
SPEED_COLUMN = "wind_speed"

# Season labels in calendar order of their first month
SEASONS = ("Summer", "Autumn", "Winter", "Spring")

SEASON_BY_MONTH: dict[int, str] = {
    12: "Summer", 1: "Summer", 2: "Summer",
    3: "Autumn", 4: "Autumn", 5: "Autumn",
    6: "Winter", 7: "Winter", 8: "Winter",
    9: "Spring", 10: "Spring", 11: "Spring",
}

# Weibull fitting
MIN_WEIBULL_POINTS = 10
SHAPE_BOUNDS = (0.05, 100.0)
GOF_MAX_POINTS = 1000
AIR_DENSITY = 1.225  # kg/m^3

# SARIMA
SEASONAL_PERIOD = 24
LJUNG_BOX_LAGS = (24, 48)
RESIDUAL_NLAGS = 48

# Result of the non-stepwise, non-approximate search (too slow to rerun)
EXHAUSTIVE_ORDER = (2, 0, 2)
EXHAUSTIVE_SEASONAL_ORDER = (1, 0, 1)

# Hand-refined final model
BEST_ORDER = (2, 0, 1)
BEST_SEASONAL_ORDER = (1, 0, 1)

# Forecasting
FORECAST_HORIZON = 48
RECENT_HISTORY_HOURS = 240

RANDOM_SEED = 42
