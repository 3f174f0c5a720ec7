# stats.py
# ------------------------------------------------------------
# Hourly series utilities:
#   - season labels from calendar month
#   - hourly aggregation of raw observations
#   - observation-count diagnostic per hour
#   - complete hourly grid with explicit gaps
#   - season indicator columns for ARIMAX
# ------------------------------------------------------------

from __future__ import annotations

import pandas as pd

from .config import ANALYSIS_END, ANALYSIS_START, SEASON_BY_MONTH, SEASONS

HOUR = "h"


# Map a calendar month (1..12) to its season label
def season_of(month: int) -> str:
    try:
        return SEASON_BY_MONTH[int(month)]
    except KeyError:
        raise ValueError(f"Invalid month: {month!r}") from None


# Season label for every timestamp in an index
def label_seasons(index: pd.DatetimeIndex) -> pd.Series:
    labels = pd.Series(index.month, index=index).map(SEASON_BY_MONTH)
    return labels.astype(pd.CategoricalDtype(SEASONS)).rename("season")


def aggregate_hourly(observations: pd.DataFrame) -> pd.DataFrame:
    """Average raw observations into one row per present hour.

    Returns a frame indexed by ``hour_start`` with ``wind_speed`` (mean ignoring NaN),
    ``n_obs`` (non-missing readings in the hour) and ``season``. Hours without any
    observation produce no row.
    """
    hour_start = observations["timestamp"].dt.floor(HOUR).rename("hour_start")
    grouped = observations["wind_speed"].groupby(hour_start, sort=True)

    hourly = pd.DataFrame({"wind_speed": grouped.mean(), "n_obs": grouped.count()})
    hourly.index = pd.DatetimeIndex(hourly.index, name="hour_start")
    hourly["season"] = label_seasons(hourly.index)
    return hourly


# Distribution of observations per hour: {count: number of hours}
def observations_per_hour(observations: pd.DataFrame) -> pd.Series:
    counts = observations["timestamp"].dt.floor(HOUR).value_counts()
    dist = counts.value_counts().sort_index()
    dist.index.name = "obs_per_hour"
    return dist.rename("hours")


# Reindex hourly means onto the full [start, end) hourly grid; missing hours become NaN
def to_hourly_grid(
    hourly: pd.DataFrame,
    start: pd.Timestamp | str = ANALYSIS_START,
    end: pd.Timestamp | str = ANALYSIS_END,
) -> pd.Series:
    grid = pd.date_range(pd.Timestamp(start), pd.Timestamp(end), freq=HOUR, inclusive="left",
                         name="hour_start")
    return hourly["wind_speed"].reindex(grid).rename("wind_speed")


# Season indicator columns; by default only seasons present in the index, first one dropped
def season_dummies(index: pd.DatetimeIndex, drop_first: bool = True) -> pd.DataFrame:
    dummies = pd.get_dummies(label_seasons(index), prefix="season", dtype=float)
    if not drop_first:
        return dummies
    present = dummies.loc[:, dummies.any()]
    return present.iloc[:, 1:]
