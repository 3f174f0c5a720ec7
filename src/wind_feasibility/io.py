# io.py
# ------------------------------------------------------------
# Observation loading utilities:
#   - read the raw wind CSV
#   - strip the constant UTC offset suffix and parse timestamps
#   - drop malformed rows (counted), sort, keep time + speed
#   - slice to the analysis window
# ------------------------------------------------------------

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Tuple

import pandas as pd

from .config import ANALYSIS_END, ANALYSIS_START, SPEED_COLUMN, TIME_COLUMN
from .errors import DataError, InputRangeError

logger = logging.getLogger(__name__)

_OFFSET_SUFFIX = re.compile(r"(?:Z|[+-]\d{2}:?\d{2})$")


@dataclass(frozen=True)
class CleaningReport:
    rows_read: int
    dropped_timestamp: int
    dropped_speed: int
    outside_window: int

    @property
    def dropped(self) -> int:
        return self.dropped_timestamp + self.dropped_speed


# Remove a trailing fixed UTC offset ("+00:00", "+0000", "Z"); no conversion is applied
def strip_utc_offset(text: str) -> str:
    return _OFFSET_SUFFIX.sub("", text.strip())


# Parse timestamp strings into naive datetimes, NaT where parsing fails
def parse_timestamps(values: pd.Series) -> pd.Series:
    text = values.astype("string").str.strip().str.replace(_OFFSET_SUFFIX, "", regex=True)
    return pd.to_datetime(text, format="ISO8601", errors="coerce")


def clean_observations(
    raw: pd.DataFrame,
    time_col: str = TIME_COLUMN,
    speed_col: str = SPEED_COLUMN,
    start: pd.Timestamp | str = ANALYSIS_START,
    end: pd.Timestamp | str = ANALYSIS_END,
) -> Tuple[pd.DataFrame, CleaningReport]:
    """Turn raw records into sorted (timestamp, wind_speed) observations inside [start, end).

    Rows with an unparseable timestamp, or a wind speed that is present but not numeric,
    are dropped and counted. Empty speeds stay as NaN so the hourly mean can skip them.
    """
    missing = [c for c in (time_col, speed_col) if c not in raw.columns]
    if missing:
        raise DataError(f"Required column(s) missing: {', '.join(missing)}")

    rows_read = len(raw)
    timestamps = parse_timestamps(raw[time_col])

    speed_raw = raw[speed_col]
    speeds = pd.to_numeric(speed_raw, errors="coerce")
    blank = speed_raw.astype("string").str.strip().eq("").fillna(True).astype(bool)
    bad_speed = speeds.isna() & speed_raw.notna() & ~blank

    bad_time = timestamps.isna()
    bad_speed = bad_speed & ~bad_time

    n_bad_time = int(bad_time.sum())
    n_bad_speed = int(bad_speed.sum())
    if rows_read and n_bad_time + n_bad_speed == rows_read:
        raise DataError(
            f"No parseable rows: {n_bad_time} bad timestamps, {n_bad_speed} bad wind speeds"
        )
    if n_bad_time or n_bad_speed:
        logger.warning(
            "Dropped %d row(s) with unparseable timestamps and %d with non-numeric wind speed",
            n_bad_time,
            n_bad_speed,
        )

    keep = ~(bad_time | bad_speed)
    obs = pd.DataFrame(
        {"timestamp": timestamps[keep], "wind_speed": speeds[keep].astype(float)}
    )
    obs = obs.sort_values("timestamp", kind="mergesort").reset_index(drop=True)

    start, end = pd.Timestamp(start), pd.Timestamp(end)
    in_window = (obs["timestamp"] >= start) & (obs["timestamp"] < end)
    outside = int((~in_window).sum())
    obs = obs.loc[in_window].reset_index(drop=True)

    if obs.empty:
        raise InputRangeError(f"No observations inside window [{start}, {end})")
    if outside:
        logger.info("Excluded %d observation(s) outside [%s, %s)", outside, start, end)

    report = CleaningReport(
        rows_read=rows_read,
        dropped_timestamp=n_bad_time,
        dropped_speed=n_bad_speed,
        outside_window=outside,
    )
    return obs, report


# Read the raw wind CSV and return cleaned observations plus a cleaning report
def load_observations(
    path: str | Path,
    time_col: str = TIME_COLUMN,
    speed_col: str = SPEED_COLUMN,
    start: pd.Timestamp | str = ANALYSIS_START,
    end: pd.Timestamp | str = ANALYSIS_END,
) -> Tuple[pd.DataFrame, CleaningReport]:
    path = Path(path)
    raw = pd.read_csv(path, dtype=str)
    raw.columns = [c.strip() for c in raw.columns]
    logger.info("Read %d row(s) from %s", len(raw), path)
    return clean_observations(raw, time_col=time_col, speed_col=speed_col, start=start, end=end)
