# forecast.py
# ------------------------------------------------------------
# Forecasting with the frozen SARIMA model:
#   - point forecast + 80% / 95% prediction intervals
#   - zero floor for display (wind speed is non-negative)
#   - same coefficients re-applied to the recent history window
# ------------------------------------------------------------

from __future__ import annotations

from typing import Optional, Tuple

import pandas as pd

from .config import FORECAST_HORIZON, RECENT_HISTORY_HOURS
from .errors import InputRangeError
from .sarima import FrozenModel
from .stats import HOUR, season_dummies

COLUMNS = ["mean", "lower_80", "upper_80", "lower_95", "upper_95"]


# Floor every column at zero; ordering of the bounds is preserved
def clip_at_zero(frame: pd.DataFrame) -> pd.DataFrame:
    return frame.clip(lower=0.0)


def _future_index(last: pd.Timestamp, horizon: int) -> pd.DatetimeIndex:
    return pd.date_range(last + pd.Timedelta(1, HOUR), periods=horizon, freq=HOUR,
                         name="hour_start")


def _season_exog(model: FrozenModel, index: pd.DatetimeIndex) -> Optional[pd.DataFrame]:
    if not model.with_season_exog:
        return None
    dummies = season_dummies(index, drop_first=False)
    return dummies.reindex(columns=list(model.exog_columns), fill_value=0.0)


def _interval_frame(results, horizon: int, exog: Optional[pd.DataFrame],
                    index: pd.DatetimeIndex) -> pd.DataFrame:
    pred = results.get_forecast(steps=horizon, exog=exog)
    ci80 = pred.conf_int(alpha=0.20).to_numpy()
    ci95 = pred.conf_int(alpha=0.05).to_numpy()
    frame = pd.DataFrame(
        {
            "mean": pred.predicted_mean.to_numpy(),
            "lower_80": ci80[:, 0],
            "upper_80": ci80[:, 1],
            "lower_95": ci95[:, 0],
            "upper_95": ci95[:, 1],
        },
        index=index,
    )
    return frame[COLUMNS]


def forecast_hours(
    model: FrozenModel,
    horizon: int = FORECAST_HORIZON,
    clip: bool = True,
) -> pd.DataFrame:
    """Forecast ``horizon`` hours past the end of the fitted series.

    Intervals come from the model's Gaussian forecast-error distribution. With ``clip``
    the lower bounds (and anything else below zero) are floored at 0 for display; the
    model itself is untouched.
    """
    if horizon < 1:
        raise InputRangeError(f"Forecast horizon must be positive, got {horizon}")

    index = _future_index(model.endog.index[-1], horizon)
    frame = _interval_frame(model.results, horizon, _season_exog(model, index), index)
    return clip_at_zero(frame) if clip else frame


def forecast_recent(
    model: FrozenModel,
    history_hours: int = RECENT_HISTORY_HOURS,
    horizon: int = FORECAST_HORIZON,
    clip: bool = True,
) -> Tuple[pd.Series, pd.DataFrame]:
    """Forecast from the last ``history_hours`` of data with the frozen coefficients.

    The fitted parameters are re-applied to the shorter window (no re-estimation), which
    gives a clearer plotting window. Returns the history slice and the forecast frame.
    """
    if history_hours < 1:
        raise InputRangeError(f"History window must be positive, got {history_hours}")
    if history_hours > len(model.endog):
        raise InputRangeError(
            f"Requested {history_hours} h of history, only {len(model.endog)} available"
        )

    history = model.endog.iloc[-history_hours:]
    results = model.results.apply(history, exog=_season_exog(model, history.index), refit=False)

    index = _future_index(history.index[-1], horizon)
    frame = _interval_frame(results, horizon, _season_exog(model, index), index)
    return history, (clip_at_zero(frame) if clip else frame)
