# sarima.py
# ------------------------------------------------------------
# Seasonal ARIMA model selection on the hourly wind series:
#   - augmented Dickey-Fuller stationarity check
#   - KPSS / OCSB differencing + stepwise / exhaustive AIC search (auto_arima)
#   - single-candidate fit + residual diagnostics (manual refinement)
#   - freeze the chosen orders into the forecasting model
# ------------------------------------------------------------

from __future__ import annotations

import logging
import warnings
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd
from pmdarima.arima import auto_arima, ndiffs, nsdiffs
from pmdarima.warnings import ModelFitWarning
from statsmodels.stats.diagnostic import acorr_ljungbox
from statsmodels.tsa.statespace.sarimax import SARIMAX
from statsmodels.tsa.stattools import acf, adfuller, pacf

from .config import (
    BEST_ORDER,
    BEST_SEASONAL_ORDER,
    LJUNG_BOX_LAGS,
    RESIDUAL_NLAGS,
    SEASONAL_PERIOD,
)
from .errors import FitError, InputRangeError
from .stats import season_dummies

logger = logging.getLogger(__name__)

Order = Tuple[int, int, int]
SeasonalOrder = Tuple[int, int, int]


@dataclass(frozen=True)
class StationarityResult:
    statistic: float
    pvalue: float
    lags: int
    nobs: int
    critical_values: Dict[str, float]

    def is_stationary(self, alpha: float = 0.05) -> bool:
        return self.pvalue < alpha


@dataclass
class ResidualDiagnostics:
    ljung_box: pd.DataFrame
    acf: np.ndarray
    pacf: np.ndarray
    white: bool


@dataclass
class CandidateFit:
    order: Order
    seasonal_order: SeasonalOrder
    period: int
    aic: float
    bic: float
    results: object
    diagnostics: Optional[ResidualDiagnostics] = None


@dataclass
class SearchResult:
    order: Order
    seasonal_order: SeasonalOrder
    period: int
    aic: float
    candidates: pd.DataFrame
    failures: List[str] = field(default_factory=list)


@dataclass
class FrozenModel:
    order: Order
    seasonal_order: SeasonalOrder
    period: int
    results: object
    endog: pd.Series
    exog_columns: Tuple[str, ...] = ()

    @property
    def with_season_exog(self) -> bool:
        return bool(self.exog_columns)

    @property
    def params(self) -> pd.Series:
        return self.results.params


# ADF test on the non-missing hourly values (informational)
def stationarity_test(series: pd.Series, autolag: str = "AIC") -> StationarityResult:
    values = series.dropna().to_numpy(dtype=float)
    if values.size < 3 * SEASONAL_PERIOD:
        raise InputRangeError(f"Stationarity test needs more data, got {values.size} points")

    stat, pvalue, lags, nobs, crit, _ = adfuller(values, autolag=autolag)
    return StationarityResult(
        statistic=float(stat),
        pvalue=float(pvalue),
        lags=int(lags),
        nobs=int(nobs),
        critical_values={k: float(v) for k, v in crit.items()},
    )


# Time-interpolated copy of the hourly grid; the unit-root tests need gap-free input
def _fill_gaps(series: pd.Series) -> pd.Series:
    missing = int(series.isna().sum())
    if missing:
        logger.info("Interpolating %d missing hour(s) for the order search", missing)
        series = series.interpolate(method="time", limit_direction="both")
    return series


def select_differencing(
    series: pd.Series,
    period: int = SEASONAL_PERIOD,
    max_d: int = 2,
    max_D: int = 1,
    alpha: float = 0.05,
) -> Tuple[int, int]:
    """Estimate the differencing orders (d, D) from the data.

    D comes from the OCSB seasonal unit-root test at ``period``; d from repeated KPSS tests
    on the seasonally differenced series, as auto.arima does.
    """
    values = _fill_gaps(series).to_numpy(dtype=float)
    if values.size < 2 * period + 1:
        raise InputRangeError(f"Differencing tests need more data, got {values.size} points")

    D = int(nsdiffs(values, m=period, max_D=max_D, test="ocsb"))
    if D:
        values = values[period:] - values[:-period]
    d = int(ndiffs(values, alpha=alpha, test="kpss", max_d=max_d))
    return d, D


def _seasonal(seasonal_order: Sequence[int], period: int) -> Tuple[int, int, int, int]:
    P, D, Q = (int(v) for v in seasonal_order[:3])
    return (P, D, Q, int(period))


def diagnose_residuals(
    results,
    lags: Iterable[int] = LJUNG_BOX_LAGS,
    nlags: int = RESIDUAL_NLAGS,
    alpha: float = 0.05,
) -> ResidualDiagnostics:
    """Whiteness checks on the residuals of a fitted model.

    The first ``loglikelihood_burn`` residuals (differencing start-up) are skipped.
    Residuals count as white when every Ljung-Box p-value is above ``alpha``.
    """
    resid = pd.Series(results.resid).iloc[int(results.loglikelihood_burn):].dropna()
    nlags = min(nlags, resid.size // 2 - 1)
    lags = [lag for lag in lags if lag < resid.size]

    lb = acorr_ljungbox(resid, lags=lags, return_df=True)
    return ResidualDiagnostics(
        ljung_box=lb,
        acf=acf(resid, nlags=nlags, fft=True),
        pacf=pacf(resid, nlags=nlags),
        white=bool((lb["lb_pvalue"] > alpha).all()),
    )


def fit_candidate(
    series: pd.Series,
    order: Order,
    seasonal_order: SeasonalOrder,
    period: int = SEASONAL_PERIOD,
    exog: Optional[pd.DataFrame] = None,
    diagnose: bool = True,
    approximate: bool = False,
) -> CandidateFit:
    """Fit one SARIMA(order)(seasonal_order)[period] candidate.

    This is the manual refinement step: fit, inspect ``diagnostics`` and AIC, adjust the
    orders, repeat. A constant is included when there is no differencing. Missing hours
    stay NaN and are skipped by the Kalman filter.

    With ``approximate`` the optimizer runs a short, capped iteration budget and
    non-convergence is tolerated; otherwise non-convergence raises FitError.
    """
    order = tuple(int(v) for v in order)
    seasonal = _seasonal(seasonal_order, period)
    d, D = order[1], seasonal[1]

    try:
        with warnings.catch_warnings():
            warnings.simplefilter("ignore")
            model = SARIMAX(
                series,
                exog=exog,
                order=order,
                seasonal_order=seasonal,
                trend="c" if d + D == 0 else None,
            )
            results = model.fit(disp=False, maxiter=50 if approximate else 200)
    except (ValueError, np.linalg.LinAlgError) as exc:
        raise FitError(
            f"SARIMA{order}x{seasonal} failed: {exc}", order=order, seasonal_order=seasonal
        ) from exc

    converged = bool(results.mle_retvals.get("converged", True))
    if not np.isfinite(results.aic) or (not converged and not approximate):
        raise FitError(
            f"SARIMA{order}x{seasonal} did not converge (aic={results.aic})",
            order=order,
            seasonal_order=seasonal,
        )

    diagnostics = diagnose_residuals(results) if diagnose else None
    return CandidateFit(
        order=order,
        seasonal_order=seasonal[:3],
        period=int(period),
        aic=float(results.aic),
        bic=float(results.bic),
        results=results,
        diagnostics=diagnostics,
    )


def _seasonal_key(model) -> SeasonalOrder:
    return tuple(int(v) for v in model.seasonal_order[:3])


def search_orders(
    series: pd.Series,
    stepwise: bool = True,
    approximation: bool = True,
    period: int = SEASONAL_PERIOD,
    d: Optional[int] = None,
    D: Optional[int] = None,
    max_p: int = 3,
    max_q: int = 3,
    max_P: int = 1,
    max_Q: int = 1,
    exog: Optional[pd.DataFrame] = None,
) -> SearchResult:
    """Automated AIC order search for SARIMA(p,d,q)(P,D,Q)[period] with ``auto_arima``.

    Stepwise mode is the Hyndman-Khandakar neighbourhood walk; ``stepwise=False`` fits the
    whole grid, which is slow on a year of hourly data. When ``d`` / ``D`` are not given they
    are estimated by ``select_differencing``. Missing hours are interpolated for the search
    only. Candidates that fail to fit are recorded and skipped.

    With ``approximation`` each candidate gets a short optimizer budget and the winner is
    refit exactly afterwards.
    """
    filled = _fill_gaps(series)
    if d is None or D is None:
        est_d, est_D = select_differencing(filled, period=period)
        d = est_d if d is None else d
        D = est_D if D is None else D
        logger.info("Selected d=%d, D=%d from KPSS / OCSB tests", d, D)

    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always")
        try:
            fits = auto_arima(
                filled,
                X=exog,
                d=d,
                D=D,
                start_p=min(2, max_p), start_q=min(2, max_q),
                start_P=min(1, max_P), start_Q=min(1, max_Q),
                max_p=max_p, max_q=max_q, max_P=max_P, max_Q=max_Q,
                max_order=None,
                m=period,
                seasonal=True,
                stepwise=stepwise,
                information_criterion="aic",
                maxiter=50 if approximation else 200,
                error_action="warn",
                suppress_warnings=False,
                return_valid_fits=True,
            )
        except ValueError as exc:
            raise FitError(f"No SARIMA candidate could be fitted: {exc}") from exc

    failures = [str(w.message) for w in caught if issubclass(w.category, ModelFitWarning)]
    for message in failures:
        logger.warning("Skipping candidate: %s", message.splitlines()[0])

    if not isinstance(fits, (list, tuple)):
        fits = [fits]
    fits = [m for m in fits if m is not None and np.isfinite(m.aic())]
    if not fits:
        raise FitError(f"No SARIMA candidate could be fitted ({len(failures)} failures)")

    table = pd.DataFrame(
        [
            {"order": tuple(int(v) for v in m.order), "seasonal_order": _seasonal_key(m),
             "aic": float(m.aic())}
            for m in fits
        ]
    ).sort_values("aic", kind="mergesort").reset_index(drop=True)
    for row in table.itertuples():
        logger.info("SARIMA%sx%s[%d] aic=%.2f", row.order, row.seasonal_order, period, row.aic)

    best_order, best_seasonal, best_aic = table.loc[0, ["order", "seasonal_order", "aic"]]
    if approximation:
        try:
            best_aic = fit_candidate(series, best_order, best_seasonal, period=period, exog=exog,
                                     diagnose=False).aic
        except FitError as exc:
            logger.warning("Exact refit of best candidate failed, keeping approximate AIC: %s", exc)

    return SearchResult(
        order=best_order,
        seasonal_order=best_seasonal,
        period=int(period),
        aic=float(best_aic),
        candidates=table,
        failures=failures,
    )


def freeze_model(
    series: pd.Series,
    order: Order = BEST_ORDER,
    seasonal_order: SeasonalOrder = BEST_SEASONAL_ORDER,
    period: int = SEASONAL_PERIOD,
    with_season_exog: bool = False,
) -> FrozenModel:
    """Refit the chosen orders once on the full hourly grid for forecasting.

    With ``with_season_exog`` the season indicators enter as regressors (ARIMAX).
    A FitError here is final and propagates to the caller.
    """
    exog = None
    if with_season_exog:
        exog = season_dummies(series.index)
        if exog.empty:
            raise InputRangeError("Season regressors need data from at least two seasons")
    fit = fit_candidate(series, order, seasonal_order, period=period, exog=exog, diagnose=False)
    logger.info("Frozen SARIMA%sx%s[%d] aic=%.2f", fit.order, fit.seasonal_order, period, fit.aic)
    return FrozenModel(
        order=fit.order,
        seasonal_order=fit.seasonal_order,
        period=int(period),
        results=fit.results,
        endog=series,
        exog_columns=tuple(exog.columns) if exog is not None else (),
    )
