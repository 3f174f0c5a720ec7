# weibull.py
# ------------------------------------------------------------
# Weibull wind-speed modelling:
#   - MLE fit of (shape k, scale A), loc fixed at 0
#   - annual vs. per-season fits and their AIC comparison
#   - Kolmogorov-Smirnov goodness of fit on a bounded sample
#   - seasonal simulation and Q-Q pairs against observations
# ------------------------------------------------------------

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Mapping, Optional

import numpy as np
import pandas as pd
from scipy.optimize import minimize_scalar
from scipy.special import gamma as gamma_fn
from scipy.stats import kstest, weibull_min

from .config import (
    AIR_DENSITY,
    GOF_MAX_POINTS,
    MIN_WEIBULL_POINTS,
    RANDOM_SEED,
    SEASONS,
    SHAPE_BOUNDS,
)
from .errors import FitError, InputRangeError

logger = logging.getLogger(__name__)

N_PARAMS = 2


@dataclass(frozen=True)
class WeibullFit:
    shape: float
    scale: float
    loglik: float
    aic: float
    n: int

    @property
    def n_params(self) -> int:
        return N_PARAMS

    # Mean wind speed A * Gamma(1 + 1/k) [m/s]
    @property
    def mean_speed(self) -> float:
        return float(self.scale * gamma_fn(1.0 + 1.0 / self.shape))

    # Mean wind power density 0.5 * rho * A^3 * Gamma(1 + 3/k) [W/m^2]
    def power_density(self, rho: float = AIR_DENSITY) -> float:
        return float(0.5 * rho * self.scale**3 * gamma_fn(1.0 + 3.0 / self.shape))


@dataclass(frozen=True)
class GoodnessOfFit:
    statistic: float
    pvalue: float
    n: int


# Keep finite, strictly positive speeds; zero-speed hours are excluded from the fit
def prepare_speeds(values: pd.Series | np.ndarray, label: str = "annual") -> np.ndarray:
    data = np.asarray(values, dtype=float)
    usable = np.isfinite(data) & (data > 0.0)
    excluded = int(np.count_nonzero(~usable & ~np.isnan(data)))
    if excluded:
        logger.info("[%s] excluded %d zero/negative wind speed value(s) from Weibull fit",
                    label, excluded)

    data = data[usable]
    if data.size < MIN_WEIBULL_POINTS:
        raise InputRangeError(
            f"[{label}] {data.size} usable wind speed value(s); "
            f"at least {MIN_WEIBULL_POINTS} required for a Weibull fit"
        )
    return data


# Scale maximizing the likelihood for a given shape, computed relative to max(x) to avoid overflow
def _profile_scale(x: np.ndarray, k: float) -> float:
    x_max = x.max()
    return float(x_max * np.mean((x / x_max) ** k) ** (1.0 / k))


def _profile_loglik(x: np.ndarray, k: float) -> float:
    scale = _profile_scale(x, k)
    return float(np.sum(weibull_min.logpdf(x, k, loc=0.0, scale=scale)))


def fit_weibull(values: pd.Series | np.ndarray, label: str = "annual") -> WeibullFit:
    """Maximum-likelihood Weibull fit with location fixed at zero.

    The scale has a closed form given the shape, so the likelihood is maximized over the
    shape only, with a bounded scalar optimizer. Constant input drives the shape to the
    upper bound while the scale settles on the constant value.
    """
    x = prepare_speeds(values, label=label)

    res = minimize_scalar(
        lambda k: -_profile_loglik(x, k),
        bounds=SHAPE_BOUNDS,
        method="bounded",
    )
    if not res.success:
        raise FitError(f"[{label}] Weibull MLE did not converge: {res.message}", label=label)

    k = float(res.x)
    A = _profile_scale(x, k)
    loglik = _profile_loglik(x, k)
    if not (np.isfinite(k) and np.isfinite(A) and np.isfinite(loglik)) or k <= 0 or A <= 0:
        raise FitError(
            f"[{label}] Weibull MLE gave invalid estimate: k={k}, A={A}, loglik={loglik}",
            label=label,
        )

    aic = 2.0 * N_PARAMS - 2.0 * loglik
    return WeibullFit(shape=k, scale=A, loglik=loglik, aic=aic, n=int(x.size))


# Independent Weibull fit for each season partition of the hourly records
def fit_weibull_by_season(hourly: pd.DataFrame) -> dict[str, WeibullFit]:
    fits: dict[str, WeibullFit] = {}
    for season, group in hourly.groupby("season", observed=True, sort=False):
        fits[str(season)] = fit_weibull(group["wind_speed"], label=str(season))
    return {s: fits[s] for s in SEASONS if s in fits}


def compare_fits(annual: WeibullFit, seasonal: Mapping[str, WeibullFit]) -> pd.DataFrame:
    """Annual fit next to the summed seasonal fits.

    The seasonal row sums log-likelihood, AIC and parameter count over the seasons.
    ``delta_aic`` is relative to the lower of the two; no model is selected here.
    """
    rows = {
        "annual": {
            "loglik": annual.loglik,
            "aic": annual.aic,
            "n_params": annual.n_params,
            "n": annual.n,
        },
        "seasonal": {
            "loglik": float(sum(f.loglik for f in seasonal.values())),
            "aic": float(sum(f.aic for f in seasonal.values())),
            "n_params": int(sum(f.n_params for f in seasonal.values())),
            "n": int(sum(f.n for f in seasonal.values())),
        },
    }
    table = pd.DataFrame.from_dict(rows, orient="index")
    table.index.name = "model"
    table["delta_aic"] = table["aic"] - table["aic"].min()
    return table


# Parameter summary per season plus the annual fit
def weibull_table(
    annual: WeibullFit,
    seasonal: Mapping[str, WeibullFit],
    rho: float = AIR_DENSITY,
) -> pd.DataFrame:
    fits = {**seasonal, "Annual": annual}
    table = pd.DataFrame(
        {
            "k_shape": [f.shape for f in fits.values()],
            "A_scale": [f.scale for f in fits.values()],
            "mean_ws_ms": [f.mean_speed for f in fits.values()],
            "power_density_Wm2": [f.power_density(rho) for f in fits.values()],
            "loglik": [f.loglik for f in fits.values()],
            "aic": [f.aic for f in fits.values()],
            "n": [f.n for f in fits.values()],
        },
        index=pd.Index(list(fits), name="season"),
    )
    return table


# KS test of the fitted Weibull on a random sample (without replacement) of at most max_points
def goodness_of_fit(
    values: pd.Series | np.ndarray,
    fit: WeibullFit,
    max_points: int = GOF_MAX_POINTS,
    seed: Optional[int] = RANDOM_SEED,
    label: str = "annual",
) -> GoodnessOfFit:
    x = prepare_speeds(values, label)
    if x.size > max_points:
        rng = np.random.default_rng(seed)
        x = rng.choice(x, size=max_points, replace=False)

    result = kstest(x, "weibull_min", args=(fit.shape, 0.0, fit.scale))
    return GoodnessOfFit(statistic=float(result.statistic), pvalue=float(result.pvalue),
                         n=int(x.size))


def simulate_seasonal(
    hourly: pd.DataFrame,
    fits: Mapping[str, WeibullFit],
    seed: Optional[int] = RANDOM_SEED,
) -> pd.Series:
    """Draw one synthetic wind speed per hourly record from its season's Weibull fit.

    The result shares the index of ``hourly`` so it lines up with the observed series.
    """
    seasons = hourly["season"].astype(str)
    missing = sorted(set(seasons) - set(fits))
    if missing:
        raise InputRangeError(f"No Weibull fit for season(s): {', '.join(missing)}")

    rng = np.random.default_rng(seed)
    simulated = np.empty(len(hourly), dtype=float)
    for season, fit in fits.items():
        mask = (seasons == season).to_numpy()
        n = int(mask.sum())
        if n:
            simulated[mask] = weibull_min.rvs(fit.shape, loc=0.0, scale=fit.scale, size=n,
                                              random_state=rng)
    return pd.Series(simulated, index=hourly.index, name="simulated_ws")


# Sorted observed vs. sorted simulated values for a Q-Q comparison
def qq_pairs(observed: pd.Series | np.ndarray, simulated: pd.Series | np.ndarray) -> pd.DataFrame:
    obs = np.sort(np.asarray(observed, dtype=float))
    sim = np.sort(np.asarray(simulated, dtype=float))
    if obs.size != sim.size:
        raise InputRangeError(
            f"Q-Q comparison needs equal lengths, got {obs.size} observed and {sim.size} simulated"
        )
    return pd.DataFrame({"observed": obs, "simulated": sim})
