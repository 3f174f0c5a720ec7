# plots.py
# ------------------------------------------------------------
# Plotting utilities for the wind feasibility analysis:
#   - hourly time series
#   - wind speed histogram vs. fitted Weibull PDF
#   - per-season Q-Q plots and density facets
#   - simulated vs. observed comparison
#   - ACF/PACF and SARIMA residual diagnostics
#   - 48 h forecast with prediction bands (static + interactive)
# ------------------------------------------------------------

from __future__ import annotations

from pathlib import Path
from typing import Mapping

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import plotly.graph_objects as go
from scipy.stats import probplot, weibull_min
from statsmodels.graphics.tsaplots import plot_acf, plot_pacf

from .weibull import WeibullFit, qq_pairs


def _save(fig, output_dir: str | Path, name: str) -> Path:
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    path = output_dir / name
    fig.savefig(path, dpi=150)
    plt.close(fig)
    return path


def _pdf_curve(values: np.ndarray, fit: WeibullFit) -> tuple[np.ndarray, np.ndarray]:
    x_max = max(np.quantile(values, 0.995), values.max())
    x = np.linspace(0.0, x_max, 400)
    return x, weibull_min.pdf(x, c=fit.shape, loc=0.0, scale=fit.scale)


# Hourly mean wind speed over the analysis window
def plot_time_series(series: pd.Series, output_dir: str | Path) -> Path:
    fig, ax = plt.subplots(figsize=(11, 4))
    ax.plot(series.index, series.to_numpy(), color="steelblue", linewidth=0.6)
    ax.set_xlabel("Time")
    ax.set_ylabel("Wind speed [m/s]")
    ax.set_title("Hourly mean wind speed")
    fig.autofmt_xdate()
    return _save(fig, output_dir, "ws_hourly_time_series.png")


# Plot wind speed histogram and fitted Weibull PDF, return path to saved PNG
def plot_ws_hist_weibull(
    ws: pd.Series,
    fit: WeibullFit,
    label: str,
    output_dir: str | Path,
) -> Path:
    ws_arr = ws.dropna().to_numpy()
    x, pdf = _pdf_curve(ws_arr, fit)

    fig, ax = plt.subplots(figsize=(7, 4.2))
    ax.hist(ws_arr, bins=50, density=True, alpha=0.6, color="gray", edgecolor="none")
    ax.plot(x, pdf, "r-", linewidth=2, label=f"Weibull k={fit.shape:.2f}, A={fit.scale:.2f}")

    ax.set_xlabel("Wind speed [m/s]")
    ax.set_ylabel("Probability density [-]")
    ax.set_title(f"Wind speed distribution ({label})")
    ax.legend()
    return _save(fig, output_dir, f"ws_hist_vs_weibull_{label.lower()}.png")


# Q-Q plot of observed speeds against each season's fitted Weibull
def plot_seasonal_qq(
    hourly: pd.DataFrame,
    fits: Mapping[str, WeibullFit],
    output_dir: str | Path,
) -> Path:
    fig, axes = plt.subplots(2, 2, figsize=(10, 9))
    for ax, (season, fit) in zip(axes.ravel(), fits.items()):
        ws = hourly.loc[hourly["season"] == season, "wind_speed"].dropna()
        ws = ws[ws > 0].to_numpy()
        (theo, obs), _ = probplot(ws, dist="weibull_min", sparams=(fit.shape, 0.0, fit.scale))
        lim = max(theo.max(), obs.max())

        ax.scatter(theo, obs, s=4, color="steelblue", alpha=0.5)
        ax.plot([0, lim], [0, lim], "k", lw=1.5, alpha=0.6)
        ax.set_title(season)
        ax.set_xlabel("Theoretical quantiles [m/s]")
        ax.set_ylabel("Observed quantiles [m/s]")
        ax.grid(True, alpha=0.3)

    fig.tight_layout()
    return _save(fig, output_dir, "weibull_qq_by_season.png")


# Histogram + fitted PDF per season
def plot_seasonal_densities(
    hourly: pd.DataFrame,
    fits: Mapping[str, WeibullFit],
    output_dir: str | Path,
) -> Path:
    fig, axes = plt.subplots(2, 2, figsize=(10, 8), sharex=True, sharey=True)
    for ax, (season, fit) in zip(axes.ravel(), fits.items()):
        ws = hourly.loc[hourly["season"] == season, "wind_speed"].dropna().to_numpy()
        x, pdf = _pdf_curve(ws, fit)

        ax.hist(ws, bins=40, density=True, alpha=0.6, color="gray", edgecolor="none")
        ax.plot(x, pdf, "r-", linewidth=2)
        ax.set_title(f"{season} (k={fit.shape:.2f}, A={fit.scale:.2f})")
        ax.set_xlabel("Wind speed [m/s]")
        ax.set_ylabel("Probability density [-]")

    fig.tight_layout()
    return _save(fig, output_dir, "weibull_density_by_season.png")


# Density overlay and sorted-value Q-Q of simulated vs. observed speeds
def plot_simulated_vs_actual(
    observed: pd.Series,
    simulated: pd.Series,
    output_dir: str | Path,
) -> Path:
    obs = observed.to_numpy(dtype=float)
    sim = simulated.to_numpy(dtype=float)
    bins = np.linspace(0.0, max(obs.max(), sim.max()), 50)

    fig, (ax1, ax2) = plt.subplots(1, 2, figsize=(12, 4.5))
    ax1.hist(obs, bins=bins, density=True, alpha=0.5, color="steelblue", label="Observed")
    ax1.hist(sim, bins=bins, density=True, alpha=0.5, color="darkorange", label="Simulated")
    ax1.set_xlabel("Wind speed [m/s]")
    ax1.set_ylabel("Probability density [-]")
    ax1.set_title("Observed vs. simulated (seasonal Weibull)")
    ax1.legend()

    lim = bins[-1]
    qq = qq_pairs(obs, sim)
    ax2.scatter(qq["observed"], qq["simulated"], s=4, color="steelblue", alpha=0.5)
    ax2.plot([0, lim], [0, lim], "k", lw=1.5, alpha=0.6)
    ax2.set_xlabel("Observed quantiles [m/s]")
    ax2.set_ylabel("Simulated quantiles [m/s]")
    ax2.set_title("Q-Q: simulated vs. observed")

    fig.tight_layout()
    return _save(fig, output_dir, "simulated_vs_actual.png")


def plot_acf_pacf(
    series: pd.Series,
    output_dir: str | Path,
    lags: int = 72,
    name: str = "series",
) -> Path:
    values = series.dropna()
    fig, (ax1, ax2) = plt.subplots(2, 1, figsize=(10, 7))
    plot_acf(values, lags=lags, ax=ax1)
    plot_pacf(values, lags=lags, ax=ax2, method="ywm")
    ax1.set_title(f"ACF ({name})")
    ax2.set_title(f"PACF ({name})")
    fig.tight_layout()
    return _save(fig, output_dir, f"acf_pacf_{name}.png")


# Standardized residuals, histogram, normal Q-Q and correlogram of a fitted SARIMA
def plot_residual_diagnostics(results, output_dir: str | Path, lags: int = 48) -> Path:
    fig = results.plot_diagnostics(lags=lags, figsize=(11, 8))
    fig.tight_layout()
    return _save(fig, output_dir, "sarima_residual_diagnostics.png")


def plot_forecast(
    history: pd.Series,
    forecast: pd.DataFrame,
    output_dir: str | Path,
    name: str = "forecast_48h",
) -> Path:
    fig, ax = plt.subplots(figsize=(11, 4.5))
    ax.plot(history.index, history.to_numpy(), color="black", linewidth=0.8, label="Observed")
    ax.fill_between(forecast.index, forecast["lower_95"], forecast["upper_95"],
                    color="steelblue", alpha=0.2, label="95% interval")
    ax.fill_between(forecast.index, forecast["lower_80"], forecast["upper_80"],
                    color="steelblue", alpha=0.4, label="80% interval")
    ax.plot(forecast.index, forecast["mean"], color="steelblue", linewidth=1.5, label="Forecast")

    ax.set_xlabel("Time")
    ax.set_ylabel("Wind speed [m/s]")
    ax.set_title(f"{len(forecast)} h wind speed forecast")
    ax.legend(loc="upper left")
    fig.autofmt_xdate()
    return _save(fig, output_dir, f"{name}.png")


# Interactive version of the forecast plot, saved as standalone HTML
def plot_forecast_interactive(
    history: pd.Series,
    forecast: pd.DataFrame,
    output_dir: str | Path,
    name: str = "forecast_48h",
) -> Path:
    fig = go.Figure()
    fig.add_trace(go.Scatter(x=history.index, y=history.to_numpy(), mode="lines",
                             name="Observed", line=dict(color="black", width=1)))

    for level, opacity in (("95", 0.15), ("80", 0.3)):
        fig.add_trace(go.Scatter(
            x=list(forecast.index) + list(forecast.index[::-1]),
            y=list(forecast[f"upper_{level}"]) + list(forecast[f"lower_{level}"][::-1]),
            fill="toself",
            fillcolor=f"rgba(70,130,180,{opacity})",
            line=dict(color="rgba(0,0,0,0)"),
            name=f"{level}% interval",
            hoverinfo="skip",
        ))

    fig.add_trace(go.Scatter(
        x=forecast.index, y=forecast["mean"], mode="lines", name="Forecast",
        line=dict(color="steelblue", width=2),
        hovertemplate="%{x}<br>%{y:.2f} m/s<extra></extra>",
    ))
    fig.update_layout(title=f"{len(forecast)} h wind speed forecast",
                      xaxis_title="Time", yaxis_title="Wind speed [m/s]")

    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    path = output_dir / f"{name}.html"
    fig.write_html(str(path), include_plotlyjs="cdn")
    return path
