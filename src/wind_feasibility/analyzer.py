# analyzer.py
# ------------------------------------------------------------
# High-level class for wind-turbine feasibility at a single site:
#   - load and clean raw observations
#   - hourly aggregation + complete hourly grid
#   - Weibull fit (annual / seasonal) + comparison + simulation
#   - SARIMA stationarity check, order search, manual refinement
#   - frozen model 48 h forecast with prediction intervals
#   - CSV summaries and plots
# ------------------------------------------------------------

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional, Tuple

import pandas as pd

from .config import (
    ANALYSIS_END,
    ANALYSIS_START,
    BEST_ORDER,
    BEST_SEASONAL_ORDER,
    FORECAST_HORIZON,
    RANDOM_SEED,
    RECENT_HISTORY_HOURS,
    SEASONAL_PERIOD,
    SPEED_COLUMN,
    TIME_COLUMN,
)
from .errors import InputRangeError
from .forecast import forecast_hours, forecast_recent
from .io import CleaningReport, load_observations
from .plots import (
    plot_acf_pacf,
    plot_forecast,
    plot_forecast_interactive,
    plot_residual_diagnostics,
    plot_seasonal_densities,
    plot_seasonal_qq,
    plot_simulated_vs_actual,
    plot_time_series,
    plot_ws_hist_weibull,
)
from .sarima import (
    CandidateFit,
    FrozenModel,
    SearchResult,
    StationarityResult,
    fit_candidate,
    freeze_model,
    search_orders,
    stationarity_test,
)
from .stats import aggregate_hourly, observations_per_hour, season_dummies, to_hourly_grid
from .weibull import (
    GoodnessOfFit,
    WeibullFit,
    compare_fits,
    fit_weibull,
    fit_weibull_by_season,
    goodness_of_fit,
    simulate_seasonal,
    weibull_table,
)


class WindFeasibilityAnalyzer:
    """High-level interface for wind resource + short-term forecast analysis at one site."""

    # --- Initialization ---
    def __init__(
        self,
        data_path: str | Path,
        output_dir: str | Path,
        start: pd.Timestamp | str = ANALYSIS_START,
        end: pd.Timestamp | str = ANALYSIS_END,
        time_col: str = TIME_COLUMN,
        speed_col: str = SPEED_COLUMN,
    ) -> None:
        self.data_path = Path(data_path)
        self.output_dir = Path(output_dir)
        self.start = pd.Timestamp(start)
        self.end = pd.Timestamp(end)
        self.time_col = time_col
        self.speed_col = speed_col

        self.observations: Optional[pd.DataFrame] = None
        self.report: Optional[CleaningReport] = None
        self.hourly: Optional[pd.DataFrame] = None
        self.series: Optional[pd.Series] = None

        self.annual_fit: Optional[WeibullFit] = None
        self.seasonal_fits: Optional[Dict[str, WeibullFit]] = None
        self.simulated: Optional[pd.Series] = None

        self.stationarity: Optional[StationarityResult] = None
        self.search: Optional[SearchResult] = None
        self.candidates: List[CandidateFit] = []
        self.model: Optional[FrozenModel] = None

    # --- Load raw observations ---
    def load_data(self) -> pd.DataFrame:
        self.observations, self.report = load_observations(
            self.data_path,
            time_col=self.time_col,
            speed_col=self.speed_col,
            start=self.start,
            end=self.end,
        )
        print(
            f"Loaded {len(self.observations)} observations "
            f"({self.report.dropped} malformed row(s) dropped, "
            f"{self.report.outside_window} outside window)"
        )
        return self.observations

    # --- Hourly aggregation ---
    def build_hourly(self) -> pd.DataFrame:
        if self.observations is None:
            raise RuntimeError("Observations not loaded.")

        self.hourly = aggregate_hourly(self.observations)
        self.series = to_hourly_grid(self.hourly, self.start, self.end)

        missing = int(self.series.isna().sum())
        print(f"Hourly records: {len(self.hourly)}, grid hours: {len(self.series)}, missing: {missing}")
        print("\n=== Observations per hour ===")
        print(observations_per_hour(self.observations).to_string())
        return self.hourly

    # --- Weibull fits ---
    def fit_weibull_models(self) -> Tuple[WeibullFit, Dict[str, WeibullFit]]:
        if self.hourly is None:
            raise RuntimeError("Hourly series not available.")

        self.annual_fit = fit_weibull(self.hourly["wind_speed"], label="annual")
        self.seasonal_fits = fit_weibull_by_season(self.hourly)

        print(f"\nWeibull fit (annual): k={self.annual_fit.shape:.3f}, A={self.annual_fit.scale:.3f}")
        return self.annual_fit, self.seasonal_fits

    def _require_fits(self) -> None:
        if self.annual_fit is None or self.seasonal_fits is None:
            raise RuntimeError("Weibull models not fitted.")

    def compare_weibull_models(self) -> pd.DataFrame:
        self._require_fits()
        return compare_fits(self.annual_fit, self.seasonal_fits)

    def check_goodness_of_fit(self, seed: Optional[int] = RANDOM_SEED) -> Dict[str, GoodnessOfFit]:
        self._require_fits()
        results = {"Annual": goodness_of_fit(self.hourly["wind_speed"], self.annual_fit, seed=seed,
                                             label="annual")}
        for season, fit in self.seasonal_fits.items():
            ws = self.hourly.loc[self.hourly["season"] == season, "wind_speed"]
            results[season] = goodness_of_fit(ws, fit, seed=seed, label=season)
        return results

    # --- Seasonal Weibull simulation ---
    def simulate(self, seed: Optional[int] = RANDOM_SEED) -> pd.Series:
        self._require_fits()
        observed = self.hourly.dropna(subset=["wind_speed"])
        self.simulated = simulate_seasonal(observed, self.seasonal_fits, seed=seed)
        return self.simulated

    # --- SARIMA model selection ---
    def check_stationarity(self) -> StationarityResult:
        if self.series is None:
            raise RuntimeError("Hourly series not available.")
        self.stationarity = stationarity_test(self.series)
        return self.stationarity

    def search_orders(self, stepwise: bool = True, approximation: bool = True, **kwargs) -> SearchResult:
        if self.series is None:
            raise RuntimeError("Hourly series not available.")
        self.search = search_orders(self.series, stepwise=stepwise,
                                    approximation=approximation, **kwargs)
        print(
            f"\nOrder search best: SARIMA{self.search.order}x{self.search.seasonal_order}"
            f"[{self.search.period}] AIC={self.search.aic:.2f} "
            f"({len(self.search.candidates)} tried, {len(self.search.failures)} failed)"
        )
        return self.search

    # One manual refinement step: fit the given orders and keep it for comparison
    def try_model(
        self,
        order: Tuple[int, int, int],
        seasonal_order: Tuple[int, int, int],
        with_season_exog: bool = False,
    ) -> CandidateFit:
        if self.series is None:
            raise RuntimeError("Hourly series not available.")

        exog = season_dummies(self.series.index) if with_season_exog else None
        if exog is not None and exog.empty:
            raise InputRangeError("Season regressors need data from at least two seasons")
        candidate = fit_candidate(self.series, order, seasonal_order,
                                  period=SEASONAL_PERIOD, exog=exog)
        self.candidates.append(candidate)

        lb = candidate.diagnostics.ljung_box
        print(
            f"SARIMA{candidate.order}x{candidate.seasonal_order}[{candidate.period}] "
            f"AIC={candidate.aic:.2f}, white residuals={candidate.diagnostics.white}"
        )
        print(lb.to_string())
        return candidate

    def candidate_table(self) -> pd.DataFrame:
        return pd.DataFrame(
            [
                {
                    "order": c.order,
                    "seasonal_order": c.seasonal_order,
                    "aic": c.aic,
                    "bic": c.bic,
                    "white": c.diagnostics.white if c.diagnostics else None,
                }
                for c in self.candidates
            ]
        )

    def freeze(
        self,
        order: Tuple[int, int, int] = BEST_ORDER,
        seasonal_order: Tuple[int, int, int] = BEST_SEASONAL_ORDER,
        with_season_exog: bool = False,
    ) -> FrozenModel:
        if self.series is None:
            raise RuntimeError("Hourly series not available.")
        self.model = freeze_model(self.series, order, seasonal_order,
                                  period=SEASONAL_PERIOD, with_season_exog=with_season_exog)
        return self.model

    # --- Forecast ---
    def forecast(self, horizon: int = FORECAST_HORIZON) -> pd.DataFrame:
        if self.model is None:
            raise RuntimeError("Model not frozen.")
        return forecast_hours(self.model, horizon=horizon)

    def forecast_recent(
        self,
        history_hours: int = RECENT_HISTORY_HOURS,
        horizon: int = FORECAST_HORIZON,
    ) -> Tuple[pd.Series, pd.DataFrame]:
        if self.model is None:
            raise RuntimeError("Model not frozen.")
        return forecast_recent(self.model, history_hours=history_hours, horizon=horizon)

    # --- Save CSV summaries ---
    def _write_csv(self, df: pd.DataFrame, filename: str, index_label: str) -> Path:
        self.output_dir.mkdir(parents=True, exist_ok=True)
        out = self.output_dir / filename
        df.to_csv(out, sep=";", index_label=index_label, encoding="utf-8-sig")
        print("Saved:", out)
        return out

    def save_hourly_csv(self) -> Path:
        if self.hourly is None:
            raise RuntimeError("Hourly series not available.")
        return self._write_csv(self.hourly, "ws_hourly.csv", "hour_start")

    def save_weibull_summary(self) -> Path:
        self._require_fits()
        table = weibull_table(self.annual_fit, self.seasonal_fits)
        return self._write_csv(table, "weibull_fit_by_season.csv", "season")

    def save_forecast_csv(self, forecast: pd.DataFrame) -> Path:
        return self._write_csv(forecast, f"forecast_{len(forecast)}h.csv", "hour_start")

    # --- Terminal summaries ---
    def print_weibull_summary(self) -> None:
        self._require_fits()
        print("\n=== Weibull parameters ===")
        print(weibull_table(self.annual_fit, self.seasonal_fits).round(3).to_string())
        print("\n=== Annual vs. seasonal Weibull ===")
        print(self.compare_weibull_models().round(2).to_string())

    def print_stationarity(self) -> None:
        if self.stationarity is None:
            raise RuntimeError("Stationarity test not run.")
        s = self.stationarity
        print("\n=== Augmented Dickey-Fuller ===")
        print(f"ADF statistic={s.statistic:.4f}, p-value={s.pvalue:.4g}, lags={s.lags}, nobs={s.nobs}")
        for level, value in s.critical_values.items():
            print(f"  critical {level}: {value:.4f}")

    def print_model_summary(self) -> None:
        if self.model is None:
            raise RuntimeError("Model not frozen.")
        print(self.model.results.summary())

    # --- Plots ---
    def run_all_plots(self, forecast: Optional[pd.DataFrame] = None) -> List[Path]:
        self._require_fits()
        paths = [
            plot_time_series(self.series, self.output_dir),
            plot_ws_hist_weibull(self.hourly["wind_speed"], self.annual_fit, "Annual",
                                 self.output_dir),
            plot_seasonal_qq(self.hourly, self.seasonal_fits, self.output_dir),
            plot_seasonal_densities(self.hourly, self.seasonal_fits, self.output_dir),
            plot_acf_pacf(self.series, self.output_dir, name="hourly_ws"),
        ]
        if self.simulated is not None:
            observed = self.hourly.loc[self.simulated.index, "wind_speed"]
            paths.append(plot_simulated_vs_actual(observed, self.simulated, self.output_dir))

        if self.model is not None:
            paths.append(plot_residual_diagnostics(self.model.results, self.output_dir))
            if forecast is None:
                forecast = self.forecast()
            history = self.model.endog.iloc[-RECENT_HISTORY_HOURS:]
            paths.append(plot_forecast(history, forecast, self.output_dir))
            paths.append(plot_forecast_interactive(history, forecast, self.output_dir))

            recent_history, recent_fc = self.forecast_recent()
            paths.append(plot_forecast(recent_history, recent_fc, self.output_dir,
                                       name="forecast_48h_recent"))

        for p in paths:
            print("Saved plot:", p)
        return paths
