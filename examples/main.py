# main.py
# ------------------------------------------------------------
# Purpose:
#   Wind-turbine feasibility for a single site from one CSV of raw
#   wind observations (timestamp, wind speed, location columns):
#   (1) load, clean and restrict to [2023-04-01, 2024-04-01),
#   (2) average into a regular hourly series (gaps stay missing),
#   (3) fit Weibull (annual + per season), compare AIC, KS check,
#   (4) simulate from the seasonal fits and compare to observations,
#   (5) ADF stationarity check and stepwise SARIMA order search,
#   (6) inspect candidate models, then freeze the chosen orders,
#   (7) forecast 48 h ahead with 80% / 95% intervals (floored at 0),
#   (8) save CSV summaries and plots.
# ------------------------------------------------------------

from __future__ import annotations

import logging
from pathlib import Path

from wind_feasibility.analyzer import WindFeasibilityAnalyzer
from wind_feasibility.config import (
    BEST_ORDER,
    BEST_SEASONAL_ORDER,
    EXHAUSTIVE_ORDER,
    EXHAUSTIVE_SEASONAL_ORDER,
)

PROJECT_DIR = Path(__file__).resolve().parent.parent

# Raw observation CSV
DATA_PATH = PROJECT_DIR / "inputs" / "wind_observations.csv"

# Output directory
OUTPUT_DIR = PROJECT_DIR / "outputs" / "results"

# The exhaustive search (stepwise=False, approximation=False) takes hours on a year of
# hourly data; its result is stored in config.EXHAUSTIVE_ORDER instead.
RUN_STEPWISE_SEARCH = True


def main():
    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")

    analyzer = WindFeasibilityAnalyzer(DATA_PATH, OUTPUT_DIR)
    analyzer.load_data()
    analyzer.build_hourly()
    analyzer.save_hourly_csv()

    # --- Weibull resource characterization ---
    analyzer.fit_weibull_models()
    analyzer.print_weibull_summary()
    for label, gof in analyzer.check_goodness_of_fit().items():
        print(f"KS {label}: D={gof.statistic:.4f}, p={gof.pvalue:.4g} (n={gof.n})")
    analyzer.save_weibull_summary()
    analyzer.simulate()

    # --- SARIMA model selection ---
    analyzer.check_stationarity()
    analyzer.print_stationarity()
    if RUN_STEPWISE_SEARCH:
        search = analyzer.search_orders()
        analyzer.try_model(search.order, search.seasonal_order)

    analyzer.try_model(EXHAUSTIVE_ORDER, EXHAUSTIVE_SEASONAL_ORDER)
    analyzer.try_model(BEST_ORDER, BEST_SEASONAL_ORDER)
    print("\n=== Candidate models ===")
    print(analyzer.candidate_table().to_string())

    # --- Frozen model + forecast ---
    analyzer.freeze(BEST_ORDER, BEST_SEASONAL_ORDER)
    analyzer.print_model_summary()
    forecast = analyzer.forecast()
    print("\n=== 48 h forecast ===")
    print(forecast.round(2).to_string())
    analyzer.save_forecast_csv(forecast)

    analyzer.run_all_plots(forecast)


if __name__ == "__main__":
    main()
