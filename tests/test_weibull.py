"""Tests for Weibull fitting, comparison and simulation."""
import logging

import numpy as np
import pandas as pd
import pytest
from scipy.stats import weibull_min

from wind_feasibility.config import SEASONS
from wind_feasibility.errors import InputRangeError
from wind_feasibility.plots import plot_simulated_vs_actual
from wind_feasibility.weibull import (
    WeibullFit,
    compare_fits,
    fit_weibull,
    fit_weibull_by_season,
    goodness_of_fit,
    prepare_speeds,
    qq_pairs,
    simulate_seasonal,
    weibull_table,
)


def _sample(k=2.0, A=7.0, n=5000, seed=1):
    return weibull_min.rvs(k, scale=A, size=n, random_state=seed)


class TestFitWeibull:
    """Tests for fit_weibull."""

    def test_recovers_known_parameters(self):
        """Test that the MLE lands near the generating parameters."""
        fit = fit_weibull(_sample())
        assert fit.shape == pytest.approx(2.0, abs=0.1)
        assert fit.scale == pytest.approx(7.0, abs=0.2)
        assert fit.n == 5000

    def test_matches_scipy_mle(self):
        """Test agreement with scipy's own fixed-location fit."""
        data = _sample(k=1.7, A=6.0, n=2000, seed=3)
        fit = fit_weibull(data)
        k, _, A = weibull_min.fit(data, floc=0.0)
        assert fit.shape == pytest.approx(k, rel=2e-3)
        assert fit.scale == pytest.approx(A, rel=2e-3)

    @pytest.mark.parametrize("seed", [0, 1, 2, 3])
    def test_parameters_positive(self, seed):
        """Test that shape and scale stay inside the parameter domain."""
        fit = fit_weibull(_sample(k=1.2 + seed * 0.5, A=3.0 + seed, n=300, seed=seed))
        assert fit.shape > 0
        assert fit.scale > 0

    def test_loglik_and_aic(self):
        """Test that loglik is the Weibull log-density sum and AIC = 4 - 2 loglik."""
        data = _sample(n=500)
        fit = fit_weibull(data)
        expected = np.sum(weibull_min.logpdf(data, fit.shape, loc=0.0, scale=fit.scale))
        assert fit.loglik == pytest.approx(expected)
        assert fit.aic == pytest.approx(2 * 2 - 2 * fit.loglik)
        assert fit.n_params == 2

    def test_constant_input_does_not_crash(self):
        """Test that zero-variance input gives finite, positive estimates."""
        fit = fit_weibull(np.full(200, 6.5))
        assert np.isfinite(fit.shape) and fit.shape > 0
        assert np.isfinite(fit.scale) and fit.scale > 0
        assert fit.scale == pytest.approx(6.5, rel=1e-6)
        assert fit.shape > 10

    def test_zero_speeds_excluded(self):
        """Test that zero and missing speeds are dropped before fitting."""
        data = _sample(n=400)
        with_zeros = np.concatenate([data, np.zeros(25), [np.nan, -1.0]])
        assert fit_weibull(with_zeros) == fit_weibull(data)

    def test_too_few_points(self):
        """Test that a handful of points is rejected."""
        with pytest.raises(InputRangeError):
            fit_weibull([1.0, 2.0, 0.0, 3.0])

    def test_prepare_speeds_filters(self):
        """Test the zero-speed policy directly."""
        values = pd.Series([0.0] * 3 + [1.5] * 12 + [np.nan])
        out = prepare_speeds(values)
        assert out.size == 12
        assert (out > 0).all()

    def test_derived_resource_numbers(self):
        """Test mean speed and power density for k=2 (Rayleigh)."""
        fit = WeibullFit(shape=2.0, scale=8.0, loglik=0.0, aic=4.0, n=1)
        assert fit.mean_speed == pytest.approx(8.0 * np.sqrt(np.pi) / 2)
        assert fit.power_density(rho=1.0) == pytest.approx(0.5 * 512.0 * 0.75 * np.sqrt(np.pi))


class TestSeasonalFits:
    """Tests for per-season fits and the annual comparison."""

    def test_one_fit_per_season(self, year_hourly):
        """Test that all four seasons are fitted, in season order."""
        fits = fit_weibull_by_season(year_hourly)
        assert list(fits) == list(SEASONS)
        assert all(f.shape > 0 and f.scale > 0 for f in fits.values())

    def test_seasons_fitted_independently(self, year_hourly):
        """Test that each seasonal fit only uses its own partition."""
        fits = fit_weibull_by_season(year_hourly)
        winter = year_hourly.loc[year_hourly["season"] == "Winter", "wind_speed"]
        assert fits["Winter"] == fit_weibull(winter, label="Winter")
        assert sum(f.n for f in fits.values()) == fit_weibull(year_hourly["wind_speed"]).n

    def test_compare_fits_sums(self, year_hourly):
        """Test that the seasonal row sums loglik and AIC over seasons."""
        annual = fit_weibull(year_hourly["wind_speed"])
        seasonal = fit_weibull_by_season(year_hourly)
        table = compare_fits(annual, seasonal)

        assert list(table.index) == ["annual", "seasonal"]
        assert table.loc["seasonal", "loglik"] == pytest.approx(sum(f.loglik for f in seasonal.values()))
        assert table.loc["seasonal", "aic"] == pytest.approx(sum(f.aic for f in seasonal.values()))
        assert table.loc["seasonal", "n_params"] == 8
        assert table.loc["annual", "aic"] == pytest.approx(annual.aic)
        assert table["delta_aic"].min() == 0.0

    def test_seasonal_model_preferred_for_seasonal_data(self, year_hourly):
        """Test that seasonally generated data gives the seasonal sum the lower AIC."""
        table = compare_fits(fit_weibull(year_hourly["wind_speed"]),
                             fit_weibull_by_season(year_hourly))
        assert table.loc["seasonal", "aic"] < table.loc["annual", "aic"]

    def test_compare_fits_deterministic(self, year_hourly):
        """Test that the comparison is a pure function of the fits."""
        annual = fit_weibull(year_hourly["wind_speed"])
        seasonal = fit_weibull_by_season(year_hourly)
        pd.testing.assert_frame_equal(compare_fits(annual, seasonal), compare_fits(annual, seasonal))

    def test_weibull_table(self, year_hourly):
        """Test the parameter summary has a row per season plus annual."""
        annual = fit_weibull(year_hourly["wind_speed"])
        table = weibull_table(annual, fit_weibull_by_season(year_hourly))
        assert list(table.index) == list(SEASONS) + ["Annual"]
        assert (table["power_density_Wm2"] > 0).all()


class TestGoodnessOfFit:
    """Tests for the bounded-sample KS check."""

    def test_sample_capped_at_1000(self):
        """Test that large series are subsampled to 1000 points."""
        data = _sample(n=5000)
        result = goodness_of_fit(data, fit_weibull(data))
        assert result.n == 1000
        assert 0.0 <= result.pvalue <= 1.0

    def test_small_series_uses_all_points(self):
        """Test that short series are used whole."""
        data = _sample(n=200)
        assert goodness_of_fit(data, fit_weibull(data)).n == 200

    def test_wrong_parameters_rejected(self):
        """Test that a badly mismatched Weibull gets a tiny p-value."""
        data = _sample(n=2000)
        wrong = WeibullFit(shape=5.0, scale=20.0, loglik=0.0, aic=0.0, n=2000)
        assert goodness_of_fit(data, wrong).pvalue < 1e-6

    def test_seeded_sampling_reproducible(self):
        """Test that the same seed gives the same statistic."""
        data = _sample(n=3000)
        fit = fit_weibull(data)
        assert goodness_of_fit(data, fit, seed=5) == goodness_of_fit(data, fit, seed=5)

    def test_exclusions_logged_with_label(self, caplog):
        """Test that zero-speed exclusions name the season being checked."""
        data = np.concatenate([_sample(n=300), np.zeros(4)])
        fit = fit_weibull(data)
        with caplog.at_level(logging.INFO, logger="wind_feasibility.weibull"):
            goodness_of_fit(data, fit, label="Winter")
        assert "[Winter] excluded 4" in caplog.text
        assert "[annual]" not in caplog.text


class TestSimulation:
    """Tests for seasonal simulation."""

    def test_same_length_and_index(self, year_hourly):
        """Test that one value is drawn per hourly record."""
        fits = fit_weibull_by_season(year_hourly)
        sim = simulate_seasonal(year_hourly, fits, seed=11)
        assert sim.index.equals(year_hourly.index)
        assert (sim > 0).all()

    def test_seeded(self, year_hourly):
        """Test reproducibility for a fixed seed."""
        fits = fit_weibull_by_season(year_hourly)
        pd.testing.assert_series_equal(simulate_seasonal(year_hourly, fits, seed=3),
                                       simulate_seasonal(year_hourly, fits, seed=3))

    def test_uses_season_parameters(self, year_hourly):
        """Test that each season's draws follow that season's scale."""
        fits = {
            "Summer": WeibullFit(2.0, 1.0, 0.0, 0.0, 1),
            "Autumn": WeibullFit(2.0, 10.0, 0.0, 0.0, 1),
            "Winter": WeibullFit(2.0, 100.0, 0.0, 0.0, 1),
            "Spring": WeibullFit(2.0, 1000.0, 0.0, 0.0, 1),
        }
        sim = simulate_seasonal(year_hourly, fits, seed=0)
        medians = sim.groupby(year_hourly["season"].astype(str)).median()
        assert medians["Summer"] < medians["Autumn"] < medians["Winter"] < medians["Spring"]

    def test_missing_season_fit(self, year_hourly):
        """Test that a record whose season has no fit is rejected."""
        fits = fit_weibull_by_season(year_hourly)
        del fits["Spring"]
        with pytest.raises(InputRangeError):
            simulate_seasonal(year_hourly, fits)

    def test_qq_pairs_sorted(self):
        """Test sorted quantile pairs."""
        qq = qq_pairs([3.0, 1.0, 2.0], [0.5, 2.5, 1.5])
        assert qq["observed"].tolist() == [1.0, 2.0, 3.0]
        assert qq["simulated"].tolist() == [0.5, 1.5, 2.5]

    def test_qq_pairs_length_mismatch(self):
        """Test that unequal lengths are rejected."""
        with pytest.raises(InputRangeError):
            qq_pairs([1.0, 2.0], [1.0])

    def test_simulated_plot_pairs_quantiles(self, tmp_path):
        """Test that the simulated-vs-observed plot builds its Q-Q from equal-length samples."""
        obs = pd.Series(_sample(n=500, seed=3))
        path = plot_simulated_vs_actual(obs, pd.Series(_sample(n=500, seed=4)), tmp_path)
        assert path.exists()
        with pytest.raises(InputRangeError):
            plot_simulated_vs_actual(obs, pd.Series(_sample(n=499, seed=4)), tmp_path)
