import numpy as np
import pandas as pd
import pytest
import scipy as sp
import xarray as xr

import psha_engine as pe

IM_LEVELS = pe.utils.get_im_levels(0.01, 1.0, 11)


@pytest.fixture
def gr_dist():
    return pe.mfd.make_gr(5.0, 8.0, 1.0, 0.05)


@pytest.fixture
def single_rupture_df():
    return pd.DataFrame(
        index=pd.Index([6.0], name="mag"),
        data={
            "mag_lo": [5.9],
            "mag_hi": [6.1],
            "rate": [0.01],
            "mu": [0.0],
            "sigma": [1.0],
        },
    )


def test_epsilon_bins():
    eps_bins = pe.disagg.get_epsilon_bins()

    assert np.allclose(eps_bins.index.values, np.arange(-3, 4))
    assert eps_bins.index.name == "eps"
    assert eps_bins["eps_lo"].iloc[0] == -np.inf
    assert eps_bins["eps_hi"].iloc[-1] == np.inf
    assert np.allclose(eps_bins["eps_lo"].values[1:], np.arange(-2.5, 3.0))
    assert np.allclose(eps_bins["eps_hi"].values[:-1], np.arange(-2.5, 3.0))

    eps_bins = pe.disagg.get_epsilon_bins(-2.0, 2.0, 9)
    assert np.allclose(eps_bins.index.values, np.arange(-2.0, 2.25, 0.5))


@pytest.mark.parametrize("eps_min, eps_max, n_eps", [(-3, 3, 1), (3, -3, 7), (1, 1, 3)])
def test_epsilon_bins_invalid(eps_min: float, eps_max: float, n_eps: int):
    with pytest.raises(pe.InvalidParameterError):
        pe.disagg.get_epsilon_bins(eps_min, eps_max, n_eps)


def test_single_rupture(single_rupture_df: pd.DataFrame):
    """Epsilon of the IM level is 0.25, i.e. within the bin centred on 0"""
    disagg_da = pe.disagg.disagg_mag_eps(
        single_rupture_df, np.exp(0.25), pe.disagg.get_epsilon_bins()
    )
    norm = sp.stats.norm

    assert disagg_da.dims == ("mag", "eps")
    assert disagg_da.shape == (1, 7)

    result = disagg_da.sel(mag=6.0)
    assert np.all(result.sel(eps=[-3.0, -2.0, -1.0]).values == 0.0)
    assert result.sel(eps=0.0).item() == pytest.approx(
        0.01 * (norm.cdf(0.5) - norm.cdf(0.25)), rel=1e-10
    )
    assert result.sel(eps=1.0).item() == pytest.approx(
        0.01 * (norm.cdf(1.5) - norm.cdf(0.5)), rel=1e-10
    )
    assert result.sel(eps=3.0).item() == pytest.approx(0.01 * norm.sf(2.5), rel=1e-10)

    assert disagg_da.attrs["im_level"] == pytest.approx(np.exp(0.25))
    assert disagg_da.attrs["excd_rate"] == pytest.approx(0.01 * norm.sf(0.25))
    assert disagg_da.sum().item() == pytest.approx(0.01 * norm.sf(0.25), rel=1e-10)
    assert disagg_da.attrs["mag_bin_width"] == pytest.approx(0.2)
    assert disagg_da.attrs["eps_bin_width"] == pytest.approx(1.0)


def test_single_rupture_tail(single_rupture_df: pd.DataFrame):
    """Upper tail probabilities are not lost to cancellation"""
    disagg_da = pe.disagg.disagg_mag_eps(
        single_rupture_df, np.exp(8.0), pe.disagg.get_epsilon_bins()
    )

    assert disagg_da.sel(mag=6.0, eps=3.0).item() == pytest.approx(
        0.01 * sp.stats.norm.sf(8.0), rel=1e-8
    )
    assert np.all(disagg_da.sel(eps=slice(-3.0, 2.0)).values == 0.0)
    assert pe.disagg.check_disagg_conservation(disagg_da, rtol=1e-8)


@pytest.mark.parametrize("im_index", [0, 3, 5, 8, 10])
@pytest.mark.parametrize(
    "gmm_config",
    [
        pe.gmm.GMMConfig(),
        pe.gmm.GMMConfig(period=0.3, is_soil=1, fault_type=1),
        pe.gmm.GMMConfig(period=2.5, fault_type=2, hanging_wall=1),
    ],
)
def test_conservation(
    gr_dist: pe.mfd.GutenbergRichter, gmm_config: pe.gmm.GMMConfig, im_index: int
):
    im_level = IM_LEVELS[im_index]
    disagg_da = pe.disagg.compute_disaggregation(
        gr_dist, gmm_config, 10.0, 0.2, im_level
    )
    hcurve = pe.hazard.compute_hazard_curve(
        gr_dist, gmm_config, 10.0, 0.2, IM_LEVELS
    )

    assert pe.disagg.check_disagg_conservation(disagg_da, rtol=1e-8)
    assert disagg_da.attrs["excd_rate"] == pytest.approx(
        hcurve.iloc[im_index], rel=1e-8
    )
    assert disagg_da.attrs["period"] == gmm_config.period
    assert np.all(disagg_da.values >= 0)

    mag_contr = pe.disagg.mag_contributions(disagg_da)
    assert mag_contr.sum() == pytest.approx(1.0, rel=1e-8)
    assert pe.disagg.disagg_contributions(disagg_da).sum().item() == pytest.approx(
        1.0, rel=1e-8
    )


def test_youngs_coppersmith():
    dist = pe.mfd.make_yc(5.0, 7.0, 0.5, 0.1, 1.0, 0.02)
    disagg_da = pe.disagg.compute_disaggregation(
        dist, pe.gmm.GMMConfig(), 20.0, 0.25, 0.3
    )

    assert disagg_da.shape == (9, 7)
    assert pe.disagg.check_disagg_conservation(disagg_da)

    # The characteristic events contribute a large share at high IM levels
    mag_contr = pe.disagg.mag_contributions(disagg_da)
    assert mag_contr.loc[[6.875, 7.125]].sum() > 0.4


@pytest.mark.parametrize("p_char", [0.0, 1.0])
def test_youngs_coppersmith_limits(p_char: float):
    dist = pe.mfd.make_yc(5.0, 7.0, 0.5, p_char, 1.0, 0.02)
    rupture_df = pe.hazard.get_rupture_df(dist, pe.gmm.GMMConfig(), 10.0, 0.25)
    assert pe.hazard.check_rate_conservation(rupture_df, dist)

    disagg_da = pe.disagg.compute_disaggregation(
        dist, pe.gmm.GMMConfig(), 10.0, 0.25, 0.1
    )
    assert disagg_da.shape == (9, 7)
    assert pe.disagg.check_disagg_conservation(disagg_da)

    # Bins without probability mass do not contribute
    zero_mags = rupture_df.index.values[rupture_df["rate"].values == 0.0]
    assert len(zero_mags) > 0
    assert np.all(disagg_da.sel(mag=zero_mags).values == 0.0)
    assert pe.disagg.mag_contributions(disagg_da).sum() == pytest.approx(1.0)


def test_mean_values(gr_dist: pe.mfd.GutenbergRichter):
    mean_values_low = pe.disagg.get_mean_values(
        pe.disagg.compute_disaggregation(
            gr_dist, pe.gmm.GMMConfig(), 10.0, 0.2, IM_LEVELS[0]
        )
    )
    mean_values_high = pe.disagg.get_mean_values(
        pe.disagg.compute_disaggregation(
            gr_dist, pe.gmm.GMMConfig(), 10.0, 0.2, IM_LEVELS[-1]
        )
    )

    for cur_mean_values in [mean_values_low, mean_values_high]:
        assert list(cur_mean_values.index) == ["mean_mag", "mean_eps"]
        assert 5.0 < cur_mean_values["mean_mag"] < 8.0
        assert -3.0 <= cur_mean_values["mean_eps"] <= 3.0

    # Larger IM levels are dominated by larger magnitudes and epsilons
    assert mean_values_high["mean_mag"] > mean_values_low["mean_mag"]
    assert mean_values_high["mean_eps"] > mean_values_low["mean_eps"]


def test_zero_hazard():
    dist = pe.mfd.make_gr(5.0, 8.0, 1.0, 0.0)
    disagg_da = pe.disagg.compute_disaggregation(
        dist, pe.gmm.GMMConfig(), 10.0, 0.5, 0.1
    )

    assert disagg_da.attrs["excd_rate"] == 0.0
    assert np.all(disagg_da.values == 0.0)
    with pytest.raises(pe.NumericDegeneracyError):
        pe.disagg.disagg_contributions(disagg_da)
    with pytest.raises(pe.NumericDegeneracyError):
        pe.disagg.get_mean_values(disagg_da)


@pytest.mark.parametrize("im_level", [0.0, -0.1, np.nan])
def test_invalid_im_level(gr_dist: pe.mfd.GutenbergRichter, im_level: float):
    with pytest.raises(pe.InvalidParameterError):
        pe.disagg.compute_disaggregation(
            gr_dist, pe.gmm.GMMConfig(), 10.0, 0.2, im_level
        )


def test_netcdf_roundtrip(gr_dist: pe.mfd.GutenbergRichter, tmp_path):
    disagg_da = pe.disagg.compute_disaggregation(
        gr_dist, pe.gmm.GMMConfig(), 10.0, 0.2, 0.2
    )
    disagg_da.to_netcdf(tmp_path / "disagg.nc")

    with xr.open_dataarray(tmp_path / "disagg.nc") as result_da:
        result_da = result_da.load()

    assert np.allclose(result_da.values, disagg_da.values)
    assert result_da.attrs["excd_rate"] == pytest.approx(disagg_da.attrs["excd_rate"])
    assert pe.disagg.get_mean_values(result_da).equals(
        pe.disagg.get_mean_values(disagg_da)
    )
