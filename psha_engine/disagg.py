"""Module for computing the magnitude-epsilon disaggregation of the hazard"""

import logging
import math

import numba as nb
import numpy as np
import pandas as pd
import xarray as xr

from . import hazard, mfd
from .errors import InvalidParameterError, NumericDegeneracyError
from .gmm import GMMConfig

logger = logging.getLogger(__name__)


def get_epsilon_bins(
    eps_min: float = -3.0, eps_max: float = 3.0, n_eps: int = 7
) -> pd.DataFrame:
    """
    Creates fixed width epsilon bins centred on
    the values linspace(eps_min, eps_max, n_eps).
    The lower bound of the first bin and the upper
    bound of the last bin are open, i.e. -inf and inf.

    Parameters
    ----------
    eps_min: float
        Centre of the first bin
    eps_max: float
        Centre of the last bin
    n_eps: int
        Number of bins

    Returns
    -------
    pd.DataFrame
        format: index = bin centre (eps), columns = [eps_lo, eps_hi]
    """
    if n_eps < 2:
        raise InvalidParameterError(f"At least two epsilon bins are required, got {n_eps}")
    if not eps_min < eps_max:
        raise InvalidParameterError(
            f"eps_min ({eps_min}) has to be smaller than eps_max ({eps_max})"
        )

    eps = np.linspace(eps_min, eps_max, n_eps)
    eps_width = eps[1] - eps[0]

    eps_lo, eps_hi = eps - eps_width / 2, eps + eps_width / 2
    eps_lo[0], eps_hi[-1] = -np.inf, np.inf

    return pd.DataFrame(
        index=pd.Index(eps, name="eps"), data={"eps_lo": eps_lo, "eps_hi": eps_hi}
    )


@nb.njit(cache=True)
def _norm_interval_prob(lower: float, upper: float):
    """P(lower < X <= upper) for a standard normal X"""
    # Use the survival function in the upper tail to
    # avoid cancellation of cdf values close to one
    if lower >= 0.0:
        return 0.5 * math.erfc(lower / math.sqrt(2.0)) - 0.5 * math.erfc(
            upper / math.sqrt(2.0)
        )
    return 0.5 * math.erfc(-upper / math.sqrt(2.0)) - 0.5 * math.erfc(
        -lower / math.sqrt(2.0)
    )


@nb.njit(cache=True)
def _disagg_mag_eps(
    rates: np.ndarray,
    eps_star: np.ndarray,
    eps_lo: np.ndarray,
    eps_hi: np.ndarray,
):
    """
    Computes the contribution of each magnitude-epsilon bin

    Parameters
    ----------
    rates: array of floats
        Rate of occurrence of each magnitude bin
    eps_star: array of floats
        Epsilon of the IM level of interest for each magnitude bin
    eps_lo, eps_hi: array of floats
        Bounds of the epsilon bins

    Returns
    -------
    array of floats
        shape: [n_mag_bins, n_eps_bins]
    """
    n_mags, n_eps = rates.size, eps_lo.size
    result = np.zeros((n_mags, n_eps), dtype=np.float64)
    for i in range(n_mags):
        for j in range(n_eps):
            if eps_lo[j] >= eps_star[i]:
                # Entire bin exceeds the IM level
                result[i, j] = rates[i] * _norm_interval_prob(eps_lo[j], eps_hi[j])
            elif eps_hi[j] > eps_star[i]:
                result[i, j] = rates[i] * _norm_interval_prob(eps_star[i], eps_hi[j])
    return result


def disagg_mag_eps(
    rupture_df: pd.DataFrame,
    im_level: float,
    eps_bins: pd.DataFrame,
    mean_col: str = "mu",
    std_col: str = "sigma",
) -> xr.DataArray:
    """
    Computes the magnitude-epsilon disaggregation
    for the given IM level.

    Parameters
    ----------
    rupture_df: pd.DataFrame
        The ruptures (i.e. magnitude bins), requires
        the columns rate, mag_lo, mag_hi and the GM parameters
    im_level: float
        The IM level to disaggregate
    eps_bins: pd.DataFrame
        The epsilon bins, as returned by get_epsilon_bins
    mean_col: str, optional
        Name of the column containing the mean lnIM values
    std_col: str, optional
        Name of the column containing the standard deviation of lnIM values

    Returns
    -------
    xr.DataArray
        The rate contribution of each magnitude-epsilon bin
        dims: (mag, eps)
        attrs: im_level, excd_rate (hazard at the IM level)
    """
    if not np.isfinite(im_level) or im_level <= 0:
        raise InvalidParameterError(f"IM level has to be positive, got {im_level}")

    eps_star = (np.log(im_level) - rupture_df[mean_col].values) / rupture_df[
        std_col
    ].values
    disagg = _disagg_mag_eps(
        rupture_df["rate"].values.astype(np.float64),
        eps_star.astype(np.float64),
        eps_bins["eps_lo"].values.astype(np.float64),
        eps_bins["eps_hi"].values.astype(np.float64),
    )

    gm_prob = hazard.parametric_gm_excd_prob(
        im_level, rupture_df, mean_col=mean_col, std_col=std_col
    ).iloc[:, 0]
    excd_rate = float(hazard.hazard_single(gm_prob, rupture_df["rate"]))
    logger.debug(
        f"Disaggregation at IM level {im_level:.4g}: excd_rate = {excd_rate:.6g}, "
        f"sum of contributions = {disagg.sum():.6g}"
    )

    return xr.DataArray(
        disagg,
        dims=("mag", "eps"),
        coords={"mag": rupture_df.index.values, "eps": eps_bins.index.values},
        name="disagg",
        attrs={
            "im_level": float(im_level),
            "excd_rate": excd_rate,
            "mag_bin_width": float(
                (rupture_df["mag_hi"] - rupture_df["mag_lo"]).values[0]
            ),
            "eps_bin_width": float(
                eps_bins.index.values[1] - eps_bins.index.values[0]
            ),
        },
    )


def compute_disaggregation(
    dist: mfd.MagnitudeFrequencyDistribution,
    gmm_config: GMMConfig,
    rrup: float,
    dm: float,
    im_level: float,
    eps_bins: pd.DataFrame | None = None,
) -> xr.DataArray:
    """
    Computes the magnitude-epsilon disaggregation
    of the hazard for a single source at a
    fixed rupture distance from the site.

    Parameters
    ----------
    dist: MagnitudeFrequencyDistribution
        The magnitude-frequency distribution of the source
    gmm_config: GMMConfig
        The GMM configuration (period, site and fault conditions)
    rrup: float
        The rupture distance (km)
    dm: float
        The magnitude bin width
    im_level: float
        The IM level to disaggregate
    eps_bins: pd.DataFrame, optional
        The epsilon bins, defaults to 7 bins
        centred on -3, -2, ..., 3

    Returns
    -------
    xr.DataArray
        The rate contribution of each magnitude-epsilon bin
        dims: (mag, eps)
    """
    eps_bins = get_epsilon_bins() if eps_bins is None else eps_bins

    rupture_df = hazard.get_rupture_df(dist, gmm_config, rrup, dm)
    disagg_da = disagg_mag_eps(rupture_df, im_level, eps_bins)
    disagg_da.attrs["period"] = float(gmm_config.period)
    return disagg_da


def disagg_contributions(disagg_da: xr.DataArray) -> xr.DataArray:
    """
    Converts the rate contributions into fractions
    of the hazard at the IM level

    Raises
    ------
    NumericDegeneracyError
        If the hazard at the IM level is zero
    """
    excd_rate = disagg_da.attrs["excd_rate"]
    if not excd_rate > 0:
        raise NumericDegeneracyError(
            f"Hazard is zero at IM level {disagg_da.attrs['im_level']}, "
            "disaggregation can not be normalised"
        )

    with xr.set_options(keep_attrs=True):
        return disagg_da / excd_rate


def mag_contributions(disagg_da: xr.DataArray) -> pd.Series:
    """
    Fraction of the hazard contributed by each magnitude bin

    Returns
    -------
    pd.Series
        format: index = mag, values = fraction
    """
    return disagg_contributions(disagg_da).sum(dim="eps").to_series()


def get_mean_values(disagg_da: xr.DataArray) -> pd.Series:
    """
    Computes the mean magnitude and epsilon of the disaggregation,
    using the bin centres (also for the open outer epsilon bins)

    Returns
    -------
    pd.Series
        index = [mean_mag, mean_eps]
    """
    contr_da = disagg_contributions(disagg_da)
    mean_mag = (contr_da.sum(dim="eps") * contr_da.coords["mag"]).sum().item()
    mean_eps = (contr_da.sum(dim="mag") * contr_da.coords["eps"]).sum().item()
    return pd.Series({"mean_mag": mean_mag, "mean_eps": mean_eps})


def check_disagg_conservation(disagg_da: xr.DataArray, rtol: float = 1e-6) -> bool:
    """
    Checks that the contributions sum to the
    hazard at the IM level of the disaggregation
    """
    return bool(
        np.isclose(
            disagg_da.sum().item(), disagg_da.attrs["excd_rate"], rtol=rtol, atol=0.0
        )
    )
