"""Module for computing the seismic hazard"""

import logging
from collections.abc import Sequence
from typing import Union

import numpy as np
import pandas as pd
import scipy as sp

from . import mfd
from .errors import InvalidParameterError
from .gmm import GMMConfig

logger = logging.getLogger(__name__)


def add_gm_params(
    mag_bins_df: pd.DataFrame, gmm_config: GMMConfig, rrup: float
) -> pd.DataFrame:
    """
    Computes the GM parameters (mean and standard deviation of lnIM)
    for each magnitude bin, evaluated at the expected magnitude
    of the bin.

    Parameters
    ----------
    mag_bins_df: pd.DataFrame
        The magnitude bins, as returned by mfd.get_magnitude_bins
    gmm_config: GMMConfig
        The GMM configuration
    rrup: float
        The rupture distance (km)

    Returns
    -------
    pd.DataFrame
        Copy of the magnitude bins dataframe with
        the additional columns mu and sigma
    """
    if not np.isfinite(rrup) or rrup < 0:
        raise InvalidParameterError(
            f"Rupture distance has to be a non-negative number, got {rrup}"
        )

    gm_params = np.asarray(
        [
            gmm_config.evaluate(cur_mag, rrup)
            for cur_mag in mag_bins_df["mean_mag"].values
        ]
    ).reshape(-1, 2)

    rupture_df = mag_bins_df.copy()
    rupture_df["mu"] = gm_params[:, 0]
    rupture_df["sigma"] = gm_params[:, 1]
    return rupture_df


def get_rupture_df(
    dist: mfd.MagnitudeFrequencyDistribution,
    gmm_config: GMMConfig,
    rrup: float,
    dm: float,
) -> pd.DataFrame:
    """
    Creates the rupture dataframe, i.e. one rupture per
    magnitude bin with its rate of occurrence and GM parameters.

    Parameters
    ----------
    dist: MagnitudeFrequencyDistribution
        The magnitude-frequency distribution of the source
    gmm_config: GMMConfig
        The GMM configuration
    rrup: float
        The rupture distance (km)
    dm: float
        The magnitude bin width

    Returns
    -------
    pd.DataFrame
        format: index = bin centre magnitude (mag),
        columns = [mag_lo, mag_hi, prob, rate, mean_mag, mu, sigma]
    """
    rupture_df = add_gm_params(mfd.get_magnitude_bins(dist, dm), gmm_config, rrup)
    logger.debug(
        f"Created {rupture_df.shape[0]} ruptures with a total "
        f"rate of {rupture_df['rate'].sum():.6g} (lambda_eq = {dist.lambda_eq})"
    )
    return rupture_df


def check_rate_conservation(
    rupture_df: pd.DataFrame,
    dist: mfd.MagnitudeFrequencyDistribution,
    rtol: float = 1e-6,
) -> bool:
    """
    Checks that the rates of the magnitude bins sum to
    the total rate of the distribution.

    Only holds if the bins cover the full support
    of the distribution.
    """
    return bool(np.isclose(rupture_df["rate"].sum(), dist.lambda_eq, rtol=rtol, atol=0.0))


def check_im_levels(im_levels: Sequence[float]) -> np.ndarray:
    """
    Ensures the IM levels are positive, finite
    and strictly increasing

    Returns
    -------
    np.ndarray
        The IM levels as a 1D float array
    """
    im_levels = np.asarray(im_levels, dtype=float).reshape(-1)
    if im_levels.size == 0:
        raise InvalidParameterError("At least one IM level is required")
    if np.any(~np.isfinite(im_levels)) or np.any(im_levels <= 0):
        raise InvalidParameterError("IM levels have to be positive and finite")
    if np.any(np.diff(im_levels) <= 0):
        raise InvalidParameterError("IM levels have to be strictly increasing")
    return im_levels


def parametric_gm_excd_prob(
    im_levels: Union[float, np.ndarray],
    im_params: pd.DataFrame,
    mean_col: str = "mu",
    std_col: str = "sigma",
):
    """
    Computes the GM exceedance probability for each IM level over all
    ruptures based on the parametric GM predictions (e.g. empirical GMM)

    Parameters
    ----------
    im_levels: float or array
        The IM level(s) for which to calculate the ground motion
        exceedance probability
    im_params: pd.DataFrame
        The IM distribution parameters for each rupture
        format: index = rupture_name
    mean_col: str, optional
        Name of the column containing the mean lnIM values
    std_col: str, optional
        Name of the column containing the standard deviation of lnIM values

    Returns
    -------
    pd.DataFrame
        The exceedance probability for each rupture at each IM level
        shape: [n_ruptures, n_im_levels]
    """
    im_levels = np.asarray(im_levels).reshape(1, -1)

    results = sp.stats.norm.sf(
        np.log(im_levels),
        im_params[mean_col].values.reshape(-1, 1),
        im_params[std_col].values.reshape(-1, 1),
    )
    return pd.DataFrame(
        index=im_params.index.values, data=results, columns=im_levels.reshape(-1)
    )


def hazard_single(gm_prob: pd.Series, rec_prob: pd.Series):
    """
    Calculates the exceedance probability given the specified
    ground motion exceedance probabilities and rupture recurrence rates

    Note: All ruptures specified in gm_prob have to exist in rec_prob

    Parameters
    ----------
    gm_prob: pd.Series
        The ground motion probabilities
        format: index = rupture_name, values = probability
    rec_prob: pd.Series
        The recurrence probabilities of the ruptures
        format: index = rupture_name, values = probability

    Returns
    -------
    float
        The exceedance probability
    """
    ruptures = gm_prob.index.values
    return np.sum(gm_prob[ruptures] * rec_prob[ruptures], axis=0)


def hazard_curve(gm_prob_df: pd.DataFrame, rec_prob: pd.Series):
    """
    Calculates the exceedance probabilities for the
    specified IM values (via the gm_prob_df)

    Note: All ruptures specified in gm_prob_df have to exist
    in rec_prob

    Parameters
    ----------
    gm_prob_df: pd.DataFrame
        The ground motion probabilities for every rupture
        for every IM level.
        format: index = rupture_name, columns = IM_levels
    rec_prob: pd.Series
        The recurrence probabilities of the ruptures
        format: index = rupture_name, values = probability

    Returns
    -------
    pd.Series
        The exceedance probabilities for the different IM levels
        format: index = IM_levels, values = exceedance probability
    """
    data = np.sum(
        gm_prob_df.values * rec_prob[gm_prob_df.index.values].values.reshape(-1, 1),
        axis=0,
    )
    return pd.Series(index=gm_prob_df.columns.values, data=data)


def compute_rupture_hazard(
    rupture_df: pd.DataFrame, im_levels: Sequence[float]
) -> pd.Series:
    """
    Computes the hazard curve for the given ruptures

    Parameters
    ----------
    rupture_df: pd.DataFrame
        The ruptures, requires the columns rate, mu and sigma
    im_levels: Sequence[float]
        Positive, strictly increasing IM levels

    Returns
    -------
    pd.Series
        The annual exceedance rate for each IM level
        format: index = im_level, values = excd_rate
    """
    im_levels = check_im_levels(im_levels)

    gm_prob_df = parametric_gm_excd_prob(im_levels, rupture_df)
    hcurve = hazard_curve(gm_prob_df, rupture_df["rate"])
    hcurve.index.name = "im_level"
    hcurve.name = "excd_rate"
    return hcurve


def compute_hazard_curve(
    dist: mfd.MagnitudeFrequencyDistribution,
    gmm_config: GMMConfig,
    rrup: float,
    dm: float,
    im_levels: Sequence[float],
) -> pd.Series:
    """
    Computes the hazard curve for a single source at
    a fixed rupture distance from the site.

    The magnitude range of the source is discretised into
    bins of width dm, each bin is represented by its
    expected magnitude and rate of occurrence.

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
    im_levels: Sequence[float]
        Positive, strictly increasing IM levels

    Returns
    -------
    pd.Series
        The annual exceedance rate for each IM level,
        non-increasing with IM level
        format: index = im_level, values = excd_rate
    """
    im_levels = check_im_levels(im_levels)
    rupture_df = get_rupture_df(dist, gmm_config, rrup, dm)
    return compute_rupture_hazard(rupture_df, im_levels)
