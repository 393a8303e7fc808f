from collections.abc import Sequence

import numpy as np
import pandas as pd
from tqdm import tqdm

from . import gmm, hazard, mfd, utils


def compute_hazard_curves(
    dist: mfd.MagnitudeFrequencyDistribution,
    gmm_config: gmm.GMMConfig,
    rrup: float,
    dm: float,
    im_levels: Sequence[float],
    periods: Sequence[float] | None = None,
    show_progress: bool = False,
) -> dict[float, pd.Series]:
    """
    Computes the hazard curve for each of the given periods.
    The magnitude discretisation is shared across all periods.

    Parameters
    ----------
    dist: MagnitudeFrequencyDistribution
        The magnitude-frequency distribution of the source
    gmm_config: GMMConfig
        The GMM configuration, the period is ignored
    rrup: float
        The rupture distance (km)
    dm: float
        The magnitude bin width
    im_levels: Sequence[float]
        Positive, strictly increasing IM levels
    periods: Sequence[float], optional
        The periods of interest, defaults to
        the tabulated periods of the GMM
    show_progress: bool, optional
        Show a progress bar

    Returns
    -------
    dict[float, pd.Series]
        The hazard curve for each period
    """
    periods = gmm.PERIODS if periods is None else periods
    im_levels = hazard.check_im_levels(im_levels)
    mag_bins_df = mfd.get_magnitude_bins(dist, dm)

    hcurves = {}
    for cur_period in tqdm(periods, desc="Periods", disable=not show_progress):
        cur_rupture_df = hazard.add_gm_params(
            mag_bins_df, gmm_config.with_period(float(cur_period)), rrup
        )
        hcurves[float(cur_period)] = hazard.compute_rupture_hazard(
            cur_rupture_df, im_levels
        )

    return hcurves


def compute_uhs(
    hcurves: dict[float, pd.Series],
    excd_rates: list[float],
    rps: list[float] | None = None,
):
    """
    Computes the Uniform Hazard Spectrum (UHS) from the given hazard curves.

    Parameters
    ----------
    hcurves: dict[float, pd.Series]
        A dictionary where keys are the periods (0.0 for PGA) and values are
        pandas Series representing the hazard curve for each IM level.
    excd_rates: list[float]
        A list of exceedance rates for which to compute the UHS.
    rps: list[float] | None, optional
        Return periods corresponding to the exceedance rates.
        If provided, these will be used as columns in the output DataFrame.

    Returns
    -------
    pd.DataFrame
        A DataFrame containing the UHS values, indexed by period.
        Exceedance rates outside the range of a hazard curve result in nan.
    """
    periods = np.sort(np.asarray(list(hcurves.keys()), dtype=float))

    results = {}
    for cur_period in periods:
        cur_result = utils.exceedance_to_im(
            np.asarray(excd_rates),
            hcurves[cur_period].index.values,
            hcurves[cur_period].values,
            bounds_error=False,
        )
        results[cur_period] = cur_result

    uhs_df = pd.DataFrame.from_dict(
        results, orient="index", columns=rps if rps else excd_rates
    )
    uhs_df.index.name = "period"

    return uhs_df
