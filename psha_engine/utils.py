from collections.abc import Sequence

import numpy as np
from scipy.interpolate import interp1d

from .errors import InvalidParameterError
from .gmm import MIN_PERIOD


def get_im_levels(im_min: float = 0.01, im_max: float = 1.0, n_values: int = 11):
    """
    Creates log-spaced IM levels between
    im_min and im_max (inclusive)

    Parameters
    ----------
    im_min: float
        The smallest IM level
    im_max: float
        The largest IM level
    n_values: int
        The number of IM levels

    Returns
    -------
    Array of IM values
    """
    if not 0 < im_min < im_max:
        raise InvalidParameterError(
            f"Require 0 < im_min < im_max, got im_min={im_min}, im_max={im_max}"
        )
    if n_values < 2:
        raise InvalidParameterError(f"At least two IM levels are required, got {n_values}")

    im_values = np.logspace(
        start=np.log(im_min), stop=np.log(im_max), num=n_values, base=np.e
    )
    return im_values


def select_by_index(values: Sequence, index: int, name: str = "index"):
    """
    Returns the value at the given index, ensuring the
    index is within the bounds of the values.

    Used for selecting a period or IM level by index.
    Negative indices are not supported.
    """
    if not 0 <= index < len(values):
        raise InvalidParameterError(
            f"{name} {index} is out of range, has to be in [0, {len(values) - 1}]"
        )
    return values[index]


def rp_to_prob(rp: float, t: float = 1.0):
    """
    Converts return period to exceedance probability
    Based on Poisson distribution

    Parameters
    ----------
    rp: float
        Return period
    t: float
        Time period of interest

    Returns
    -------
    Exceedance probability
    """
    return 1 - np.exp(-t / rp)


def prob_to_rp(prob: float, t: float = 1.0):
    """
    Converts probability of exceedance to return period
    Based on Poisson distribution

    Parameters
    ----------
    prob: float
        Exceedance probability
    t: float
        Time period of interest

    Returns
    -------
    Return Period
    """
    return -t / np.log(1 - prob)


def exceedance_to_im(
    exceedances: np.ndarray,
    im_values: np.ndarray,
    hazard_values: np.ndarray,
    bounds_error: bool = True,
):
    """
    Converts the given exceedance rate to an IM value, based on the
    provided im and hazard values.

    IM levels with zero hazard are ignored.

    Parameters
    ----------
    exceedances: array of float
        The exceedance values of interest
    im_values: numpy array
        The IM values corresponding to the hazard values
        Has to be the same shape as hazard_values
    hazard_values: numpy array
        The hazard values corresponding to the IM values
        Has to be the same shape as im_values
    bounds_error: bool, optional
        If True a ValueError is raised for exceedances outside
        of the range of the hazard values (or if there are fewer
        than two non-zero hazard values), otherwise nan is returned

    Returns
    -------
    float
        The IM value corresponding to the provided exceedance
    """
    im_values, hazard_values = np.asarray(im_values), np.asarray(hazard_values)
    mask = hazard_values > 0

    # Interpolation requires at least two non-zero hazard values
    if np.count_nonzero(mask) < 2:
        if bounds_error:
            raise ValueError(
                f"At least two non-zero hazard values are required, "
                f"got {np.count_nonzero(mask)}"
            )
        return np.full(np.shape(exceedances), np.nan)

    return np.exp(
        interp1d(
            np.log(hazard_values[mask]) * -1,
            np.log(im_values[mask]),
            kind="linear",
            bounds_error=bounds_error,
        )(np.log(exceedances) * -1)
    )


def get_im_name(period: float) -> str:
    """
    Get the IM name for the given period,
    PGA for periods below 0.01s, otherwise pSA_<period>
    """
    if period < MIN_PERIOD:
        return "PGA"
    return f"pSA_{period}"
