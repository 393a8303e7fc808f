"""
Magnitude-frequency distributions (MFD) for a single seismic source.

Implements the doubly-bounded Gutenberg-Richter distribution and the
characteristic earthquake distribution of Youngs & Coppersmith (1985),
along with the rate functions required for the hazard calculations.
"""

import abc
import dataclasses
from typing import Union

import numpy as np
import pandas as pd
import scipy as sp

from .errors import InvalidParameterError, NumericDegeneracyError

# Tolerances of the adaptive quadrature used for the expected magnitude
QUAD_EPSABS = 1e-10
QUAD_EPSREL = 1e-10
QUAD_LIMIT = 100

# Tolerance when checking that a magnitude range
# is an integer number of bins
BIN_TOLERANCE = 1e-6

ArrayLike = Union[float, np.ndarray]


def _to_output(values: np.ndarray):
    """Returns a float for 0-d results, otherwise the array"""
    return float(values) if values.ndim == 0 else values


class MagnitudeFrequencyDistribution(abc.ABC):
    """
    Base for the magnitude-frequency distributions.

    Concrete distributions have to provide the pdf, cdf
    and their support, along with the total annual rate
    of earthquakes with magnitude >= m_min (lambda_eq).
    """

    lambda_eq: float

    @property
    @abc.abstractmethod
    def support(self) -> tuple[float, float]:
        """The magnitude range with non-zero probability density"""

    @property
    def breakpoints(self) -> tuple[float, ...]:
        """Magnitudes at which the pdf is discontinuous"""
        return self.support

    @abc.abstractmethod
    def pdf(self, m: ArrayLike) -> ArrayLike:
        """Probability density function"""

    @abc.abstractmethod
    def cdf(self, m: ArrayLike) -> ArrayLike:
        """Cumulative distribution function"""

    def ccdf(self, m: ArrayLike) -> ArrayLike:
        """Complementary cumulative distribution function, 1 - cdf"""
        return _to_output(1.0 - np.asarray(self.cdf(m)))


@dataclasses.dataclass(frozen=True)
class GutenbergRichter(MagnitudeFrequencyDistribution):
    """
    Doubly-bounded exponential (Gutenberg-Richter) distribution

    Parameters
    ----------
    m_min: float
        The minimum magnitude
    m_max: float
        The maximum magnitude
    b_value: float
        The b-value
    lambda_eq: float
        Total annual rate of earthquakes with magnitude >= m_min
    """

    m_min: float
    m_max: float
    b_value: float
    lambda_eq: float

    def __post_init__(self):
        _check_finite(
            m_min=self.m_min,
            m_max=self.m_max,
            b_value=self.b_value,
            lambda_eq=self.lambda_eq,
        )
        if self.m_min >= self.m_max:
            raise InvalidParameterError(
                f"m_min ({self.m_min}) has to be smaller than m_max ({self.m_max})"
            )
        if self.b_value <= 0:
            raise InvalidParameterError(
                f"b_value has to be positive, got {self.b_value}"
            )
        if self.lambda_eq < 0:
            raise InvalidParameterError(
                f"lambda_eq has to be non-negative, got {self.lambda_eq}"
            )

    @property
    def beta(self) -> float:
        return self.b_value * np.log(10.0)

    @property
    def support(self) -> tuple[float, float]:
        return self.m_min, self.m_max

    def pdf(self, m: ArrayLike) -> ArrayLike:
        m = np.asarray(m, dtype=float)
        beta = self.beta
        # Clip to avoid overflow of exp for magnitudes far outside the support
        m_clip = np.clip(m, self.m_min, self.m_max)
        density = (
            beta
            * np.exp(-beta * (m_clip - self.m_min))
            / (1.0 - np.exp(-beta * (self.m_max - self.m_min)))
        )
        return _to_output(
            np.where((m < self.m_min) | (m > self.m_max), 0.0, density)
        )

    def cdf(self, m: ArrayLike) -> ArrayLike:
        m = np.asarray(m, dtype=float)
        beta = self.beta
        m_clip = np.clip(m, self.m_min, self.m_max)
        prob = (1.0 - np.exp(-beta * (m_clip - self.m_min))) / (
            1.0 - np.exp(-beta * (self.m_max - self.m_min))
        )
        prob = np.where(m <= self.m_min, 0.0, prob)
        return _to_output(np.where(m >= self.m_max, 1.0, prob))


@dataclasses.dataclass(frozen=True)
class YoungsCoppersmith(MagnitudeFrequencyDistribution):
    """
    Characteristic earthquake distribution of Youngs & Coppersmith (1985).

    An exponential branch from m_min up to m_char - dm_char / 2,
    followed by a uniform distribution of characteristic events
    over [m_char - dm_char / 2, m_char + dm_char / 2].

    Parameters
    ----------
    m_min: float
        The minimum magnitude
    m_char: float
        Centre of the characteristic magnitude range
    dm_char: float
        Width of the characteristic magnitude range
    p_char: float
        Probability of a characteristic event
    b_value: float
        The b-value of the exponential branch
    lambda_eq: float
        Total annual rate of earthquakes with magnitude >= m_min
    """

    m_min: float
    m_char: float
    dm_char: float
    p_char: float
    b_value: float
    lambda_eq: float

    def __post_init__(self):
        _check_finite(
            m_min=self.m_min,
            m_char=self.m_char,
            dm_char=self.dm_char,
            p_char=self.p_char,
            b_value=self.b_value,
            lambda_eq=self.lambda_eq,
        )
        if self.dm_char <= 0:
            raise InvalidParameterError(
                f"dm_char has to be positive, got {self.dm_char}"
            )
        if self.m_min >= self.m_char_lo:
            raise InvalidParameterError(
                f"m_min ({self.m_min}) has to be smaller than the lower bound "
                f"of the characteristic range ({self.m_char_lo})"
            )
        if not 0.0 <= self.p_char <= 1.0:
            raise InvalidParameterError(
                f"p_char has to be within [0, 1], got {self.p_char}"
            )
        if self.b_value <= 0:
            raise InvalidParameterError(
                f"b_value has to be positive, got {self.b_value}"
            )
        if self.lambda_eq < 0:
            raise InvalidParameterError(
                f"lambda_eq has to be non-negative, got {self.lambda_eq}"
            )

    @property
    def beta(self) -> float:
        return self.b_value * np.log(10.0)

    @property
    def m_char_lo(self) -> float:
        """Lower bound of the characteristic range, upper bound of the exponential branch"""
        return self.m_char - self.dm_char / 2

    @property
    def m_char_hi(self) -> float:
        """Upper bound of the characteristic range, i.e. the maximum magnitude"""
        return self.m_char + self.dm_char / 2

    @property
    def support(self) -> tuple[float, float]:
        return self.m_min, self.m_char_hi

    @property
    def breakpoints(self) -> tuple[float, ...]:
        return self.m_min, self.m_char_lo, self.m_char_hi

    def pdf(self, m: ArrayLike) -> ArrayLike:
        m = np.asarray(m, dtype=float)
        beta = self.beta
        m_clip = np.clip(m, self.m_min, self.m_char_lo)
        exp_density = (
            (1.0 - self.p_char)
            * beta
            * np.exp(-beta * (m_clip - self.m_min))
            / (1.0 - np.exp(-beta * (self.m_char_lo - self.m_min)))
        )
        density = np.where(m < self.m_char_lo, exp_density, self.p_char / self.dm_char)
        return _to_output(
            np.where((m < self.m_min) | (m > self.m_char_hi), 0.0, density)
        )

    def cdf(self, m: ArrayLike) -> ArrayLike:
        m = np.asarray(m, dtype=float)
        beta = self.beta
        m_clip = np.clip(m, self.m_min, self.m_char_lo)
        exp_prob = (1.0 - self.p_char) * (
            (1.0 - np.exp(-beta * (m_clip - self.m_min)))
            / (1.0 - np.exp(-beta * (self.m_char_lo - self.m_min)))
        )
        char_prob = (1.0 - self.p_char) + self.p_char / self.dm_char * (
            m - self.m_char_lo
        )
        prob = np.clip(np.where(m < self.m_char_lo, exp_prob, char_prob), 0.0, 1.0)
        prob = np.where(m <= self.m_min, 0.0, prob)
        return _to_output(np.where(m >= self.m_char_hi, 1.0, prob))


def _check_finite(**params: float):
    for name, value in params.items():
        if not np.isfinite(value):
            raise InvalidParameterError(f"{name} has to be finite, got {value}")


def make_gr(
    m_min: float, m_max: float, b_value: float, lambda_eq: float
) -> GutenbergRichter:
    """Creates a Gutenberg-Richter distribution"""
    return GutenbergRichter(m_min, m_max, b_value, lambda_eq)


def make_yc(
    m_min: float,
    m_char: float,
    dm_char: float,
    p_char: float,
    b_value: float,
    lambda_eq: float,
) -> YoungsCoppersmith:
    """Creates a Youngs & Coppersmith characteristic distribution"""
    return YoungsCoppersmith(m_min, m_char, dm_char, p_char, b_value, lambda_eq)


def pdf(dist: MagnitudeFrequencyDistribution, m: ArrayLike) -> ArrayLike:
    return dist.pdf(m)


def cdf(dist: MagnitudeFrequencyDistribution, m: ArrayLike) -> ArrayLike:
    return dist.cdf(m)


def ccdf(dist: MagnitudeFrequencyDistribution, m: ArrayLike) -> ArrayLike:
    return dist.ccdf(m)


def rate_of_exceedance(dist: MagnitudeFrequencyDistribution, m: ArrayLike):
    """
    Annual rate of earthquakes with magnitude exceeding m

    Parameters
    ----------
    dist: MagnitudeFrequencyDistribution
    m: float or array of floats

    Returns
    -------
    float or array of floats
    """
    return _to_output(dist.lambda_eq * np.asarray(dist.ccdf(m)))


def rate_of_nonexceedance(dist: MagnitudeFrequencyDistribution, m: ArrayLike):
    """Annual rate of earthquakes with magnitude not exceeding m"""
    return _to_output(dist.lambda_eq * np.asarray(dist.cdf(m)))


def rate_of_occurrence(
    dist: MagnitudeFrequencyDistribution, m_lo: ArrayLike, m_hi: ArrayLike
):
    """
    Annual rate of earthquakes with magnitude in the interval [m_lo, m_hi]

    Parameters
    ----------
    dist: MagnitudeFrequencyDistribution
    m_lo: float or array of floats
        Lower bound(s) of the magnitude interval
    m_hi: float or array of floats
        Upper bound(s) of the magnitude interval

    Returns
    -------
    float or array of floats
    """
    return _to_output(
        dist.lambda_eq * (np.asarray(dist.cdf(m_hi)) - np.asarray(dist.cdf(m_lo)))
    )


def expected_magnitude(
    dist: MagnitudeFrequencyDistribution, m_lo: float, m_hi: float
) -> float:
    """
    Expected magnitude over the interval [m_lo, m_hi], i.e.
    the integral of m * pdf(m) normalised by the probability
    of the interval.

    The integral is evaluated with adaptive quadrature (QUADPACK)
    using fixed tolerances, with the pdf discontinuities
    inside the interval passed as break points.

    Parameters
    ----------
    dist: MagnitudeFrequencyDistribution
    m_lo: float
        Lower bound of the magnitude interval
    m_hi: float
        Upper bound of the magnitude interval

    Returns
    -------
    float
        The expected magnitude

    Raises
    ------
    InvalidParameterError
        If m_lo > m_hi or either bound is not finite
    NumericDegeneracyError
        If the interval has zero probability mass
    """
    _check_finite(m_lo=m_lo, m_hi=m_hi)
    if m_lo > m_hi:
        raise InvalidParameterError(
            f"Lower magnitude bound ({m_lo}) is larger than upper bound ({m_hi})"
        )

    prob = dist.cdf(m_hi) - dist.cdf(m_lo)
    if prob <= 0.0:
        raise NumericDegeneracyError(
            f"The magnitude interval [{m_lo}, {m_hi}] has zero probability mass"
        )

    points = [cur_pt for cur_pt in dist.breakpoints if m_lo < cur_pt < m_hi]
    numer, _ = sp.integrate.quad(
        lambda m: m * dist.pdf(m),
        m_lo,
        m_hi,
        points=points if len(points) > 0 else None,
        epsabs=QUAD_EPSABS,
        epsrel=QUAD_EPSREL,
        limit=QUAD_LIMIT,
    )
    return numer / prob


def get_magnitude_bins(
    dist: MagnitudeFrequencyDistribution,
    dm: float,
    m_min: float | None = None,
    m_max: float | None = None,
) -> pd.DataFrame:
    """
    Discretises the magnitude range into bins of width dm
    and computes the rate of occurrence and expected magnitude
    of each bin.

    Parameters
    ----------
    dist: MagnitudeFrequencyDistribution
    dm: float
        The magnitude bin width
    m_min: float, optional
        Lower edge of the first bin, defaults to
        the lower bound of the distribution support
    m_max: float, optional
        Upper edge of the last bin, defaults to
        the upper bound of the distribution support

    Returns
    -------
    pd.DataFrame
        The magnitude bins
        format: index = bin centre magnitude (mag),
        columns = [mag_lo, mag_hi, prob, rate, mean_mag]

    Raises
    ------
    InvalidParameterError
        If dm is not positive or the magnitude range
        is not an integer number of bins
    """
    support_min, support_max = dist.support
    m_min = support_min if m_min is None else m_min
    m_max = support_max if m_max is None else m_max

    if not dm > 0:
        raise InvalidParameterError(f"Magnitude bin width has to be positive, got {dm}")
    if m_min >= m_max:
        raise InvalidParameterError(
            f"Invalid magnitude range [{m_min}, {m_max}] for discretisation"
        )

    n_bins_exact = (m_max - m_min) / dm
    n_bins = int(np.round(n_bins_exact))
    if n_bins < 1 or not np.isclose(n_bins_exact, n_bins, rtol=0, atol=BIN_TOLERANCE):
        raise InvalidParameterError(
            f"The magnitude range [{m_min}, {m_max}] is not "
            f"a multiple of the bin width {dm}"
        )

    edges = m_min + dm * np.arange(n_bins + 1)
    edges[-1] = m_max
    mag_lo, mag_hi = edges[:-1], edges[1:]

    prob = np.asarray(dist.cdf(mag_hi)) - np.asarray(dist.cdf(mag_lo))
    # Bins without probability mass (e.g. the plateau for p_char = 0)
    # have zero rate and are represented by their centre
    mean_mag = np.asarray(
        [
            expected_magnitude(dist, cur_lo, cur_hi)
            if cur_prob > 0
            else (cur_lo + cur_hi) / 2
            for cur_lo, cur_hi, cur_prob in zip(mag_lo, mag_hi, prob)
        ]
    )

    mag_bins_df = pd.DataFrame(
        index=pd.Index((mag_lo + mag_hi) / 2, name="mag"),
        data={
            "mag_lo": mag_lo,
            "mag_hi": mag_hi,
            "prob": prob,
            "rate": dist.lambda_eq * prob,
            "mean_mag": mean_mag,
        },
    )
    return mag_bins_df
