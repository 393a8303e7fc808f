"""
Abrahamson & Silva (1997) empirical ground motion model for
spectral acceleration of shallow crustal earthquakes.

Abrahamson, N. A., & Silva, W. J. (1997).
Empirical response spectral attenuation relations for shallow crustal
earthquakes. Seismological Research Letters, 68(1), 94-127.
"""

import dataclasses
import io
import warnings
from typing import NamedTuple

import numpy as np
import pandas as pd

from ..errors import InvalidParameterError, ModelRangeWarning

# Period 0.0 and 0.01 both correspond to PGA,
# the first row is used for the rock PGA model
_COEFFS_TABLE = """\
period   c4       a1       a2       a3       a4       a5       a6       a9       a10      a11      a12      a13      c1       c5       n        b5       b6
0.0      5.6      1.64     0.512    -1.145   -0.144   0.61     0.26     0.37     -0.417   -0.23    0        0.17     6.4      0.03     2        0.7      0.135
0.01     5.6      1.64     0.512    -1.145   -0.144   0.61     0.26     0.37     -0.417   -0.23    0        0.17     6.4      0.03     2        0.7      0.135
0.02     5.6      1.64     0.512    -1.145   -0.144   0.61     0.26     0.37     -0.417   -0.23    0        0.17     6.4      0.03     2        0.7      0.135
0.03     5.6      1.69     0.512    -1.145   -0.144   0.61     0.26     0.37     -0.47    -0.23    0.0143   0.17     6.4      0.03     2        0.7      0.135
0.04     5.6      1.78     0.512    -1.145   -0.144   0.61     0.26     0.37     -0.555   -0.251   0.0245   0.17     6.4      0.03     2        0.71     0.135
0.05     5.6      1.87     0.512    -1.145   -0.144   0.61     0.26     0.37     -0.62    -0.267   0.028    0.17     6.4      0.03     2        0.71     0.135
0.06     5.6      1.94     0.512    -1.145   -0.144   0.61     0.26     0.37     -0.665   -0.28    0.03     0.17     6.4      0.03     2        0.72     0.135
0.075    5.58     2.037    0.512    -1.145   -0.144   0.61     0.26     0.37     -0.628   -0.28    0.03     0.17     6.4      0.03     2        0.73     0.135
0.09     5.54     2.1      0.512    -1.145   -0.144   0.61     0.26     0.37     -0.609   -0.28    0.03     0.17     6.4      0.03     2        0.74     0.135
0.1      5.5      2.16     0.512    -1.145   -0.144   0.61     0.26     0.37     -0.598   -0.28    0.028    0.17     6.4      0.03     2        0.74     0.135
0.12     5.39     2.272    0.512    -1.145   -0.144   0.61     0.26     0.37     -0.591   -0.28    0.018    0.17     6.4      0.03     2        0.75     0.135
0.15     5.27     2.407    0.512    -1.145   -0.144   0.61     0.26     0.37     -0.577   -0.28    0.005    0.17     6.4      0.03     2        0.75     0.135
0.17     5.19     2.43     0.512    -1.135   -0.144   0.61     0.26     0.37     -0.522   -0.265   -0.004   0.17     6.4      0.03     2        0.76     0.135
0.2      5.1      2.406    0.512    -1.115   -0.144   0.61     0.26     0.37     -0.445   -0.245   -0.0138  0.17     6.4      0.03     2        0.77     0.135
0.24     4.97     2.293    0.512    -1.079   -0.144   0.61     0.232    0.37     -0.35    -0.223   -0.0238  0.17     6.4      0.03     2        0.77     0.135
0.3      4.8      2.114    0.512    -1.035   -0.144   0.61     0.198    0.37     -0.219   -0.195   -0.036   0.17     6.4      0.03     2        0.78     0.135
0.36     4.62     1.955    0.512    -1.0052  -0.144   0.61     0.17     0.37     -0.123   -0.173   -0.046   0.17     6.4      0.03     2        0.79     0.135
0.4      4.52     1.86     0.512    -0.988   -0.144   0.61     0.154    0.37     -0.065   -0.16    -0.0518  0.17     6.4      0.03     2        0.79     0.135
0.46     4.38     1.717    0.512    -0.9652  -0.144   0.592    0.132    0.37     0.02     -0.136   -0.0594  0.17     6.4      0.03     2        0.8      0.132
0.5      4.3      1.615    0.512    -0.9515  -0.144   0.581    0.119    0.37     0.085    -0.121   -0.0635  0.17     6.4      0.03     2        0.8      0.13
0.6      4.12     1.428    0.512    -0.9218  -0.144   0.557    0.091    0.37     0.194    -0.089   -0.074   0.17     6.4      0.03     2        0.81     0.127
0.75     3.9      1.16     0.512    -0.8852  -0.144   0.528    0.057    0.331    0.32     -0.05    -0.0862  0.17     6.4      0.03     2        0.81     0.123
0.85     3.81     1.02     0.512    -0.8648  -0.144   0.512    0.038    0.309    0.37     -0.028   -0.0927  0.17     6.4      0.03     2        0.82     0.121
1.0      3.7      0.828    0.512    -0.8383  -0.144   0.49     0.013    0.281    0.423    0        -0.102   0.17     6.4      0.03     2        0.83     0.118
1.5      3.55     0.26     0.512    -0.7721  -0.144   0.438    -0.049   0.21     0.6      0.04     -0.12    0.17     6.4      0.03     2        0.84     0.11
2.0      3.5      -0.15    0.512    -0.725   -0.144   0.4      -0.094   0.16     0.61     0.04     -0.14    0.17     6.4      0.03     2        0.85     0.105
3.0      3.5      -0.69    0.512    -0.725   -0.144   0.4      -0.156   0.089    0.63     0.04     -0.1726  0.17     6.4      0.03     2        0.87     0.097
4.0      3.5      -1.13    0.512    -0.725   -0.144   0.4      -0.2     0.039    0.64     0.04     -0.1956  0.17     6.4      0.03     2        0.88     0.092
5.0      3.5      -1.46    0.512    -0.725   -0.144   0.4      -0.2     0        0.664    0.04     -0.215   0.17     6.4      0.03     2        0.89     0.087
"""

PGA_INDEX = 0

# Magnitude and rupture distance ranges outside of which
# a ModelRangeWarning is issued, the values are still used as is
MAG_RANGE = (4.0, 8.5)
RRUP_RANGE = (0.0, 200.0)


class AS1997Coeffs(NamedTuple):
    """Regression coefficients for a single period"""

    c4: float
    a1: float
    a2: float
    a3: float
    a4: float
    a5: float
    a6: float
    a9: float
    a10: float
    a11: float
    a12: float
    a13: float
    c1: float
    c5: float
    n: float
    b5: float
    b6: float


def check_coeffs_table(coeffs_df: pd.DataFrame):
    """
    Ensures the coefficient table has the expected
    coefficients and strictly increasing periods

    Raises
    ------
    ValueError
        If the table is malformed
    """
    if list(coeffs_df.columns) != list(AS1997Coeffs._fields):
        raise ValueError(f"Unexpected coefficient columns {list(coeffs_df.columns)}")
    if not np.all(np.diff(coeffs_df.index.values.astype(float)) > 0):
        raise ValueError(
            "Periods of the coefficient table have to be strictly increasing"
        )


def get_coeffs_table() -> pd.DataFrame:
    """
    Returns the coefficient table

    Returns
    -------
    pd.DataFrame
        format: index = period, columns = coefficient names
    """
    coeffs_df = pd.read_csv(
        io.StringIO(_COEFFS_TABLE), sep=r"\s+", index_col="period"
    ).astype(float)
    check_coeffs_table(coeffs_df)
    return coeffs_df


def _load_coeffs() -> tuple[np.ndarray, tuple[AS1997Coeffs, ...]]:
    coeffs_df = get_coeffs_table()

    periods = coeffs_df.index.values.astype(float)
    periods.setflags(write=False)

    coeffs = tuple(
        AS1997Coeffs(*cur_row) for cur_row in coeffs_df.itertuples(index=False)
    )
    return periods, coeffs


PERIODS, COEFFS = _load_coeffs()
MIN_PERIOD, MAX_PERIOD = PERIODS[PGA_INDEX + 1], PERIODS[-1]


@dataclasses.dataclass(frozen=True)
class GMMConfig:
    """
    Ground motion model configuration for a hazard calculation

    Parameters
    ----------
    period: float
        The spectral period (s), 0.0 for PGA
    is_soil: int
        1 for soil sites, 0 for rock sites
    fault_type: int
        2 for reverse, 1 for reverse/oblique, 0 otherwise
    hanging_wall: int
        1 if the site is on the hanging wall, 0 otherwise
    """

    period: float = 0.0
    is_soil: int = 0
    fault_type: int = 0
    hanging_wall: int = 0

    def __post_init__(self):
        if not np.isfinite(self.period) or self.period < 0:
            raise InvalidParameterError(
                f"Period has to be a non-negative number, got {self.period}"
            )
        if self.is_soil not in (0, 1):
            raise InvalidParameterError(f"is_soil has to be 0 or 1, got {self.is_soil}")
        if self.fault_type not in (0, 1, 2):
            raise InvalidParameterError(
                f"fault_type has to be 0, 1 or 2, got {self.fault_type}"
            )
        if self.hanging_wall not in (0, 1):
            raise InvalidParameterError(
                f"hanging_wall has to be 0 or 1, got {self.hanging_wall}"
            )

    def with_period(self, period: float) -> "GMMConfig":
        """Returns a copy of the configuration for a different period"""
        return dataclasses.replace(self, period=period)

    def evaluate(self, m: float, r: float) -> tuple[float, float]:
        """Mean and standard deviation of lnSa for the given magnitude and distance"""
        return abrahamson_silva_1997(
            self.period, m, r, self.is_soil, self.fault_type, self.hanging_wall
        )


def _f1(C: AS1997Coeffs, m: float, r: float) -> float:
    """Magnitude and distance scaling"""
    slope = C.a2 if m <= C.c1 else C.a4
    return (
        C.a1
        + slope * (m - C.c1)
        + C.a12 * (8.5 - m) ** C.n
        + (C.a3 + C.a13 * (m - C.c1)) * np.log(np.sqrt(r**2 + C.c4**2))
    )


def _f3(C: AS1997Coeffs, m: float, fault_type: int) -> float:
    """Style-of-faulting term"""
    if fault_type == 0:
        return 0.0

    if m <= 5.8:
        f3 = C.a5
    elif m < C.c1:
        f3 = C.a5 + (C.a6 - C.a5) * (m - 5.8) / (C.c1 - 5.8)
    else:
        f3 = C.a6
    return f3 * fault_type / 2.0


def _f4(C: AS1997Coeffs, m: float, r: float, hanging_wall: int) -> float:
    """Hanging wall term"""
    if hanging_wall == 0:
        return 0.0

    if m <= 5.5:
        fhw_m = 0.0
    elif m < 6.5:
        fhw_m = m - 5.5
    else:
        fhw_m = 1.0

    if r < 4.0:
        fhw_r = 0.0
    elif r < 8.0:
        fhw_r = C.a9 * (r - 4.0) / 4.0
    elif r < 18.0:
        fhw_r = C.a9
    elif r < 24.0:
        fhw_r = C.a9 * (1.0 - (r - 18.0) / 7.0)
    else:
        fhw_r = 0.0

    return fhw_m * fhw_r


def _sigma(C: AS1997Coeffs, m: float) -> float:
    """Magnitude dependent standard deviation of lnSa"""
    if m <= 5.0:
        return C.b5
    if m >= 7.0:
        return C.b5 - 2.0 * C.b6
    return C.b5 - (m - 5.0) * C.b6


def as1997_pga_rock(
    m: float, r: float, fault_type: int, hanging_wall: int = 0
) -> float:
    """
    Median peak ground acceleration on rock, used for
    the nonlinear site response of soil sites.

    Parameters
    ----------
    m: float
        Moment magnitude
    r: float
        Rupture distance (km)
    fault_type: int
        2 for reverse, 1 for reverse/oblique, 0 otherwise
    hanging_wall: int, optional
        1 if the site is on the hanging wall, 0 otherwise

    Returns
    -------
    float
        PGA on rock (g)
    """
    C = COEFFS[PGA_INDEX]
    return float(
        np.exp(_f1(C, m, r) + _f3(C, m, fault_type) + _f4(C, m, r, hanging_wall))
    )


def as1997_base(
    idx: int,
    pga_rock: float,
    m: float,
    r: float,
    is_soil: int,
    fault_type: int,
    hanging_wall: int = 0,
) -> tuple[float, float]:
    """
    Evaluates the model at the tabulated period with the given index

    Parameters
    ----------
    idx: int
        Index into PERIODS
    pga_rock: float
        PGA on rock (g), only used for soil sites
    m: float
        Moment magnitude
    r: float
        Rupture distance (km)
    is_soil: int
        1 for soil sites, 0 for rock sites
    fault_type: int
        2 for reverse, 1 for reverse/oblique, 0 otherwise
    hanging_wall: int, optional
        1 if the site is on the hanging wall, 0 otherwise

    Returns
    -------
    mu_lnSa: float
        Mean of lnSa (Sa in g)
    sigma_lnSa: float
        Standard deviation of lnSa
    """
    C = COEFFS[idx]

    f5 = C.a10 + C.a11 * np.log(pga_rock + C.c5) if is_soil == 1 else 0.0
    mu_lnSa = (
        _f1(C, m, r) + _f3(C, m, fault_type) + _f4(C, m, r, hanging_wall) + f5
    )
    return float(mu_lnSa), float(_sigma(C, m))


def clamp_period(period: float) -> float:
    """
    Restricts the period to the tabulated range.

    Periods below 0.01s (i.e. PGA) are set to 0.01s,
    periods above 5.0s are set to 5.0s (with a warning).
    """
    if period > MAX_PERIOD:
        warnings.warn(
            f"Period {period}s is above the maximum period of the model, "
            f"using {MAX_PERIOD}s instead",
            ModelRangeWarning,
            stacklevel=3,
        )
        return float(MAX_PERIOD)
    if period < 0.0:
        warnings.warn(
            f"Negative period {period}s, using {MIN_PERIOD}s (PGA) instead",
            ModelRangeWarning,
            stacklevel=3,
        )
    if period < MIN_PERIOD:
        return float(MIN_PERIOD)
    return float(period)


def _check_ranges(m: float, r: float):
    if not MAG_RANGE[0] <= m <= MAG_RANGE[1]:
        warnings.warn(
            f"Magnitude {m} is outside the applicable range {MAG_RANGE}",
            ModelRangeWarning,
            stacklevel=3,
        )
    if not RRUP_RANGE[0] <= r <= RRUP_RANGE[1]:
        warnings.warn(
            f"Rupture distance {r}km is outside the applicable range {RRUP_RANGE}",
            ModelRangeWarning,
            stacklevel=3,
        )


def abrahamson_silva_1997(
    period: float,
    m: float,
    r: float,
    is_soil: int,
    fault_type: int,
    hanging_wall: int = 0,
) -> tuple[float, float]:
    """
    Abrahamson & Silva (1997) ground motion model

    For periods between the tabulated periods the mean and
    standard deviation are interpolated linearly in ln(period).

    Magnitude and distance are not restricted to the
    range of the model, values outside of MAG_RANGE and RRUP_RANGE
    are used as is and a ModelRangeWarning is issued.

    Parameters
    ----------
    period: float
        Spectral period (s), restricted to [0.01, 5.0]
    m: float
        Moment magnitude
    r: float
        Rupture distance (km)
    is_soil: int
        1 for soil sites, 0 for rock sites
    fault_type: int
        2 for reverse, 1 for reverse/oblique, 0 otherwise
    hanging_wall: int, optional
        1 if the site is on the hanging wall, 0 otherwise

    Returns
    -------
    mu_lnSa: float
        Mean of lnSa (Sa in g)
    sigma_lnSa: float
        Standard deviation of lnSa
    """
    _check_ranges(m, r)

    # Only required for soil sites and is independent of period
    pga_rock = as1997_pga_rock(m, r, fault_type, hanging_wall) if is_soil == 1 else np.nan

    period = clamp_period(period)
    idx_hi = int(np.searchsorted(PERIODS, period, side="left"))
    if PERIODS[idx_hi] == period:
        return as1997_base(idx_hi, pga_rock, m, r, is_soil, fault_type, hanging_wall)

    idx_lo = idx_hi - 1
    mu_lo, sigma_lo = as1997_base(
        idx_lo, pga_rock, m, r, is_soil, fault_type, hanging_wall
    )
    mu_hi, sigma_hi = as1997_base(
        idx_hi, pga_rock, m, r, is_soil, fault_type, hanging_wall
    )

    weight = np.log(period / PERIODS[idx_lo]) / np.log(PERIODS[idx_hi] / PERIODS[idx_lo])
    return (
        float(mu_lo + weight * (mu_hi - mu_lo)),
        float(sigma_lo + weight * (sigma_hi - sigma_lo)),
    )


evaluate_gmm = abrahamson_silva_1997
