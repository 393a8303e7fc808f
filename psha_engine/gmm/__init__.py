from .as1997 import (
    COEFFS,
    MAX_PERIOD,
    MIN_PERIOD,
    PERIODS,
    AS1997Coeffs,
    GMMConfig,
    abrahamson_silva_1997,
    as1997_base,
    as1997_pga_rock,
    check_coeffs_table,
    clamp_period,
    evaluate_gmm,
    get_coeffs_table,
)

__all__ = [
    "COEFFS",
    "MAX_PERIOD",
    "MIN_PERIOD",
    "PERIODS",
    "AS1997Coeffs",
    "GMMConfig",
    "abrahamson_silva_1997",
    "as1997_base",
    "as1997_pga_rock",
    "check_coeffs_table",
    "clamp_period",
    "evaluate_gmm",
    "get_coeffs_table",
]
