"""Exceptions and warnings raised by the hazard computations"""


class InvalidParameterError(ValueError):
    """
    Raised when a distribution, GMM configuration or
    discretisation is constructed with invalid parameters
    """


class NumericDegeneracyError(ArithmeticError):
    """
    Raised when a computation would divide by a
    zero probability mass, e.g. the expected magnitude
    of an interval with no probability of occurrence
    """


class ModelRangeWarning(UserWarning):
    """
    Issued when inputs fall outside the range
    the ground motion model was derived for.
    The inputs are still used (or clamped for the period).
    """
