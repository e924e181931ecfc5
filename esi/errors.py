"""Exceptions raised by the ESI reconstruction engine."""


class ESIError(Exception):
    """Base class for all ESI errors."""


class StateError(ESIError, RuntimeError):
    """Raised when an operation needs state that has not been computed yet,
    e.g. a cross-entropy on a trace without probability binning."""


class NumericError(ESIError, ArithmeticError):
    """Raised when a statistic evaluates to NaN."""
