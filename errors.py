"""
Engine Errors
=============
Exception taxonomy shared by the AHP, scoring and classification modules.

All failures are synchronous input-validation failures. Nothing here is
retried. Missing data (no target sales, no prior period) is NOT an error and
never raises: it propagates as None.
"""


class EngineError(ValueError):
    """Base class for every failure raised by the engine"""


class InvalidInput(EngineError):
    """Malformed matrix, wrong judgment count, non-positive value, bad history order"""


class InvalidWeights(InvalidInput):
    """Manual weight vector rejected (length mismatch, negative, sum outside tolerance)"""


class DegenerateWeight(EngineError):
    """A derived priority weight collapsed to zero, so lambda_max is undefined"""
