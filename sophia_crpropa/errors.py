"""Exceptions raised by the event generator.

Every fatal condition aborts the event in flight, the caller may simply ask
for another event.
"""


class SophiaError(Exception):
    """Base class of all generator errors."""


class SamplingExhausted(SophiaError):
    """A bounded rejection loop ran out of attempts."""

    def __init__(self, what, attempts):
        self.what = what
        self.attempts = attempts
        super().__init__(f'{what}: no accepted sample after {attempts} attempts')


class ConservationError(SophiaError):
    """Energy, momentum, charge or baryon number is not conserved."""


class InvalidCodeError(SophiaError, KeyError):
    """Unknown particle code or missing entry in a mapping table."""

    def __str__(self):
        return Exception.__str__(self)


class ColourFlowError(SophiaError):
    """Colour-flow pointers do not describe valid strings."""


class RecordOverflowError(SophiaError):
    """A particle record ran out of capacity."""


class KinematicsError(SophiaError):
    """A kinematically forbidden configuration was requested."""
