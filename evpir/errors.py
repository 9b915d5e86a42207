"""Exceptions raised by the EV PIR engine."""


class EngineError(Exception):
    """Base class for engine errors."""


class ReferenceDataError(EngineError, LookupError):
    """A utility, service class or equipment id is not in the reference data."""
