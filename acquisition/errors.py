"""
Acquisition error taxonomy.

Only terminal failures are exceptions. A short-of-target batch and a
cancelled run are results (see AcquisitionStatus), not errors.
"""


class AcquisitionError(Exception):
    """Base class for acquisition failures."""
    pass


class TransientSourceError(AcquisitionError):
    """The same page failed too many times in a row. No partial result."""

    def __init__(self, source_id: str, cursor: str, attempts: int, last_error: str = ""):
        self.source_id = source_id
        self.cursor = cursor
        self.attempts = attempts
        self.last_error = last_error
        message = f"Failed after {attempts} consecutive errors for {source_id}"
        if last_error:
            message += f". Last error: {last_error}"
        super().__init__(message)


class InsufficientData(AcquisitionError):
    """Fewer valid, deduplicated items than the minimum batch size."""

    def __init__(self, count: int, minimum: int):
        self.count = count
        self.minimum = minimum
        super().__init__(f"Only {count} reviews collected. Minimum {minimum} required.")
