from acquisition.dedup import DedupIndex
from acquisition.engine import Acquirer, AcquisitionState, progress_percent
from acquisition.errors import AcquisitionError, InsufficientData, TransientSourceError
from acquisition.finalizer import finalize
from acquisition.flight import InFlightRegistry
from acquisition.retry import RetryPolicy

__all__ = [
    "Acquirer",
    "AcquisitionState",
    "AcquisitionError",
    "DedupIndex",
    "InFlightRegistry",
    "InsufficientData",
    "RetryPolicy",
    "TransientSourceError",
    "finalize",
    "progress_percent",
]
